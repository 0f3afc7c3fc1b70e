from __future__ import annotations

import io

import pytest
from rich.console import Console

from refscrape.ui import ProgressReporter


def test_counters_without_display() -> None:
    reporter = ProgressReporter(enabled=False)
    reporter.start(total=3, skipped=5)
    reporter.advance(current_url="https://docs.example.com/x86/a")
    reporter.advance(failed=True, current_url="https://docs.example.com/x86/b")
    reporter.close()

    assert reporter.summary() == {"scraped": 1, "failed": 1, "skipped": 5}
    assert reporter.state.current_url == "https://docs.example.com/x86/b"


def test_non_terminal_console_stays_silent() -> None:
    stream = io.StringIO()
    reporter = ProgressReporter(enabled=True, console=Console(file=stream, force_terminal=False))
    reporter.start(total=1)
    reporter.advance()
    reporter.close()

    assert reporter.enabled is False
    assert stream.getvalue() == ""


def test_terminal_console_renders_and_truncates() -> None:
    stream = io.StringIO()
    console = Console(file=stream, force_terminal=True, width=120)
    reporter = ProgressReporter(enabled=True, console=console, max_url_length=20)
    reporter.set_label("x86")
    reporter.start(total=2)
    reporter.advance(current_url="https://docs.example.com/x86/very/long/path")
    reporter.advance(failed=True)
    reporter.close()

    assert reporter.summary() == {"scraped": 1, "failed": 1, "skipped": 0}


def test_advance_requires_start() -> None:
    with pytest.raises(RuntimeError):
        ProgressReporter(enabled=False).advance()


def test_summary_before_start() -> None:
    assert ProgressReporter(enabled=False).summary() == {"scraped": 0, "failed": 0, "skipped": 0}
