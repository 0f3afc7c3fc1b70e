from __future__ import annotations

import json

import pytest

from refscrape.config import ConfigRepository
from refscrape.errors import DiscoveryFailure
from refscrape.orchestrator import Orchestrator

INDEX_URL = "https://docs.example.com/x86/"

SMALL_INDEX = """
<html><body><h2>Core Instructions</h2>
<table>
  <tr><td><a href="/x86/a">A</a></td></tr>
  <tr><td><a href="/x86/b">B</a></td></tr>
  <tr><td><a href="/x86/c">C</a></td></tr>
</table></body></html>
"""


def _page(name: str) -> str:
    return f"<html><body><h1>{name}</h1><h2 id='description'>Description</h2><p>{name} text</p></body></html>"


@pytest.fixture
def pages_setup(temp_config_repository: ConfigRepository, sample_profile):
    temp_config_repository.save_profile(sample_profile(max_workers=2))
    return temp_config_repository


def _read(path) -> list[dict]:
    return json.loads(path.read_text(encoding="utf-8"))


def test_run_records_errors_and_resumes(pages_setup: ConfigRepository, site_transport) -> None:
    pages = {INDEX_URL: SMALL_INDEX, f"{INDEX_URL}a": _page("A"), f"{INDEX_URL}c": _page("C")}
    orchestrator = Orchestrator(pages_setup, transport=site_transport(pages))

    summary = orchestrator.run_profile("example")

    payload = _read(summary.output_path)
    assert [entry["url"] for entry in payload] == [f"{INDEX_URL}a", f"{INDEX_URL}b", f"{INDEX_URL}c"]
    errors = [entry for entry in payload if "error" in entry]
    assert len(errors) == 1
    assert "404 Not Found" in errors[0]["error"]
    assert payload[0]["instructionName"] == "A"
    assert payload[0]["descriptionText"] == "A text"
    assert (summary.scraped, summary.errors, summary.skipped) == (2, 1, 0)
    assert summary.dataset_total == 3

    hits: list[str] = []
    pages[f"{INDEX_URL}b"] = _page("B")
    second = Orchestrator(pages_setup, transport=site_transport(pages, hits))

    summary = second.run_profile("example")

    assert hits == [INDEX_URL, f"{INDEX_URL}b"]
    assert (summary.scraped, summary.errors, summary.skipped) == (1, 0, 2)
    payload = _read(summary.output_path)
    assert len(payload) == 3
    assert not any("error" in entry for entry in payload)


def test_rerun_with_nothing_pending_rewrites_same_dataset(pages_setup: ConfigRepository, site_transport) -> None:
    pages = {INDEX_URL: SMALL_INDEX, **{f"{INDEX_URL}{n}": _page(n.upper()) for n in "abc"}}
    orchestrator = Orchestrator(pages_setup, transport=site_transport(pages))
    first = orchestrator.run_profile("example")
    before = first.output_path.read_text(encoding="utf-8")

    second = orchestrator.run_profile("example")

    assert second.attempted == 0
    assert second.skipped == 3
    assert second.output_path.read_text(encoding="utf-8") == before


def test_prior_entries_missing_from_index_are_kept(pages_setup: ConfigRepository, site_transport) -> None:
    orchestrator = Orchestrator(pages_setup, transport=site_transport({INDEX_URL: SMALL_INDEX}))
    output = orchestrator.output_path(pages_setup.load_profile("example"))
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps([{"url": "https://docs.example.com/x86/gone", "category": "Old"}]), encoding="utf-8")

    summary = orchestrator.run_profile("example")

    urls = [entry["url"] for entry in _read(output)]
    assert "https://docs.example.com/x86/gone" in urls
    assert summary.dataset_total == 4
    assert summary.dataset_errors == 3


def test_index_failure_aborts_without_writing(pages_setup: ConfigRepository, site_transport) -> None:
    orchestrator = Orchestrator(pages_setup, transport=site_transport({}))

    with pytest.raises(DiscoveryFailure):
        orchestrator.run_profile("example")

    assert not orchestrator.output_path(pages_setup.load_profile("example")).exists()


def test_output_override_and_status(pages_setup: ConfigRepository, site_transport, tmp_path) -> None:
    pages = {INDEX_URL: SMALL_INDEX, f"{INDEX_URL}a": _page("A")}
    orchestrator = Orchestrator(pages_setup, transport=site_transport(pages))
    target = tmp_path / "custom.json"

    summary = orchestrator.run_profile("example", output=target, max_workers=1)

    assert summary.output_path == target
    assert len(_read(target)) == 3
    status = orchestrator.dataset_status("example")
    assert status["exists"] is False

    orchestrator.run_profile("example")
    status = orchestrator.dataset_status("example")
    assert (status["total"], status["successful"], status["failed"]) == (3, 1, 2)
    assert orchestrator.reset_dataset("example") is True
    assert orchestrator.reset_dataset("example") is False


def test_catalog_profile_run(temp_config_repository: ConfigRepository, site_transport) -> None:
    profile = temp_config_repository.profile_from_template("jvm", "jvm.yaml")
    html = """
    <html><body><table class="wikitable"><tbody>
      <tr><th>Mnemonic</th></tr>
      <tr><td>iadd</td><td>60</td><td>0110 0000</td><td></td><td>value1, value2 → result</td><td>add two ints</td></tr>
    </tbody></table></body></html>
    """
    orchestrator = Orchestrator(temp_config_repository, transport=site_transport({profile.index_url: html}))

    summary = orchestrator.run_profile("jvm")

    assert summary.output_path.name == "jvm_instructions.json"
    assert _read(summary.output_path) == [
        {
            "mnemonic": "iadd",
            "opcode": "iadd = 96 (0x60)",
            "operation": "add two ints",
            "format": "iadd",
            "operandStackBefore": "value1, value2",
            "operandStackAfter": "result",
            "description": "add two ints",
            "anchorId": "jvm-iadd",
        }
    ]
    assert summary.scraped == summary.dataset_total == 1


def test_catalog_fetch_failure(temp_config_repository: ConfigRepository, site_transport) -> None:
    temp_config_repository.profile_from_template("jvm", "jvm.yaml")
    orchestrator = Orchestrator(temp_config_repository, transport=site_transport({}))

    with pytest.raises(DiscoveryFailure, match="404"):
        orchestrator.run_profile("jvm")
