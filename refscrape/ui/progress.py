"""Terminal progress rendering for extraction runs."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text


@dataclass
class ProgressState:
    total: int
    scraped: int = 0
    failed: int = 0
    skipped: int = 0
    current_url: str | None = None


class RateColumn(ProgressColumn):
    """Pages processed per second."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.1f} page/s", style="progress.percentage")


class ProgressReporter:
    """Render progress and maintain counters for CLI feedback."""

    def __init__(
        self,
        enabled: bool = True,
        console: Console | None = None,
        max_url_length: int = 60,
    ) -> None:
        self.enabled = enabled
        self.max_url_length = max_url_length
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ProgressState | None = None
        self._label = "extract"

    def set_label(self, label: str) -> None:
        self._label = label
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, profile=label)

    def start(self, total: int, skipped: int = 0) -> None:
        self.state = ProgressState(total=total, skipped=skipped)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # Non-interactive output stays silent.
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[profile]:<12}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            RateColumn(),
            TextColumn("[green]✓{task.fields[scraped]:>4}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>4}", justify="right"),
            TextColumn("[dim]{task.fields[current_url]}", justify="left"),
            refresh_per_second=10,
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            # Another live display owns the console.
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "extract",
            total=total,
            profile=self._label,
            scraped=0,
            failed=0,
            current_url="",
        )

    def advance(self, failed: bool = False, current_url: str | None = None) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        if current_url:
            self.state.current_url = current_url
        if failed:
            self.state.failed += 1
        else:
            self.state.scraped += 1
        if self._progress is not None and self._task_id is not None:
            display_url = self.state.current_url or ""
            if len(display_url) > self.max_url_length:
                display_url = display_url[: self.max_url_length - 3] + "..."
            self._progress.update(
                self._task_id,
                advance=1,
                scraped=self.state.scraped,
                failed=self.state.failed,
                current_url=display_url,
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"scraped": 0, "failed": 0, "skipped": 0}
        return {
            "scraped": self.state.scraped,
            "failed": self.state.failed,
            "skipped": self.state.skipped,
        }


__all__ = ["ProgressReporter", "ProgressState", "RateColumn"]
