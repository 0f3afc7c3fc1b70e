"""Typer CLI entrypoint for refscrape."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import typer
import yaml
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, SiteProfile
from .errors import RefscrapeError
from .logging_conf import available_profile_logs, configure_logging, profile_log_path, run_log_path, tail_log
from .orchestrator import Orchestrator, RunSummary
from .ui import ProgressReporter

app = typer.Typer(
    help="refscrape: resumable extraction of instruction reference data",
    no_args_is_help=True,
    rich_markup_mode=None,
)
profile_app = typer.Typer(
    name="profile",
    help="Manage site profiles.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    orchestrator = Orchestrator(config_repository=repository)
    return AppState(repository=repository, orchestrator=orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _load_profile_or_exit(state: AppState, name: str) -> SiteProfile:
    try:
        return state.repository.load_profile(name)
    except FileNotFoundError:
        console.print(f"Profile `{name}` not found. Create it with `refscrape profile add`.", style="red")
        raise typer.Exit(code=1)
    except (ValidationError, ValueError, yaml.YAMLError) as exc:
        console.print(f"Profile `{name}` is invalid:", style="red")
        console.print(str(exc), style="red", markup=False, highlight=False)
        raise typer.Exit(code=1)


def _render_profiles_table(profiles: Sequence[SiteProfile]) -> Table:
    table = Table(title=f"Profiles · {len(profiles)}", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Mode", style="magenta")
    table.add_column("Index URL", style="green", overflow="fold")
    table.add_column("Output", style="yellow")
    for profile in profiles:
        table.add_row(
            profile.profile_name,
            profile.mode.value,
            profile.index_url,
            profile.output_file or f"{profile.profile_name}.json",
        )
    return table


def _render_summary(summary: RunSummary) -> Table:
    table = Table(title=f"{summary.profile} run", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Links on index", str(summary.discovered))
    table.add_row("Already successful", str(summary.skipped))
    table.add_row("Scraped", str(summary.scraped))
    table.add_row("Errors", str(summary.errors))
    table.add_row("Dataset total", str(summary.dataset_total))
    table.add_row("Dataset errors", str(summary.dataset_errors))
    return table


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


app.add_typer(profile_app, name="profile")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Extract a profile, retrying only failed or new pages.")
def run(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile name."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Dataset file to read and write."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Maximum concurrent workers."),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line summary only."),
) -> None:
    state = _get_state(ctx)
    profile = _load_profile_or_exit(state, name)
    progress_flag = (
        _progress_default_enabled()
        and state.orchestrator.global_config.enable_progress_bar
        and not quiet
    )
    max_len = state.orchestrator.global_config.max_url_display_length
    try:
        summary = state.orchestrator.run_profile(
            profile.profile_name,
            output=output,
            max_workers=workers,
            progress_factory=lambda _label: ProgressReporter(
                enabled=progress_flag, console=console, max_url_length=max_len
            ),
        )
    except RefscrapeError as exc:
        console.print(f"Run failed: {exc}", style="red")
        raise typer.Exit(code=1)
    if quiet:
        console.print(
            f"Done: scraped {summary.scraped}, errors {summary.errors}, "
            f"skipped {summary.skipped}, dataset {summary.dataset_total}"
        )
        return
    console.print(_render_summary(summary))
    console.print(f"Dataset written to {summary.output_path}", style="dim")


@app.command("status", help="Show success/failure counts of a profile's dataset.")
def status(ctx: typer.Context, name: str = typer.Argument(..., help="Profile name.")) -> None:
    state = _get_state(ctx)
    _load_profile_or_exit(state, name)
    info = state.orchestrator.dataset_status(name)
    if not info["exists"]:
        console.print(f"No dataset yet at {info['path']}.", style="yellow")
        return
    console.print(
        f"{info['path']}: {info['total']} records, "
        f"{info['successful']} successful, {info['failed']} failed"
    )


@profile_app.command("list", help="List configured profiles and available templates.")
def profile_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    profiles = state.repository.list_profiles()
    if not profiles:
        templates = ", ".join(state.repository.list_templates())
        console.print(
            f"No profiles yet. Create one with `refscrape profile add NAME --template` ({templates}).",
            style="yellow",
        )
        raise typer.Exit(code=0)
    console.print(_render_profiles_table(profiles))


@profile_app.command("add", help="Create a profile from a built-in template.")
def profile_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile name."),
    template: str = typer.Option("x86.yaml", "--template", help="Built-in template file."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing profile."),
) -> None:
    state = _get_state(ctx)
    name = name.strip()
    if not name:
        console.print("Profile name cannot be empty.", style="red")
        raise typer.Exit(code=1)
    if state.repository.profile_path(name).exists() and not force:
        console.print(f"Profile `{name}` already exists (use --force).", style="red")
        raise typer.Exit(code=1)
    try:
        profile = state.repository.profile_from_template(name, template)
    except FileNotFoundError:
        templates = ", ".join(state.repository.list_templates())
        console.print(f"Unknown template `{template}`. Available: {templates}", style="red")
        raise typer.Exit(code=1)
    console.print(
        f"Profile `{profile.profile_name}` created at {state.repository.profile_path(name)}.",
        style="green",
    )


@profile_app.command("show", help="Print a profile as YAML.")
def profile_show(ctx: typer.Context, name: str = typer.Argument(..., help="Profile name.")) -> None:
    state = _get_state(ctx)
    profile = _load_profile_or_exit(state, name)
    console.print(
        yaml.safe_dump(
            profile.model_dump(mode="json", exclude_none=True), allow_unicode=True, sort_keys=False
        ),
        markup=False,
        highlight=False,
    )


@profile_app.command("remove", help="Delete a profile and its dataset.")
def profile_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile name."),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
    keep_data: bool = typer.Option(False, "--keep-data", help="Keep the dataset file."),
) -> None:
    state = _get_state(ctx)
    _load_profile_or_exit(state, name)
    if not yes and not typer.confirm(f"Delete profile `{name}`?", default=False):
        console.print("Cancelled.", style="yellow")
        raise typer.Exit(code=0)
    if not keep_data:
        state.orchestrator.reset_dataset(name)
    state.repository.delete_profile(name)
    console.print(f"Profile `{name}` removed.", style="green")


@log_app.command("tail", help="Show the last lines of the run log or a profile log.")
def log_tail(
    profile: Optional[str] = typer.Option(None, "--profile", help="Profile log to show."),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines."),
) -> None:
    path = profile_log_path(profile) if profile else run_log_path()
    content = tail_log(path, lines)
    if not content:
        available = ", ".join(p.stem for p in available_profile_logs()) or "none"
        console.print(f"No log lines at {path}. Profile logs: {available}", style="yellow")
        return
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
