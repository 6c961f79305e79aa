"""Typer CLI entrypoint for problem-titles."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, ExtractorConfig
from .errors import ProblemTitlesError
from .logging_conf import application_log_path, configure_logging, tail_log
from .orchestrator import Orchestrator, RunSummary

app = typer.Typer(
    help="Extract problem e-book titles from e-reader crash reports.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
known_app = typer.Typer(
    name="known",
    help="Inspect or extend the known-titles store.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect application logs.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: ExtractorConfig
    orchestrator: Orchestrator


def build_state(verbose: bool, config_path: Optional[Path] = None) -> AppState:
    repository = ConfigRepository()
    config = repository.load_config(config_path)
    logger = configure_logging(verbose=verbose)
    orchestrator = Orchestrator(
        config=config,
        base_dir=repository.locator.project_root,
        logger=logger.bind(component="orchestrator"),
    )
    return AppState(repository=repository, config=config, orchestrator=orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _render_summary_table(summary: RunSummary) -> Table:
    table = Table(title="Run summary", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Lines read", str(summary.lines))
    table.add_row("Adobe titles", str(summary.adobe))
    table.add_row("Open titles", str(summary.open))
    table.add_row("Side-loaded titles", str(summary.side_loaded))
    table.add_row("Already known", str(summary.known))
    table.add_row("Duplicates in report", str(summary.duplicate))
    table.add_row("PDF lines", str(summary.pdf))
    table.add_row("Ignored versions", str(summary.version_filtered))
    table.add_row("Without sourceURL", str(summary.no_source))
    table.add_row("Malformed lines", str(summary.malformed))
    return table


app.add_typer(known_app, name="known")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Read configuration from this YAML/JSON file."
    ),
) -> None:
    try:
        ctx.obj = build_state(verbose, config_path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"Configuration error: {exc}", style="red")
        raise typer.Exit(code=1)


@app.command("discover", help="Process a crash report and write the titles report.")
def discover(
    ctx: typer.Context,
    report: Path = typer.Argument(..., help="Path of the '|' delimited crash report."),
    ignore_versions: bool = typer.Option(
        False,
        "-i",
        "--ignore-versions",
        help="Skip lines whose app version matches the configured ignore list.",
    ),
    no_archive: bool = typer.Option(
        False, "--no-archive", help="Leave the input report in place after the run."
    ),
) -> None:
    state = _get_state(ctx)
    console.print("Processing data...", style="dim")
    try:
        summary = state.orchestrator.run(
            report,
            ignore_previous_versions=ignore_versions,
            archive=not no_archive,
        )
    except ProblemTitlesError as exc:
        console.print(f"An error has occurred: {exc}", style="red")
        raise typer.Exit(code=1)

    console.print(_render_summary_table(summary))
    if summary.report_path is not None:
        console.print(f"Output generated in the following location: {summary.report_path}", style="green")
    else:
        console.print("There were no new titles to add.", style="yellow")
    if summary.archived_path is not None:
        console.print(f"Input archived to {summary.archived_path}", style="dim")


@known_app.command("list", help="List reservation tokens already reported.")
def known_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    store = state.orchestrator.known_store()
    tokens = store.tokens()
    if not tokens:
        console.print("No known titles recorded yet.", style="yellow")
        return
    table = Table(title=f"Known titles · {len(tokens)}", box=box.SIMPLE_HEAD)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Reservation token", style="cyan", no_wrap=True)
    for index, token in enumerate(tokens, start=1):
        table.add_row(str(index), token)
    console.print(table)


@known_app.command("import", help="Mark the titles of a previous report as known.")
def known_import(
    ctx: typer.Context,
    report: Path = typer.Argument(..., help="A previously generated titles report."),
) -> None:
    state = _get_state(ctx)
    try:
        imported = state.orchestrator.import_known(report)
    except ProblemTitlesError as exc:
        console.print(f"An error has occurred: {exc}", style="red")
        raise typer.Exit(code=1)
    console.print(f"Imported {len(imported)} new known titles.", style="green")


@log_app.command("show", help="Show the most recent application log lines.")
def log_show(
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
) -> None:
    lines = tail_log(application_log_path(), tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"Application log · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
