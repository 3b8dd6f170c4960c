"""Main CLI entry point for benchwatch.

This module defines the Typer application and all CLI commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from benchwatch import __version__
from benchwatch.benchmarks import HistoryStore, JSONFileStore
from benchwatch.benchmarks.codec import loads_run
from benchwatch.core.config import DetectionConfig, Settings
from benchwatch.core.exceptions import BenchwatchError
from benchwatch.core.ingest import IngestionPipeline
from benchwatch.regression.models import Report
from benchwatch.reporters import ConsoleReporter, JSONReporter, MarkdownReporter

if TYPE_CHECKING:
    from benchwatch.core.types import HistoryEntry, Run

# Create the main Typer app
app = typer.Typer(
    name="benchwatch",
    help="benchwatch: Benchmark history and regression detection for CI.",
    add_completion=False,
    no_args_is_help=True,
)

# Global state for options
state: dict[str, bool] = {
    "json": False,
    "no_color": False,
}


class OutputFormat(str, Enum):
    """Report output formats."""

    CONSOLE = "console"
    JSON = "json"
    MARKDOWN = "markdown"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"benchwatch v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option(
            "--no-color",
            help="Disable colored output.",
        ),
    ] = False,
) -> None:
    """benchwatch: Benchmark history and regression detection.

    Record benchmark runs and flag performance regressions in CI.
    """
    state["json"] = json_output
    state["no_color"] = no_color


def _load_settings() -> Settings:
    try:
        settings = Settings.load()
    except BenchwatchError as e:
        raise _fail(str(e)) from e
    _configure_logging(settings)
    return settings


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str, code: int = 2) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code)


@app.command()
def version() -> None:
    """Show the current version."""
    typer.echo(f"benchwatch v{__version__}")


@app.command()
def ingest(
    run_file: Annotated[
        Path,
        typer.Argument(
            help="Run JSON file (commit, date, tool, benches).",
        ),
    ],
    data: Annotated[
        str | None,
        typer.Option(
            "--data",
            "-d",
            help="History file (data.js or JSON). Defaults to BENCHWATCH_DATA_FILE.",
        ),
    ] = None,
    suite: Annotated[
        str | None,
        typer.Option(
            "--suite",
            "-s",
            help="Suite key inside the history file.",
        ),
    ] = None,
    config: Annotated[
        str | None,
        typer.Option(
            "--config",
            "-c",
            help="Detection configuration YAML.",
        ),
    ] = None,
    threshold: Annotated[
        str | None,
        typer.Option(
            "--threshold",
            "-t",
            help="Alert threshold, e.g. 1.5 or 150%.",
        ),
    ] = None,
    window: Annotated[
        int | None,
        typer.Option(
            "--window",
            "-w",
            help="Compare against the mean of the last N runs.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Report format.",
        ),
    ] = OutputFormat.CONSOLE,
    output: Annotated[
        str | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the report to this file instead of stdout.",
        ),
    ] = None,
    fail_on_regression: Annotated[
        bool,
        typer.Option(
            "--fail-on-regression/--no-fail-on-regression",
            help="Exit with code 1 when a regression crosses the fail threshold.",
        ),
    ] = True,
) -> None:
    """Ingest a benchmark run and report regressions.

    Appends the run to the history file and compares every benchmark
    against its baseline.

    Exit codes: 0 = pass, 1 = regression, 2 = invalid input or storage error.
    """
    settings = _load_settings()

    if not run_file.exists():
        raise _fail(f"Run file not found: {run_file}")

    try:
        run = loads_run(run_file.read_text(encoding="utf-8"))
    except ValueError as e:
        raise _fail(str(e)) from e

    try:
        detection = DetectionConfig.from_yaml(config) if config else settings.detection_config()
        detection = detection.with_overrides(relative_threshold=threshold, window_size=window)
        report = asyncio.run(
            _ingest(
                data_file=data or settings.data_file,
                suite=suite or settings.suite,
                detection=detection,
                run=run,
            )
        )
    except BenchwatchError as e:
        raise _fail(str(e)) from e

    fmt = OutputFormat.JSON if state["json"] else output_format
    if fmt is OutputFormat.JSON:
        text = JSONReporter().report(report)
    elif fmt is OutputFormat.MARKDOWN:
        text = MarkdownReporter(threshold=detection.threshold.relative_threshold).report(report)
    else:
        text = None

    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text if text is not None else report.summary() + "\n", encoding="utf-8")
        typer.echo(f"Report saved to: {output}")
    elif text is not None:
        typer.echo(text)
    else:
        ConsoleReporter(use_colors=not state["no_color"]).report(report)

    if fail_on_regression and report.should_fail:
        raise typer.Exit(1)


async def _ingest(data_file: str, suite: str, detection: DetectionConfig, run: Run) -> Report:
    async with HistoryStore(JSONFileStore(data_file), suite=suite) as store:
        pipeline = IngestionPipeline(store, detection)
        return await pipeline.ingest(run)


@app.command()
def series(
    name: Annotated[
        str,
        typer.Argument(
            help="Benchmark name.",
        ),
    ],
    data: Annotated[
        str | None,
        typer.Option(
            "--data",
            "-d",
            help="History file (data.js or JSON). Defaults to BENCHWATCH_DATA_FILE.",
        ),
    ] = None,
    suite: Annotated[
        str | None,
        typer.Option(
            "--suite",
            "-s",
            help="Suite key inside the history file.",
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            help="Show only the most recent N entries.",
        ),
    ] = None,
) -> None:
    """Show the recorded history of one benchmark."""
    settings = _load_settings()

    try:
        entries = asyncio.run(_series(data or settings.data_file, suite or settings.suite, name))
    except BenchwatchError as e:
        raise _fail(str(e)) from e

    if limit is not None:
        entries = entries[-limit:] if limit > 0 else ()

    if state["json"]:
        typer.echo(JSONReporter().report_series(name, entries))
    else:
        ConsoleReporter(use_colors=not state["no_color"]).report_series(name, entries)


async def _series(data_file: str, suite: str, name: str) -> tuple[HistoryEntry, ...]:
    store = HistoryStore(JSONFileStore(data_file), suite=suite)
    await store.load()
    return store.series(name)


@app.command()
def benchmarks(
    data: Annotated[
        str | None,
        typer.Option(
            "--data",
            "-d",
            help="History file (data.js or JSON). Defaults to BENCHWATCH_DATA_FILE.",
        ),
    ] = None,
    suite: Annotated[
        str | None,
        typer.Option(
            "--suite",
            "-s",
            help="Suite key inside the history file.",
        ),
    ] = None,
) -> None:
    """List the benchmarks recorded in a suite."""
    settings = _load_settings()

    async def _names() -> list[tuple[str, str | None, int]]:
        store = HistoryStore(JSONFileStore(data or settings.data_file), suite=suite or settings.suite)
        await store.load()
        return [(n, store.tool_for(n), len(store.series(n))) for n in store.names()]

    try:
        rows = asyncio.run(_names())
    except BenchwatchError as e:
        raise _fail(str(e)) from e

    if state["json"]:
        typer.echo(json.dumps([{"name": n, "tool": t, "entries": c} for n, t, c in rows], indent=2))
        return
    if not rows:
        typer.echo("No benchmarks recorded.")
        return
    for benchmark_name, tool, count in rows:
        typer.echo(f"  {benchmark_name:<40} {tool or '-':<12} {count} entries")


if __name__ == "__main__":
    app()
