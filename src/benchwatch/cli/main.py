"""Main CLI entry point for benchwatch.

This module defines the Typer application and all CLI commands.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from benchwatch import __version__
from benchwatch.core.config import Settings
from benchwatch.core.exceptions import BenchwatchError

if TYPE_CHECKING:
    from benchwatch.benchmarks.history import HistoryStore
    from benchwatch.benchmarks.models import CommitInfo

# Create the main Typer app
app = typer.Typer(
    name="benchwatch",
    help="benchwatch: Benchmark history store and regression detector.",
    add_completion=False,
    no_args_is_help=True,
)

# Global state for options
state: dict[str, Any] = {
    "json": False,
    "data_file": None,
}


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
    data_file: Annotated[
        str | None,
        typer.Option(
            "--data-file",
            "-f",
            help="History document (.js or .json). Defaults to BENCHWATCH_DATA_FILE.",
        ),
    ] = None,
) -> None:
    """benchwatch: track benchmark results across commits and flag regressions."""
    state["json"] = json_output
    state["data_file"] = data_file


def _settings() -> Settings:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    return settings


def _open_store(settings: Settings) -> HistoryStore:
    from benchwatch.benchmarks import HistoryStore, JSONFileStore

    path = state["data_file"] or settings.data_file
    return HistoryStore(
        JSONFileStore(path),
        io_timeout=settings.io_timeout_seconds,
        repo_url=settings.repo_url,
    )


def _fail(message: str, code: int = 2) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code)


@app.command()
def version() -> None:
    """Show the current version."""
    typer.echo(f"benchwatch v{__version__}")


def _build_commit(
    commit_file: str | None,
    commit_id: str | None,
    message: str,
    url: str,
    timestamp: str | None,
    author: str | None,
    author_email: str,
) -> CommitInfo:
    from benchwatch.benchmarks.models import CommitInfo, Person

    if commit_file:
        data = json.loads(Path(commit_file).read_text())
        if not isinstance(data, dict):
            raise _fail(f"Commit file {commit_file} must hold a JSON object.")
        # Accept a whole push event as well as a bare commit object
        return CommitInfo.model_validate(data.get("head_commit", data))

    if not commit_id:
        raise _fail("Either --commit-file or --commit-id is required.")

    person = Person(name=author, email=author_email) if author else None
    return CommitInfo(
        id=commit_id,
        message=message,
        url=url,
        timestamp=timestamp,
        author=person,
        committer=person,
    )


@app.command()
def ingest(
    input_file: Annotated[
        str,
        typer.Option(
            "--input",
            "-i",
            help="Benchmark tool output (go text, pytest-benchmark JSON or custom JSON list).",
        ),
    ],
    tool: Annotated[
        str,
        typer.Option(
            "--tool",
            "-t",
            help="Tool kind: go, pytest, customSmallerIsBetter, customBiggerIsBetter.",
        ),
    ],
    commit_file: Annotated[
        str | None,
        typer.Option("--commit-file", help="JSON file with commit metadata."),
    ] = None,
    commit_id: Annotated[
        str | None,
        typer.Option("--commit-id", "-c", help="Commit hash of the run."),
    ] = None,
    message: Annotated[str, typer.Option("--message", "-m", help="Commit message.")] = "",
    url: Annotated[str, typer.Option("--url", help="Commit URL.")] = "",
    timestamp: Annotated[
        str | None,
        typer.Option("--timestamp", help="ISO-8601 commit timestamp."),
    ] = None,
    author: Annotated[str | None, typer.Option("--author", help="Author name.")] = None,
    author_email: Annotated[str, typer.Option("--author-email", help="Author email.")] = "",
    group: Annotated[
        str | None,
        typer.Option("--group", "-g", help="Group key. Defaults to BENCHWATCH_GROUP_KEY."),
    ] = None,
    alert_threshold: Annotated[
        float | None,
        typer.Option("--alert-threshold", help="Regression threshold as a fraction (e.g. 0.05)."),
    ] = None,
    fail_on_alert: Annotated[
        bool,
        typer.Option("--fail-on-alert", help="Exit with code 1 when a regression is detected."),
    ] = False,
) -> None:
    """Ingest one benchmark run and check it for regressions.

    Examples:
        benchwatch ingest -i output.txt -t go -c e53b4318 -m "speed up pool"
        benchwatch --json ingest -i output.json -t pytest --commit-file commit.json
        benchwatch ingest -i output.txt -t go -c e53b4318 --fail-on-alert
    """
    from benchwatch.ingest import Ingestor
    from benchwatch.normalize import load_raw_results

    settings = _settings()
    store = _open_store(settings)

    try:
        config = settings.regression_config()
        if alert_threshold is not None:
            config = config.model_copy(update={"alert_threshold": alert_threshold})
        ingestor = Ingestor(store, config)
        commit = _build_commit(commit_file, commit_id, message, url, timestamp, author, author_email)
        raw_results = load_raw_results(input_file, tool)
        report = asyncio.run(ingestor.ingest(group or settings.group_key, commit, tool, raw_results))
    except (OSError, ValueError, BenchwatchError) as e:
        raise _fail(str(e)) from e

    if state["json"]:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        typer.echo(report.summary())

    if fail_on_alert and report.has_regressions:
        raise typer.Exit(1)


@app.command()
def query(
    name: Annotated[str, typer.Option("--name", "-n", help="Benchmark name.")],
    tool: Annotated[str, typer.Option("--tool", "-t", help="Tool kind.")],
    group: Annotated[str | None, typer.Option("--group", "-g", help="Group key.")] = None,
    last: Annotated[
        int | None,
        typer.Option("--last", "-l", help="Only show the most recent N points."),
    ] = None,
) -> None:
    """Show the series of one benchmark, oldest first.

    Example:
        benchwatch query -n "BenchmarkThroughput - ns/op" -t go --last 10
    """
    settings = _settings()
    store = _open_store(settings)

    async def run() -> list[Any]:
        return list(await store.query(group or settings.group_key, tool, name, last))

    try:
        points = asyncio.run(run())
    except BenchwatchError as e:
        raise _fail(str(e)) from e

    if state["json"]:
        typer.echo(json.dumps([asdict(p) for p in points], indent=2))
        return

    if not points:
        typer.echo(f"No data for '{name}' ({tool}).")
        return
    for point in points:
        typer.echo(f"{point.date}  {point.commit_id[:7]}  {point.value:g} {point.unit}")


@app.command()
def latest(
    name: Annotated[str, typer.Option("--name", "-n", help="Benchmark name.")],
    tool: Annotated[str, typer.Option("--tool", "-t", help="Tool kind.")],
    group: Annotated[str | None, typer.Option("--group", "-g", help="Group key.")] = None,
) -> None:
    """Show the most recent record of one benchmark."""
    settings = _settings()
    store = _open_store(settings)

    try:
        record = asyncio.run(store.latest(group or settings.group_key, tool, name))
    except BenchwatchError as e:
        raise _fail(str(e)) from e

    if record is None:
        raise _fail(f"No data for '{name}' ({tool}).", code=1)

    if state["json"]:
        typer.echo(json.dumps(record.model_dump(exclude_none=True), indent=2))
    else:
        typer.echo(f"{record.name}: {record.value:g} {record.comparable_unit}")


if __name__ == "__main__":
    app()
