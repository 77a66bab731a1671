"""checkpoint-stats Command Line Interface.

Entry point for the checkpoint-stats CLI tool.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError

from checkpoint_stats import __version__
from checkpoint_stats.core.config import StatsSettings, load_settings

__all__ = ["app"]

app = typer.Typer(
    name="checkpoint-stats",
    help="Checkpoint health reports for stream-processing jobs.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"checkpoint-stats version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Checkpoint health reports for stream-processing jobs."""
    from checkpoint_stats.core.logging import configure_logging

    ctx.obj = {"verbose": verbose, "json_logs": json_logs}
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")


def _resolve_settings(settings_path: Path | None, history_size: int | None) -> StatsSettings:
    """Load settings from file (if given) and the environment, then apply command-line overrides.

    Raises:
        typer.Exit: If the settings file is missing or invalid.
    """
    try:
        settings = load_settings(settings_path)
        if history_size is not None:
            settings = StatsSettings(**{**settings.model_dump(), "history_size": history_size})
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.secho("Configuration errors:", fg=typer.colors.RED, err=True)
        for error in e.errors():
            loc = ".".join(str(part) for part in error["loc"])
            typer.secho(f"  - {loc}: {error['msg']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None
    return settings


@app.command()
def report(
    ctx: typer.Context,
    events_file: str = typer.Argument(
        ...,
        help="JSON-lines checkpoint event log ('-' reads stdin).",
    ),
    settings_path: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    history_size: int | None = typer.Option(
        None,
        "--history-size",
        help="Override the number of checkpoints retained in history.",
    ),
    checkpoint_id: int | None = typer.Option(
        None,
        "--checkpoint",
        "-c",
        help="Print the details of one checkpoint instead of the full report.",
    ),
    pretty: bool = typer.Option(
        False,
        "--pretty",
        help="Indent the JSON output instead of emitting canonical JSON.",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit with status 1 if any event line was rejected.",
    ),
) -> None:
    """Replay a checkpoint event log and print the stats report.

    Examples:

        # Canonical JSON report
        checkpoint-stats report events.jsonl

        # Human-readable, larger history
        checkpoint-stats report events.jsonl --pretty --history-size 50

        # Details of checkpoint 42
        checkpoint-stats report events.jsonl --checkpoint 42
    """
    from checkpoint_stats.core.canonical import canonical_json
    from checkpoint_stats.core.logging import configure_logging
    from checkpoint_stats.report import project_checkpoint_details, project_snapshot
    from checkpoint_stats.stats import CheckpointStatsTracker, replay_events

    settings = _resolve_settings(settings_path, history_size)

    flags = ctx.obj or {}
    configure_logging(
        json_output=settings.json_logs or flags.get("json_logs", False),
        level="DEBUG" if flags.get("verbose", False) else settings.log_level,
    )

    tracker = CheckpointStatsTracker(history_size=settings.history_size)
    if events_file == "-":
        # Undecodable bytes become U+FFFD instead of aborting the replay
        result = replay_events(typer.get_text_stream("stdin", encoding="utf-8", errors="replace"), tracker)
    else:
        path = Path(events_file)
        if not path.exists():
            typer.secho(f"Error: event log not found: {path}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        with path.open(encoding="utf-8", errors="replace") as lines:
            result = replay_events(lines, tracker)

    snapshot = tracker.create_snapshot()

    document: Any
    if checkpoint_id is not None:
        document = project_checkpoint_details(snapshot, checkpoint_id)
        if document is None:
            typer.secho(f"Error: checkpoint {checkpoint_id} is not in the history", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
    else:
        document = project_snapshot(snapshot)

    if pretty:
        typer.echo(json.dumps(document, indent=2, sort_keys=True))
    else:
        typer.echo(canonical_json(document))

    if result.rejected:
        typer.secho(
            f"{len(result.rejected)} of {result.total} event line(s) rejected",
            fg=typer.colors.YELLOW,
            err=True,
        )
        if strict:
            raise typer.Exit(1)


if __name__ == "__main__":
    app()
