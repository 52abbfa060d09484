from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from app.schemas import RunStatus
from cli.config import load_config
from cli.render import render_summary
from logging_config import configure_logging
from models.errors import AllocationFailure, InputUnavailable
from services.processor import build_processor

app = typer.Typer(
    help="Per-device monthly statistics for multi-sensor readings.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)


@app.command("run")
def run_command(
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        dir_okay=False,
        help="Pipe-delimited device export (defaults to SENSOR_STATS_INPUT_PATH or devices.csv).",
    ),
    output_path: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help="Report destination (defaults to SENSOR_STATS_OUTPUT_PATH or sensor_stats.csv).",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Worker threads (defaults to the available CPU count).",
    ),
    cutoff: Optional[str] = typer.Option(
        None,
        "--cutoff",
        help="Earliest month kept, as YYYY-MM (defaults to 2024-03).",
    ),
    summary: bool = typer.Option(
        False,
        "--summary/--no-summary",
        help="Print the run summary after processing.",
    ),
) -> None:
    """Aggregate the device export and write the monthly report."""
    try:
        config = load_config(
            input_path=input_path,
            output_path=output_path,
            workers=workers,
            cutoff=cutoff,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--cutoff") from exc

    processor = build_processor(workers=config.workers, cutoff=config.cutoff)
    try:
        result = processor.process_file(config.input_path, config.output_path)
    except (InputUnavailable, AllocationFailure) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if result.status is RunStatus.empty:
        typer.echo(f"No records found after {config.cutoff_label}.")
    else:
        typer.secho(f"Results written to {config.output_path}", fg=typer.colors.GREEN)

    if summary:
        typer.echo()
        render_summary(result)
