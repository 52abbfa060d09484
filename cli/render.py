from __future__ import annotations

from typing import Any, Iterable

import typer

from app.schemas import RunSummary


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_summary(summary: RunSummary) -> None:
    echo_heading("Run Summary")
    echo_key_values(
        [
            ("status", summary.status.value),
            ("input_path", summary.input_path),
            ("output_path", summary.output_path),
            ("worker_count", summary.worker_count),
            ("processing_ms", summary.processing_ms),
        ]
    )

    typer.echo()
    echo_heading("Records")
    echo_key_values(
        [
            ("aggregated", summary.record_count),
            ("filtered", summary.filtered_count),
            ("skipped", summary.skipped_count),
            ("entries", summary.entry_count),
            ("report_rows", summary.row_count),
        ]
    )

    typer.echo()
    echo_heading("Errors")
    if summary.errors:
        for error in summary.errors:
            location = f"line {error.line_number}" if error.line_number else "record"
            typer.echo(f"  - {location}: {error.reason}")
        hidden = summary.skipped_count - len(summary.errors)
        if hidden > 0:
            typer.echo(f"  ... and {hidden} more")
    else:
        typer.echo("No errors recorded.")
