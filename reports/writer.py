"""Rendering finalized statistics as the semicolon-delimited report."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable, List, Sequence, TextIO

from app.schemas import ReportRow
from models.channels import SENSOR_CHANNELS, SensorChannel
from services.statistics import MonthlyStats

logger = logging.getLogger(__name__)

DELIMITER = ";"
HEADER = (
    "device",
    "ano-mes",
    "sensor",
    "valor_maximo",
    "valor_medio",
    "valor_minimo",
)


def _format_value(value: float) -> str:
    return f"{value:.2f}"


class ReportWriter:
    """Writes one line per entry and channel that received readings."""

    def __init__(self, channels: Sequence[SensorChannel] = SENSOR_CHANNELS) -> None:
        self.channels = tuple(channels)

    def rows(self, entries: Iterable[MonthlyStats]) -> List[ReportRow]:
        rows: List[ReportRow] = []
        for entry in entries:
            for channel, stats in zip(self.channels, entry.channels):
                if stats.count == 0:
                    continue
                rows.append(
                    ReportRow(
                        device=entry.device,
                        year_month=entry.year_month,
                        sensor=channel.column,
                        max_value=stats.maximum,
                        mean_value=stats.mean,
                        min_value=stats.minimum,
                    )
                )
        return rows

    def write_stream(self, rows: Iterable[ReportRow], stream: TextIO) -> int:
        stream.write(DELIMITER.join(HEADER) + "\n")
        count = 0
        for row in rows:
            # Fields are written verbatim; devices are not quoted or escaped.
            fields = (
                row.device,
                row.year_month,
                row.sensor,
                _format_value(row.max_value),
                _format_value(row.mean_value),
                _format_value(row.min_value),
            )
            stream.write(DELIMITER.join(fields) + "\n")
            count += 1
        return count

    def write(self, rows: Iterable[ReportRow], path: Path | str) -> int:
        """Write the report to ``path`` and return the number of data rows."""
        target = Path(path)
        if target.parent != Path("."):
            target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8", newline="") as handle:
            count = self.write_stream(rows, handle)
        logger.info("Report written", extra={"output_path": str(target), "row_count": count})
        return count

    def render(self, rows: Iterable[ReportRow]) -> str:
        buffer = io.StringIO()
        self.write_stream(rows, buffer)
        return buffer.getvalue()
