"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from models.channels import CHANNEL_COUNT
from models.errors import InvalidRecord

MAX_DEVICE_LENGTH = 49

StatsKey = Tuple[str, int, int]


def parse_record_date(value: str) -> Tuple[int, int]:
    """Return ``(year, month)`` from a ``YYYY-MM-DD`` date; the day is ignored."""
    candidate = value.strip()[:10]
    parts = candidate.split("-")
    if len(parts) < 2:
        raise InvalidRecord("invalid date", invalid_value=value)
    try:
        year = int(parts[0])
        month = int(parts[1])
    except ValueError as exc:
        raise InvalidRecord("invalid date", invalid_value=value) from exc
    if not 1 <= month <= 12:
        raise InvalidRecord("invalid date", invalid_value=value)
    return year, month


@dataclass(frozen=True, slots=True)
class SensorRecord:
    """A single multi-sensor reading parsed from the source file."""

    device: str
    year: int
    month: int
    values: Tuple[float, ...]

    def key(self) -> StatsKey:
        """Return the ``(device, year, month)`` statistics key for this record."""
        if not self.device:
            raise InvalidRecord("missing device")
        if not 1 <= self.month <= 12:
            raise InvalidRecord("invalid date", invalid_value=f"{self.year}-{self.month}")
        if len(self.values) != CHANNEL_COUNT:
            raise InvalidRecord(
                f"expected {CHANNEL_COUNT} sensor values, got {len(self.values)}"
            )
        return self.device, self.year, self.month

    def is_before(self, cutoff: Tuple[int, int]) -> bool:
        return (self.year, self.month) < cutoff
