"""Running per-(device, month) statistics and the table that holds them."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from models.channels import CHANNEL_COUNT
from models.records import StatsKey


@dataclass(slots=True)
class ChannelStats:
    """Running max/min/sum/count for one sensor channel."""

    maximum: float = -math.inf
    minimum: float = math.inf
    total: float = 0.0
    count: int = 0

    def fold(self, value: float) -> None:
        if value > self.maximum:
            self.maximum = value
        if value < self.minimum:
            self.minimum = value
        self.total += value
        self.count += 1

    def merge(self, other: ChannelStats) -> None:
        if other.count == 0:
            return
        if other.maximum > self.maximum:
            self.maximum = other.maximum
        if other.minimum < self.minimum:
            self.minimum = other.minimum
        self.total += other.total
        self.count += other.count

    @property
    def mean(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.total / self.count


def _empty_channels() -> List[ChannelStats]:
    return [ChannelStats() for _ in range(CHANNEL_COUNT)]


@dataclass(slots=True)
class MonthlyStats:
    """Statistics for every channel of one device in one calendar month."""

    device: str
    year: int
    month: int
    channels: List[ChannelStats] = field(default_factory=_empty_channels)

    @property
    def key(self) -> StatsKey:
        return self.device, self.year, self.month

    @property
    def year_month(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def fold(self, values: Sequence[float]) -> None:
        for channel, value in zip(self.channels, values):
            channel.fold(value)

    def merge(self, other: MonthlyStats) -> None:
        for channel, incoming in zip(self.channels, other.channels):
            channel.merge(incoming)


class StatisticsTable:
    """Append-only collection of :class:`MonthlyStats` looked up by key.

    Iteration follows insertion order. ``lock`` guards merges into a table
    shared between threads; a worker's private table never needs it.
    """

    def __init__(self) -> None:
        self._entries: Dict[StatsKey, MonthlyStats] = {}
        self.lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[MonthlyStats]:
        return iter(self._entries.values())

    def lookup_or_create(self, key: StatsKey) -> MonthlyStats:
        """Return the entry for ``key``, appending a fresh one if it is new."""
        entry = self._entries.get(key)
        if entry is None:
            device, year, month = key
            entry = MonthlyStats(device=device, year=year, month=month)
            self._entries[key] = entry
        return entry

    def merge_all(self, partials: Iterable[StatisticsTable]) -> None:
        """Fold every entry of ``partials``, in order, within one pass under ``self.lock``."""
        with self.lock:
            for partial in partials:
                for incoming in partial:
                    self.lookup_or_create(incoming.key).merge(incoming)
