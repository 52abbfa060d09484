from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_INPUT_PATH_ENV = "SENSOR_STATS_INPUT_PATH"
_OUTPUT_PATH_ENV = "SENSOR_STATS_OUTPUT_PATH"
_WORKER_COUNT_ENV = "SENSOR_STATS_WORKER_COUNT"
_CUTOFF_ENV = "SENSOR_STATS_CUTOFF"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_CUTOFF: Tuple[int, int] = (2024, 3)


@dataclass(frozen=True)
class Settings:
    input_path: str
    output_path: str
    worker_count: Optional[int]
    cutoff: Tuple[int, int]
    log_level: str


def parse_year_month(value: str) -> Tuple[int, int]:
    """Parse a ``YYYY-MM`` string into a ``(year, month)`` tuple."""
    parts = value.strip().split("-")
    if len(parts) != 2:
        raise ValueError(f"Expected YYYY-MM, got {value!r}.")
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Expected YYYY-MM, got {value!r}.") from exc
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {value!r}.")
    return year, month


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_worker_count(default: Optional[int]) -> Optional[int]:
    value = os.getenv(_WORKER_COUNT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_cutoff(default: Tuple[int, int]) -> Tuple[int, int]:
    value = os.getenv(_CUTOFF_ENV)
    if value is None or not value.strip():
        return default
    try:
        return parse_year_month(value)
    except ValueError:
        return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        input_path=_read_str_env(_INPUT_PATH_ENV, "devices.csv"),
        output_path=_read_str_env(_OUTPUT_PATH_ENV, "sensor_stats.csv"),
        worker_count=_read_worker_count(None),
        cutoff=_read_cutoff(DEFAULT_CUTOFF),
        log_level=_read_log_level("INFO"),
    )
