"""Error taxonomy for loading and aggregating sensor records."""

from __future__ import annotations

from typing import Optional


class SensorStatsError(Exception):
    """Base class for errors raised by the sensor statistics pipeline."""


class InputUnavailable(SensorStatsError):
    """The source file is missing, unreadable, or lacks required columns."""


class AllocationFailure(SensorStatsError):
    """Internal buffers could not be sized for the input."""


class InvalidRecord(SensorStatsError, ValueError):
    """A single record could not be parsed or folded.

    Carries the human readable ``reason`` and, when the record came from a
    file, the 1-based ``line_number`` it was read from.
    """

    def __init__(
        self,
        reason: str,
        line_number: Optional[int] = None,
        invalid_value: Optional[str] = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.line_number = line_number
        self.invalid_value = invalid_value

    def __str__(self) -> str:
        if self.line_number is None:
            return self.reason
        return f"line {self.line_number}: {self.reason}"
