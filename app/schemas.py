"""Pydantic schemas shared by the CLI, the report writer and the HTTP layer."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.errors import InvalidRecord

MAX_REPORTED_ERRORS = 100


class RunStatus(str, Enum):
    """Outcome of one aggregation run."""

    processed = "processed"
    partial = "partial"
    empty = "empty"


class RecordError(BaseModel):
    """Details about a record that was skipped."""

    line_number: Optional[int] = Field(default=None, ge=1)
    reason: str
    invalid_value: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: InvalidRecord) -> RecordError:
        return cls(
            line_number=exc.line_number,
            reason=exc.reason,
            invalid_value=exc.invalid_value,
        )


class ReportRow(BaseModel):
    """One ``(device, month, sensor)`` line of the report."""

    device: str = Field(..., min_length=1, max_length=49)
    year_month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    sensor: str
    max_value: float
    mean_value: float
    min_value: float


class RunSummary(BaseModel):
    """Bookkeeping for a completed run."""

    status: RunStatus
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    record_count: int = Field(0, ge=0, description="Records folded into the table.")
    filtered_count: int = Field(0, ge=0, description="Records dropped by the cutoff.")
    skipped_count: int = Field(0, ge=0, description="Malformed records skipped.")
    entry_count: int = Field(0, ge=0)
    row_count: int = Field(0, ge=0)
    worker_count: int = Field(0, ge=0)
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from load to report."
    )
    errors: List[RecordError] = Field(
        default_factory=list,
        description=f"First {MAX_REPORTED_ERRORS} skipped records.",
    )


class ReportResponse(BaseModel):
    """Response payload for an uploaded file."""

    summary: RunSummary
    rows: List[ReportRow] = Field(default_factory=list)
