"""Orchestration of a full run: load, aggregate, report."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from app.schemas import (
    MAX_REPORTED_ERRORS,
    RecordError,
    ReportResponse,
    ReportRow,
    RunStatus,
    RunSummary,
)
from models.errors import InvalidRecord
from reports.writer import ReportWriter
from services.engine import AggregationEngine, EngineResult
from settings import get_settings
from storage.record_store import LoadResult, RecordStore

logger = logging.getLogger(__name__)


@dataclass
class RunOutcome:
    summary: RunSummary
    rows: List[ReportRow]


class ProcessorService:
    """Coordinates the record store, the aggregation engine and the report writer."""

    def __init__(
        self,
        store: RecordStore,
        engine: AggregationEngine,
        writer: ReportWriter,
    ) -> None:
        self.store = store
        self.engine = engine
        self.writer = writer

    def process_file(
        self,
        input_path: Path | str,
        output_path: Path | str,
        workers: Optional[int] = None,
    ) -> RunSummary:
        """Aggregate ``input_path`` and write the report to ``output_path``.

        Nothing is written when no record survives filtering.
        """
        start_time = time.perf_counter()
        loaded = self.store.load_path(input_path)
        outcome = self._aggregate(loaded, workers, start_time)
        summary = outcome.summary
        summary.input_path = str(input_path)

        if summary.status is not RunStatus.empty:
            self.writer.write(outcome.rows, output_path)
            summary.output_path = str(output_path)
            summary.processing_ms = int((time.perf_counter() - start_time) * 1000)

        self._log_summary(summary)
        return summary

    def process_text(
        self,
        text: str,
        source_name: str = "<upload>",
        workers: Optional[int] = None,
    ) -> ReportResponse:
        """Aggregate an in-memory export and return the rows instead of writing them."""
        start_time = time.perf_counter()
        loaded = self.store.load_text(text, source_name=source_name)
        outcome = self._aggregate(loaded, workers, start_time)
        outcome.summary.input_path = source_name
        self._log_summary(outcome.summary)
        return ReportResponse(summary=outcome.summary, rows=outcome.rows)

    def _aggregate(
        self, loaded: LoadResult, workers: Optional[int], start_time: float
    ) -> RunOutcome:
        result = self.engine.run(loaded.records, workers=workers)
        rows = self.writer.rows(result.table)
        skipped = [*loaded.errors, *result.skipped]
        summary = RunSummary(
            status=self._status(result, skipped),
            record_count=result.folded_count,
            filtered_count=loaded.filtered_count,
            skipped_count=len(skipped),
            entry_count=len(result.table),
            row_count=len(rows),
            worker_count=result.worker_count,
            processing_ms=int((time.perf_counter() - start_time) * 1000),
            errors=[RecordError.from_exception(exc) for exc in skipped[:MAX_REPORTED_ERRORS]],
        )
        return RunOutcome(summary=summary, rows=rows)

    @staticmethod
    def _status(result: EngineResult, skipped: List[InvalidRecord]) -> RunStatus:
        if len(result.table) == 0:
            return RunStatus.empty
        if skipped:
            return RunStatus.partial
        return RunStatus.processed

    @staticmethod
    def _log_summary(summary: RunSummary) -> None:
        logger.info(
            "Run finished",
            extra={
                "status": summary.status.value,
                "input_path": summary.input_path,
                "output_path": summary.output_path,
                "record_count": summary.record_count,
                "filtered_count": summary.filtered_count,
                "skipped_count": summary.skipped_count,
                "entry_count": summary.entry_count,
                "processing_ms": summary.processing_ms,
            },
        )


def build_processor(
    workers: Optional[int] = None,
    cutoff: Optional[Tuple[int, int]] = None,
) -> ProcessorService:
    settings = get_settings()
    store = RecordStore(cutoff=cutoff or settings.cutoff)
    engine = AggregationEngine(workers=workers or settings.worker_count)
    return ProcessorService(store=store, engine=engine, writer=ReportWriter())


@lru_cache
def build_default_processor() -> ProcessorService:
    """Factory that wires the processor from environment settings."""
    return build_processor()
