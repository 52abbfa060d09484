"""Concurrent aggregation of an in-memory record set."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from models.errors import AllocationFailure, InvalidRecord
from models.records import SensorRecord
from services.aggregator import Aggregator, BlockResult
from services.partitioner import partition, resolve_worker_count
from services.statistics import StatisticsTable

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    """Finalized table plus bookkeeping from one engine run."""

    table: StatisticsTable
    worker_count: int
    folded_count: int = 0
    skipped: List[InvalidRecord] = field(default_factory=list)


class AggregationEngine:
    """Partitions records across a thread pool and merges the partial tables.

    Every worker folds its block into a private table; the shared table is
    only written after all workers joined, in worker order, under its lock.
    """

    def __init__(
        self,
        aggregator: Optional[Aggregator] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.aggregator = aggregator or Aggregator()
        self.workers = workers

    def run(
        self,
        records: Sequence[SensorRecord],
        workers: Optional[int] = None,
    ) -> EngineResult:
        requested = workers if workers is not None else self.workers
        worker_count = resolve_worker_count(len(records), requested)
        shared = StatisticsTable()
        if worker_count == 0:
            logger.info("No records to aggregate", extra={"record_count": 0})
            return EngineResult(table=shared, worker_count=0)

        start_time = time.perf_counter()
        blocks = partition(len(records), worker_count)
        try:
            results = self._run_blocks(records, blocks)
            shared.merge_all(result.table for result in results)
        except MemoryError as exc:
            raise AllocationFailure("Unable to allocate aggregation buffers.") from exc

        outcome = EngineResult(table=shared, worker_count=worker_count)
        for result in results:
            outcome.folded_count += result.folded_count
            outcome.skipped.extend(result.skipped)

        logger.info(
            "Aggregated records",
            extra={
                "record_count": outcome.folded_count,
                "skipped_count": len(outcome.skipped),
                "entry_count": len(shared),
                "worker_count": worker_count,
                "processing_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return outcome

    def _run_blocks(
        self, records: Sequence[SensorRecord], blocks: List[range]
    ) -> List[BlockResult]:
        with ThreadPoolExecutor(
            max_workers=len(blocks), thread_name_prefix="aggregator"
        ) as executor:
            futures: List[Future[BlockResult]] = [
                executor.submit(self.aggregator.aggregate_block, records, block, index)
                for index, block in enumerate(blocks)
            ]
            # Leaving the executor joins every worker; result() re-raises failures.
        return [future.result() for future in futures]
