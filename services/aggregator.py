"""Per-block aggregation of sensor records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from models.errors import InvalidRecord
from models.records import SensorRecord
from services.statistics import StatisticsTable

logger = logging.getLogger(__name__)


@dataclass
class BlockResult:
    """Private statistics produced by one worker for one block."""

    block: range
    table: StatisticsTable = field(default_factory=StatisticsTable)
    folded_count: int = 0
    skipped: List[InvalidRecord] = field(default_factory=list)


class Aggregator:
    """Folds records into statistics tables; holds no shared state."""

    def fold(self, table: StatisticsTable, record: SensorRecord) -> None:
        """Fold one record into ``table``, raising ``InvalidRecord`` if malformed."""
        key = record.key()
        table.lookup_or_create(key).fold(record.values)

    def aggregate_block(
        self,
        records: Sequence[SensorRecord],
        block: range,
        worker: Optional[int] = None,
    ) -> BlockResult:
        result = BlockResult(block=block)
        for index in block:
            try:
                self.fold(result.table, records[index])
            except InvalidRecord as exc:
                result.skipped.append(exc)
                logger.warning(
                    "Skipping record %d: %s",
                    index,
                    exc.reason,
                    extra={
                        "worker": worker,
                        "reason": exc.reason,
                        "invalid_value": exc.invalid_value,
                    },
                )
                continue
            result.folded_count += 1

        logger.debug(
            "Worker finished block",
            extra={
                "worker": worker,
                "block_start": block.start,
                "block_end": block.stop,
                "record_count": result.folded_count,
                "entry_count": len(result.table),
                "skipped_count": len(result.skipped),
            },
        )
        return result
