"""Tests for the concurrent aggregation engine."""

from __future__ import annotations

import threading
from collections import Counter
from typing import List

import pytest

from models.errors import AllocationFailure
from models.records import SensorRecord
from services.aggregator import Aggregator
from services.engine import AggregationEngine
from services.statistics import StatisticsTable


def _two_devices_three_months() -> List[SensorRecord]:
    records: List[SensorRecord] = []
    for reading in range(4):
        for device in ("device-1", "device-2"):
            for month in (3, 4, 5):
                base = month * 10.0 + reading * 0.5 + (1.0 if device == "device-2" else 0.0)
                records.append(
                    SensorRecord(
                        device=device,
                        year=2024,
                        month=month,
                        values=tuple(base + channel for channel in range(6)),
                    )
                )
    return records


def _snapshot(table: StatisticsTable) -> dict:
    return {
        entry.key: [
            (channel.maximum, channel.minimum, channel.total, channel.count)
            for channel in entry.channels
        ]
        for entry in table
    }


def test_empty_input_produces_empty_table() -> None:
    engine = AggregationEngine(workers=4)

    result = engine.run([])

    assert len(result.table) == 0
    assert result.worker_count == 0
    assert result.folded_count == 0


def test_one_and_four_workers_agree() -> None:
    records = _two_devices_three_months()

    single = AggregationEngine().run(records, workers=1)
    parallel = AggregationEngine().run(records, workers=4)

    assert single.worker_count == 1
    assert parallel.worker_count == 4
    assert len(single.table) == 6
    assert len(parallel.table) == 6
    assert _snapshot(single.table) == _snapshot(parallel.table)
    assert [entry.key for entry in single.table] == [entry.key for entry in parallel.table]


def test_counts_match_records_per_key() -> None:
    records = [
        SensorRecord(device=f"dev-{index % 5}", year=2024, month=3 + index % 7, values=(float(index),) * 6)
        for index in range(997)
    ]
    expected = Counter(record.key() for record in records)

    result = AggregationEngine().run(records, workers=8)

    assert result.folded_count == len(records)
    assert {entry.key: entry.channels[0].count for entry in result.table} == dict(expected)
    for entry in result.table:
        assert all(channel.count == expected[entry.key] for channel in entry.channels)


def test_finalized_entries_keep_mean_between_extremes() -> None:
    result = AggregationEngine().run(_two_devices_three_months(), workers=3)

    for entry in result.table:
        for channel in entry.channels:
            assert channel.count > 0
            assert channel.minimum <= channel.total / channel.count <= channel.maximum


@pytest.mark.parametrize("workers", [1, 2, 3, 5, 24])
def test_results_independent_of_worker_count(workers: int) -> None:
    records = _two_devices_three_months()
    baseline = AggregationEngine().run(records, workers=1)

    result = AggregationEngine().run(records, workers=workers)

    assert _snapshot(result.table) == _snapshot(baseline.table)
    assert result.worker_count == min(workers, len(records))


def test_worker_count_never_exceeds_records() -> None:
    records = _two_devices_three_months()[:3]

    result = AggregationEngine(workers=16).run(records)

    assert result.worker_count == 3


def test_invalid_records_are_skipped_and_counted() -> None:
    records = _two_devices_three_months()
    records.insert(5, SensorRecord(device="device-1", year=2024, month=14, values=(1.0,) * 6))

    result = AggregationEngine().run(records, workers=4)

    assert len(result.skipped) == 1
    assert result.folded_count == len(records) - 1
    assert len(result.table) == 6


def test_workers_run_concurrently() -> None:
    barrier = threading.Barrier(2)

    class CoordinatedAggregator(Aggregator):
        def aggregate_block(self, records, block, worker=None):
            try:
                barrier.wait(timeout=1.0)
            except threading.BrokenBarrierError as exc:
                raise AssertionError("Aggregation workers did not run concurrently") from exc
            return super().aggregate_block(records, block, worker)

    engine = AggregationEngine(aggregator=CoordinatedAggregator(), workers=2)

    result = engine.run(_two_devices_three_months())

    assert result.worker_count == 2
    assert len(result.table) == 6


def test_worker_failure_aborts_run() -> None:
    class ExhaustedAggregator(Aggregator):
        def aggregate_block(self, records, block, worker=None):
            raise MemoryError

    engine = AggregationEngine(aggregator=ExhaustedAggregator(), workers=2)

    with pytest.raises(AllocationFailure):
        engine.run(_two_devices_three_months())
