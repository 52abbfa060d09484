"""Splitting a record sequence into per-worker blocks."""

from __future__ import annotations

import os
from typing import List, Optional


def available_parallelism() -> int:
    """Number of CPUs this process may run on, never less than one."""
    try:
        count = len(os.sched_getaffinity(0))
    except (AttributeError, OSError):
        count = os.cpu_count() or 1
    return max(count, 1)


def resolve_worker_count(record_count: int, requested: Optional[int] = None) -> int:
    if record_count < 0:
        raise ValueError("record_count must not be negative.")
    if record_count == 0:
        return 0
    if requested is not None and requested < 1:
        raise ValueError("requested worker count must be positive.")
    parallelism = requested if requested is not None else available_parallelism()
    return min(parallelism, record_count)


def partition(total: int, workers: int) -> List[range]:
    """Split ``[0, total)`` into ``workers`` contiguous, near-equal ranges.

    The first ``total % workers`` ranges hold one extra element. An empty
    input yields no ranges.
    """
    if total < 0:
        raise ValueError("total must not be negative.")
    if total == 0:
        return []
    if workers < 1:
        raise ValueError("workers must be at least 1.")
    if workers > total:
        raise ValueError("workers must not exceed the number of records.")

    base, remainder = divmod(total, workers)
    blocks: List[range] = []
    start = 0
    for index in range(workers):
        end = start + base + (1 if index < remainder else 0)
        blocks.append(range(start, end))
        start = end
    return blocks
