"""Segment count and throughput planning from table capacity."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ddb_bootstrap.constants import (
    DEFAULT_SEGMENTS,
    MAX_SEGMENTS,
    READ_UNITS_PER_SEGMENT,
    SEGMENT_SIZE_BYTES,
)
from ddb_bootstrap.errors import BootstrapError, ErrorKind

logger = logging.getLogger(__name__)

__all__ = [
    "TableCapacity",
    "ThroughputBudget",
    "SegmentPlan",
    "compute_segments",
    "plan_segments",
    "compute_throughput",
]


@dataclass(frozen=True)
class TableCapacity:
    """Provisioned capacity snapshot of one table."""

    read_units: float
    write_units: float


@dataclass(frozen=True)
class ThroughputBudget:
    """
    Share of table capacity a job may consume.

    ``fixed_rate`` overrides ``ratio`` for both the read and the write side.
    """

    ratio: float
    fixed_rate: Optional[float] = None

    def __post_init__(self):
        if not 0 < self.ratio <= 1:
            raise BootstrapError(
                ErrorKind.CONFIGURATION,
                f"Throughput ratio must be in (0, 1], got {self.ratio}",
            )
        if self.fixed_rate is not None and self.fixed_rate <= 0:
            raise BootstrapError(
                ErrorKind.CONFIGURATION,
                f"Fixed throughput rate must be positive, got {self.fixed_rate}",
            )


@dataclass(frozen=True)
class SegmentPlan:
    """Number of parallel scan segments for the whole table."""

    total_segments: int
    fallback: bool = False
    """True when the default was used because capacity was unknown"""


def compute_segments(
        capacity: Optional[TableCapacity],
        size_bytes: int = 0,
) -> SegmentPlan:
    """
    Derive the scan segment count from read capacity.

    One segment per READ_UNITS_PER_SEGMENT read units, raised to one segment
    per SEGMENT_SIZE_BYTES for large tables, capped at MAX_SEGMENTS.

    Raises:
        BootstrapError: MISSING_CAPACITY when the table reports no positive
            read capacity (on-demand or unknown)
    """
    if capacity is None or capacity.read_units <= 0:
        raise BootstrapError(
            ErrorKind.MISSING_CAPACITY,
            "Table reports no provisioned read capacity",
        )

    by_capacity = math.ceil(capacity.read_units / READ_UNITS_PER_SEGMENT)
    by_size = math.ceil(max(0, size_bytes) / SEGMENT_SIZE_BYTES)
    segments = max(1, by_capacity, by_size)
    return SegmentPlan(total_segments=min(segments, MAX_SEGMENTS))


def plan_segments(
        capacity: Optional[TableCapacity],
        size_bytes: int = 0,
        *,
        log: Optional[logging.Logger] = None,
) -> SegmentPlan:
    """compute_segments, falling back to DEFAULT_SEGMENTS on missing capacity."""
    log = log or logger
    try:
        return compute_segments(capacity, size_bytes)
    except BootstrapError as exc:
        if not exc.kind.recoverable:
            raise
        log.warning(
            "%s; number of segments not derivable, defaulting to %d",
            exc.message, DEFAULT_SEGMENTS,
        )
        return SegmentPlan(total_segments=DEFAULT_SEGMENTS, fallback=True)


def compute_throughput(
        capacity: Optional[TableCapacity],
        budget: ThroughputBudget,
        is_read: bool,
) -> Optional[float]:
    """
    Operating rate in capacity units per second for one side of the copy.

    Returns the fixed rate when one is configured. Otherwise returns the
    budget ratio applied to the table's read or write units, or None when the
    table has no positive provisioned capacity (the side then runs unpaced).
    """
    if budget.fixed_rate is not None:
        return float(budget.fixed_rate)
    if capacity is None:
        return None
    units = capacity.read_units if is_read else capacity.write_units
    if units <= 0:
        return None
    return units * budget.ratio
