"""
Capacity planning and section partitioning.

Key components:
    - capacity: segment count and read/write throughput from table capacity
    - sections: validation and modulo ownership of segments per process
"""

from ddb_bootstrap.planning.capacity import (
    SegmentPlan,
    TableCapacity,
    ThroughputBudget,
    compute_segments,
    compute_throughput,
    plan_segments,
)
from ddb_bootstrap.planning.sections import SectionSpec, owned_segments, validate_section

__all__ = [
    "SegmentPlan",
    "TableCapacity",
    "ThroughputBudget",
    "compute_segments",
    "compute_throughput",
    "plan_segments",
    "SectionSpec",
    "owned_segments",
    "validate_section",
]
