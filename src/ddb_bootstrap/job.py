"""Copy job description and outcome types."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ddb_bootstrap.aws.clients import ClientContext
from ddb_bootstrap.constants import EXIT_OK
from ddb_bootstrap.errors import BootstrapError
from ddb_bootstrap.executor.pool import PoolSpec
from ddb_bootstrap.planning.capacity import SegmentPlan, ThroughputBudget
from ddb_bootstrap.planning.sections import SectionSpec
from ddb_bootstrap.transfer.scanner import TransferStats

__all__ = ["JobState", "CopyJob", "JobOutcome"]


class JobState(Enum):
    INITIALIZING = "initializing"
    PLANNING = "planning"
    POOL_BUILDING = "pool_building"
    DELEGATING = "delegating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class CopyJob:
    """Everything the transfer needs, resolved before any pool thread exists."""

    source_table: str
    destination_table: str
    source_context: ClientContext
    destination_context: ClientContext
    read_budget: ThroughputBudget
    write_budget: ThroughputBudget
    read_throughput: Optional[float]
    write_throughput: Optional[float]
    segment_plan: SegmentPlan
    section: SectionSpec
    read_pool: PoolSpec
    write_pool: PoolSpec
    consistent_read: bool = False

    @property
    def total_segments(self) -> int:
        return self.segment_plan.total_segments

    def describe(self) -> str:
        """One-line context for log messages about this job."""
        return (
            f"{self.source_table} -> {self.destination_table} "
            f"(section {self.section.index}/{self.section.total_sections}, "
            f"{self.total_segments} segments)"
        )


@dataclass(frozen=True)
class JobOutcome:
    """Result handed back to the process boundary."""

    state: JobState
    exit_code: int = EXIT_OK
    error: Optional[BootstrapError] = None
    failed_in: Optional[JobState] = None
    job: Optional[CopyJob] = None
    stats: Optional[TransferStats] = None

    @property
    def ok(self) -> bool:
        return self.state is JobState.COMPLETED
