"""
Throughput-bounded, partitioned copy of one DynamoDB table into another.

Main entry point:
    run_copy_job() - Full copy orchestration, returns a JobOutcome

Key components:
    - planning: segment count, read/write rates, section validation
    - executor: bounded thread pools with caller-runs backpressure
    - transfer: segment scanner (producer) and batch writer (consumer)
    - aws: client contexts and table metadata
    - cli: ``ddb-bootstrap`` command
"""

from ddb_bootstrap.config import CopyJobConfig, ExecutorSettings
from ddb_bootstrap.core import run_copy_job
from ddb_bootstrap.errors import BootstrapError, ErrorKind
from ddb_bootstrap.job import CopyJob, JobOutcome, JobState

__all__ = [
    "run_copy_job",
    "CopyJobConfig",
    "ExecutorSettings",
    "BootstrapError",
    "ErrorKind",
    "CopyJob",
    "JobOutcome",
    "JobState",
]
