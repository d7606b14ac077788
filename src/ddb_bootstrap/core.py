"""Main entry point for copying one DynamoDB table into another."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ddb_bootstrap.aws.clients import ClientContext, build_client, resolve_client_contexts
from ddb_bootstrap.aws.metadata import TableMetadata, describe_table
from ddb_bootstrap.config import CopyJobConfig, ExecutorSettings
from ddb_bootstrap.constants import EXIT_OK
from ddb_bootstrap.errors import BootstrapError, ErrorKind
from ddb_bootstrap.executor.pool import build_pool, create_executor
from ddb_bootstrap.job import CopyJob, JobOutcome, JobState
from ddb_bootstrap.planning.capacity import ThroughputBudget, compute_throughput, plan_segments
from ddb_bootstrap.planning.sections import validate_section
from ddb_bootstrap.reporter import print_final_summary, print_job_header
from ddb_bootstrap.transfer.consumer import BatchWriteConsumer
from ddb_bootstrap.transfer.scanner import SegmentScanner

logger = logging.getLogger(__name__)

__all__ = ["run_copy_job"]


def run_copy_job(
        config: CopyJobConfig,
        *,
        settings: Optional[ExecutorSettings] = None,
        log: Optional[logging.Logger] = None,
        client_factory: Callable = build_client,
        metadata_source: Callable[..., TableMetadata] = describe_table,
        scanner_factory: Callable = SegmentScanner,
        consumer_factory: Callable = BatchWriteConsumer,
        report: bool = True,
) -> JobOutcome:
    """
    Plan and run a full-table copy; never exits the process.

    Orchestrates the copy workflow:
    1. Resolves source/destination client contexts (cross-account profiles)
    2. Describes both tables and plans segments and read/write rates
    3. Validates the section split and sizes the read and write pools
    4. Hands both pools to the segment scanner and batch writer and blocks
       until the copy completes or fails
    5. Shuts both pools down on every exit path

    Args:
        config: Resolved job parameters
        settings: Connection and executor tuning (default: from environment)
        log: Diagnostics sink (default: this module's logger)
        client_factory: Builds a DynamoDB client from a ClientContext
        metadata_source: Returns TableMetadata for (client, table_name)
        scanner_factory: Producer constructor (segment scanner contract)
        consumer_factory: Consumer constructor (batch writer contract)
        report: If True, print the run header and final summary

    Returns:
        JobOutcome with the final state and the process exit status
    """
    log = log or logger
    start_time = datetime.now()
    state = JobState.INITIALIZING

    try:
        settings = settings or ExecutorSettings.from_env()
        source_ctx, destination_ctx = resolve_client_contexts(config, settings)
        read_budget = ThroughputBudget(config.read_throughput_ratio, config.throughput_rate)
        write_budget = ThroughputBudget(config.write_throughput_ratio, config.throughput_rate)

        source_client = _connect(client_factory, source_ctx, "source")
        destination_client = _connect(client_factory, destination_ctx, "destination")

        state = JobState.PLANNING
        source_meta = metadata_source(source_client, config.source_table)
        destination_meta = metadata_source(destination_client, config.destination_table)

        plan = plan_segments(source_meta.capacity, source_meta.size_bytes, log=log)
        read_throughput = compute_throughput(source_meta.capacity, read_budget, is_read=True)
        write_throughput = compute_throughput(destination_meta.capacity, write_budget, is_read=False)
        for side, table, rate in (
            ("read", config.source_table, read_throughput),
            ("write", config.destination_table, write_throughput),
        ):
            if rate is None:
                log.warning("Table %s has no provisioned capacity; %s side runs unpaced",
                            table, side)

        state = JobState.POOL_BUILDING
        section = validate_section(config.section, config.total_sections, plan.total_segments)
        read_pool = build_pool(plan.total_segments, settings.core_pool_size, settings.keep_alive_ms)
        write_pool = build_pool(config.max_write_threads, settings.core_pool_size,
                                settings.keep_alive_ms)

        job = CopyJob(
            source_table=config.source_table,
            destination_table=config.destination_table,
            source_context=source_ctx,
            destination_context=destination_ctx,
            read_budget=read_budget,
            write_budget=write_budget,
            read_throughput=read_throughput,
            write_throughput=write_throughput,
            segment_plan=plan,
            section=section,
            read_pool=read_pool,
            write_pool=write_pool,
            consistent_read=config.consistent_scan,
        )
    except BootstrapError as exc:
        log.error("Copy of %s -> %s failed while %s: %s",
                  config.source_table, config.destination_table, state.value, exc.message)
        return JobOutcome(JobState.FAILED, exc.exit_code, error=exc, failed_in=state)

    if report:
        print_job_header(job, start_time, source_meta)

    return _delegate(
        job,
        source_client,
        destination_client,
        scanner_factory=scanner_factory,
        consumer_factory=consumer_factory,
        log=log,
        start_time=start_time,
        report=report,
    )


def _delegate(
        job: CopyJob,
        source_client,
        destination_client,
        *,
        scanner_factory: Callable,
        consumer_factory: Callable,
        log: logging.Logger,
        start_time: datetime,
        report: bool,
) -> JobOutcome:
    """Run the producer/consumer pair on freshly created pools."""
    read_executor = create_executor(job.read_pool, "scan")
    write_executor = create_executor(job.write_pool, "write")
    completed = False

    try:
        consumer = consumer_factory(
            destination_client, job.destination_table, job.write_throughput, write_executor,
        )
        scanner = scanner_factory(
            source_client, job.read_throughput, job.source_table, read_executor,
            job.section, job.total_segments, job.consistent_read,
        )

        log.info("Starting transfer: %s", job.describe())
        stats = scanner.pipe(consumer)
        completed = True
        log.info("Finished copying table: %s", job.describe())

    except KeyboardInterrupt:
        error = BootstrapError(
            ErrorKind.INTERRUPTED,
            f"Interrupted when executing transfer {job.describe()}",
        )
        log.error(error.message)
        return _failed(job, error)

    except BootstrapError as exc:
        log.error("Encountered exception when executing transfer %s: %s",
                  job.describe(), exc.message)
        return _failed(job, exc)

    except Exception as exc:
        error = BootstrapError(
            ErrorKind.EXECUTION,
            f"Unexpected failure during transfer {job.describe()}: {exc}",
        )
        log.exception(error.message)
        return _failed(job, error)

    finally:
        read_executor.shutdown(wait=completed, cancel_futures=not completed)
        write_executor.shutdown(wait=completed, cancel_futures=not completed)

    if report:
        print_final_summary(start_time, datetime.now(), stats)

    return JobOutcome(JobState.COMPLETED, EXIT_OK, job=job, stats=stats)


def _failed(job: CopyJob, error: BootstrapError) -> JobOutcome:
    return JobOutcome(
        JobState.FAILED,
        error.exit_code,
        error=error,
        failed_in=JobState.DELEGATING,
        job=job,
    )


def _connect(client_factory: Callable, ctx: ClientContext, side: str):
    try:
        return client_factory(ctx)
    except (BotoCoreError, ClientError) as exc:
        raise BootstrapError(
            ErrorKind.CONFIGURATION,
            f"Cannot create {side} DynamoDB client for {ctx.describe()}: {exc}",
        ) from exc
