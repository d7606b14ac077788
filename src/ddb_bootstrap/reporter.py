"""Run header and final statistics for copy jobs."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ddb_bootstrap.aws.metadata import TableMetadata
from ddb_bootstrap.job import CopyJob
from ddb_bootstrap.transfer.scanner import TransferStats
from ddb_bootstrap.utilities.display import format_banner, format_bytes, format_rate

__all__ = ["format_job_header", "print_job_header", "print_final_summary"]


def format_job_header(
    job: CopyJob,
    start_time: datetime,
    source_meta: Optional[TableMetadata] = None,
) -> str:
    """
    Build the configuration header printed before the transfer starts.

    Args:
        job: Fully planned copy job
        start_time: Job start timestamp
        source_meta: Source table metadata, for size and item count lines
    """
    plan = job.segment_plan
    segments = f"{plan.total_segments}"
    if plan.fallback:
        segments += " (default; read capacity unknown)"

    lines = [
        format_banner("DYNAMODB TABLE COPY", style="━"),
        f"Start Time: {start_time:%Y-%m-%d %H:%M:%S}",
        "",
        format_banner("Copy Configuration"),
        f"Source table:         {job.source_table} @ {job.source_context.describe()}",
        f"Destination table:    {job.destination_table} @ {job.destination_context.describe()}",
    ]
    if source_meta is not None:
        lines.append(f"Source size:          {format_bytes(source_meta.size_bytes)} "
                     f"(~{source_meta.item_count:,} items)")
    lines += [
        f"Total segments:       {segments}",
        f"Section:              {job.section.index} of {job.section.total_sections}",
        f"Read throughput:      {format_rate(job.read_throughput)}",
        f"Write throughput:     {format_rate(job.write_throughput)}",
        f"Read pool:            core {job.read_pool.core_pool_size}, max {job.read_pool.max_pool_size}",
        f"Write pool:           core {job.write_pool.core_pool_size}, max {job.write_pool.max_pool_size}",
        f"Consistent scan:      {job.consistent_read}",
        "",
        format_banner("Copy Progress"),
    ]
    return "\n".join(lines)


def print_job_header(
    job: CopyJob,
    start_time: datetime,
    source_meta: Optional[TableMetadata] = None,
) -> None:
    print(format_job_header(job, start_time, source_meta))


def print_final_summary(
    start_time: datetime,
    end_time: datetime,
    stats: TransferStats,
) -> None:
    """Print item counts, consumed capacity, and runtime for a finished copy."""
    total_runtime = end_time - start_time
    seconds = total_runtime.total_seconds()
    items_per_sec = stats.items_written / seconds if seconds > 0 else 0.0

    print("\nCopy complete!")
    print()
    print(format_banner("Final Summary"))
    print(f"Segments scanned:            {stats.segments_scanned}")
    print(f"Items read:                  {stats.items_read:,}")
    print(f"Items written:               {stats.items_written:,}")
    print(f"Write batches:               {stats.batches_written:,}")
    print(f"Batches retried:             {stats.batches_retried:,}")
    print(f"Read capacity consumed:      {stats.read_capacity_consumed:,.1f}")
    print(f"Write capacity consumed:     {stats.write_capacity_consumed:,.1f}")
    print(f"Write rate:                  {items_per_sec:,.1f} items/sec")
    print()
    print(f"End Time: {end_time}")
    print(f"Total Runtime: {timedelta(seconds=int(seconds))}")
