"""Parallel segment scan of the source table."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Executor, wait
from dataclasses import dataclass
from typing import Dict, Optional

from tqdm import tqdm

from ddb_bootstrap.constants import SCAN_PAGE_LIMIT
from ddb_bootstrap.errors import BootstrapError, ErrorKind
from ddb_bootstrap.planning.sections import SectionSpec, owned_segments
from ddb_bootstrap.transfer.consumer import BatchWriteConsumer
from ddb_bootstrap.transfer.throttle import RateLimiter

logger = logging.getLogger(__name__)

__all__ = ["TransferStats", "SegmentScanner"]


@dataclass
class TransferStats:
    """Counters reported at the end of a copy."""

    segments_scanned: int = 0
    items_read: int = 0
    items_written: int = 0
    read_capacity_consumed: float = 0.0
    write_capacity_consumed: float = 0.0
    batches_written: int = 0
    batches_retried: int = 0


class SegmentScanner:
    """
    Scans the segments owned by one section and streams pages to a consumer.

    Each owned segment is one task on the read executor. Consumed read
    capacity is charged to a shared rate limiter after every page.
    """

    def __init__(
        self,
        client,
        read_throughput: Optional[float],
        table_name: str,
        executor: Executor,
        section: SectionSpec,
        total_segments: int,
        consistent_read: bool = False,
        *,
        page_limit: int = SCAN_PAGE_LIMIT,
        show_progress: bool = True,
    ):
        self.client = client
        self.table_name = table_name
        self.executor = executor
        self.section = section
        self.total_segments = total_segments
        self.consistent_read = consistent_read
        self.page_limit = page_limit
        self.show_progress = show_progress
        self.limiter = RateLimiter(read_throughput)

        self._lock = threading.Lock()
        self.items_read = 0
        self.capacity_consumed = 0.0

    @property
    def segments(self):
        return owned_segments(self.section, self.total_segments)

    def pipe(self, consumer: BatchWriteConsumer) -> TransferStats:
        """
        Scan every owned segment into ``consumer`` and wait for all writes.

        Raises:
            BootstrapError: EXECUTION if any segment scan or write fails
            KeyboardInterrupt: propagated unchanged from the waiting thread
        """
        segments = self.segments
        logger.info(
            "Scanning %s: section %d/%d owns %d of %d segments",
            self.table_name, self.section.index, self.section.total_sections,
            len(segments), self.total_segments,
        )

        with tqdm(
            total=len(segments),
            desc="Segments Scanned:",
            unit="seg",
            ncols=100,
            disable=not self.show_progress,
        ) as pbar:
            futures: Dict[object, int] = {}
            for segment in segments:
                fut = self.executor.submit(self._scan_segment, segment, consumer)
                fut.add_done_callback(lambda _f: pbar.update(1))
                futures[fut] = segment

            done, _ = wait(futures.keys(), return_when=FIRST_EXCEPTION)
            for fut in done:
                exc = fut.exception()
                if exc is not None:
                    segment = futures[fut]
                    if isinstance(exc, BootstrapError):
                        raise exc
                    raise BootstrapError(
                        ErrorKind.EXECUTION,
                        f"Scan of {self.table_name} segment {segment}/{self.total_segments} "
                        f"failed: {exc}",
                    ) from exc

            wait(futures.keys())

        consumer.await_completion()

        return TransferStats(
            segments_scanned=len(segments),
            items_read=self.items_read,
            items_written=consumer.items_written,
            read_capacity_consumed=self.capacity_consumed,
            write_capacity_consumed=consumer.capacity_consumed,
            batches_written=consumer.batches_written,
            batches_retried=consumer.batches_retried,
        )

    def _scan_segment(self, segment: int, consumer: BatchWriteConsumer) -> int:
        paginator = self.client.get_paginator("scan")
        pages = paginator.paginate(
            TableName=self.table_name,
            Segment=segment,
            TotalSegments=self.total_segments,
            ConsistentRead=self.consistent_read,
            ReturnConsumedCapacity="TOTAL",
            PaginationConfig={"PageSize": self.page_limit},
        )
        items = 0

        for resp in pages:
            page = resp.get("Items", []) or []
            consumed = float((resp.get("ConsumedCapacity") or {}).get("CapacityUnits", 0))

            with self._lock:
                self.items_read += len(page)
                self.capacity_consumed += consumed
            items += len(page)

            if page:
                consumer.accept(page)
            # Stop reading once the destination has rejected a write
            consumer.raise_if_failed()

            self.limiter.acquire(consumed or 1.0)

        logger.info("Segment %d/%d complete: %d items", segment, self.total_segments, items)
        return items
