"""Throttled batch writes into the destination table."""
from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import Executor, Future
from typing import Callable, Dict, List, Optional, Sequence, Set

from ddb_bootstrap.constants import MAX_BATCH_WRITE_ITEMS, MAX_WRITE_RETRIES
from ddb_bootstrap.errors import BootstrapError, ErrorKind
from ddb_bootstrap.transfer.throttle import RateLimiter

logger = logging.getLogger(__name__)

__all__ = ["BatchWriteConsumer"]

Item = Dict[str, dict]


class BatchWriteConsumer:
    """
    Receives scanned items and writes them with BatchWriteItem.

    Items are split into requests of at most 25 and submitted to the write
    executor; when that executor is saturated the submitting scan thread
    performs the write itself. Unprocessed items are retried with
    exponential backoff. Writes are idempotent puts, so re-running a copy
    over a partially filled destination is safe.
    """

    def __init__(
        self,
        client,
        table_name: str,
        write_throughput: Optional[float],
        executor: Executor,
        *,
        max_retries: int = MAX_WRITE_RETRIES,
        base_delay: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.table_name = table_name
        self.executor = executor
        self.limiter = RateLimiter(write_throughput)
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

        self._lock = threading.Lock()
        self._pending: Set[Future] = set()
        self._idle = threading.Condition(self._lock)
        self._failure: Optional[BootstrapError] = None
        self.items_written = 0
        self.batches_written = 0
        self.batches_retried = 0
        self.capacity_consumed = 0.0

    def accept(self, items: Sequence[Item]) -> int:
        """
        Queue items for writing; returns the number of batches submitted.

        Raises:
            BootstrapError: the first write failure, once one has occurred
        """
        submitted = 0
        for start in range(0, len(items), MAX_BATCH_WRITE_ITEMS):
            self.raise_if_failed()
            batch = list(items[start:start + MAX_BATCH_WRITE_ITEMS])
            fut = self.executor.submit(self._write_batch, batch)
            with self._lock:
                self._pending.add(fut)
            # Runs immediately if the write already finished on this thread
            fut.add_done_callback(self._on_done)
            submitted += 1
        return submitted

    @property
    def in_flight(self) -> int:
        """Batches submitted but not yet finished."""
        with self._lock:
            return len(self._pending)

    def raise_if_failed(self) -> None:
        with self._lock:
            failure = self._failure
        if failure is not None:
            raise failure

    def await_completion(self) -> None:
        """
        Block until every submitted batch has been written.

        Raises:
            BootstrapError: EXECUTION for the first batch that failed
        """
        with self._idle:
            while self._pending:
                self._idle.wait()
        self.raise_if_failed()

    def _on_done(self, fut: Future) -> None:
        exc = None if fut.cancelled() else fut.exception()
        with self._idle:
            self._pending.discard(fut)
            if isinstance(exc, Exception) and self._failure is None:
                if isinstance(exc, BootstrapError):
                    self._failure = exc
                else:
                    self._failure = BootstrapError(
                        ErrorKind.EXECUTION,
                        f"Write to {self.table_name} failed: {exc}",
                    )
                    self._failure.__cause__ = exc
                logger.error("Write to %s failed: %s", self.table_name, exc)
            if not self._pending:
                self._idle.notify_all()

    def _write_batch(self, batch: List[Item]) -> int:
        requests = [{"PutRequest": {"Item": item}} for item in batch]
        attempt = 0

        while requests:
            response = self.client.batch_write_item(
                RequestItems={self.table_name: requests},
                ReturnConsumedCapacity="TOTAL",
            )
            consumed = sum(
                c.get("CapacityUnits", 0) for c in response.get("ConsumedCapacity") or []
            )
            self.limiter.acquire(consumed or len(requests))

            unprocessed = (response.get("UnprocessedItems") or {}).get(self.table_name, [])
            written = len(requests) - len(unprocessed)
            with self._lock:
                self.items_written += written
                self.capacity_consumed += consumed

            if not unprocessed:
                break

            attempt += 1
            if attempt > self.max_retries:
                raise BootstrapError(
                    ErrorKind.EXECUTION,
                    f"{len(unprocessed)} items still unprocessed in {self.table_name} "
                    f"after {self.max_retries} retries",
                )
            with self._lock:
                self.batches_retried += 1
            delay = self.base_delay * (2 ** (attempt - 1))
            logger.debug("Retrying %d unprocessed items in %.2fs", len(unprocessed), delay)
            self._sleep(delay * random.uniform(0.5, 1.0))
            requests = unprocessed

        with self._lock:
            self.batches_written += 1
        return len(batch)
