"""Bounded thread pools with caller-runs backpressure."""
from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Optional, Set

from ddb_bootstrap.errors import BootstrapError, ErrorKind

logger = logging.getLogger(__name__)

__all__ = [
    "BackpressurePolicy",
    "PoolSpec",
    "build_pool",
    "BoundedThreadPoolExecutor",
    "create_executor",
]


class BackpressurePolicy(Enum):
    CALLER_RUNS = "caller_runs"


@dataclass(frozen=True)
class PoolSpec:
    """Sizing of one worker pool."""

    core_pool_size: int
    max_pool_size: int
    queue_capacity: int
    keep_alive_ms: int
    backpressure: BackpressurePolicy = BackpressurePolicy.CALLER_RUNS


def build_pool(limit: int, configured_core_size: int, keep_alive_ms: int) -> PoolSpec:
    """
    Size a pool whose concurrency ceiling is ``limit``.

    Core threads are ``min(configured_core_size, limit - 1)`` but at least one;
    the maximum and the queue capacity both equal ``limit``.

    Raises:
        BootstrapError: CONFIGURATION when limit is below 1
    """
    if limit < 1:
        raise BootstrapError(
            ErrorKind.CONFIGURATION,
            f"Pool limit must be at least 1, got {limit}",
        )
    core = max(1, min(configured_core_size, limit - 1))
    return PoolSpec(
        core_pool_size=core,
        max_pool_size=limit,
        queue_capacity=limit,
        keep_alive_ms=keep_alive_ms,
    )


class _WorkItem:
    def __init__(self, future: Future, fn, args, kwargs):
        self.future = future
        self.fn = fn
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        if not self.future.set_running_or_notify_cancel():
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as exc:
            self.future.set_exception(exc)
        except BaseException as exc:
            # KeyboardInterrupt / SystemExit: record, then keep unwinding
            self.future.set_exception(exc)
            raise
        else:
            self.future.set_result(result)


class BoundedThreadPoolExecutor(Executor):
    """
    Executor honoring a PoolSpec.

    Submission order of preference: start a core thread, enqueue into the
    bounded queue, start a thread up to the maximum, and finally run the task
    on the submitting thread. Nothing is rejected or dropped. Threads above
    the core size exit after keep_alive_ms without work.
    """

    def __init__(self, spec: PoolSpec, thread_name_prefix: str = "pool"):
        self._spec = spec
        self._name = thread_name_prefix
        self._work: Deque[_WorkItem] = deque()
        self._threads: Set[threading.Thread] = set()
        self._cond = threading.Condition()
        self._shutdown = False
        self._ids = itertools.count()
        self._caller_runs = 0

    @property
    def spec(self) -> PoolSpec:
        return self._spec

    @property
    def pool_size(self) -> int:
        with self._cond:
            return len(self._threads)

    @property
    def queued(self) -> int:
        with self._cond:
            return len(self._work)

    @property
    def caller_runs(self) -> int:
        """Number of submissions executed on the submitting thread."""
        with self._cond:
            return self._caller_runs

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        item = _WorkItem(future, fn, args, kwargs)

        with self._cond:
            if self._shutdown:
                raise RuntimeError("cannot schedule new futures after shutdown")

            if len(self._threads) < self._spec.core_pool_size:
                self._start_worker(item)
                return future

            if len(self._work) < self._spec.queue_capacity:
                self._work.append(item)
                if not self._threads:
                    self._start_worker(None)
                self._cond.notify()
                return future

            if len(self._threads) < self._spec.max_pool_size:
                self._start_worker(item)
                return future

            self._caller_runs += 1

        logger.debug("%s saturated; running task on %s",
                     self._name, threading.current_thread().name)
        item.run()
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        with self._cond:
            self._shutdown = True
            if cancel_futures:
                while self._work:
                    self._work.popleft().future.cancel()
            self._cond.notify_all()
            threads = list(self._threads)

        if wait:
            for t in threads:
                t.join()

    def _start_worker(self, first: Optional[_WorkItem]) -> None:
        # Caller holds self._cond
        t = threading.Thread(
            target=self._worker,
            args=(first,),
            name=f"{self._name}-{next(self._ids)}",
            daemon=True,
        )
        self._threads.add(t)
        t.start()

    def _worker(self, first: Optional[_WorkItem]) -> None:
        item = first
        try:
            while True:
                if item is None:
                    item = self._next_item()
                    if item is None:
                        return
                item.run()
                item = None
        finally:
            with self._cond:
                self._threads.discard(threading.current_thread())
                self._cond.notify_all()

    def _next_item(self) -> Optional[_WorkItem]:
        me = threading.current_thread()
        keep_alive = self._spec.keep_alive_ms / 1000.0

        with self._cond:
            while True:
                if self._work:
                    return self._work.popleft()
                if self._shutdown:
                    self._threads.discard(me)
                    return None
                if len(self._threads) > self._spec.core_pool_size:
                    timed_out = not self._cond.wait(keep_alive)
                    if (timed_out and not self._work
                            and len(self._threads) > self._spec.core_pool_size):
                        self._threads.discard(me)
                        return None
                else:
                    self._cond.wait()


def create_executor(spec: PoolSpec, name: str) -> BoundedThreadPoolExecutor:
    """Instantiate the executor for a sized pool. Threads start lazily."""
    logger.info(
        "Pool %s: core=%d max=%d queue=%d keep_alive=%dms (%s)",
        name, spec.core_pool_size, spec.max_pool_size,
        spec.queue_capacity, spec.keep_alive_ms, spec.backpressure.value,
    )
    return BoundedThreadPoolExecutor(spec, thread_name_prefix=name)
