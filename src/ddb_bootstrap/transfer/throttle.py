"""Capacity-unit pacing shared by the worker threads of one side."""
from __future__ import annotations

import threading
import time
from typing import Callable, Optional

__all__ = ["RateLimiter"]


class RateLimiter:
    """
    Token-bucket pacing in capacity units per second.

    Permits are paid for after the fact: a request is let through immediately
    if the bucket is not in debt, and the units it consumed push back the time
    at which the next caller may proceed. A rate of None disables pacing.
    """

    def __init__(
        self,
        rate: Optional[float],
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate is not None and rate <= 0:
            raise ValueError(f"rate must be positive or None, got {rate}")
        self.rate = rate
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_free = clock()

    @property
    def enabled(self) -> bool:
        return self.rate is not None

    def acquire(self, permits: float = 1.0) -> float:
        """
        Wait until the caller may issue a request, then charge ``permits``.

        Returns:
            Seconds spent waiting
        """
        if not self.enabled:
            return 0.0

        with self._lock:
            now = self._clock()
            wait = max(0.0, self._next_free - now)
            self._next_free = max(self._next_free, now) + max(0.0, permits) / self.rate

        if wait > 0:
            self._sleep(wait)
        return wait
