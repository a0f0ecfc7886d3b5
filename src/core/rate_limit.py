"""
Fixed-window rate limiting for the authentication entry points.

The limiter keeps no state of its own: counters live in a ``RateLimitStore``
so the in-process store can be swapped for a shared one when the API runs
on several hosts.
"""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

from fastapi import Request

from ..auth.exceptions import RateLimitExceededException

logger = logging.getLogger(__name__)


@dataclass
class WindowCounter:
    window_start: float
    count: int


class RateLimitStore(Protocol):
    def increment(self, key: str, now: float, window_seconds: float) -> WindowCounter:
        """Atomically count one request for ``key`` and return the updated window."""


class InMemoryRateLimitStore:
    """
    Process-wide counters guarded by a lock.

    A key's window starts with its first request and is replaced by a fresh
    one on the first request after it has elapsed. Elapsed windows of other
    keys are swept at most once per window.
    """

    def __init__(self):
        self._counters: Dict[str, WindowCounter] = {}
        self._lock = threading.Lock()
        self._last_sweep: Optional[float] = None

    def increment(self, key: str, now: float, window_seconds: float) -> WindowCounter:
        with self._lock:
            if self._last_sweep is None or now - self._last_sweep >= window_seconds:
                self._sweep(now, window_seconds)
                self._last_sweep = now
            counter = self._counters.get(key)
            if counter is None or now - counter.window_start >= window_seconds:
                counter = WindowCounter(window_start=now, count=0)
                self._counters[key] = counter
            counter.count += 1
            return WindowCounter(counter.window_start, counter.count)

    def prune(self, now: float, window_seconds: float) -> int:
        """Drop counters whose window has elapsed. Returns how many were removed."""
        with self._lock:
            return self._sweep(now, window_seconds)

    def _sweep(self, now: float, window_seconds: float) -> int:
        expired = [
            key for key, counter in self._counters.items()
            if now - counter.window_start >= window_seconds
        ]
        for key in expired:
            del self._counters[key]
        return len(expired)

    def __len__(self):
        return len(self._counters)


class RateLimiter:
    """Allows ``max_requests`` per key in each window of ``window_seconds``."""

    def __init__(
        self,
        store: RateLimitStore,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock

    def hit(self, key: str) -> int:
        """
        Count one request for ``key``.

        Returns:
            int: Requests left in the current window

        Raises:
            RateLimitExceededException: If the budget for the window is used up
        """
        now = self.clock()
        counter = self.store.increment(key, now, self.window_seconds)
        if counter.count > self.max_requests:
            retry_after = max(1, math.ceil(counter.window_start + self.window_seconds - now))
            logger.warning(f"Rate limit exceeded for {key} ({counter.count} requests in window)")
            raise RateLimitExceededException(retry_after=retry_after, window_seconds=self.window_seconds)
        return self.max_requests - counter.count


def client_origin(request: Request, trust_forwarded_for: bool = False) -> str:
    """
    Network origin used as the rate-limit key.

    ``X-Forwarded-For`` is only honoured when the API sits behind a proxy
    that sets it, otherwise any client could pick its own key.
    """
    if trust_forwarded_for:
        forwarded: Optional[str] = request.headers.get("X-Forwarded-For")
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
    return request.client.host if request.client else "unknown"
