"""
Sliding-window rate limiting for inbound webhooks.

The limiter only talks to a ``RateLimitStore``; the in-memory store is the
default for a single process. A shared backend (Redis, the database) only
has to implement ``hit``.
"""
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Protocol


class RateLimitStore(Protocol):
    def hit(self, key: str, now: float, window: float, limit: int) -> bool:
        """Record a hit for ``key``; return False if it would exceed ``limit``."""


class InMemoryRateLimitStore:
    def __init__(self):
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = None

    def __len__(self):
        return len(self._hits)

    def _sweep(self, now: float, window: float):
        # drop keys whose newest hit has left the window
        stale = [key for key, hits in self._hits.items() if now - hits[-1] >= window]
        for key in stale:
            del self._hits[key]
        self._last_sweep = now

    def hit(self, key: str, now: float, window: float, limit: int) -> bool:
        with self._lock:
            if self._last_sweep is None or now - self._last_sweep >= window:
                self._sweep(now, window)

            hits = self._hits.get(key, deque())
            while hits and now - hits[0] >= window:
                hits.popleft()
            if not hits:
                self._hits.pop(key, None)

            if len(hits) >= limit:
                return False

            hits.append(now)
            self._hits[key] = hits
            return True

    def reset(self):
        with self._lock:
            self._hits.clear()
            self._last_sweep = None


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock

    def allow(self, key: str) -> bool:
        return self.store.hit(key, self.clock(), self.window_seconds, self.limit)
