from __future__ import annotations

import time
from collections import defaultdict, deque
from threading import Lock
from typing import Callable, Deque, Dict


class RateLimiter:
    """Sliding-window request counter, one window per key."""

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = max(1, limit)
        self._window = float(window_seconds)
        self._clock = clock
        self._lock = Lock()
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)

    def allow(self, key: str) -> bool:
        """Record a request for ``key`` and return whether it fits the window."""

        now = self._clock()
        window_start = now - self._window
        with self._lock:
            stamps = self._requests[key]
            while stamps and stamps[0] <= window_start:
                stamps.popleft()
            if len(stamps) >= self._limit:
                return False
            stamps.append(now)
            return True


__all__ = ["RateLimiter"]
