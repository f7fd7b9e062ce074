"""In-memory request rate limiting for the HTTP layer."""
from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict


class RateLimiter:
    """Sliding-window limiter keyed by client address.

    Allows ``max_requests`` hits per ``window`` seconds for each key. State is
    per process, so several workers each keep their own window. Keys whose
    hits have all expired are dropped at most once per window.
    """

    def __init__(
        self,
        max_requests: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max = max_requests
        self._window = window
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def hit(self, key: str) -> bool:
        """Record a request for ``key``; False means the limit is exceeded."""
        now = self._clock()
        cutoff = now - self._window
        with self._lock:
            if now - self._last_cleanup >= self._window:
                self._cleanup_old_keys(cutoff)
                self._last_cleanup = now
            hits = self._hits.get(key)
            if hits is None:
                hits = self._hits[key] = deque()
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self._max:
                return False
            hits.append(now)
            return True

    def _cleanup_old_keys(self, cutoff: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self._hits[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def retry_after(self, key: str) -> int:
        with self._lock:
            hits = self._hits.get(key)
            if not hits:
                return 0
            remaining = hits[0] + self._window - self._clock()
        return max(int(remaining) + 1, 1)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
