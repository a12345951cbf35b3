"""Sliding-window attempt limiter for the login endpoint.

Counts live in the process, so each worker limits separately. Keys whose
window has emptied are dropped, which keeps memory bounded by the number of
clients seen within one window.
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from typing import Callable

from backend.app.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class InMemoryRateLimiter:
    def __init__(
        self,
        window_seconds: float = 60,
        max_attempts: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window = window_seconds
        self.max_attempts = max_attempts
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._hits)

    def check(self, key: str) -> None:
        """Record one attempt for *key*, or raise ``RateLimitError`` (429)."""
        now = self._clock()
        if now - self._last_sweep >= self.window:
            self._sweep(now)

        hits = self._expire(key, now)
        if hits is not None and len(hits) >= self.max_attempts:
            retry_after = max(1, math.ceil(hits[0] + self.window - now))
            logger.warning("Rate limit exceeded for %s", key)
            raise RateLimitError(
                f"Too many attempts. Try again in {retry_after} seconds.",
                retry_after=retry_after,
            )
        self._hits.setdefault(key, deque()).append(now)

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)

    def _expire(self, key: str, now: float) -> deque[float] | None:
        hits = self._hits.get(key)
        if hits is None:
            return None
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def _sweep(self, now: float) -> None:
        for key in list(self._hits):
            self._expire(key, now)
        self._last_sweep = now
