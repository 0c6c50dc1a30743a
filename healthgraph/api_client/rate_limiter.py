"""Per-token call rate limiting shared across Health Graph API calls."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Protocol

from ..config import RATE_LIMIT_CALLS, RATE_LIMIT_WINDOW_SECONDS
from ..utils import mask_token

__all__ = ["RateLimiter", "SlidingWindowRateLimiter"]

LOGGER = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def check_and_record(self, key: str, now: float | None = None) -> bool:
        """Record a call for ``key`` and return True, or return False when limited."""
        ...


class SlidingWindowRateLimiter:
    """Allow at most ``rate`` calls per key within any trailing ``window`` seconds."""

    def __init__(
        self,
        rate: int = RATE_LIMIT_CALLS,
        window: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate < 1:
            raise ValueError("rate must be >= 1")
        if window <= 0:
            raise ValueError("window must be > 0")
        self._rate = rate
        self._window = float(window)
        self._clock = clock
        self._lock = threading.Lock()
        self._calls: Dict[str, Deque[float]] = {}

    @property
    def rate(self) -> int:
        return self._rate

    @property
    def window(self) -> float:
        return self._window

    def check_and_record(self, key: str, now: float | None = None) -> bool:
        if now is None:
            now = self._clock()
        with self._lock:
            calls = self._calls.setdefault(key, deque())
            self._evict(calls, now)
            if len(calls) >= self._rate:
                allowed = False
            else:
                calls.append(now)
                allowed = True
        if not allowed:
            LOGGER.debug(
                "Rate limited key=%s (%s calls in %.0fs)",
                mask_token(key),
                self._rate,
                self._window,
            )
        return allowed

    def _evict(self, calls: Deque[float], now: float) -> None:
        while calls and now - calls[0] >= self._window:
            calls.popleft()

    def reset(self, key: str | None = None) -> None:
        """Forget recorded calls for ``key`` (or for every key)."""

        with self._lock:
            if key is None:
                self._calls.clear()
            else:
                self._calls.pop(key, None)

    def snapshot(self, key: str, now: float | None = None) -> int:
        """Return the number of calls currently counted against ``key``."""

        if now is None:
            now = self._clock()
        with self._lock:
            calls = self._calls.get(key)
            if not calls:
                return 0
            self._evict(calls, now)
            return len(calls)
