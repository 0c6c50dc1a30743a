"""Bounded backoff budget for throttled calls."""

from __future__ import annotations

import threading

from ..config import BACKOFF_DELAY_SECONDS, DEFAULT_BACKOFF_LIMIT

__all__ = ["BackoffController"]


class BackoffController:
    """Counts backoffs consumed by one client against a per-call limit.

    The counter is cumulative: it is shared by every call made through the
    owning client and is never reset between calls, so once ``limit``
    backoffs have been spent no call using that limit is retried again.
    """

    def __init__(
        self,
        delay: float = BACKOFF_DELAY_SECONDS,
        default_limit: int = DEFAULT_BACKOFF_LIMIT,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._delay = float(delay)
        self._default_limit = default_limit
        self._lock = threading.Lock()
        self._used = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def used(self) -> int:
        with self._lock:
            return self._used

    def _limit(self, limit: int | None) -> int:
        return self._default_limit if limit is None else limit

    def may_backoff(self, limit: int | None = None) -> bool:
        with self._lock:
            return self._used < self._limit(limit)

    def acquire(self, limit: int | None = None) -> bool:
        """Consume one backoff if the budget allows it."""

        with self._lock:
            if self._used >= self._limit(limit):
                return False
            self._used += 1
            return True

    def reset(self) -> None:
        with self._lock:
            self._used = 0
