"""Execution of call attempts off the caller's thread, now or after a delay."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Protocol

from ..config import DISPATCH_MAX_WORKERS

__all__ = ["Scheduler", "ThreadScheduler", "deliver"]

LOGGER = logging.getLogger(__name__)


class Scheduler(Protocol):
    def submit(self, fn: Callable[..., Any], *args: Any) -> None: ...

    def call_later(
        self,
        delay: float,
        fn: Callable[..., Any],
        *args: Any,
        on_drop: Callable[[], Any] | None = None,
    ) -> None: ...


class ThreadScheduler:
    """Runs tasks on a thread pool; delayed tasks wait on daemon timers.

    A delayed task cannot be cancelled once scheduled. Timers are daemon
    threads so pending backoffs do not keep the interpreter alive.
    """

    def __init__(self, max_workers: int = DISPATCH_MAX_WORKERS) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="healthgraph"
        )
        self._lock = threading.Lock()
        self._timers: set[threading.Timer] = set()

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(_log_task_failure)

    def call_later(
        self,
        delay: float,
        fn: Callable[..., Any],
        *args: Any,
        on_drop: Callable[[], Any] | None = None,
    ) -> None:
        """Run ``fn(*args)`` after ``delay`` seconds.

        When the pool has been shut down by then, ``on_drop`` runs instead on
        the timer thread.
        """
        timer: threading.Timer

        def fire() -> None:
            with self._lock:
                self._timers.discard(timer)
            try:
                self.submit(fn, *args)
            except RuntimeError as exc:
                # Raised by the executor once shutdown() has been called
                LOGGER.warning("Dropping delayed task after shutdown: %s", exc)
                if on_drop is not None:
                    on_drop()

        timer = threading.Timer(delay, fire)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()

    def pending_timers(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def _log_task_failure(future: "Future[Any]") -> None:
    exc = future.exception()
    if exc is not None:
        LOGGER.error(
            "Unhandled error in Health Graph task: %s",
            exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )


def deliver(
    future: "Future[Any]",
    callback: Callable[[Exception | None, Any], Any] | None,
    error: Exception | None,
    result: Any,
) -> None:
    """Complete a logical call: resolve its future, then invoke its callback."""

    if error is None:
        future.set_result(result)
    else:
        future.set_exception(error)
    if callback is not None:
        callback(error, None if error is not None else result)
