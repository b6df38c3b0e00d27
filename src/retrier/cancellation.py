"""Cooperative cancellation context for retry loops."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging as py_logging
import math
import threading
import time

from retrier.errors import RetryCancelledError

logger = py_logging.getLogger(__name__)

# Upper bound for one Event.wait call; longer waits loop until the deadline.
_WAIT_CHUNK_SECONDS = 3600.0

CANCELLATION_ERROR_TYPES: tuple[type[BaseException], ...] = (
    RetryCancelledError,
    concurrent.futures.CancelledError,
    asyncio.CancelledError,
)


def is_cancellation_error(error: BaseException | None) -> bool:
    """Return True if ``error`` or anything in its cause chain signals cancellation."""
    seen: set[int] = set()
    current = error
    while current is not None and id(current) not in seen:
        if isinstance(current, CANCELLATION_ERROR_TYPES):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


class CancellationToken:
    """Thread-safe cancellation flag that can wake an in-progress wait.

    A token is handed to ``Retrier.execute`` by the caller. Anything outside
    the loop (another thread, a timer, a signal handler) may call ``cancel``;
    the loop observes it after each attempt and while waiting between attempts.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason = ""
        self._timers: list[threading.Timer] = []

    @classmethod
    def none(cls) -> CancellationToken:
        return cls()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "") -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
        logger.debug("Cancellation requested reason=%s", reason or "-")

    def cancel_after(self, seconds: float) -> threading.Timer:
        """Schedule ``cancel`` after ``seconds``; this is how deadlines are composed."""
        if not math.isfinite(seconds) or seconds < 0 or seconds > threading.TIMEOUT_MAX:
            raise ValueError(f"Invalid cancellation delay: {seconds}")
        timer = threading.Timer(seconds, self.cancel, kwargs={"reason": f"deadline of {seconds}s elapsed"})
        timer.daemon = True
        with self._lock:
            if self._event.is_set():
                return timer
            self._timers.append(timer)
        timer.start()
        return timer

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True as soon as cancellation is requested."""
        if seconds <= 0:
            return self._event.is_set()
        deadline = time.monotonic() + seconds
        remaining = seconds
        while remaining > 0:
            if self._event.wait(min(remaining, _WAIT_CHUNK_SECONDS)):
                return True
            remaining = deadline - time.monotonic()
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RetryCancelledError(hint=self._reason)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"
