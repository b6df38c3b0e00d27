"""Retry executor: the attempt loop, policy hooks and cancellation handling."""

from __future__ import annotations

import functools
import logging as py_logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from retrier.cancellation import CancellationToken, is_cancellation_error
from retrier.errors import ExitCode, PolicyConfigError, RetryCancelledError
from retrier.policy import PolicySet

T = TypeVar("T")

logger = py_logging.getLogger(__name__)

Waiter = Callable[[CancellationToken, float], bool]


def interruptible_wait(token: CancellationToken, seconds: float) -> bool:
    return token.wait(seconds)


@dataclass(frozen=True)
class AttemptOutcome(Generic[T]):
    attempt: int
    value: T | None = None
    error: Exception | None = None
    needs_retry: bool = False
    cancelled: bool = False

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class Retrier:
    """Runs an operation under a ``PolicySet`` until it is accepted, stopped or cancelled.

    Holds no per-call state, so one instance may serve concurrent ``execute``
    calls from different threads.
    """

    def __init__(self, policy: PolicySet | None = None, *, wait: Waiter = interruptible_wait) -> None:
        self.policy = policy or PolicySet()
        self._wait = wait

    def _attempt(self, operation: Callable[[], T], attempt: int, token: CancellationToken) -> AttemptOutcome[T]:
        try:
            value = operation()
        except Exception as exc:
            needs_retry = bool(self.policy.retry_on_exception(exc))
            cancelled = token.cancelled or is_cancellation_error(exc)
            logger.debug(
                "Attempt failed attempt=%s error=%s eligible=%s cancelled=%s",
                attempt,
                type(exc).__name__,
                needs_retry,
                cancelled,
            )
            return AttemptOutcome(attempt=attempt, error=exc, needs_retry=needs_retry, cancelled=cancelled)

        needs_retry = bool(self.policy.retry_on_result(value))
        logger.debug("Attempt returned attempt=%s needs_retry=%s", attempt, needs_retry)
        return AttemptOutcome(attempt=attempt, value=value, needs_retry=needs_retry, cancelled=token.cancelled)

    def _delay_for(self, attempt: int) -> float:
        delay = float(self.policy.wait(attempt))
        if not math.isfinite(delay) or delay < 0:
            raise PolicyConfigError(
                f"Wait policy returned an invalid delay: {delay}",
                code=ExitCode.VALIDATION_ERROR,
                hint="Wait policies must return a finite number of seconds, zero or more.",
            )
        return delay

    def execute(self, operation: Callable[[], T], *, cancellation: CancellationToken | None = None) -> T:
        token = cancellation or CancellationToken.none()
        attempt = 0

        while True:
            attempt += 1
            outcome = self._attempt(operation, attempt, token)
            cancelled = outcome.cancelled
            should_retry = outcome.needs_retry and not cancelled and not self.policy.stop(attempt)
            if not should_retry:
                break

            delay = self._delay_for(attempt)
            if outcome.failed:
                logger.warning(
                    "Retrying after failure attempt=%s delay=%.3fs error=%s",
                    attempt,
                    delay,
                    outcome.error,
                )
            else:
                logger.debug("Retrying rejected result attempt=%s delay=%.3fs", attempt, delay)
            if delay > 0 and self._wait(token, delay):
                logger.info("Cancelled while waiting before attempt=%s", attempt + 1)
                cancelled = True
                break

        if cancelled:
            self._raise_cancelled(outcome, token)
        if outcome.needs_retry:
            if outcome.failed:
                logger.error("Retry policy exhausted after attempts=%s", attempt)
            else:
                logger.warning("Retry policy exhausted with a rejected result after attempts=%s", attempt)
            return self.policy.give_up(outcome.value, outcome.error)
        if outcome.error is not None:
            raise outcome.error
        return outcome.value  # type: ignore[return-value]

    def _raise_cancelled(self, outcome: AttemptOutcome[T], token: CancellationToken) -> None:
        logger.info("Retry loop cancelled after attempts=%s", outcome.attempt)
        if outcome.error is not None and is_cancellation_error(outcome.error):
            raise outcome.error
        raise RetryCancelledError(hint=token.reason) from outcome.error

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        cancellation: CancellationToken | None = None,
        **kwargs: Any,
    ) -> T:
        return self.execute(functools.partial(fn, *args, **kwargs), cancellation=cancellation)

    def wrap(self, fn: Callable[..., T], *, cancellation: CancellationToken | None = None) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return self.call(fn, *args, cancellation=cancellation, **kwargs)

        return wrapper


def retrying(
    policy: PolicySet | None = None,
    *,
    cancellation: CancellationToken | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of ``Retrier(policy).wrap``."""
    retrier = Retrier(policy)

    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        return retrier.wrap(fn, cancellation=cancellation)

    return decorator
