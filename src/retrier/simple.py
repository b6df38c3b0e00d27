"""Retry/backoff helpers for recoverable operations."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from retrier.cancellation import CancellationToken
from retrier.executor import Retrier, interruptible_wait
from retrier.policy import PolicySet
from retrier.strategies import retry_on_exception_types, retry_on_result_never, stop_after, wait_backoff

T = TypeVar("T")


class RecoverableError(Exception):
    """Transient failure that can be retried."""


class FatalError(Exception):
    """Non-recoverable failure that should stop immediately."""


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_backoff_seconds: float = 0.5
    multiplier: float = 2.0

    def to_policy_set(self) -> PolicySet:
        return PolicySet(
            stop=stop_after(self.max_attempts),
            retry_on_result=retry_on_result_never(),
            retry_on_exception=retry_on_exception_types(RecoverableError),
            wait=wait_backoff(self.initial_backoff_seconds, self.multiplier),
        )


def run_with_retry(
    operation: Callable[[], T],
    *,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    cancellation: CancellationToken | None = None,
) -> T:
    def wait(token: CancellationToken, seconds: float) -> bool:
        if token.cancelled:
            return True
        sleep(seconds)
        return token.cancelled

    # time.sleep cannot be woken early, so the token's own wait replaces it.
    retrier = Retrier(policy.to_policy_set(), wait=interruptible_wait if sleep is time.sleep else wait)
    return retrier.execute(operation, cancellation=cancellation)
