"""Reference stop, wait, eligibility and give-up policies."""

from __future__ import annotations

import math
import sys
from collections.abc import Callable
from typing import Any

from retrier.errors import ExitCode, PolicyConfigError
from retrier.policy import (
    ExceptionPolicy,
    GiveUpPolicy,
    ResultPolicy,
    StopPolicy,
    WaitPolicy,
    always_retry_exception,
    always_retry_result,
    never_stop,
    no_wait,
    reraise_or_return,
)

DEFAULT_EXPONENTIAL_BASE = 2.0
DEFAULT_MAX_DELAY_MS = 1000


def _invalid(message: str, hint: str) -> PolicyConfigError:
    return PolicyConfigError(message, code=ExitCode.VALIDATION_ERROR, hint=hint)


def stop_after(max_attempts: int) -> StopPolicy:
    if max_attempts < 1:
        raise _invalid(f"Invalid attempt cap: {max_attempts}", "Use a value of at least 1.")

    def stop(attempt: int) -> bool:
        return attempt >= max_attempts

    return stop


def stop_never() -> StopPolicy:
    return never_stop


def wait_none() -> WaitPolicy:
    return no_wait


def wait_constant(delay_seconds: float) -> WaitPolicy:
    if not math.isfinite(delay_seconds) or delay_seconds < 0:
        raise _invalid(f"Invalid wait delay: {delay_seconds}", "Use a finite, non-negative number of seconds.")

    def wait(attempt: int) -> float:
        del attempt
        return float(delay_seconds)

    return wait


def wait_exponential(
    base: float = DEFAULT_EXPONENTIAL_BASE,
    *,
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
) -> WaitPolicy:
    """Grow the delay as ``base ** attempt`` milliseconds, capped at ``max_delay_ms``.

    The returned policy yields seconds, so attempt 1 with base 2 gives 0.002
    and attempt 10 gives the 1000ms cap (1.0).
    """
    if not base >= 1:
        raise _invalid(f"Invalid exponential base: {base}", "Use a base of at least 1, such as 2.")
    if max_delay_ms < 0:
        raise _invalid(f"Invalid delay cap: {max_delay_ms}", "Use a non-negative number of milliseconds.")

    def wait(attempt: int) -> float:
        if attempt <= 0:
            return 0.0
        try:
            delay_ms = min(round(base**attempt), max_delay_ms)
        except OverflowError:
            delay_ms = max_delay_ms
        return delay_ms / 1000.0

    return wait


def _overflow_delay(initial_seconds: float, max_seconds: float | None) -> float:
    if initial_seconds == 0:
        return 0.0
    if max_seconds is not None:
        return max_seconds
    return sys.float_info.max


def wait_backoff(
    initial_seconds: float,
    multiplier: float = 2.0,
    *,
    max_seconds: float | None = None,
) -> WaitPolicy:
    """Geometric backoff: ``initial * multiplier ** (attempt - 1)`` seconds."""
    if not math.isfinite(initial_seconds) or initial_seconds < 0:
        raise _invalid(f"Invalid initial backoff: {initial_seconds}", "Use a finite, non-negative number of seconds.")
    if not math.isfinite(multiplier) or multiplier < 0:
        raise _invalid(f"Invalid backoff multiplier: {multiplier}", "Use a non-negative multiplier.")
    if max_seconds is not None and (not math.isfinite(max_seconds) or max_seconds < 0):
        raise _invalid(f"Invalid backoff cap: {max_seconds}", "Use a finite, non-negative number of seconds.")

    def wait(attempt: int) -> float:
        if attempt <= 0:
            return 0.0
        try:
            delay = initial_seconds * (multiplier ** (attempt - 1))
        except OverflowError:
            delay = math.inf
        if not math.isfinite(delay):
            delay = _overflow_delay(initial_seconds, max_seconds)
        if max_seconds is not None:
            delay = min(delay, max_seconds)
        return float(delay)

    return wait


def retry_on_exception_types(*types: type[BaseException]) -> ExceptionPolicy:
    if not types:
        raise _invalid("No exception types given.", "Pass at least one exception class.")
    for item in types:
        if not isinstance(item, type) or not issubclass(item, BaseException):
            raise _invalid(f"Not an exception type: {item!r}", "Pass exception classes, not instances.")
    matched = tuple(types)

    def retry_on_exception(error: Exception) -> bool:
        return isinstance(error, matched)

    return retry_on_exception


def retry_always() -> ExceptionPolicy:
    return always_retry_exception


def retry_never() -> ExceptionPolicy:
    def retry_on_exception(error: Exception) -> bool:
        del error
        return False

    return retry_on_exception


def retry_on_result_predicate(predicate: Callable[[Any], bool]) -> ResultPolicy:
    def retry_on_result(value: Any) -> bool:
        return bool(predicate(value))

    return retry_on_result


def retry_on_result_always() -> ResultPolicy:
    return always_retry_result


def retry_on_result_never() -> ResultPolicy:
    def retry_on_result(value: Any) -> bool:
        del value
        return False

    return retry_on_result


def give_up_reraise() -> GiveUpPolicy:
    return reraise_or_return


def give_up_with(fallback: Any) -> GiveUpPolicy:
    """Turn exhaustion into ``fallback`` instead of an error."""

    def give_up(last_result: Any, last_error: Exception | None) -> Any:
        del last_result, last_error
        return fallback

    return give_up
