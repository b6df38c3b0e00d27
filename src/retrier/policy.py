"""Immutable bundle of decision functions that drive a retry loop."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from retrier.errors import ExitCode, PolicyConfigError

StopPolicy = Callable[[int], bool]
ResultPolicy = Callable[[Any], bool]
ExceptionPolicy = Callable[[Exception], bool]
WaitPolicy = Callable[[int], float]
GiveUpPolicy = Callable[[Any, "Exception | None"], Any]


def never_stop(attempt: int) -> bool:
    del attempt
    return False


def always_retry_result(value: Any) -> bool:
    # Every result counts as retry-worthy until the caller overrides this.
    del value
    return True


def always_retry_exception(error: Exception) -> bool:
    del error
    return True


def no_wait(attempt: int) -> float:
    del attempt
    return 0.0


def reraise_or_return(last_result: Any, last_error: Exception | None) -> Any:
    if last_error is not None:
        raise last_error
    return last_result


@dataclass(frozen=True)
class PolicySet:
    """The five functions consulted by ``Retrier.execute``.

    Attributes:
        stop: Called with the 1-based attempt count; True ends the loop even
            when the last outcome still needs a retry.
        retry_on_result: Called with a successful value; True means the value
            is not good enough and the operation should run again.
        retry_on_exception: Called with a raised error; True means the error
            is eligible for another attempt.
        wait: Called with the attempt count; returns seconds to pause before
            the next attempt.
        give_up: Called once on exhaustion with the last value and last
            error; returns the final value or raises.

    The ``retry_on_result`` default treats every value as retry-worthy, so a
    set built without overriding it keeps calling the operation until
    ``stop`` fires.
    """

    stop: StopPolicy = never_stop
    retry_on_result: ResultPolicy = always_retry_result
    retry_on_exception: ExceptionPolicy = always_retry_exception
    wait: WaitPolicy = no_wait
    give_up: GiveUpPolicy = reraise_or_return

    def __post_init__(self) -> None:
        for item in dataclasses.fields(self):
            if not callable(getattr(self, item.name)):
                raise PolicyConfigError(
                    f"Policy '{item.name}' must be callable.",
                    code=ExitCode.VALIDATION_ERROR,
                    hint="Pass a function or leave the field unset to use the default.",
                )

    def replace(self, **changes: Any) -> PolicySet:
        return dataclasses.replace(self, **changes)


def single_attempt() -> PolicySet:
    """Return a fresh policy set that runs the operation exactly once."""
    from retrier.strategies import retry_on_result_never, stop_after

    return PolicySet(stop=stop_after(1), retry_on_result=retry_on_result_never())
