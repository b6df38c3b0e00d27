from __future__ import annotations

import math

import pytest

from retrier.errors import PolicyConfigError
from retrier.strategies import (
    give_up_reraise,
    give_up_with,
    retry_never,
    retry_on_exception_types,
    retry_on_result_never,
    retry_on_result_predicate,
    stop_after,
    stop_never,
    wait_backoff,
    wait_constant,
    wait_exponential,
    wait_none,
)


class CustomError(Exception):
    pass


class ChildError(CustomError):
    pass


def test_stop_after_fires_at_cap() -> None:
    stop = stop_after(3)
    assert [stop(attempt) for attempt in (1, 2, 3, 4)] == [False, False, True, True]


def test_stop_after_rejects_zero() -> None:
    with pytest.raises(PolicyConfigError):
        stop_after(0)


def test_stop_never_never_fires() -> None:
    assert not stop_never()(10_000)


def test_wait_constant_ignores_attempt() -> None:
    wait = wait_constant(0.25)
    assert wait(1) == wait(50) == 0.25
    assert wait_none()(7) == 0.0


def test_wait_constant_rejects_negative_delay() -> None:
    with pytest.raises(PolicyConfigError):
        wait_constant(-0.1)


@pytest.mark.parametrize("delay", [math.inf, math.nan])
def test_wait_constant_rejects_non_finite_delay(delay: float) -> None:
    with pytest.raises(PolicyConfigError):
        wait_constant(delay)


def test_wait_exponential_reference_values() -> None:
    wait = wait_exponential(2)
    assert wait(0) == 0.0
    assert wait(1) == pytest.approx(0.002)
    assert wait(5) == pytest.approx(0.032)
    assert wait(10) == pytest.approx(1.0)
    assert wait(10_000) == pytest.approx(1.0)


def test_wait_exponential_float_overflow_uses_cap() -> None:
    wait = wait_exponential(10.0, max_delay_ms=500)
    assert wait(5000) == pytest.approx(0.5)


@pytest.mark.parametrize("base", [0.5, 0.0, -2.0, math.nan])
def test_wait_exponential_rejects_base_below_one(base: float) -> None:
    with pytest.raises(PolicyConfigError):
        wait_exponential(base)


def test_wait_exponential_base_one_is_constant_millisecond() -> None:
    wait = wait_exponential(1.0)
    assert wait(1) == wait(100) == pytest.approx(0.001)


def test_wait_backoff_matches_geometric_growth() -> None:
    wait = wait_backoff(0.5, 2.0, max_seconds=3.0)
    assert [wait(attempt) for attempt in (1, 2, 3, 4)] == [0.5, 1.0, 2.0, 3.0]


def test_wait_backoff_overflow_stays_finite() -> None:
    assert wait_backoff(0.0, 2.0)(1100) == 0.0
    assert wait_backoff(1.0, 2.0, max_seconds=5.0)(5000) == 5.0
    assert math.isfinite(wait_backoff(1.0, 2.0)(5000))
    assert math.isfinite(wait_backoff(1e300, 1e10)(40))


def test_wait_backoff_rejects_non_finite_arguments() -> None:
    with pytest.raises(PolicyConfigError):
        wait_backoff(math.inf)
    with pytest.raises(PolicyConfigError):
        wait_backoff(1.0, math.nan)
    with pytest.raises(PolicyConfigError):
        wait_backoff(1.0, 2.0, max_seconds=math.inf)


def test_retry_on_exception_types_matches_subclasses() -> None:
    predicate = retry_on_exception_types(CustomError, KeyError)
    assert predicate(CustomError())
    assert predicate(ChildError())
    assert predicate(KeyError("x"))
    assert not predicate(ValueError())


def test_retry_on_exception_types_requires_exception_classes() -> None:
    with pytest.raises(PolicyConfigError):
        retry_on_exception_types()
    with pytest.raises(PolicyConfigError):
        retry_on_exception_types(CustomError())  # type: ignore[arg-type]
    with pytest.raises(PolicyConfigError):
        retry_on_exception_types(int)  # type: ignore[arg-type]


def test_result_and_exception_helpers() -> None:
    assert not retry_never()(CustomError())
    assert not retry_on_result_never()("anything")
    assert retry_on_result_predicate(lambda value: value is None)(None)
    assert not retry_on_result_predicate(lambda value: value is None)(1)


def test_give_up_helpers() -> None:
    reraise = give_up_reraise()
    assert reraise("value", None) == "value"
    with pytest.raises(CustomError):
        reraise(None, CustomError())
    assert give_up_with("fallback")(None, CustomError()) == "fallback"
