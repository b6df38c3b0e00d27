from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from retrier.executor import Retrier
from retrier.policy import PolicySet
from retrier.strategies import retry_on_exception_types, stop_after, wait_exponential

_ATTEMPTS = st.integers(min_value=1, max_value=200)


class CustomError(Exception):
    pass


@given(st.lists(_ATTEMPTS, min_size=1, max_size=30))
def test_wait_exponential_is_non_decreasing_and_capped(attempts: list[int]) -> None:
    wait = wait_exponential(2)
    delays = [wait(attempt) for attempt in sorted(attempts)]

    assert delays == sorted(delays)
    assert all(0 < delay <= 1.0 for delay in delays)


@given(st.integers(min_value=1, max_value=25))
def test_always_failing_operation_runs_exactly_cap_times(max_attempts: int) -> None:
    calls = {"count": 0}
    raised: list[CustomError] = []

    def operation() -> object:
        calls["count"] += 1
        error = CustomError(calls["count"])
        raised.append(error)
        raise error

    policy = PolicySet(stop=stop_after(max_attempts), retry_on_exception=retry_on_exception_types(CustomError))
    with pytest.raises(CustomError) as excinfo:
        Retrier(policy).execute(operation)

    assert excinfo.value is raised[-1]
    assert calls["count"] == max_attempts


@given(st.integers(min_value=1, max_value=25), st.integers(min_value=1, max_value=25))
def test_success_index_bounds_call_count(max_attempts: int, succeed_on: int) -> None:
    calls = {"count": 0}

    def operation() -> int:
        calls["count"] += 1
        if calls["count"] < succeed_on:
            raise CustomError()
        return calls["count"]

    policy = PolicySet(
        stop=stop_after(max_attempts),
        retry_on_result=lambda value: False,
        retry_on_exception=retry_on_exception_types(CustomError),
    )
    try:
        result = Retrier(policy).execute(operation)
    except CustomError:
        assert succeed_on > max_attempts
        assert calls["count"] == max_attempts
    else:
        assert result == succeed_on
        assert calls["count"] == succeed_on
