"""Configurable retry executor."""

from .cancellation import CancellationToken, is_cancellation_error
from .errors import ExitCode, PolicyConfigError, RetrierError, RetryCancelledError
from .executor import AttemptOutcome, Retrier, retrying
from .policy import PolicySet, single_attempt
from .strategies import (
    give_up_reraise,
    give_up_with,
    retry_always,
    retry_never,
    retry_on_exception_types,
    retry_on_result_always,
    retry_on_result_never,
    retry_on_result_predicate,
    stop_after,
    stop_never,
    wait_backoff,
    wait_constant,
    wait_exponential,
    wait_none,
)

__all__ = [
    "AttemptOutcome",
    "CancellationToken",
    "ExitCode",
    "give_up_reraise",
    "give_up_with",
    "is_cancellation_error",
    "PolicyConfigError",
    "PolicySet",
    "Retrier",
    "RetrierError",
    "RetryCancelledError",
    "retry_always",
    "retry_never",
    "retry_on_exception_types",
    "retry_on_result_always",
    "retry_on_result_never",
    "retry_on_result_predicate",
    "retrying",
    "single_attempt",
    "stop_after",
    "stop_never",
    "wait_backoff",
    "wait_constant",
    "wait_exponential",
    "wait_none",
]
