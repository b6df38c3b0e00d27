"""Deterministic error model for the retry executor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    CANCELLED = 5
    VALIDATION_ERROR = 7


@dataclass
class RetrierError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class RetryCancelledError(RetrierError):
    """Cancellation signal raised when a retry loop is abandoned."""

    message: str = "Retry execution was cancelled."
    code: ExitCode = ExitCode.CANCELLED


@dataclass
class PolicyConfigError(RetrierError):
    code: ExitCode = ExitCode.CONFIG_ERROR
