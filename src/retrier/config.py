"""TOML-backed retry settings and their mapping onto a policy set."""

from __future__ import annotations

import math
import os
import sys
from collections.abc import Sequence
from contextlib import suppress
from pathlib import Path
from typing import Literal, TextIO, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import TypedDict

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from retrier.errors import ExitCode, PolicyConfigError
from retrier.executor import Retrier
from retrier.logging import LOG_LEVELS, configure_logging
from retrier.policy import PolicySet
from retrier.strategies import (
    retry_always,
    retry_on_exception_types,
    retry_on_result_always,
    retry_on_result_never,
    stop_after,
    stop_never,
    wait_constant,
    wait_exponential,
    wait_none,
)

WaitStrategy = Literal["none", "constant", "exponential"]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_WAIT_STRATEGY: WaitStrategy = "none"
DEFAULT_WAIT_SECONDS = 0.0
DEFAULT_EXPONENTIAL_BASE = 2.0
DEFAULT_MAX_WAIT_MS = 1000
DEFAULT_LOG_LEVEL = "INFO"
SETTINGS_TABLE = "retry"

MAX_ATTEMPTS_ENV = "RETRIER_MAX_ATTEMPTS"
WAIT_STRATEGY_ENV = "RETRIER_WAIT_STRATEGY"
LOG_LEVEL_ENV = "RETRIER_LOG_LEVEL"

_VALID_WAIT_STRATEGIES = {"none", "constant", "exponential"}


class RetrySettingsDict(TypedDict):
    max_attempts: int
    wait_strategy: str
    wait_seconds: float
    exponential_base: float
    max_wait_ms: int
    retry_on_result: bool
    log_level: str


class RetrySettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    # 0 means no attempt cap.
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=0)
    wait_strategy: WaitStrategy = DEFAULT_WAIT_STRATEGY
    wait_seconds: float = Field(default=DEFAULT_WAIT_SECONDS, ge=0, allow_inf_nan=False)
    exponential_base: float = Field(default=DEFAULT_EXPONENTIAL_BASE, gt=1, allow_inf_nan=False)
    max_wait_ms: int = Field(default=DEFAULT_MAX_WAIT_MS, ge=0)
    retry_on_result: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value}")
        return normalized


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(cast(float, value))


def _sanitize(raw: dict[str, object]) -> RetrySettings:
    cfg = RetrySettings()

    max_attempts = raw.get("max_attempts", cfg.max_attempts)
    if isinstance(max_attempts, int) and not isinstance(max_attempts, bool) and max_attempts >= 0:
        cfg.max_attempts = max_attempts

    wait_strategy = raw.get("wait_strategy", cfg.wait_strategy)
    if isinstance(wait_strategy, str) and wait_strategy in _VALID_WAIT_STRATEGIES:
        cfg.wait_strategy = cast(WaitStrategy, wait_strategy)

    wait_seconds = raw.get("wait_seconds", cfg.wait_seconds)
    if _is_number(wait_seconds) and cast(float, wait_seconds) >= 0:
        cfg.wait_seconds = float(cast(float, wait_seconds))

    exponential_base = raw.get("exponential_base", cfg.exponential_base)
    if _is_number(exponential_base) and cast(float, exponential_base) > 1:
        cfg.exponential_base = float(cast(float, exponential_base))

    max_wait_ms = raw.get("max_wait_ms", cfg.max_wait_ms)
    if isinstance(max_wait_ms, int) and not isinstance(max_wait_ms, bool) and max_wait_ms >= 0:
        cfg.max_wait_ms = max_wait_ms

    retry_on_result = raw.get("retry_on_result", cfg.retry_on_result)
    if isinstance(retry_on_result, bool):
        cfg.retry_on_result = retry_on_result

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str) and log_level.upper() in LOG_LEVELS:
        cfg.log_level = log_level

    return cfg


def _apply_env(cfg: RetrySettings) -> RetrySettings:
    env_attempts = os.getenv(MAX_ATTEMPTS_ENV, "").strip()
    if env_attempts.isdecimal():
        cfg.max_attempts = int(env_attempts)

    env_strategy = os.getenv(WAIT_STRATEGY_ENV, "").strip().lower()
    if env_strategy in _VALID_WAIT_STRATEGIES:
        cfg.wait_strategy = cast(WaitStrategy, env_strategy)

    env_level = os.getenv(LOG_LEVEL_ENV, "").strip()
    if env_level and env_level.upper() in LOG_LEVELS:
        cfg.log_level = env_level
    return cfg


def load_settings(path: str | Path | None = None) -> RetrySettings:
    """Read the ``[retry]`` table from ``path``; anything unusable falls back to defaults."""
    if path is None:
        return _apply_env(RetrySettings())
    resolved = Path(path).expanduser()
    if not resolved.exists():
        return _apply_env(RetrySettings())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _apply_env(RetrySettings())
    table = raw.get(SETTINGS_TABLE, {})
    if not isinstance(table, dict):
        return _apply_env(RetrySettings())
    return _apply_env(_sanitize(table))


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def save_settings(settings: RetrySettings, path: str | Path) -> Path:
    resolved = Path(path).expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"[{SETTINGS_TABLE}]"]
    lines.extend(f"{key} = {_toml_scalar(value)}" for key, value in settings_as_dict(settings).items())
    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved


def settings_as_dict(settings: RetrySettings) -> RetrySettingsDict:
    return RetrySettingsDict(
        max_attempts=settings.max_attempts,
        wait_strategy=settings.wait_strategy,
        wait_seconds=settings.wait_seconds,
        exponential_base=settings.exponential_base,
        max_wait_ms=settings.max_wait_ms,
        retry_on_result=settings.retry_on_result,
        log_level=settings.log_level,
    )


def build_policy_set(
    settings: RetrySettings,
    *,
    retry_on: Sequence[type[BaseException]] = (),
) -> PolicySet:
    """Translate settings into a ``PolicySet``; ``retry_on`` narrows eligible errors."""
    if settings.wait_strategy == "constant":
        wait = wait_constant(settings.wait_seconds)
    elif settings.wait_strategy == "exponential":
        wait = wait_exponential(settings.exponential_base, max_delay_ms=settings.max_wait_ms)
    elif settings.wait_strategy == "none":
        wait = wait_none()
    else:  # pragma: no cover
        raise PolicyConfigError(
            f"Unknown wait strategy: {settings.wait_strategy}",
            code=ExitCode.CONFIG_ERROR,
            hint=f"Use one of: {', '.join(sorted(_VALID_WAIT_STRATEGIES))}.",
        )

    return PolicySet(
        stop=stop_after(settings.max_attempts) if settings.max_attempts else stop_never(),
        retry_on_result=retry_on_result_always() if settings.retry_on_result else retry_on_result_never(),
        retry_on_exception=retry_on_exception_types(*retry_on) if retry_on else retry_always(),
        wait=wait,
    )


def apply_settings(
    settings: RetrySettings,
    *,
    retry_on: Sequence[type[BaseException]] = (),
    stream: TextIO | None = None,
) -> Retrier:
    """Configure the ``retrier`` logger from ``settings`` and return a ready executor."""
    configure_logging(settings.log_level, stream)
    return Retrier(build_policy_set(settings, retry_on=retry_on))
