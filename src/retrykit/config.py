"""XDG config loading for the command runner."""

from __future__ import annotations

import logging as py_logging
import os
import sys
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from retrykit.command import retry_on_exit_codes as exit_code_predicate
from retrykit.retry import MaxTries, Option, RetryIf

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/retrykit/config.toml").expanduser()
DEFAULT_LOG_LEVEL: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "INFO"
MAX_TRIES_ENV = "RETRYKIT_MAX_TRIES"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}


class RetryConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    max_tries: int | None = None
    retry_on_exit_codes: list[int] = Field(default_factory=list)
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = DEFAULT_LOG_LEVEL

    @field_validator("retry_on_exit_codes")
    @classmethod
    def _dedupe_exit_codes(cls, value: list[int]) -> list[int]:
        return sorted(set(value))

    def to_options(self) -> list[Option]:
        options: list[Option] = []
        if self.max_tries is not None:
            options.append(MaxTries(self.max_tries))
        if self.retry_on_exit_codes:
            options.append(RetryIf(exit_code_predicate(self.retry_on_exit_codes)))
        return options


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _env_max_tries() -> int | None:
    raw = os.getenv(MAX_TRIES_ENV, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", MAX_TRIES_ENV, raw)
        return None


def _sanitize(raw: dict[str, object]) -> RetryConfig:
    cfg = RetryConfig()

    max_tries = raw.get("max_tries")
    if _is_int(max_tries):
        cfg.max_tries = cast(int, max_tries)

    exit_codes = raw.get("retry_on_exit_codes", [])
    if isinstance(exit_codes, list):
        cfg.retry_on_exit_codes = [code for code in exit_codes if _is_int(code)]

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str):
        normalized = log_level.upper()
        if normalized == "WARNING":
            normalized = "WARN"
        if normalized in _VALID_LOG_LEVELS:
            cfg.log_level = cast(Literal["DEBUG", "INFO", "WARN", "ERROR"], normalized)

    return cfg


def _apply_env(cfg: RetryConfig) -> RetryConfig:
    env_max_tries = _env_max_tries()
    if env_max_tries is not None:
        cfg.max_tries = env_max_tries
    return cfg


def load_config(path: str | Path | None = None) -> RetryConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _apply_env(RetryConfig())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        logger.warning("Ignoring unreadable config file %s", resolved)
        return _apply_env(RetryConfig())
    return _apply_env(_sanitize(raw))
