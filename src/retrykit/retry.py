"""Retry executor for fallible zero-argument operations."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import TypeVar

from retrykit.errors import FatalError, RetryMisuseError

T = TypeVar("T")

logger = py_logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


def _always_retry(error: Exception) -> bool:
    del error
    return True


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    is_retryable: Callable[[Exception], bool] = _always_retry


@dataclass(frozen=True)
class MaxTries:
    """Attempt budget. Zero and one both mean a single attempt; negatives are ignored."""

    count: int

    def apply(self, policy: RetryPolicy) -> RetryPolicy:
        if self.count > 1:
            return replace(policy, max_attempts=self.count)
        if self.count >= 0:
            return replace(policy, max_attempts=1)
        return policy


@dataclass(frozen=True)
class RetryIf:
    """Predicate deciding whether a failed attempt is retried. ``None`` is ignored."""

    predicate: Callable[[Exception], bool] | None

    def apply(self, policy: RetryPolicy) -> RetryPolicy:
        if self.predicate is None:
            return policy
        return replace(policy, is_retryable=self.predicate)


Option = MaxTries | RetryIf


def resolve_policy(options: Iterable[Option]) -> RetryPolicy:
    policy = RetryPolicy()
    for option in options:
        policy = option.apply(policy)
    return policy


def _require_operation(operation: object) -> None:
    if operation is None or not callable(operation):
        raise RetryMisuseError(f"operation must be callable, got {operation!r}")


def _run(operation: Callable[[], T], policy: RetryPolicy) -> tuple[bool, T | None, Exception | None]:
    attempt = 0
    last_error: Exception | None = None

    while attempt < policy.max_attempts:
        attempt += 1
        try:
            value = operation()
        except FatalError:
            raise
        except Exception as exc:
            last_error = exc
            if not policy.is_retryable(exc):
                logger.debug("Attempt %s/%s rejected for retry: %r", attempt, policy.max_attempts, exc)
                return False, None, exc
            logger.debug("Attempt %s/%s failed: %r", attempt, policy.max_attempts, exc)
        else:
            return True, value, None

    logger.debug("Retry budget exhausted after %s attempts", attempt)
    return False, None, last_error


def retry(operation: Callable[[], object], *options: Option) -> Exception | None:
    """Invoke ``operation`` until it succeeds, the policy rejects its error or the budget runs out.

    The operation fails by raising an ``Exception``. Returns ``None`` on success,
    otherwise the last exception raised by the operation. ``FatalError`` and
    non-``Exception`` exceptions propagate without being retried.

    Raises ``RetryMisuseError`` when ``operation`` is ``None`` or not callable.
    """
    _require_operation(operation)
    _, _, error = _run(operation, resolve_policy(options))
    return error


def call_with_retry(operation: Callable[[], T], *options: Option) -> T:
    """Like :func:`retry`, but return the operation's value and raise its last error."""
    _require_operation(operation)
    succeeded, value, error = _run(operation, resolve_policy(options))
    if not succeeded and error is not None:
        raise error
    return value  # type: ignore[return-value]
