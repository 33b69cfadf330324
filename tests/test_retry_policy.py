from __future__ import annotations

from retrykit.retry import DEFAULT_MAX_ATTEMPTS, MaxTries, RetryIf, RetryPolicy, resolve_policy


def _never(error: Exception) -> bool:
    return False


def _only_value_errors(error: Exception) -> bool:
    return isinstance(error, ValueError)


def test_empty_options_resolve_to_defaults() -> None:
    policy = resolve_policy([])

    assert policy.max_attempts == DEFAULT_MAX_ATTEMPTS == 3
    assert policy.is_retryable(RuntimeError("any")) is True


def test_max_tries_above_one_sets_budget() -> None:
    assert resolve_policy([MaxTries(5)]).max_attempts == 5


def test_max_tries_zero_and_one_collapse_to_single_attempt() -> None:
    assert resolve_policy([MaxTries(0)]).max_attempts == 1
    assert resolve_policy([MaxTries(1)]).max_attempts == 1


def test_negative_max_tries_is_ignored() -> None:
    assert resolve_policy([MaxTries(-1)]).max_attempts == 3
    assert resolve_policy([MaxTries(2), MaxTries(-5)]).max_attempts == 2


def test_later_max_tries_wins() -> None:
    assert resolve_policy([MaxTries(7), MaxTries(4)]).max_attempts == 4
    assert resolve_policy([MaxTries(7), MaxTries(0)]).max_attempts == 1


def test_retry_if_replaces_default_predicate() -> None:
    policy = resolve_policy([RetryIf(_never)])

    assert policy.is_retryable is _never


def test_second_retry_if_discards_first() -> None:
    policy = resolve_policy([RetryIf(_never), RetryIf(_only_value_errors)])

    assert policy.is_retryable is _only_value_errors


def test_null_retry_if_keeps_previous_predicate() -> None:
    assert resolve_policy([RetryIf(None)]).is_retryable(RuntimeError("x")) is True
    assert resolve_policy([RetryIf(_never), RetryIf(None)]).is_retryable is _never


def test_option_kinds_do_not_interact() -> None:
    forward = resolve_policy([MaxTries(5), RetryIf(_never)])
    backward = resolve_policy([RetryIf(_never), MaxTries(5)])

    assert forward == backward == RetryPolicy(max_attempts=5, is_retryable=_never)


def test_options_are_applied_without_mutating_input_policy() -> None:
    base = RetryPolicy()

    updated = MaxTries(9).apply(base)

    assert base.max_attempts == 3
    assert updated.max_attempts == 9
    assert MaxTries(-3).apply(base) is base
    assert RetryIf(None).apply(base) is base
