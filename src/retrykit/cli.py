"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from .command import retry_on_exit_codes, run_command
from .config import load_config
from .errors import ExitCode, RetryKitError, user_facing_error
from .logging import configure_logging, default_log_path
from .retry import MaxTries, Option, RetryIf

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _exit_code_type(value: str) -> int:
    try:
        code = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--retry-on must be an integer exit code") from exc
    if code < 1 or code > 255:
        raise argparse.ArgumentTypeError("--retry-on must be between 1 and 255")
    return code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retrykit",
        description="Run a command, retrying it when it exits with a non-zero status.",
    )
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument(
        "--max-tries",
        type=int,
        default=None,
        help="Attempt budget (0 or 1 disables retries, negative values are ignored)",
    )
    parser.add_argument(
        "--retry-on",
        type=_exit_code_type,
        action="append",
        default=None,
        metavar="CODE",
        help="Only retry when the command exits with CODE (repeatable)",
    )
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("command", nargs=argparse.REMAINDER)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def _command_argv(namespace: argparse.Namespace) -> list[str]:
    command = list(namespace.command)
    if command and command[0] == "--":
        command = command[1:]
    return command


def resolve_options(namespace: argparse.Namespace, config_options: Sequence[Option] = ()) -> list[Option]:
    options: list[Option] = list(config_options)
    if namespace.max_tries is not None:
        options.append(MaxTries(namespace.max_tries))
    if namespace.retry_on:
        options.append(RetryIf(retry_on_exit_codes(namespace.retry_on)))
    return options


def main(
    argv: Sequence[str] | None = None,
    *,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    config = load_config(namespace.config)
    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level or config.log_level, log_file=log_path)

    try:
        options = resolve_options(namespace, config.to_options())
        command = _command_argv(namespace)
        logger.debug("Starting command flow argv=%s options=%s", command, options)
        return run_command(command, options, runner=runner)
    except RetryKitError as exc:
        logger.error(
            "Handled RetryKitError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        hint = f"Inspect logs: {log_path}"
        print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
