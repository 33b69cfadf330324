"""External commands as retryable operations."""

from __future__ import annotations

import logging as py_logging
import subprocess
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from retrykit.errors import ExitCode, RetryKitError
from retrykit.retry import Option, retry

logger = py_logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass
class CommandFailedError(Exception):
    argv: tuple[str, ...]
    returncode: int

    def __str__(self) -> str:
        return f"Command exited with status {self.returncode}: {' '.join(self.argv)}"


def command_operation(
    argv: Sequence[str],
    *,
    runner: Runner = subprocess.run,
) -> Callable[[], None]:
    command = tuple(argv)

    def operation() -> None:
        logger.debug("Running command argv=%s", command)
        completed = runner(list(command), check=False)
        if completed.returncode != 0:
            raise CommandFailedError(command, completed.returncode)

    return operation


def retry_on_exit_codes(codes: Iterable[int]) -> Callable[[Exception], bool]:
    accepted = frozenset(codes)

    def predicate(error: Exception) -> bool:
        return isinstance(error, CommandFailedError) and error.returncode in accepted

    return predicate


def run_command(
    argv: Sequence[str],
    options: Sequence[Option] = (),
    *,
    runner: Runner = subprocess.run,
) -> int:
    if not argv:
        raise RetryKitError(
            "No command given.",
            code=ExitCode.INVALID_ARGS,
            hint="Pass the command to run after the retrykit options.",
        )

    error = retry(command_operation(argv, runner=runner), *options)
    if error is None:
        return int(ExitCode.SUCCESS)
    if isinstance(error, CommandFailedError):
        logger.info("Giving up on command: %s", error)
        return error.returncode
    raise RetryKitError(
        f"Could not run command {argv[0]!r}: {error}",
        code=ExitCode.RUNTIME_ERROR,
        hint="Check that the executable exists and is on PATH.",
    ) from error
