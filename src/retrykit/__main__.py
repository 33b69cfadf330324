"""Module entrypoint for `python -m retrykit`."""

try:
    from .cli import run
except ImportError:
    # Executed as a script path outside package context.
    from retrykit.cli import run


if __name__ == "__main__":
    raise SystemExit(run())
