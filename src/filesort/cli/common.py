from __future__ import annotations

import contextlib
from collections.abc import Generator

import click

from filesort.cli.context import ExitCode
from filesort.cli.output import format_exception
from filesort.exceptions import FilesortError


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Context manager for common CLI error handling.

    Handles common error patterns across CLI commands:
    - KeyboardInterrupt: Exit with code 130
    - FilesortError: Format the error and exit with code 1

    Example:
        >>> with cli_error_handler():
        >>>     engine.compile(template)
    """
    try:
        yield
    except KeyboardInterrupt:
        click.echo("\n\nInterrupted by user.", err=True)
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except FilesortError as e:
        click.echo(format_exception(e), err=True)
        raise SystemExit(ExitCode.FAILURE) from e
