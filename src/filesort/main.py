"""CLI entry point for filesort.

This module defines the Click-based command-line interface for filesort.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from dotenv import load_dotenv

# Load environment variables from .env file in current directory
# before any configuration is read.
load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

from filesort import __version__  # noqa: E402
from filesort.cli.commands.check import check  # noqa: E402
from filesort.cli.commands.functions import functions  # noqa: E402
from filesort.cli.commands.render import render  # noqa: E402
from filesort.cli.context import CLIContext, ExitCode  # noqa: E402
from filesort.cli.output import format_exception  # noqa: E402
from filesort.config import load_config  # noqa: E402
from filesort.exceptions import ConfigError  # noqa: E402
from filesort.logging import configure_logging, level_for_verbosity  # noqa: E402


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="filesort")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=False, path_type=str),
    default=None,
    help="Path to config file (overrides ./filesort.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress non-essential output (ERROR level only).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    verbose: int,
    quiet: bool,
) -> None:
    """filesort - render path templates for organizing files."""
    ctx.ensure_object(dict)

    config_path = Path(config_file) if config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        # Logging is not configured yet, report directly
        click.echo(format_exception(e), err=True)
        ctx.exit(ExitCode.FAILURE)

    ctx.obj["cli_ctx"] = CLIContext(config=config, quiet=quiet)

    # Priority: quiet > verbose > config
    if quiet:
        level = logging.ERROR
    elif verbose > 0:
        level = logging.INFO if verbose == 1 else logging.DEBUG
    else:
        level = level_for_verbosity(config.verbosity)

    configure_logging(level=level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(render)
cli.add_command(check)
cli.add_command(functions)

if __name__ == "__main__":
    cli()
