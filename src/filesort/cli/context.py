"""CLI context and exit codes for filesort."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

import click

from filesort.config import FilesortConfig
from filesort.templates.engine import TemplateEngine
from filesort.variables import ContextFactory

__all__ = [
    "ExitCode",
    "CLIContext",
    "get_cli_context",
]


class ExitCode(IntEnum):
    """Standard exit codes for the filesort CLI.

    - 0 for success
    - 1 for failure (bad template, failed render, invalid config)
    - 130 for keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Type-safe CLI context containing global options and configuration.

    Attributes:
        config: Loaded filesort configuration.
        quiet: Suppress non-essential output such as warnings.
    """

    config: FilesortConfig
    quiet: bool = False

    def create_engine(self) -> TemplateEngine:
        """A template engine configured from the ``templates`` section."""
        return TemplateEngine.from_config(self.config)

    def create_context_factory(self, engine: TemplateEngine) -> ContextFactory:
        """A context factory configured from ``variables`` and ``context``."""
        return ContextFactory.from_config(self.config, engine)


def get_cli_context(ctx: click.Context) -> CLIContext:
    """Fetch the CLIContext stored by the root command."""
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    return cli_ctx
