"""List the functions available to templates."""

from __future__ import annotations

import click

from filesort.cli.context import get_cli_context
from filesort.cli.output import format_json, format_table


@click.command()
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.pass_context
def functions(ctx: click.Context, fmt: str) -> None:
    """List registered template functions.

    Examples:
        filesort functions
        filesort functions --format json
    """
    engine = get_cli_context(ctx).create_engine()
    entries = engine.registry.entries()

    if fmt == "json":
        click.echo(
            format_json(
                [
                    {
                        "name": entry.name,
                        "arity": entry.arity.describe(),
                        "description": entry.description,
                    }
                    for entry in entries
                ]
            )
        )
        return

    rows = [[entry.name, entry.arity.describe(), entry.description] for entry in entries]
    click.echo(format_table(["Name", "Arity", "Description"], rows))
