"""Validate a template without rendering it."""

from __future__ import annotations

import click

from filesort.cli.common import cli_error_handler
from filesort.cli.context import ExitCode, get_cli_context
from filesort.cli.output import format_error, format_json, format_warning


@click.command()
@click.argument("template")
@click.option(
    "-f",
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.pass_context
def check(ctx: click.Context, template: str, fmt: str) -> None:
    """Parse TEMPLATE and report what it uses.

    Prints the template in canonical form with the variables and functions
    it references. Exits with status 1 if the template does not parse or
    calls functions that are not registered. A template without any
    expressions passes with a warning (suppressed by --quiet).

    Examples:
        filesort check "{{ upper(extension) }}/{{ file.stem }}"
        filesort check "{{ zfill(show.season, '2') }}" --format json
    """
    cli_ctx = get_cli_context(ctx)

    with cli_error_handler():
        engine = cli_ctx.create_engine()
        compiled = engine.compile(template)

    missing = engine.missing_functions(compiled)

    if fmt == "json":
        click.echo(
            format_json(
                {
                    "template": compiled.to_source(),
                    "variables": list(compiled.variables()),
                    "functions": list(compiled.functions()),
                    "unknown_functions": list(missing),
                }
            )
        )
    else:
        click.echo(f"Template: {compiled.to_source()}")
        click.echo(f"Variables: {', '.join(compiled.variables()) or '(none)'}")
        click.echo(f"Functions: {', '.join(compiled.functions()) or '(none)'}")

    if compiled.is_static and not cli_ctx.quiet:
        click.echo(format_warning("Template has no expressions"), err=True)

    if missing:
        error_msg = format_error(
            f"Unknown function(s): {', '.join(missing)}",
            suggestion="Run 'filesort functions' to list available functions",
        )
        click.echo(error_msg, err=True)
        raise SystemExit(ExitCode.FAILURE)
