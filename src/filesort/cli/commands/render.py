"""Render a template for one or more files."""

from __future__ import annotations

import re
from pathlib import Path

import click

from filesort.cli.common import cli_error_handler
from filesort.cli.context import ExitCode, get_cli_context
from filesort.cli.output import format_error
from filesort.logging import get_logger
from filesort.templates.context import Context
from filesort.templates.engine import RenderOutcome, TemplateEngine
from filesort.templates.errors import TemplateError, TemplateErrorInfo
from filesort.templates.nodes import Template
from filesort.variables import ContextFactory, Resource

logger = get_logger(__name__)

_NAME_PATTERN = re.compile(r"[A-Za-z0-9_]+")


def _parse_overrides(values: tuple[str, ...]) -> dict[str, object]:
    """Parse NAME=VALUE pairs; exits with an error on malformed input."""
    overrides: dict[str, object] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not _NAME_PATTERN.fullmatch(name):
            error_msg = format_error(
                f"Invalid --set value: {item}",
                suggestion="Use NAME=VALUE format (e.g., --set year=2024)",
            )
            click.echo(error_msg, err=True)
            raise SystemExit(ExitCode.FAILURE)
        overrides[name] = value
    return overrides


@click.command()
@click.argument("template")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(path_type=Path),
)
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory the files were found under (binds root and relative).",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    help="Extra variable (NAME=VALUE pairs). Can be specified multiple times.",
)
@click.option(
    "-w",
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Render threads (default: the 'workers' config setting).",
)
@click.pass_context
def render(
    ctx: click.Context,
    template: str,
    paths: tuple[Path, ...],
    root: Path | None,
    overrides: tuple[str, ...],
    workers: int | None,
) -> None:
    """Render TEMPLATE for each PATH.

    Prints one line per file, PATH and output separated by a tab; with a
    single PATH only the output is printed. Files do not need to exist, but
    metadata is only bound for files that do.

    Examples:
        filesort render "{{ upper(extension) }}/{{ name }}" photo.jpg

        filesort render "{{ parent }}/{{ year }}" *.pdf --set year=2024

        filesort render "{{ relative }}" --root inbox inbox/a/b.txt
    """
    cli_ctx = get_cli_context(ctx)
    extra = _parse_overrides(overrides)

    with cli_error_handler():
        engine = cli_ctx.create_engine()
        compiled = engine.compile(template)
        factory = cli_ctx.create_context_factory(engine)
        outcomes = _render_paths(
            engine,
            compiled,
            factory,
            paths,
            root=root,
            extra=extra,
            workers=workers or cli_ctx.config.workers,
        )

    failed = 0
    for outcome in outcomes:
        if outcome.error is not None:
            failed += 1
            click.echo(format_error(f"{outcome.label}: {outcome.error.message}"), err=True)
        elif len(paths) == 1:
            click.echo(outcome.output)
        else:
            click.echo(f"{outcome.label}\t{outcome.output}")

    if failed:
        logger.info("render_summary", total=len(outcomes), failed=failed)
        raise SystemExit(ExitCode.FAILURE)


def _render_paths(
    engine: TemplateEngine,
    compiled: Template,
    factory: ContextFactory,
    paths: tuple[Path, ...],
    *,
    root: Path | None,
    extra: dict[str, object],
    workers: int,
) -> list[RenderOutcome]:
    # Contexts are built up front; a file whose variables fail is reported
    # like a failed render and left out of the batch.
    built: list[RenderOutcome | None] = []
    pending: list[tuple[str, Context]] = []
    for path in paths:
        label = str(path)
        try:
            context = factory.build(Resource(path, root), extra=extra)
        except TemplateError as e:
            info = TemplateErrorInfo.from_error(e, e.template or compiled.source)
            logger.warning("context_build_failed", resource=label, error=info.message)
            built.append(RenderOutcome(label=label, error=info))
        else:
            pending.append((label, context))
            built.append(None)

    rendered = iter(engine.render_many(compiled, pending, max_workers=workers))
    return [outcome or next(rendered) for outcome in built]
