"""Per-file context construction.

Builds the Context a template is rendered against for one file:

- path fields: ``path``, ``name``, ``stem``, ``extension``, ``parent`` (plus
  ``root`` and ``relative`` when the file was found under a root), also
  grouped under ``file`` so that ``{{ file.stem }}`` works;
- file metadata under ``metadata`` (``size``, ``modified``);
- configured variables, computed in declaration order, each one seeing the
  variables declared before it.

Building a context reads only the file it describes; the result depends on
nothing else, so contexts for many files can be built concurrently.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from filesort.logging import get_logger
from filesort.templates.context import Context
from filesort.templates.evaluator import TemplateEvaluator
from filesort.templates.nodes import Template
from filesort.templates.parser import parse_template
from filesort.templates.values import MappingValue, TextValue, Value

if TYPE_CHECKING:
    from filesort.config import FilesortConfig
    from filesort.templates.engine import TemplateEngine

__all__ = [
    "Resource",
    "ContextVariable",
    "CaptureVariable",
    "TemplateVariable",
    "ContextFactory",
    "path_values",
    "metadata_values",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Resource:
    """A file being organized.

    Attributes:
        path: Location of the file.
        root: Directory the file was discovered under, if any.
    """

    path: Path
    root: Path | None = None


def _path_fields(path: Path) -> dict[str, str]:
    return {
        "path": str(path),
        "name": path.name,
        "stem": path.stem,
        "extension": path.suffix.lstrip("."),
        "parent": str(path.parent),
    }


def path_values(resource: Resource) -> dict[str, object]:
    """Context values derived from the resource's path alone.

    Examples:
        >>> values = path_values(Resource(Path("in/a.tar.gz")))
        >>> values["stem"], values["extension"]
        ('a.tar', 'gz')
    """
    fields = _path_fields(resource.path)
    if resource.root is not None:
        fields["root"] = str(resource.root)
        try:
            fields["relative"] = str(resource.path.relative_to(resource.root))
        except ValueError:
            logger.debug(
                "resource_outside_root",
                path=str(resource.path),
                root=str(resource.root),
            )
    return {**fields, "file": dict(fields)}


def metadata_values(path: Path) -> dict[str, object]:
    """The ``metadata`` mapping for ``path``, or nothing if it cannot be read.

    ``modified`` is the modification time in ISO-8601 form, in UTC.
    """
    try:
        stat = path.stat()
    except OSError as e:
        logger.debug("metadata_unavailable", path=str(path), error=str(e))
        return {}
    modified = datetime.fromtimestamp(stat.st_mtime, tz=UTC)
    return {
        "metadata": {
            "size": str(stat.st_size),
            "modified": modified.isoformat(timespec="seconds"),
        }
    }


class ContextVariable(Protocol):
    """A named value computed from the context built so far."""

    name: str

    def compute(self, evaluator: TemplateEvaluator, context: Context) -> Value: ...


@dataclass(frozen=True, slots=True)
class CaptureVariable:
    """Bind the named groups of a regex match as a mapping.

    ``input`` is rendered against the current context and searched with
    ``pattern``. Named groups that took part in the match are bound under
    ``name``; when nothing matches the mapping is empty, so templates that
    reference a group fail with an undefined-variable error for that file.

    Attributes:
        name: Variable name.
        pattern: Regular expression with named groups.
        input: Template producing the text to search.

    Raises:
        ValueError: If ``pattern`` is not a valid regular expression.
        TemplateParseError: If ``input`` is not a valid template.
    """

    name: str
    pattern: str
    input: str = "{{ name }}"
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _template: Template = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            regex = re.compile(self.pattern)
        except re.error as e:
            raise ValueError(f"Invalid pattern for '{self.name}': {e}") from e
        object.__setattr__(self, "_regex", regex)
        object.__setattr__(self, "_template", parse_template(self.input))

    def compute(self, evaluator: TemplateEvaluator, context: Context) -> Value:
        text = evaluator.render(self._template, context)
        match = self._regex.search(text)
        if match is None:
            return MappingValue({})
        return MappingValue(
            {
                group: TextValue(value)
                for group, value in match.groupdict().items()
                if value is not None
            }
        )


@dataclass(frozen=True, slots=True)
class TemplateVariable:
    """Bind the rendered text of a template."""

    name: str
    value: str
    _template: Template = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_template", parse_template(self.value))

    def compute(self, evaluator: TemplateEvaluator, context: Context) -> Value:
        return TextValue(evaluator.render(self._template, context))


class ContextFactory:
    """Builds one Context per resource.

    Args:
        evaluator: Renders the templates used by configured variables.
        variables: Variables computed after the built-in fields, in order.
        include_metadata: Stat the file and bind ``metadata``.

    Example:
        ```python
        factory = ContextFactory(
            engine.evaluator,
            [CaptureVariable("show", r"(?P<title>.+)\\.S(?P<season>\\d+)", "{{ stem }}")],
        )
        ctx = factory.build(Resource(Path("Lost.S01E02.mkv")))
        ctx.get("show").get("season")  # TextValue(text='01')
        ```
    """

    def __init__(
        self,
        evaluator: TemplateEvaluator,
        variables: Iterable[ContextVariable] = (),
        *,
        include_metadata: bool = True,
    ) -> None:
        self._evaluator = evaluator
        self._variables: tuple[ContextVariable, ...] = tuple(variables)
        self._include_metadata = include_metadata

    @classmethod
    def from_config(cls, config: FilesortConfig, engine: TemplateEngine) -> ContextFactory:
        """Build a factory from the ``variables`` and ``context`` sections."""
        variables: list[ContextVariable] = []
        for entry in config.variables:
            if entry.kind == "regex":
                variables.append(CaptureVariable(entry.name, entry.pattern, entry.input))
            else:
                variables.append(TemplateVariable(entry.name, entry.value))
        return cls(
            engine.evaluator,
            variables,
            include_metadata=config.context.include_metadata,
        )

    @property
    def variables(self) -> Sequence[ContextVariable]:
        return self._variables

    def build(self, resource: Resource, extra: dict[str, object] | None = None) -> Context:
        """Build the context for ``resource``.

        Args:
            resource: The file to describe.
            extra: Additional bindings applied before configured variables
                (e.g. ``--set`` values from the command line).

        Raises:
            TemplateEvaluationError: If a configured variable fails to render.
        """
        values = path_values(resource)
        if self._include_metadata:
            values.update(metadata_values(resource.path))
        if extra:
            values.update(extra)

        context = Context(values)
        for variable in self._variables:
            context = context.layered(
                {variable.name: variable.compute(self._evaluator, context)}
            )
        return context
