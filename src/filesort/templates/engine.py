"""Template engine facade.

Bundles the parse cache, the frozen function registry and the evaluator, and
adds batch rendering of one template over many resources on a thread pool.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from filesort.logging import bind_context, clear_context, get_logger
from filesort.templates.builtins import default_registry
from filesort.templates.cache import CacheStats, TemplateCache
from filesort.templates.context import Context
from filesort.templates.errors import (
    TemplateError,
    TemplateErrorInfo,
    UnknownFunctionError,
)
from filesort.templates.evaluator import TemplateEvaluator
from filesort.templates.functions import FunctionRegistry
from filesort.templates.nodes import Template

if TYPE_CHECKING:
    from filesort.config import FilesortConfig

__all__ = ["RenderOutcome", "TemplateEngine", "DEFAULT_CACHE_SIZE", "DEFAULT_WORKERS"]

logger = get_logger(__name__)

DEFAULT_CACHE_SIZE = 256

DEFAULT_WORKERS = 4


@dataclass(frozen=True, slots=True)
class RenderOutcome:
    """Result of rendering one resource in a batch.

    Attributes:
        label: Caller-supplied identifier of the resource (usually its path).
        output: Rendered string, or None if rendering failed.
        error: Error details when rendering failed.
    """

    label: str
    output: str | None = None
    error: TemplateErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TemplateEngine:
    """Compile and render templates.

    The registry passed in (or the built-in one) is frozen on construction;
    copy it first if it must stay extensible elsewhere.

    Args:
        registry: Functions available to templates. Defaults to the built-ins.
        cache_size: Parsed templates kept in the LRU cache (0 disables it).
        strict_functions: Reject templates calling unregistered functions at
            compile time instead of at render time.

    Example:
        ```python
        engine = TemplateEngine()
        template = engine.compile("{{ parent }}/{{ upper(extension) }}")
        engine.render(template, Context({"parent": "in", "extension": "jpg"}))
        # 'in/JPG'
        ```
    """

    def __init__(
        self,
        registry: FunctionRegistry | None = None,
        *,
        cache_size: int = DEFAULT_CACHE_SIZE,
        strict_functions: bool = False,
    ) -> None:
        self._registry = registry if registry is not None else default_registry()
        self._registry.freeze()
        self._cache = TemplateCache(maxsize=cache_size)
        self._evaluator = TemplateEvaluator(self._registry)
        self._strict_functions = strict_functions

    @classmethod
    def from_config(
        cls,
        config: FilesortConfig,
        registry: FunctionRegistry | None = None,
    ) -> TemplateEngine:
        """Build an engine from the ``templates`` section of the config."""
        return cls(
            registry,
            cache_size=config.templates.cache_size,
            strict_functions=config.templates.strict_functions,
        )

    @property
    def registry(self) -> FunctionRegistry:
        return self._registry

    @property
    def evaluator(self) -> TemplateEvaluator:
        return self._evaluator

    def compile(self, source: str) -> Template:
        """Parse ``source`` (cached).

        Raises:
            TemplateParseError: If the source is malformed.
            UnknownFunctionError: With ``strict_functions``, if the template
                calls a function that is not registered.
        """
        template = self._cache.get(source)
        if self._strict_functions:
            missing = self.missing_functions(template)
            if missing:
                error = UnknownFunctionError(missing[0], available=self._registry.names())
                error.template = source
                raise error
        return template

    def missing_functions(self, template: Template) -> tuple[str, ...]:
        """Functions called by ``template`` that are not registered."""
        return tuple(name for name in template.functions() if name not in self._registry)

    def render(self, template: Template | str, context: Context) -> str:
        """Render a template (or template source) against one context.

        Raises:
            TemplateParseError: If a source string is malformed.
            TemplateEvaluationError: If evaluation fails.
        """
        if isinstance(template, str):
            template = self.compile(template)
        return self._evaluator.render(template, context)

    def render_many(
        self,
        template: Template,
        items: Iterable[tuple[str, Context]],
        *,
        max_workers: int = DEFAULT_WORKERS,
    ) -> list[RenderOutcome]:
        """Render one template for many resources in parallel.

        Each resource has its own Context; the template and registry are
        shared read-only. A failure affects only its own resource: it is
        logged and reported in that resource's outcome.

        Args:
            template: Compiled template.
            items: ``(label, context)`` pairs, one per resource.
            max_workers: Thread pool size (1 renders sequentially).

        Returns:
            One outcome per item, in input order.
        """
        pairs = list(items)
        if max_workers <= 1 or len(pairs) <= 1:
            return [self._render_one(template, label, ctx) for label, ctx in pairs]

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                pool.submit(self._render_one, template, label, ctx)
                for label, ctx in pairs
            ]
            return [future.result() for future in futures]

    def _render_one(self, template: Template, label: str, context: Context) -> RenderOutcome:
        bind_context(resource=label)
        try:
            output = self._evaluator.render(template, context)
        except TemplateError as e:
            info = TemplateErrorInfo.from_error(e, template.source)
            logger.warning("render_failed", error=info.message, kind=info.kind)
            return RenderOutcome(label=label, error=info)
        finally:
            clear_context("resource")
        return RenderOutcome(label=label, output=output)

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()
