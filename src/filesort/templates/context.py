"""Per-resource evaluation context.

A Context maps names to values for exactly one resource (file). It is
immutable: builders create a fresh instance per file, and layering extra
values produces a new Context. Nothing in a Context refers back to shared
mutable state, so many contexts can be rendered in parallel.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from filesort.templates.values import Value, coerce_value

__all__ = ["Context"]


class Context:
    """Immutable name-to-value mapping used to resolve template variables.

    Values may be given as ``TextValue``/``MappingValue`` or as plain strings
    and (nested) mappings, which are converted with ``coerce_value``. The
    input is copied, so later changes to the caller's dict are not visible.

    Example:
        ```python
        ctx = Context({"name": "report.pdf", "show": {"season": "02"}})
        ctx.get("name")           # TextValue(text='report.pdf')
        ctx.get("show").get("season")  # TextValue(text='02')
        ctx.get("missing")        # None
        ```
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, object] | None = None) -> None:
        converted = {name: coerce_value(raw) for name, raw in (values or {}).items()}
        self._values: Mapping[str, Value] = MappingProxyType(converted)

    def get(self, name: str) -> Value | None:
        """Return the value bound to ``name``, or None. Never raises."""
        return self._values.get(name)

    def names(self) -> tuple[str, ...]:
        """Names bound in this context, sorted."""
        return tuple(sorted(self._values))

    def layered(self, extra: Mapping[str, object]) -> Context:
        """Return a new Context with ``extra`` bound on top of this one."""
        merged: dict[str, object] = dict(self._values)
        merged.update(extra)
        return Context(merged)

    def as_dict(self) -> dict[str, Value]:
        """Shallow copy of the bindings."""
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Context):
            return NotImplemented
        return dict(self._values) == dict(other._values)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Context({dict(self._values)!r})"
