"""Values flowing through template evaluation.

A value is either text or a mapping of names to further values. Mappings are
what make dotted paths such as ``{{ episode.season }}`` work: each segment
after the first is looked up inside the previously resolved mapping.

The set of value kinds is closed; code that handles values checks for both
``TextValue`` and ``MappingValue`` explicitly.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

__all__ = [
    "TextValue",
    "MappingValue",
    "Value",
    "coerce_value",
    "render_value",
    "value_kind",
]


@dataclass(frozen=True, slots=True)
class TextValue:
    """A plain string value."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class MappingValue:
    """A read-only mapping supporting nested lookup by name.

    Produced by context builders for grouped fields (``file.stem``) and by
    regex capture variables (``show.season``).

    Attributes:
        entries: Read-only view of the contained values.
    """

    entries: Mapping[str, Value] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Copy so the caller's dict can never change this value afterwards.
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def get(self, name: str) -> Value | None:
        """Look up a nested value; returns None when absent."""
        return self.entries.get(name)

    def keys(self) -> tuple[str, ...]:
        return tuple(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_python(self) -> dict[str, Any]:
        """Convert to plain nested dicts and strings."""
        return {
            key: value.to_python() if isinstance(value, MappingValue) else value.text
            for key, value in self.entries.items()
        }


Value = TextValue | MappingValue


def coerce_value(raw: object) -> Value:
    """Convert plain Python data into a template value.

    Accepts existing values, strings, and mappings with string keys (nested
    arbitrarily). Anything else is rejected rather than stringified, so that
    context builders and functions have to decide on a textual form.

    Args:
        raw: Value, str, or Mapping[str, ...].

    Returns:
        The corresponding TextValue or MappingValue.

    Raises:
        TypeError: For unsupported types or non-string mapping keys.

    Examples:
        >>> coerce_value("a")
        TextValue(text='a')
        >>> coerce_value({"b": "5"}).get("b")
        TextValue(text='5')
    """
    if isinstance(raw, (TextValue, MappingValue)):
        return raw
    if isinstance(raw, str):
        return TextValue(raw)
    if isinstance(raw, Mapping):
        entries: dict[str, Value] = {}
        for key, item in raw.items():
            if not isinstance(key, str):
                raise TypeError(
                    f"Mapping keys must be strings, got {type(key).__name__}"
                )
            entries[key] = coerce_value(item)
        return MappingValue(entries)
    raise TypeError(
        f"Cannot use {type(raw).__name__} as a template value "
        "(expected str or mapping)"
    )


def render_value(value: Value) -> str:
    """Return the canonical string form of a value.

    Text renders verbatim. Mappings render as compact JSON with sorted keys,
    which keeps output deterministic across runs.
    """
    if isinstance(value, TextValue):
        return value.text
    return json.dumps(
        value.to_python(), sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )


def value_kind(value: Value) -> str:
    """Name of the value kind, as used in error messages."""
    return "text" if isinstance(value, TextValue) else "mapping"
