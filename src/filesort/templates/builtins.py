"""Built-in template functions.

A small catalog of string and path helpers. None of them touch the
filesystem: path functions operate on the text of a path only.

Numbers are passed as quoted strings, e.g. ``{{ zfill(show.episode, '2') }}``.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import PurePath

from filesort.templates.errors import UndefinedVariableError
from filesort.templates.functions import (
    Arity,
    FunctionRegistry,
    expect_mapping,
    expect_text,
)
from filesort.templates.values import Value

__all__ = ["register_builtins", "default_registry"]


def _upper(args: Sequence[Value]) -> str:
    return expect_text("upper", args, 0).upper()


def _lower(args: Sequence[Value]) -> str:
    return expect_text("lower", args, 0).lower()


def _capitalize(args: Sequence[Value]) -> str:
    # Only the first character changes; str.capitalize() would lower the rest.
    text = expect_text("capitalize", args, 0)
    return text[:1].upper() + text[1:]


def _trim(args: Sequence[Value]) -> str:
    return expect_text("trim", args, 0).strip()


def _replace(args: Sequence[Value]) -> str:
    text = expect_text("replace", args, 0)
    old = expect_text("replace", args, 1)
    new = expect_text("replace", args, 2)
    return text.replace(old, new)


def _concat(args: Sequence[Value]) -> str:
    return "".join(expect_text("concat", args, i) for i in range(len(args)))


def _zfill(args: Sequence[Value]) -> str:
    text = expect_text("zfill", args, 0)
    width = int(expect_text("zfill", args, 1))
    return text.zfill(width)


def _get(args: Sequence[Value]) -> Value:
    mapping = expect_mapping("get", args, 0)
    key = expect_text("get", args, 1)
    value = mapping.get(key)
    if value is None:
        raise UndefinedVariableError(key, available=mapping.keys())
    return value


def _stem(args: Sequence[Value]) -> str:
    return PurePath(expect_text("stem", args, 0)).stem


def _filename(args: Sequence[Value]) -> str:
    return PurePath(expect_text("filename", args, 0)).name


def _extension(args: Sequence[Value]) -> str:
    return PurePath(expect_text("extension", args, 0)).suffix.lstrip(".")


def _parent(args: Sequence[Value]) -> str:
    path = PurePath(expect_text("parent", args, 0))
    if path.parent == path:
        raise ValueError(f"no parent for path '{path}'")
    return str(path.parent)


def _join(args: Sequence[Value]) -> str:
    parts = [expect_text("join", args, i) for i in range(len(args))]
    return str(PurePath(*parts))


_BUILTINS = (
    ("upper", Arity.exactly(1), _upper, "Uppercase a string."),
    ("lower", Arity.exactly(1), _lower, "Lowercase a string."),
    ("capitalize", Arity.exactly(1), _capitalize, "Uppercase the first character."),
    ("trim", Arity.exactly(1), _trim, "Strip surrounding whitespace."),
    ("replace", Arity.exactly(3), _replace, "replace(text, old, new)."),
    ("concat", Arity.at_least(1), _concat, "Concatenate strings."),
    ("zfill", Arity.exactly(2), _zfill, "Left-pad with zeros: zfill(text, '3')."),
    ("get", Arity.exactly(2), _get, "Look up a key in a mapping: get(map, key)."),
    ("stem", Arity.exactly(1), _stem, "File name without its last suffix."),
    ("filename", Arity.exactly(1), _filename, "Final path component."),
    ("extension", Arity.exactly(1), _extension, "Last suffix without the dot."),
    ("parent", Arity.exactly(1), _parent, "Parent directory of a path."),
    ("join", Arity.at_least(1), _join, "Join path segments."),
)


def register_builtins(registry: FunctionRegistry) -> FunctionRegistry:
    """Register the built-in functions into ``registry`` and return it."""
    for name, arity, func, description in _BUILTINS:
        registry.register(name, arity, func, description=description)
    return registry


def default_registry() -> FunctionRegistry:
    """A new, unfrozen registry holding only the built-ins."""
    return register_builtins(FunctionRegistry())
