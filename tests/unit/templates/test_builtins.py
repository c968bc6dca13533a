"""Unit tests for the built-in template functions."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from filesort.templates.builtins import default_registry, register_builtins
from filesort.templates.context import Context
from filesort.templates.errors import (
    ArgumentTypeError,
    ArityMismatchError,
    FunctionCallError,
    UndefinedVariableError,
)
from filesort.templates.evaluator import TemplateEvaluator
from filesort.templates.functions import FunctionRegistry
from filesort.templates.parser import parse_template

Renderer = Callable[..., str]


@pytest.fixture
def render() -> Renderer:
    evaluator = TemplateEvaluator(default_registry())

    def _render(source: str, **values: object) -> str:
        return evaluator.render(parse_template(source), Context(values))

    return _render


class TestStringFunctions:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ upper('abc') }}", "ABC"),
            ("{{ lower('AbC') }}", "abc"),
            ("{{ capitalize('hello World') }}", "Hello World"),
            ("{{ capitalize('') }}", ""),
            ("{{ trim('  x  ') }}", "x"),
            ("{{ replace('a b c', ' ', '_') }}", "a_b_c"),
            ("{{ concat('a', 'b', 'c') }}", "abc"),
            ("{{ concat('a') }}", "a"),
            ("{{ zfill('7', '3') }}", "007"),
            ("{{ zfill('1234', '2') }}", "1234"),
        ],
    )
    def test_string_function(self, render: Renderer, source: str, expected: str) -> None:
        assert render(source) == expected

    def test_zfill_rejects_non_numeric_width(self, render: Renderer) -> None:
        with pytest.raises(FunctionCallError) as exc_info:
            render("{{ zfill('7', 'wide') }}")
        assert exc_info.value.name == "zfill"

    def test_upper_rejects_mapping(self, render: Renderer) -> None:
        with pytest.raises(ArgumentTypeError):
            render("{{ upper(show) }}", show={"season": "1"})

    def test_concat_requires_an_argument(self, render: Renderer) -> None:
        with pytest.raises(ArityMismatchError):
            render("{{ concat() }}")


class TestGet:
    def test_get_key_from_mapping(self, render: Renderer) -> None:
        assert render("{{ get(show, 'season') }}", show={"season": "02"}) == "02"

    def test_get_with_computed_key(self, render: Renderer) -> None:
        assert render("{{ get(m, lower(k)) }}", m={"ab": "x"}, k="AB") == "x"

    def test_get_missing_key(self, render: Renderer) -> None:
        with pytest.raises(UndefinedVariableError) as exc_info:
            render("{{ get(show, 'year') }}", show={"season": "02"})
        assert exc_info.value.name == "year"
        assert exc_info.value.available == ("season",)


class TestPathFunctions:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("{{ stem('in/a.tar.gz') }}", "a.tar"),
            ("{{ filename('in/a.tar.gz') }}", "a.tar.gz"),
            ("{{ extension('in/a.tar.gz') }}", "gz"),
            ("{{ extension('README') }}", ""),
            ("{{ parent('in/sub/a.txt') }}", "in/sub"),
            ("{{ join('a', 'b', 'c.txt') }}", "a/b/c.txt"),
        ],
    )
    def test_path_function(self, render: Renderer, source: str, expected: str) -> None:
        assert render(source) == expected

    def test_parent_of_root_fails(self, render: Renderer) -> None:
        with pytest.raises(FunctionCallError, match="no parent"):
            render("{{ parent('/') }}")


class TestRegistration:
    def test_default_registry_is_unfrozen(self) -> None:
        registry = default_registry()
        assert not registry.frozen
        assert "upper" in registry

    def test_register_builtins_returns_registry(self) -> None:
        registry = FunctionRegistry()
        assert register_builtins(registry) is registry
        assert registry.names() == sorted(
            [
                "capitalize",
                "concat",
                "extension",
                "filename",
                "get",
                "join",
                "lower",
                "parent",
                "replace",
                "stem",
                "trim",
                "upper",
                "zfill",
            ]
        )

    def test_every_builtin_has_description(self) -> None:
        assert all(entry.description for entry in default_registry().entries())
