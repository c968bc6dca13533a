"""Unit tests for CLI output formatting helpers."""

from __future__ import annotations

import json

import pytest

from filesort.cli.output import (
    format_error,
    format_exception,
    format_json,
    format_table,
    format_warning,
)
from filesort.exceptions import ConfigError
from filesort.templates.errors import TemplateParseError, UndefinedVariableError
from filesort.templates.parser import parse_template


class TestFormatError:
    def test_message_only(self) -> None:
        assert format_error("boom") == "Error: boom"

    def test_details_and_suggestion(self) -> None:
        result = format_error("boom", details=["a", "b"], suggestion="try again")
        assert result == "Error: boom\n  a\n  b\nSuggestion: try again"


class TestFormatException:
    def test_parse_error_keeps_caret(self) -> None:
        with pytest.raises(TemplateParseError) as exc_info:
            parse_template("{{foo(")
        result = format_exception(exc_info.value)
        assert result.startswith("Error: unexpected end of expression")
        assert result.endswith("{{foo(\n      ^")

    def test_config_error_lists_field_and_value(self) -> None:
        error = ConfigError("Invalid configuration", field="workers", value=0)
        assert format_exception(error) == (
            "Error: Invalid configuration\n  Field: workers\n  Value: 0"
        )

    def test_evaluation_error_includes_template(self) -> None:
        error = UndefinedVariableError("x")
        error.template = "{{ x }}"
        assert format_exception(error) == (
            "Error: Undefined variable 'x' in template: {{ x }}"
        )


def test_format_warning() -> None:
    assert format_warning("careful") == "Warning: careful"


def test_format_json() -> None:
    assert json.loads(format_json({"a": [1]})) == {"a": [1]}


class TestFormatTable:
    def test_columns_are_aligned(self) -> None:
        result = format_table(["Name", "Arity"], [["upper", "1 argument"]])
        assert result == "Name  | Arity\nupper | 1 argument"

    def test_no_headers(self) -> None:
        assert format_table([], []) == ""
