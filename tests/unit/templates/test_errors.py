"""Unit tests for template error types."""

from __future__ import annotations

import pytest

from filesort.exceptions import FilesortError
from filesort.templates.errors import (
    ArgumentTypeError,
    ArityMismatchError,
    FunctionCallError,
    NotIndexableError,
    TemplateError,
    TemplateErrorInfo,
    TemplateEvaluationError,
    TemplateParseError,
    UndefinedVariableError,
    UnknownFunctionError,
)
from filesort.templates.parser import parse_template


class TestHierarchy:
    @pytest.mark.parametrize(
        "error",
        [
            UndefinedVariableError("x"),
            NotIndexableError(on="a", segment="b"),
            UnknownFunctionError("f"),
            ArityMismatchError("f", "1 argument", 0),
            ArgumentTypeError("f", 0),
            FunctionCallError("f", "boom"),
        ],
    )
    def test_evaluation_errors(self, error: TemplateEvaluationError) -> None:
        assert isinstance(error, TemplateEvaluationError)
        assert isinstance(error, TemplateError)
        assert isinstance(error, FilesortError)

    def test_parse_error_is_template_error(self) -> None:
        assert issubclass(TemplateParseError, TemplateError)
        assert not issubclass(TemplateParseError, TemplateEvaluationError)


class TestMessages:
    def test_undefined_variable_lists_available_names(self) -> None:
        error = UndefinedVariableError("yr", available=["year", "name"])
        assert error.message == "Undefined variable 'yr' (available: name, year)"

    def test_undefined_variable_without_names(self) -> None:
        assert UndefinedVariableError("x").message == "Undefined variable 'x'"

    def test_unknown_function(self) -> None:
        error = UnknownFunctionError("uper", available=["upper", "lower"])
        assert error.message == "Unknown function 'uper' (registered: lower, upper)"

    def test_arity_mismatch(self) -> None:
        error = ArityMismatchError("upper", "1 argument", 0)
        assert error.message == "upper() takes 1 argument, got 0 arguments"

    def test_arity_mismatch_singular(self) -> None:
        error = ArityMismatchError("replace", "3 arguments", 1)
        assert error.message == "replace() takes 3 arguments, got 1 argument"

    def test_argument_type(self) -> None:
        error = ArgumentTypeError("upper", 1, expected="text", got="mapping")
        assert error.message == "upper() argument 2 must be text, got mapping"

    def test_not_indexable(self) -> None:
        error = NotIndexableError(on="name", segment="stem")
        assert "'stem'" in error.message
        assert "'name'" in error.message

    def test_str_includes_chain_and_template(self) -> None:
        error = UndefinedVariableError("x")
        error.within_call("lower")
        error.within_call("upper")
        error.template = "{{ upper(lower(x)) }}"
        assert str(error) == (
            "Undefined variable 'x' (inside upper -> lower) "
            "in template: {{ upper(lower(x)) }}"
        )

    def test_str_without_context(self) -> None:
        assert str(FunctionCallError("f", "boom")) == "f() failed: boom"


class TestTemplateErrorInfo:
    def test_from_parse_error(self) -> None:
        with pytest.raises(TemplateParseError) as exc_info:
            parse_template("{{foo(")
        info = TemplateErrorInfo.from_error(exc_info.value, "{{foo(")
        assert info.kind == "TemplateParseError"
        assert info.offset == 6
        assert info.template == "{{foo("

    def test_from_evaluation_error_keeps_chain(self) -> None:
        error = UndefinedVariableError("x")
        error.within_call("upper")
        info = TemplateErrorInfo.from_error(error, "{{ upper(x) }}")
        assert info.kind == "UndefinedVariableError"
        assert info.offset == 0
        assert info.message == "Undefined variable 'x' (inside upper)"

    def test_is_immutable(self) -> None:
        info = TemplateErrorInfo(template="t", message="m", kind="k")
        with pytest.raises(AttributeError):
            info.message = "other"  # type: ignore[misc]
