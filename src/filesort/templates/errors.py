"""Template-specific error types.

Parse errors are raised once, when a template is compiled. Evaluation errors
are raised by a single render and are fatal for that render only; callers
decide whether to abort or skip the resource.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from filesort.exceptions import FilesortError

__all__ = [
    "TemplateError",
    "TemplateParseError",
    "TemplateEvaluationError",
    "UndefinedVariableError",
    "NotIndexableError",
    "UnknownFunctionError",
    "ArityMismatchError",
    "ArgumentTypeError",
    "FunctionCallError",
    "FunctionRegistrationError",
    "TemplateErrorInfo",
]


class TemplateError(FilesortError):
    """Base exception for all template-related errors.

    Attributes:
        message: Human-readable error message.
        template: Source text of the template involved (if known).
    """

    def __init__(self, message: str, template: str | None = None) -> None:
        self.template = template
        super().__init__(message)


class TemplateParseError(TemplateError):
    """Raised when a template source string is malformed.

    Parsing is all-or-nothing: no partial template is produced. The error
    points at the first offending character.

    Attributes:
        reason: Short description of what went wrong.
        expected: Human-readable description of what the parser expected.
        offset: Character offset into the template source.
        line: 1-based line of the offset.
        column: 1-based column of the offset.

    Example:
        >>> parse_template("{{foo(")  # doctest: +SKIP
        TemplateParseError: unexpected end of expression, expected one of
        identifier, quoted string, ')' at line 1, column 7:
        {{foo(
              ^
    """

    def __init__(
        self,
        reason: str,
        source: str,
        offset: int,
        expected: str = "",
    ) -> None:
        self.reason = reason
        self.expected = expected
        self.offset = offset
        self.line, self.column = _line_and_column(source, offset)

        summary = f"{reason}, expected {expected}" if expected else reason
        excerpt = _caret_excerpt(source, offset)
        full_message = (
            f"{summary} at line {self.line}, column {self.column}:\n{excerpt}"
        )
        super().__init__(full_message, template=source)


def _line_and_column(source: str, offset: int) -> tuple[int, int]:
    before = source[:offset]
    line = before.count("\n") + 1
    column = offset - (before.rfind("\n") + 1) + 1
    return line, column


def _caret_excerpt(source: str, offset: int) -> str:
    line_start = source.rfind("\n", 0, offset) + 1
    line_end = source.find("\n", offset)
    if line_end == -1:
        line_end = len(source)
    return f"{source[line_start:line_end]}\n{' ' * (offset - line_start)}^"


class TemplateEvaluationError(TemplateError):
    """Base exception for errors raised while rendering a template.

    The evaluator records the chain of function calls enclosing the failure
    point (outermost first) so nested errors can be located.

    Attributes:
        call_chain: Names of the calls enclosing the failure, outermost first.
    """

    def __init__(self, message: str, template: str | None = None) -> None:
        self.call_chain: tuple[str, ...] = ()
        super().__init__(message, template=template)

    def within_call(self, name: str) -> None:
        """Record that the failure happened inside a call to ``name``."""
        self.call_chain = (name, *self.call_chain)

    def __str__(self) -> str:
        text = self.message
        if self.call_chain:
            text = f"{text} (inside {' -> '.join(self.call_chain)})"
        if self.template is not None:
            text = f"{text} in template: {self.template}"
        return text


class UndefinedVariableError(TemplateEvaluationError):
    """A variable path segment could not be found.

    Attributes:
        name: The missing segment.
        available: Names that were available at that level.
    """

    def __init__(self, name: str, available: Sequence[str] = ()) -> None:
        self.name = name
        self.available = tuple(sorted(available))
        message = f"Undefined variable '{name}'"
        if self.available:
            message = f"{message} (available: {', '.join(self.available)})"
        super().__init__(message)


class NotIndexableError(TemplateEvaluationError):
    """A path segment was applied to a value that has no nested fields."""

    def __init__(self, on: str, segment: str) -> None:
        self.on = on
        self.segment = segment
        super().__init__(
            f"Cannot look up '{segment}' on '{on}': value is text, not a mapping"
        )


class UnknownFunctionError(TemplateEvaluationError):
    """A template called a function that is not registered."""

    def __init__(self, name: str, available: Sequence[str] = ()) -> None:
        self.name = name
        self.available = tuple(sorted(available))
        message = f"Unknown function '{name}'"
        if self.available:
            message = f"{message} (registered: {', '.join(self.available)})"
        super().__init__(message)


class ArityMismatchError(TemplateEvaluationError):
    """A function was called with the wrong number of arguments.

    Attributes:
        name: Function name.
        expected: Description of the accepted argument count.
        got: Number of arguments supplied.
    """

    def __init__(self, name: str, expected: str, got: int) -> None:
        self.name = name
        self.expected = expected
        self.got = got
        plural = "argument" if got == 1 else "arguments"
        super().__init__(f"{name}() takes {expected}, got {got} {plural}")


class ArgumentTypeError(TemplateEvaluationError):
    """An argument's value kind is incompatible with what a function requires.

    Attributes:
        name: Function name.
        index: Zero-based position of the offending argument.
        expected: Required value kind (e.g. "text").
        got: Supplied value kind.
    """

    def __init__(
        self,
        name: str,
        index: int,
        expected: str = "text",
        got: str = "mapping",
    ) -> None:
        self.name = name
        self.index = index
        self.expected = expected
        self.got = got
        super().__init__(
            f"{name}() argument {index + 1} must be {expected}, got {got}"
        )


class FunctionCallError(TemplateEvaluationError):
    """A registered function failed with an unexpected exception."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"{name}() failed: {reason}")


class FunctionRegistrationError(TemplateError):
    """A function could not be registered (bad name or frozen registry)."""

    def __init__(self, message: str, name: str) -> None:
        self.name = name
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class TemplateErrorInfo:
    """Template parsing or evaluation error information.

    Immutable record used in batch render reports, where errors are
    collected per resource instead of being raised.

    Attributes:
        template: The template source that failed.
        message: Human-readable error message.
        kind: Exception class name (e.g. "UndefinedVariableError").
        offset: Character offset for parse errors (0 if not applicable).
    """

    template: str
    message: str
    kind: str
    offset: int = 0

    @classmethod
    def from_error(cls, error: TemplateError, template: str) -> TemplateErrorInfo:
        offset = 0
        message = error.message
        if isinstance(error, TemplateParseError):
            offset = error.offset
        elif isinstance(error, TemplateEvaluationError) and error.call_chain:
            message = f"{message} (inside {' -> '.join(error.call_chain)})"
        return cls(
            template=template,
            message=message,
            kind=type(error).__name__,
            offset=offset,
        )
