"""Output formatting utilities for the filesort CLI."""

from __future__ import annotations

import json
from typing import Any

from filesort.exceptions import ConfigError, FilesortError
from filesort.templates.errors import TemplateParseError

__all__ = [
    "format_error",
    "format_exception",
    "format_warning",
    "format_json",
    "format_table",
]


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Args:
        message: Primary error message.
        details: Optional list of detail lines to include.
        suggestion: Optional suggestion for resolving the error.

    Returns:
        Formatted error string with details and suggestion if provided.

    Example:
        >>> print(format_error(
        ...     "Unknown function 'uper'",
        ...     details=["in template: {{ uper(name) }}"],
        ...     suggestion="Run 'filesort functions' to list functions",
        ... ))
        Error: Unknown function 'uper'
          in template: {{ uper(name) }}
        Suggestion: Run 'filesort functions' to list functions
    """
    lines = [f"Error: {message}"]

    if details:
        for detail in details:
            lines.append(f"  {detail}")

    if suggestion:
        lines.append(f"Suggestion: {suggestion}")

    return "\n".join(lines)


def format_exception(error: FilesortError) -> str:
    """Format a filesort error for stderr.

    Parse errors keep their caret excerpt; config errors list the offending
    field and value.
    """
    if isinstance(error, TemplateParseError):
        return format_error(error.message)
    if isinstance(error, ConfigError):
        details: list[str] = []
        if error.field:
            details.append(f"Field: {error.field}")
        if error.value is not None:
            details.append(f"Value: {error.value}")
        return format_error(error.message, details=details)
    return format_error(str(error))


def format_warning(message: str) -> str:
    """Format a warning message.

    Example:
        >>> format_warning("Template has no expressions")
        'Warning: Template has no expressions'
    """
    return f"Warning: {message}"


def format_json(data: Any) -> str:
    """Format data as indented JSON.

    Raises:
        TypeError: If data is not JSON-serializable.
    """
    return json.dumps(data, indent=2)


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format data as a simple text table with pipe separators.

    Args:
        headers: Column headers.
        rows: Data rows, each row should have same length as headers.

    Returns:
        Formatted table string with columns separated by pipes.

    Example:
        >>> print(format_table(["Name", "Arity"], [["upper", "1 argument"]]))
        Name  | Arity
        upper | 1 argument
    """
    if not headers:
        return ""

    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < len(col_widths):
                col_widths[i] = max(col_widths[i], len(cell))

    lines = [" | ".join(h.ljust(col_widths[i]) for i, h in enumerate(headers)).rstrip()]
    for row in rows:
        parts = [
            cell.ljust(col_widths[i]) if i < len(col_widths) else cell
            for i, cell in enumerate(row)
        ]
        lines.append(" | ".join(parts).rstrip())

    return "\n".join(lines)
