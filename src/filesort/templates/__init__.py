"""Moustache-style expression templates for filesort.

Templates mix literal text with ``{{ ... }}`` spans that are resolved against
a per-file Context when a rule is applied.

Expression Syntax
-----------------
- Variable lookup: ``{{ name }}``
- Nested lookup inside a mapping: ``{{ file.stem }}``, ``{{ show.season }}``
- Function call: ``{{ upper(extension) }}``
- String arguments: ``{{ replace(name, ' ', '_') }}`` (single or double quotes)
- Nested calls: ``{{ concat(upper(stem), '.', extension) }}``

Examples
--------
    # Group files by uppercased extension
    sorted/{{ upper(extension) }}/{{ name }}

    # Use regex captures bound under "show"
    TV/{{ show.title }}/Season {{ zfill(show.season, '2') }}

Module Structure
----------------
- parser.py: Scanner and Lark-based expression parser
- nodes.py: Immutable template AST
- values.py: Text and mapping values
- context.py: Per-resource variable bindings
- functions.py: Function registry and arity policies
- builtins.py: Built-in string and path functions
- evaluator.py: Rendering against a Context
- cache.py: Thread-safe parse cache
- engine.py: Facade bundling the above, with batch rendering
- errors.py: Template error types

A parsed template, a frozen registry and an evaluator are read-only, so one
engine can render many contexts concurrently.
"""

from __future__ import annotations

from filesort.templates.builtins import default_registry, register_builtins
from filesort.templates.cache import CacheStats, TemplateCache
from filesort.templates.context import Context
from filesort.templates.engine import RenderOutcome, TemplateEngine
from filesort.templates.errors import (
    ArgumentTypeError,
    ArityMismatchError,
    FunctionCallError,
    FunctionRegistrationError,
    NotIndexableError,
    TemplateError,
    TemplateErrorInfo,
    TemplateEvaluationError,
    TemplateParseError,
    UndefinedVariableError,
    UnknownFunctionError,
)
from filesort.templates.evaluator import TemplateEvaluator
from filesort.templates.functions import (
    Arity,
    FunctionRegistry,
    RegisteredFunction,
    TemplateFunction,
    expect_mapping,
    expect_text,
)
from filesort.templates.nodes import (
    Call,
    Expr,
    ExpressionNode,
    LiteralNode,
    Node,
    StringLiteral,
    Template,
    Variable,
)
from filesort.templates.parser import parse_expression, parse_template, tokenize
from filesort.templates.values import (
    MappingValue,
    TextValue,
    Value,
    coerce_value,
    render_value,
)

__all__: list[str] = [
    # Error types
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
    # AST
    "Template",
    "Node",
    "LiteralNode",
    "ExpressionNode",
    "Expr",
    "Variable",
    "Call",
    "StringLiteral",
    # Parser functions
    "tokenize",
    "parse_expression",
    "parse_template",
    # Values and context
    "Value",
    "TextValue",
    "MappingValue",
    "coerce_value",
    "render_value",
    "Context",
    # Functions
    "Arity",
    "TemplateFunction",
    "RegisteredFunction",
    "FunctionRegistry",
    "expect_text",
    "expect_mapping",
    "register_builtins",
    "default_registry",
    # Evaluation
    "TemplateEvaluator",
    "TemplateCache",
    "CacheStats",
    "TemplateEngine",
    "RenderOutcome",
]
