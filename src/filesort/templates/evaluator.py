"""Template evaluator.

Walks a parsed Template against one Context and a FunctionRegistry:

- Literal nodes are appended verbatim.
- ``{{ a.b.c }}`` looks up ``a`` in the context, then ``b`` and ``c`` inside
  the mapping values found along the way.
- ``{{ f(x, 'y') }}`` resolves the arguments left to right (nested calls
  depth-first) and dispatches through the registry.

The result is the concatenation of all node outputs in source order, with no
separators or trimming. Evaluation only reads its inputs, so one evaluator,
template and registry can serve many threads rendering different contexts.
"""

from __future__ import annotations

from filesort.templates.context import Context
from filesort.templates.errors import (
    ArgumentTypeError,
    ArityMismatchError,
    FunctionCallError,
    NotIndexableError,
    TemplateEvaluationError,
    UndefinedVariableError,
)
from filesort.templates.functions import FunctionRegistry
from filesort.templates.nodes import (
    Call,
    Expr,
    LiteralNode,
    StringLiteral,
    Template,
    Variable,
)
from filesort.templates.values import MappingValue, TextValue, Value, render_value

__all__ = ["TemplateEvaluator"]

_CALL_ERRORS = (ArityMismatchError, ArgumentTypeError, FunctionCallError)


class TemplateEvaluator:
    """Renders templates against per-resource contexts.

    Attributes:
        registry: Functions available to templates (treated as read-only).

    Example:
        ```python
        evaluator = TemplateEvaluator(default_registry())
        template = parse_template("pre_{{ upper(name) }}_post")
        evaluator.render(template, Context({"name": "x"}))  # "pre_X_post"
        ```
    """

    def __init__(self, registry: FunctionRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> FunctionRegistry:
        return self._registry

    def render(self, template: Template, context: Context) -> str:
        """Render ``template`` against ``context``.

        Args:
            template: Parsed template.
            context: Values for the resource being rendered.

        Returns:
            The rendered string.

        Raises:
            TemplateEvaluationError: On the first expression that fails. No
                partial output is returned.
        """
        parts: list[str] = []
        for node in template.nodes:
            if isinstance(node, LiteralNode):
                parts.append(node.text)
                continue
            try:
                value = self.evaluate(node.expr, context)
            except TemplateEvaluationError as e:
                if e.template is None:
                    e.template = template.source
                raise
            parts.append(render_value(value))
        return "".join(parts)

    def evaluate(self, expr: Expr, context: Context) -> Value:
        """Resolve one expression to a value.

        Raises:
            UndefinedVariableError: A path segment is missing.
            NotIndexableError: A path continues past a text value.
            UnknownFunctionError: A called function is not registered.
            ArityMismatchError: A call has the wrong number of arguments.
            ArgumentTypeError: A function rejected an argument's kind.
            FunctionCallError: A function failed unexpectedly.
        """
        if isinstance(expr, StringLiteral):
            return TextValue(expr.text)
        if isinstance(expr, Variable):
            return self._resolve_variable(expr, context)
        return self._call(expr, context)

    def _resolve_variable(self, expr: Variable, context: Context) -> Value:
        root = expr.path[0]
        current = context.get(root)
        if current is None:
            raise UndefinedVariableError(root, available=context.names())

        for previous, segment in zip(expr.path, expr.path[1:]):
            if not isinstance(current, MappingValue):
                raise NotIndexableError(on=previous, segment=segment)
            nested = current.get(segment)
            if nested is None:
                raise UndefinedVariableError(segment, available=current.keys())
            current = nested
        return current

    def _call(self, expr: Call, context: Context) -> Value:
        # Open calls live on an explicit stack, outermost first, each with
        # the arguments resolved so far. Nesting depth is therefore bounded
        # by memory, the same as in the parser.
        # Unknown names fail before any argument is resolved.
        self._registry.get(expr.name)
        stack: list[tuple[Call, list[Value]]] = [(expr, [])]
        while True:
            call, args = stack[-1]
            if len(args) < len(call.args):
                arg = call.args[len(args)]
                try:
                    if isinstance(arg, Call):
                        self._registry.get(arg.name)
                        stack.append((arg, []))
                    else:
                        args.append(self.evaluate(arg, context))
                except TemplateEvaluationError as e:
                    _record_chain(e, stack)
                    raise
                continue

            stack.pop()
            try:
                value = self._registry.invoke(call.name, args)
            except TemplateEvaluationError as e:
                if not _raised_by(e, call.name):
                    e.within_call(call.name)
                _record_chain(e, stack)
                raise
            if not stack:
                return value
            stack[-1][1].append(value)


def _record_chain(
    error: TemplateEvaluationError, stack: list[tuple[Call, list[Value]]]
) -> None:
    """Prefix ``error.call_chain`` with the calls still open on ``stack``."""
    for call, _ in reversed(stack):
        error.within_call(call.name)


def _raised_by(error: TemplateEvaluationError, name: str) -> bool:
    """True when ``error`` reports a failure of the call to ``name`` itself.

    Such errors already name the function, so the call is not repeated in
    the enclosing-call chain.
    """
    if not isinstance(error, _CALL_ERRORS) or error.call_chain:
        return False
    return error.name == name
