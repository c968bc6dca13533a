"""Abstract syntax tree for parsed templates.

A template is an ordered tuple of nodes. Literal nodes are copied to the
output verbatim; expression nodes hold an expression resolved at render time:

    "sorted/{{ upper(extension) }}/{{ file.name }}"

    Template(nodes=(
        LiteralNode("sorted/"),
        ExpressionNode(Call("upper", (Variable(("extension",)),))),
        LiteralNode("/"),
        ExpressionNode(Variable(("file", "name"))),
    ))

All node classes are frozen, so a parsed template can be shared between
threads and rendered against many contexts at once.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

__all__ = [
    "Variable",
    "Call",
    "StringLiteral",
    "Expr",
    "LiteralNode",
    "ExpressionNode",
    "Node",
    "Template",
    "to_source",
    "iter_expressions",
]


@dataclass(frozen=True, slots=True)
class Variable:
    """Dotted variable reference such as ``file.stem``.

    Attributes:
        path: Identifiers from outermost to innermost; never empty.
    """

    path: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("Variable path must contain at least one identifier")

    @property
    def root(self) -> str:
        return self.path[0]


@dataclass(frozen=True, slots=True)
class Call:
    """Function call such as ``replace(name, ' ', '_')``.

    Attributes:
        name: Registered function name.
        args: Argument expressions in call order.
    """

    name: str
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True, slots=True)
class StringLiteral:
    """Quoted string argument; ``text`` excludes the quotes."""

    text: str


Expr = Variable | Call | StringLiteral


@dataclass(frozen=True, slots=True)
class LiteralNode:
    """Literal text copied to the output unchanged."""

    text: str


@dataclass(frozen=True, slots=True)
class ExpressionNode:
    """A ``{{ ... }}`` span."""

    expr: Expr


Node = LiteralNode | ExpressionNode


@dataclass(frozen=True, slots=True)
class Template:
    """Parsed, immutable template.

    Two templates are equal when their node sequences are equal; the source
    text is kept for diagnostics only, so ``{{x}}`` and ``{{ x }}`` compare
    equal.

    Attributes:
        nodes: Literal and expression nodes in source order.
        source: The text the template was parsed from.
    """

    nodes: tuple[Node, ...]
    source: str = field(default="", compare=False)

    def to_source(self) -> str:
        """Re-emit equivalent template source with canonical spacing.

        Parsing the result yields a template equal to this one.
        """
        parts: list[str] = []
        for node in self.nodes:
            if isinstance(node, LiteralNode):
                parts.append(node.text)
            else:
                parts.append(f"{{{{ {to_source(node.expr)} }}}}")
        return "".join(parts)

    def variables(self) -> tuple[str, ...]:
        """Root variable names referenced anywhere, in first-use order."""
        seen: dict[str, None] = {}
        for expr in self.expressions():
            if isinstance(expr, Variable):
                seen.setdefault(expr.root, None)
        return tuple(seen)

    def functions(self) -> tuple[str, ...]:
        """Function names called anywhere, in first-use order."""
        seen: dict[str, None] = {}
        for expr in self.expressions():
            if isinstance(expr, Call):
                seen.setdefault(expr.name, None)
        return tuple(seen)

    def expressions(self) -> Iterator[Expr]:
        """Yield every expression, including nested arguments, depth-first."""
        for node in self.nodes:
            if isinstance(node, ExpressionNode):
                yield from iter_expressions(node.expr)

    @property
    def is_static(self) -> bool:
        """True when the template has no expressions."""
        return all(isinstance(node, LiteralNode) for node in self.nodes)


def iter_expressions(expr: Expr) -> Iterator[Expr]:
    """Yield ``expr`` and then its arguments, depth-first, left to right."""
    pending: list[Expr] = [expr]
    while pending:
        current = pending.pop()
        yield current
        if isinstance(current, Call):
            pending.extend(reversed(current.args))


def to_source(expr: Expr) -> str:
    """Render an expression back to template syntax.

    Raises:
        ValueError: If a string literal contains both quote characters and
            therefore cannot be written without escapes.
    """
    parts: list[str] = []
    # Calls expand into their pieces on an explicit stack, so nesting depth
    # is not limited by the interpreter's recursion limit.
    pending: list[Expr | str] = [expr]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, Call):
            pending.append(")")
            for index in reversed(range(len(item.args))):
                pending.append(item.args[index])
                if index:
                    pending.append(", ")
            pending.append(f"{item.name}(")
        else:
            parts.append(_atom_source(item))
    return "".join(parts)


def _atom_source(expr: Variable | StringLiteral) -> str:
    if isinstance(expr, Variable):
        return ".".join(expr.path)
    if "'" not in expr.text:
        return f"'{expr.text}'"
    if '"' not in expr.text:
        return f'"{expr.text}"'
    raise ValueError(
        f"String literal {expr.text!r} contains both quote characters"
    )
