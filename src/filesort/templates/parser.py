"""Template parser.

Parsing happens in two layers:

1. A scanner splits the source into literal runs and ``{{ ... }}`` spans. A
   literal run ends at the first ``{{``; a span ends at the first ``}}`` that
   is not inside a quoted string.
2. The interior of each span is parsed with a Lark LALR parser built from
   ``grammar.lark`` into an expression AST (see ``nodes.py``).

Expression syntax:
- ``{{ name }}`` - variable lookup
- ``{{ file.stem }}`` - nested lookup inside a mapping value
- ``{{ upper(extension) }}`` - function call
- ``{{ replace(name, ' ', '_') }}`` - quoted string arguments
- ``{{ f(g('x'), y) }}`` - nested calls, any depth

Whitespace between tokens inside a span is insignificant. Literal text and
quoted strings are kept verbatim; there are no escape sequences.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Literal

from lark import Lark, Token, Transformer
from lark.exceptions import (
    UnexpectedCharacters,
    UnexpectedEOF,
    UnexpectedInput,
    UnexpectedToken,
)

from filesort.templates.errors import TemplateParseError
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

__all__ = [
    "OPEN_DELIMITER",
    "CLOSE_DELIMITER",
    "tokenize",
    "parse_expression",
    "parse_template",
]

OPEN_DELIMITER = "{{"
CLOSE_DELIMITER = "}}"

_QUOTES = ("'", '"')

_GRAMMAR = (Path(__file__).parent / "grammar.lark").read_text(encoding="utf-8")

# Human-readable names for grammar terminals, in the order they are listed
# in "expected ..." messages.
_TERMINAL_NAMES = {
    "IDENTIFIER": "identifier",
    "SINGLE_QUOTED": "quoted string",
    "DOUBLE_QUOTED": "quoted string",
    "LPAR": "'('",
    "RPAR": "')'",
    "COMMA": "','",
    "DOT": "'.'",
    "$END": "end of expression",
}


class _ExpressionTransformer(Transformer[Token, Expr]):
    """Build expression nodes while the LALR parser reduces.

    Applied inline by Lark, so no intermediate parse tree is built and
    nesting depth does not consume Python stack during transformation.
    """

    def function_call(self, items: list[object]) -> Call:
        name = str(items[0])
        args = tuple(items[1]) if len(items) > 1 else ()  # type: ignore[arg-type]
        return Call(name=name, args=args)

    def arguments(self, items: list[Expr]) -> list[Expr]:
        return list(items)

    def variable(self, items: list[Token]) -> Variable:
        return Variable(path=tuple(str(token) for token in items))

    def string(self, items: list[Token]) -> StringLiteral:
        return StringLiteral(text=str(items[0])[1:-1])


_parser = Lark(
    _GRAMMAR,
    parser="lalr",
    start="start",
    transformer=_ExpressionTransformer(),
)

# Lark.lex() needs the basic (context-free) lexer.
_lexer = Lark(_GRAMMAR, parser="lalr", lexer="basic", start="start")


def _describe_expected(names: set[str] | frozenset[str] | None) -> str:
    if not names:
        return ""
    described: list[str] = []
    for terminal, label in _TERMINAL_NAMES.items():
        if terminal in names and label not in described:
            described.append(label)
    if len(described) == 1:
        return described[0]
    return "one of " + ", ".join(described)


def _open_calls(text: str, end: int) -> int:
    """Number of calls left open in ``text[:end]``, ignoring quoted strings."""
    depth = 0
    quote: str | None = None
    for char in text[:end]:
        if quote is not None:
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
    return depth


def _expected_at(
    names: set[str] | frozenset[str] | None, text: str, position: int
) -> set[str] | None:
    """Narrow Lark's expected terminals to those valid at ``position``.

    LALR states are shared between the top level and argument positions, so
    Lark offers ``)`` and ``,`` after a complete top-level expression and
    may offer end of input inside an open call.
    """
    if not names:
        return None
    allowed = set(names)
    if _open_calls(text, position) > 0:
        allowed.discard("$END")
    elif allowed & {"RPAR", "COMMA"}:
        allowed -= {"RPAR", "COMMA"}
        allowed.add("$END")
    return allowed


def _describe_token(token: Token) -> str:
    if token.type == "IDENTIFIER":
        return f"identifier '{token}'"
    if token.type in ("SINGLE_QUOTED", "DOUBLE_QUOTED"):
        return f"string {token}"
    return _TERMINAL_NAMES.get(token.type, repr(str(token)))


def _syntax_error(
    error: UnexpectedInput,
    text: str,
    source: str,
    base: int,
) -> TemplateParseError:
    """Translate a Lark error on ``text`` into a TemplateParseError on ``source``.

    Args:
        error: The Lark exception.
        text: The span interior that was parsed.
        source: Full template source, for the error excerpt.
        base: Offset of ``text`` inside ``source``.
    """
    if isinstance(error, UnexpectedCharacters):
        position = error.pos_in_stream
        char = text[position]
        if char in _QUOTES:
            return TemplateParseError(
                "unterminated string literal", source, base + position
            )
        return TemplateParseError(
            f"unexpected character {char!r}",
            source,
            base + position,
            expected=_describe_expected(
                _expected_at(error.allowed, text, position)
            ),
        )

    if isinstance(error, UnexpectedToken) and error.token.type != "$END":
        position = error.token.start_pos or 0
        return TemplateParseError(
            f"unexpected {_describe_token(error.token)}",
            source,
            base + position,
            expected=_describe_expected(
                _expected_at(error.expected, text, position)
            ),
        )

    # End of input reached while more tokens were required.
    expected: set[str] | None = None
    if isinstance(error, (UnexpectedToken, UnexpectedEOF)):
        expected = _expected_at(error.expected, text, len(text))
    reason = "empty expression" if not text.strip() else "unexpected end of expression"
    return TemplateParseError(
        reason,
        source,
        base + len(text),
        expected=_describe_expected(expected),
    )


def _parse_interior(source: str, start: int, end: int) -> Expr:
    text = source[start:end]
    try:
        result: Expr = _parser.parse(text)
    except UnexpectedInput as e:
        raise _syntax_error(e, text, source, start) from e
    return result


def _find_close(source: str, start: int) -> int:
    """Offset of the ``}}`` closing a span opened before ``start``, or -1."""
    i = start
    length = len(source)
    while i < length:
        char = source[i]
        if char in _QUOTES:
            closing = source.find(char, i + 1)
            if closing == -1:
                return -1
            i = closing + 1
            continue
        if source.startswith(CLOSE_DELIMITER, i):
            return i
        i += 1
    return -1


def _unterminated(source: str) -> TemplateParseError:
    return TemplateParseError(
        "unterminated expression",
        source,
        len(source),
        expected=f"'{CLOSE_DELIMITER}'",
    )


_SegmentKind = Literal["literal", "expression", "unterminated"]


def _scan(source: str) -> Iterator[tuple[_SegmentKind, int, int]]:
    """Split a template into (kind, start, end) segments.

    For expression segments, start/end delimit the interior (without braces).
    An "unterminated" segment runs from after ``{{`` to the end of input and
    is always last.
    """
    position = 0
    length = len(source)
    while position < length:
        open_at = source.find(OPEN_DELIMITER, position)
        if open_at == -1:
            yield "literal", position, length
            return
        if open_at > position:
            yield "literal", position, open_at
        interior = open_at + len(OPEN_DELIMITER)
        close_at = _find_close(source, interior)
        if close_at == -1:
            yield "unterminated", interior, length
            return
        yield "expression", interior, close_at
        position = close_at + len(CLOSE_DELIMITER)


def tokenize(expression: str) -> list[str]:
    """Tokenize the interior of one ``{{ }}`` span.

    Args:
        expression: Expression text without the ``{{ }}`` wrapper.

    Returns:
        Token strings; whitespace is dropped and quoted strings keep quotes.

    Raises:
        TemplateParseError: For characters no token can start with, including
            an unterminated quote.

    Examples:
        >>> tokenize("file.stem")
        ['file', '.', 'stem']
        >>> tokenize("replace(name, ' ', '_')")
        ['replace', '(', 'name', ',', "' '", ',', "'_'", ')']
    """
    try:
        return [str(token) for token in _lexer.lex(expression)]
    except UnexpectedInput as e:
        raise _syntax_error(e, expression, expression, 0) from e


def parse_expression(expression: str) -> Expr:
    """Parse a single expression, with or without its ``{{ }}`` wrapper.

    Args:
        expression: e.g. ``"upper(name)"`` or ``"{{ upper(name) }}"``.

    Returns:
        The Variable or Call expression.

    Raises:
        TemplateParseError: For invalid syntax. Offsets refer to ``expression``.

    Examples:
        >>> parse_expression("{{ file.stem }}")
        Variable(path=('file', 'stem'))
    """
    stripped = expression.strip()
    if stripped.startswith(OPEN_DELIMITER) and stripped.endswith(CLOSE_DELIMITER):
        start = expression.index(OPEN_DELIMITER) + len(OPEN_DELIMITER)
        end = expression.rindex(CLOSE_DELIMITER)
        if end >= start:
            return _parse_interior(expression, start, end)
    return _parse_interior(expression, 0, len(expression))


def parse_template(source: str) -> Template:
    """Parse a full template into an immutable Template.

    Args:
        source: Template text mixing literals and ``{{ ... }}`` spans.

    Returns:
        Template whose nodes follow source order. An empty source gives an
        empty template.

    Raises:
        TemplateParseError: On the first malformed span. No partial template
            is returned.

    Examples:
        >>> parse_template("a/{{ b }}").nodes
        (LiteralNode(text='a/'), ExpressionNode(expr=Variable(path=('b',))))
    """
    nodes: list[Node] = []
    for kind, start, end in _scan(source):
        if kind == "literal":
            nodes.append(LiteralNode(source[start:end]))
            continue
        # A blank unterminated span is reported as missing its "}}" rather
        # than as an empty expression.
        if kind == "unterminated" and not source[start:end].strip():
            raise _unterminated(source)
        expr = _parse_interior(source, start, end)
        if kind == "unterminated":
            raise _unterminated(source)
        nodes.append(ExpressionNode(expr))
    return Template(nodes=tuple(nodes), source=source)
