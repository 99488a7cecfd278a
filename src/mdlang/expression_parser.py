"""
Expression parser (raw text → Expression AST).

Grammar, loosest binding first:

    or          := and ( "||" and )*
    and         := equality ( "&&" equality )*
    equality    := relational ( ("==" | "!=" | "===" | "!==") relational )*
    relational  := additive ( ("<" | ">" | "<=" | ">=") additive )*
    additive    := multiplicative ( ("+" | "-") multiplicative )*
    multiplicative := unary ( ("*" | "/" | "%") unary )*
    unary       := ("!" | "-" | "+") unary | postfix
    postfix     := primary ( "." name | "[" or "]" | "(" arguments ")" )*
    primary     := number | string | name | "(" or ")"

Templates (`Hello, {name}!`) are split by a separate brace-matching
pass before each embedded segment goes through the grammar above.
"""

import re
from dataclasses import dataclass
from typing import List, Tuple

from mdlang.errors import ExpressionSyntaxError
from mdlang.expressions import (
    Expression,
    BinaryExpression,
    BinaryOperator,
    CallExpression,
    Identifier,
    Literal,
    MemberExpression,
    TemplateLiteral,
    TemplatePart,
    UnaryExpression,
    UnaryOperator,
)
from mdlang.values import UNDEFINED


@dataclass(frozen=True)
class Token:
    kind: str  # "number", "string", "name" or "op"
    value: str
    position: int


_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<name>(?:[^\W\d]|\$)(?:\w|\$)*)
    |(?P<op>===|!==|==|!=|<=|>=|&&|\|\||[-+*/%<>!().\[\],])
    """,
    re.VERBOSE,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "b": "\b", "f": "\f", "v": "\v"}

_KEYWORDS = {"true": True, "false": False, "null": None, "undefined": UNDEFINED}

_EQUALITY = {op.value: op for op in (
    BinaryOperator.EQUALS,
    BinaryOperator.NOT_EQUALS,
    BinaryOperator.STRICT_EQUALS,
    BinaryOperator.STRICT_NOT_EQUALS,
)}
_RELATIONAL = {op.value: op for op in (
    BinaryOperator.LESS_THAN,
    BinaryOperator.GREATER_THAN,
    BinaryOperator.LESS_EQUAL,
    BinaryOperator.GREATER_EQUAL,
)}
_ADDITIVE = {op.value: op for op in (BinaryOperator.ADD, BinaryOperator.SUBTRACT)}
_MULTIPLICATIVE = {op.value: op for op in (
    BinaryOperator.MULTIPLY,
    BinaryOperator.DIVIDE,
    BinaryOperator.MODULO,
)}
_UNARY = {op.value: op for op in UnaryOperator}


def tokenize(text: str) -> List[Token]:
    """Split expression text into tokens, rejecting unknown characters."""
    tokens = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_PATTERN.match(text, pos)
        if match is None:
            raise ExpressionSyntaxError(f"Unexpected character '{text[pos]}'", text, pos)
        kind = match.lastgroup
        if kind != "space":
            tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    return tokens


def _unescape(body: str) -> str:
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _parse_number(value: str):
    if re.match(r"^\d+$", value):
        return int(value)
    return float(value)


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    def error(self, message: str) -> ExpressionSyntaxError:
        if self.pos < len(self.tokens):
            return ExpressionSyntaxError(message, self.text, self.tokens[self.pos].position)
        return ExpressionSyntaxError(message, self.text)

    def peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def peek_op(self, *values: str) -> bool:
        token = self.peek()
        return token is not None and token.kind == "op" and token.value in values

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def expect_op(self, value: str) -> Token:
        if not self.peek_op(value):
            token = self.peek()
            found = f"'{token.value}'" if token else "end of expression"
            raise self.error(f"Expected '{value}' but found {found}")
        return self.advance()

    def parse(self) -> Expression:
        if not self.tokens:
            raise ExpressionSyntaxError("Empty expression", self.text)
        expr = self.parse_or()
        if self.pos < len(self.tokens):
            raise self.error(f"Unexpected token '{self.tokens[self.pos].value}'")
        return expr

    def parse_or(self) -> Expression:
        left = self.parse_and()
        while self.peek_op("||"):
            self.advance()
            left = BinaryExpression(BinaryOperator.OR, left, self.parse_and())
        return left

    def parse_and(self) -> Expression:
        left = self.parse_equality()
        while self.peek_op("&&"):
            self.advance()
            left = BinaryExpression(BinaryOperator.AND, left, self.parse_equality())
        return left

    def parse_equality(self) -> Expression:
        return self._parse_binary_level(_EQUALITY, self.parse_relational)

    def parse_relational(self) -> Expression:
        return self._parse_binary_level(_RELATIONAL, self.parse_additive)

    def parse_additive(self) -> Expression:
        return self._parse_binary_level(_ADDITIVE, self.parse_multiplicative)

    def parse_multiplicative(self) -> Expression:
        return self._parse_binary_level(_MULTIPLICATIVE, self.parse_unary)

    def _parse_binary_level(self, operators, parse_operand) -> Expression:
        left = parse_operand()
        while self.peek_op(*operators):
            operator = operators[self.advance().value]
            left = BinaryExpression(operator, left, parse_operand())
        return left

    def parse_unary(self) -> Expression:
        if self.peek_op(*_UNARY):
            operator = _UNARY[self.advance().value]
            return UnaryExpression(operator, self.parse_unary())
        return self.parse_postfix()

    def parse_postfix(self) -> Expression:
        expr = self.parse_primary()
        while True:
            if self.peek_op("."):
                self.advance()
                token = self.peek()
                if token is None or token.kind != "name":
                    raise self.error("Expected property name after '.'")
                self.advance()
                expr = MemberExpression(expr, token.value, computed=False)
            elif self.peek_op("["):
                self.advance()
                index = self.parse_or()
                self.expect_op("]")
                expr = MemberExpression(expr, index, computed=True)
            elif self.peek_op("("):
                self.advance()
                arguments = []
                if not self.peek_op(")"):
                    arguments.append(self.parse_or())
                    while self.peek_op(","):
                        self.advance()
                        arguments.append(self.parse_or())
                self.expect_op(")")
                expr = CallExpression(expr, tuple(arguments))
            else:
                return expr

    def parse_primary(self) -> Expression:
        token = self.peek()
        if token is None:
            raise self.error("Unexpected end of expression")

        if token.kind == "number":
            self.advance()
            return Literal(_parse_number(token.value))

        if token.kind == "string":
            self.advance()
            return Literal(_unescape(token.value[1:-1]))

        if token.kind == "name":
            self.advance()
            if token.value in _KEYWORDS:
                return Literal(_KEYWORDS[token.value])
            return Identifier(token.value)

        if self.peek_op("("):
            self.advance()
            expr = self.parse_or()
            self.expect_op(")")
            return expr

        raise self.error(f"Unexpected token '{token.value}'")


def parse_expression(text: str) -> Expression:
    """
    Parse one expression.

    Args:
        text: Expression source, e.g. "count + 1"

    Returns:
        Expression AST

    Raises:
        ExpressionSyntaxError: If the text is not a well-formed expression
    """
    return _Parser(text.strip()).parse()


def _find_closing_brace(text: str, start: int) -> int:
    """Index of the brace closing the one at `start`, or -1."""
    depth = 0
    for i in range(start, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def is_bare_expression(text: str) -> bool:
    """True if the whole text is a single `{...}` pair."""
    return text.startswith("{") and _find_closing_brace(text, 0) == len(text) - 1


def has_template_segments(text: str) -> bool:
    return "{" in text and "}" in text


def parse_template(text: str) -> TemplateLiteral:
    """
    Split text into literal and `{expr}` segments.

    Braces nest, so `{a[{x}]}` is a single segment. A closing brace with
    no opener stays literal text.

    Raises:
        ExpressionSyntaxError: On an unterminated `{` or a bad segment
    """
    parts: List[TemplatePart] = []
    current = []
    i = 0
    while i < len(text):
        if text[i] == "{":
            if current:
                parts.append(TemplatePart(text="".join(current)))
                current = []
            end = _find_closing_brace(text, i)
            if end < 0:
                raise ExpressionSyntaxError("Unterminated template expression", text, i)
            parts.append(TemplatePart(expression=parse_expression(text[i + 1:end])))
            i = end + 1
        else:
            current.append(text[i])
            i += 1
    if current:
        parts.append(TemplatePart(text="".join(current)))
    return TemplateLiteral(tuple(parts))


def split_arguments(text: str) -> List[str]:
    """
    Split call-argument text on commas outside quotes and brackets.

    Each piece is whitespace-trimmed.
    """
    pieces = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            pieces.append(text[start:i].strip())
            start = i + 1
        i += 1
    pieces.append(text[start:].strip())
    return pieces


def parse_arguments(text: str) -> Tuple[Expression, ...]:
    """Parse comma-separated call arguments; empty text means no arguments."""
    if not text.strip():
        return ()
    return tuple(parse_expression(piece) for piece in split_arguments(text))


__all__ = [
    "tokenize",
    "parse_expression",
    "parse_template",
    "parse_arguments",
    "split_arguments",
    "is_bare_expression",
    "has_template_segments",
]
