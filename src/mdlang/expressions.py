"""
Expression AST for markdownlang.

Every embedded expression (print payloads, conditional guards, call
arguments, assignment values) is held as an immutable tree, never as
text. Evaluation lives in `mdlang.evaluator`; these classes are
structure only.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class Expression(ABC):
    """
    Base class for all AST expressions.

    It exists to give the expression hierarchy a common type.
    It does not evaluate or print itself.
    """
    pass


class BinaryOperator(Enum):
    """Binary operators, keyed by their source spelling."""

    # Logical
    OR = "||"
    AND = "&&"

    # Equality
    EQUALS = "=="
    NOT_EQUALS = "!="
    STRICT_EQUALS = "==="
    STRICT_NOT_EQUALS = "!=="

    # Relational
    LESS_THAN = "<"
    GREATER_THAN = ">"
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="

    # Arithmetic
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"


class UnaryOperator(Enum):
    """Prefix operators."""
    NOT = "!"
    NEGATE = "-"
    PLUS = "+"


@dataclass(frozen=True)
class Literal(Expression):
    """
    A constant.

    Examples:
        - 42
        - 3.5
        - "hello"
        - true

    `value` is None for the `null` keyword. The `undefined` keyword is
    represented by `mdlang.values.UNDEFINED`.
    """

    value: object


@dataclass(frozen=True)
class Identifier(Expression):
    """
    A variable reference, resolved against the current frame only.

    An unbound name evaluates to undefined rather than failing.
    """

    name: str


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    A binary operation.

    Example:
        count < 5

    Becomes:
        BinaryExpression(
            operator=BinaryOperator.LESS_THAN,
            left=Identifier("count"),
            right=Literal(5),
        )
    """

    operator: BinaryOperator
    left: Expression
    right: Expression


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """A prefix operation such as `!done` or `-n`."""

    operator: UnaryOperator
    operand: Expression


@dataclass(frozen=True)
class MemberExpression(Expression):
    """
    Property or index access.

    `word.length` has computed=False and property="length".
    `word[i]` has computed=True and property=Identifier("i").
    """

    object: Expression
    property: Union[str, Expression]
    computed: bool = False


@dataclass(frozen=True)
class CallExpression(Expression):
    """
    A call written inside an expression, e.g. `upper(name)`.

    Parsed so it can be reported clearly; evaluating it always fails.
    """

    callee: Expression
    arguments: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class TemplatePart:
    """
    One segment of a template: literal text or an embedded expression.

    Exactly one of `text` / `expression` is set.
    """

    text: Optional[str] = None
    expression: Optional[Expression] = None

    @property
    def is_literal(self) -> bool:
        return self.expression is None


@dataclass(frozen=True)
class TemplateLiteral(Expression):
    """
    Text with embedded `{expr}` segments, concatenated left to right.

    Example:
        Hello, {name}!

    Becomes:
        TemplateLiteral(parts=(
            TemplatePart(text="Hello, "),
            TemplatePart(expression=Identifier("name")),
            TemplatePart(text="!"),
        ))
    """

    parts: Tuple[TemplatePart, ...]
