"""
Expression evaluator.

Pure function of (Expression, scope) → value. The scope only has to
provide `get_variable(name)`; in practice it is the Runtime, which
answers from the current frame.
"""

from typing import Any

from mdlang import values
from mdlang.errors import EvaluationError
from mdlang.expressions import (
    BinaryExpression,
    BinaryOperator,
    CallExpression,
    Expression,
    Identifier,
    Literal,
    MemberExpression,
    TemplateLiteral,
    UnaryExpression,
    UnaryOperator,
)

_ARITHMETIC = {
    BinaryOperator.SUBTRACT,
    BinaryOperator.MULTIPLY,
    BinaryOperator.DIVIDE,
    BinaryOperator.MODULO,
}

_RELATIONAL = {
    BinaryOperator.LESS_THAN,
    BinaryOperator.GREATER_THAN,
    BinaryOperator.LESS_EQUAL,
    BinaryOperator.GREATER_EQUAL,
}


def evaluate(expr: Expression, scope) -> Any:
    """
    Evaluate an expression against a scope.

    Raises:
        EvaluationError: For calls inside expressions, unknown nodes or
            operators, and member reads on null/undefined
    """
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, Identifier):
        return scope.get_variable(expr.name)
    if isinstance(expr, BinaryExpression):
        return _evaluate_binary(expr, scope)
    if isinstance(expr, UnaryExpression):
        return _evaluate_unary(expr, scope)
    if isinstance(expr, TemplateLiteral):
        return _evaluate_template(expr, scope)
    if isinstance(expr, MemberExpression):
        return _evaluate_member(expr, scope)
    if isinstance(expr, CallExpression):
        callee = expr.callee.name if isinstance(expr.callee, Identifier) else "expression"
        raise EvaluationError(f"Call expressions not supported: {callee}")
    raise EvaluationError(f"Unknown expression type: {type(expr).__name__}")


def _evaluate_binary(expr: BinaryExpression, scope) -> Any:
    operator = expr.operator

    # Logical operators yield one of their operands.
    if operator == BinaryOperator.AND:
        left = evaluate(expr.left, scope)
        return evaluate(expr.right, scope) if values.truthy(left) else left
    if operator == BinaryOperator.OR:
        left = evaluate(expr.left, scope)
        return left if values.truthy(left) else evaluate(expr.right, scope)

    left = evaluate(expr.left, scope)
    right = evaluate(expr.right, scope)

    if operator == BinaryOperator.ADD:
        return values.add(left, right)
    if operator in _ARITHMETIC:
        return values.arithmetic(operator.value, left, right)
    if operator in _RELATIONAL:
        return values.compare(operator.value, left, right)
    if operator == BinaryOperator.EQUALS:
        return values.loose_equals(left, right)
    if operator == BinaryOperator.NOT_EQUALS:
        return not values.loose_equals(left, right)
    if operator == BinaryOperator.STRICT_EQUALS:
        return values.strict_equals(left, right)
    if operator == BinaryOperator.STRICT_NOT_EQUALS:
        return not values.strict_equals(left, right)

    raise EvaluationError(f"Unknown operator: {operator}")


def _evaluate_unary(expr: UnaryExpression, scope) -> Any:
    operand = evaluate(expr.operand, scope)

    if expr.operator == UnaryOperator.NOT:
        return not values.truthy(operand)
    if expr.operator == UnaryOperator.NEGATE:
        return -values.to_number(operand)
    if expr.operator == UnaryOperator.PLUS:
        return values.to_number(operand)

    raise EvaluationError(f"Unknown unary operator: {expr.operator}")


def _evaluate_template(expr: TemplateLiteral, scope) -> str:
    pieces = []
    for part in expr.parts:
        if part.is_literal:
            pieces.append(part.text)
        else:
            pieces.append(values.to_string(evaluate(part.expression, scope)))
    return "".join(pieces)


def _evaluate_member(expr: MemberExpression, scope) -> Any:
    target = evaluate(expr.object, scope)
    if expr.computed:
        key = evaluate(expr.property, scope)
    else:
        key = expr.property
    return values.get_member(target, key)
