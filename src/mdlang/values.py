"""
Runtime value semantics.

Programs see five kinds of value: number (int or float), string,
boolean, null (Python None) and undefined (the UNDEFINED sentinel).
Every operator is defined here per pair of kinds so that the evaluator
never leans on Python's own coercion rules, which differ from the loose
rules example programs are written against (`"1" == 1` is true, `+`
concatenates as soon as either side is a string, division by zero is
Infinity rather than an exception).
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Any

from mdlang.errors import EvaluationError


class _Undefined:
    """Singleton for a value that was never bound."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()

_NUMERIC_TEXT = re.compile(r"^[+-]?(\d+\.?\d*([eE][+-]?\d+)?|\.\d+([eE][+-]?\d+)?)$")


def kind_of(value: Any) -> str:
    """Name the value kind: undefined, null, boolean, number, string or object."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def to_number(value: Any) -> int | float:
    """Numeric coercion: "" and null are 0, undefined and junk text are NaN."""
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        if _NUMERIC_TEXT.match(text):
            number = float(text)
            if number.is_integer() and re.match(r"^[+-]?\d+$", text):
                return int(text)
            return number
        return math.nan
    return math.nan


def format_number(number: int | float) -> str:
    if isinstance(number, int):
        return str(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)


def to_string(value: Any) -> str:
    """String coercion used by `+` concatenation, templates and display."""
    if isinstance(value, str):
        return value
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, Sequence):
        return ",".join("" if item is None or item is UNDEFINED else to_string(item) for item in value)
    return str(value)


def display(value: Any) -> str:
    """Render a printed value as one line of program output."""
    return to_string(value)


def truthy(value: Any) -> bool:
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return not (value == 0 or is_nan(value))
    if isinstance(value, str):
        return value != ""
    return True


def strict_equals(left: Any, right: Any) -> bool:
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind != right_kind:
        return False
    if left_kind in ("undefined", "null"):
        return True
    if left_kind == "object":
        return left is right
    return left == right


def loose_equals(left: Any, right: Any) -> bool:
    """
    Coercing equality.

    null and undefined equal each other and nothing else; booleans
    compare as numbers; a string compared with a number is converted to
    a number first.
    """
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind == right_kind:
        return strict_equals(left, right)
    nullish = ("undefined", "null")
    if left_kind in nullish or right_kind in nullish:
        return left_kind in nullish and right_kind in nullish
    if left_kind == "boolean":
        return loose_equals(to_number(left), right)
    if right_kind == "boolean":
        return loose_equals(left, to_number(right))
    if {left_kind, right_kind} == {"number", "string"}:
        return to_number(left) == to_number(right)
    if left_kind == "object" or right_kind == "object":
        return to_string(left) == to_string(right)
    return False


def add(left: Any, right: Any) -> Any:
    """`+`: concatenate if either operand is a string, otherwise add numbers."""
    if isinstance(left, str) or isinstance(right, str):
        return to_string(left) + to_string(right)
    if kind_of(left) == "object" or kind_of(right) == "object":
        return to_string(left) + to_string(right)
    return to_number(left) + to_number(right)


def arithmetic(operator: str, left: Any, right: Any) -> int | float:
    """`-`, `*`, `/` and `%` on numerically coerced operands."""
    a, b = to_number(left), to_number(right)
    if operator == "-":
        return a - b
    if operator == "*":
        if (math.isinf(a) and b == 0) or (math.isinf(b) and a == 0):
            return math.nan
        return a * b
    if operator == "/":
        if b == 0:
            if a == 0 or is_nan(a):
                return math.nan
            negative = (a < 0) != (math.copysign(1.0, b) < 0)
            return -math.inf if negative else math.inf
        return a / b
    if operator == "%":
        if b == 0 or math.isinf(a) or is_nan(a) or is_nan(b):
            return math.nan
        if math.isinf(b):
            return a
        result = math.fmod(a, b)
        if isinstance(a, int) and isinstance(b, int):
            return int(result)
        return result
    raise EvaluationError(f"Unknown operator: {operator}")


def compare(operator: str, left: Any, right: Any) -> bool:
    """Relational operators; strings compare by code point, everything else numerically."""
    if isinstance(left, str) and isinstance(right, str):
        a, b = left, right
    else:
        a, b = to_number(left), to_number(right)
        if is_nan(a) or is_nan(b):
            return False
    if operator == "<":
        return a < b
    if operator == ">":
        return a > b
    if operator == "<=":
        return a <= b
    if operator == ">=":
        return a >= b
    raise EvaluationError(f"Unknown operator: {operator}")


def _as_index(key: Any):
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, float) and key.is_integer():
        return int(key)
    if isinstance(key, str) and re.match(r"^\d+$", key):
        return int(key)
    return None


def get_member(value: Any, key: Any) -> Any:
    """
    Read `value.key` or `value[key]`.

    Strings (and other sequences) expose `length` and non-negative
    integer indexes. Everything else reads as undefined, except that
    reading from null or undefined fails like it would at runtime.
    """
    if value is UNDEFINED or value is None:
        raise EvaluationError(
            f"Cannot read property '{to_string(key)}' of {to_string(value)}"
        )
    if isinstance(value, (str, Sequence)):
        if key == "length":
            return len(value)
        index = _as_index(key)
        if index is not None and 0 <= index < len(value):
            return value[index]
    return UNDEFINED


def default_for(value: Any) -> Any:
    """Starting value for a compound assignment to an unset variable."""
    if isinstance(value, str):
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return 0
    return UNDEFINED
