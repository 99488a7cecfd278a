"""
Tests for runtime value semantics.

Operators are defined per pair of value kinds: number, string, boolean,
null and undefined.
"""

import math

import pytest
from mdlang.errors import EvaluationError
from mdlang.values import (
    UNDEFINED,
    add,
    arithmetic,
    compare,
    default_for,
    display,
    get_member,
    kind_of,
    loose_equals,
    strict_equals,
    to_number,
    truthy,
)


class TestCoercion:
    """Test conversions between kinds."""

    def test_kinds(self):
        assert kind_of(UNDEFINED) == "undefined"
        assert kind_of(None) == "null"
        assert kind_of(True) == "boolean"
        assert kind_of(1.5) == "number"
        assert kind_of("x") == "string"

    def test_to_number(self):
        assert to_number("42") == 42
        assert to_number(" 2.5 ") == 2.5
        assert to_number("") == 0
        assert to_number(None) == 0
        assert to_number(True) == 1
        assert math.isnan(to_number("abc"))
        assert math.isnan(to_number(UNDEFINED))

    def test_truthiness(self):
        assert not truthy(0)
        assert not truthy("")
        assert not truthy(None)
        assert not truthy(UNDEFINED)
        assert not truthy(math.nan)
        assert truthy("0")
        assert truthy(-1)

    def test_display(self):
        assert display(5) == "5"
        assert display(2.0) == "2"
        assert display(2.5) == "2.5"
        assert display(True) == "true"
        assert display(None) == "null"
        assert display(UNDEFINED) == "undefined"
        assert display(math.inf) == "Infinity"
        assert display(math.nan) == "NaN"


class TestOperators:
    """Test operators across mixed kinds."""

    def test_add_numbers(self):
        assert add(1, 2) == 3

    def test_add_concatenates_with_any_string(self):
        assert add("a", 1) == "a1"
        assert add(1, "a") == "1a"
        assert add("n: ", 2.0) == "n: 2"
        assert add("x", UNDEFINED) == "xundefined"

    def test_add_coerces_booleans_and_null(self):
        assert add(True, 1) == 2
        assert add(None, 5) == 5
        assert math.isnan(add(UNDEFINED, 1))

    def test_arithmetic_coerces_strings(self):
        assert arithmetic("-", "10", 4) == 6
        assert arithmetic("*", "3", "4") == 12

    def test_division(self):
        assert arithmetic("/", 7, 2) == 3.5
        assert arithmetic("/", 1, 0) == math.inf
        assert arithmetic("/", -1, 0) == -math.inf
        assert math.isnan(arithmetic("/", 0, 0))

    def test_modulo_keeps_dividend_sign(self):
        assert arithmetic("%", 7, 3) == 1
        assert arithmetic("%", -7, 3) == -1
        assert math.isnan(arithmetic("%", 1, 0))

    def test_unknown_arithmetic_operator(self):
        with pytest.raises(EvaluationError):
            arithmetic("^", 1, 2)

    def test_loose_equality(self):
        assert loose_equals(1, "1")
        assert loose_equals(None, UNDEFINED)
        assert loose_equals(True, 1)
        assert loose_equals(0, "")
        assert not loose_equals(None, 0)
        assert not loose_equals(math.nan, math.nan)

    def test_strict_equality(self):
        assert strict_equals(1, 1.0)
        assert not strict_equals(1, "1")
        assert not strict_equals(True, 1)
        assert strict_equals(UNDEFINED, UNDEFINED)

    def test_compare(self):
        assert compare("<", 2, 10)
        assert not compare("<", "2", "10")  # both strings: code point order
        assert compare("<", "2", 10)
        assert compare(">=", 5, 5)
        assert not compare("<", UNDEFINED, 1)
        assert compare("<", None, 1)


class TestMembers:
    """Test property and index reads."""

    def test_string_length(self):
        assert get_member("hello", "length") == 5

    def test_string_index(self):
        assert get_member("hello", 1) == "e"
        assert get_member("hello", 1.0) == "e"
        assert get_member("hello", "4") == "o"

    def test_out_of_range_is_undefined(self):
        assert get_member("hi", 5) is UNDEFINED
        assert get_member("hi", -1) is UNDEFINED

    def test_number_property_is_undefined(self):
        assert get_member(5, "length") is UNDEFINED

    def test_read_from_undefined_fails(self):
        with pytest.raises(EvaluationError):
            get_member(UNDEFINED, "length")


class TestDefaults:
    """Test starting values for compound assignment."""

    def test_defaults(self):
        assert default_for(3) == 0
        assert default_for("x") == ""
        assert default_for(True) is UNDEFINED
