"""
Tests for Core Program Model Objects

These tests verify:
    - Basic statement and declaration creation
    - Immutability of statements and declarations
    - Program retrieval methods
"""

import pytest
from mdlang.model import (
    AssignmentOperator,
    AssignmentStatement,
    BreakStatement,
    CallStatement,
    ConditionalStatement,
    FunctionDeclaration,
    InputStatement,
    PrintStatement,
    Program,
    Statement,
)
from mdlang.expressions import (
    BinaryExpression,
    BinaryOperator,
    Identifier,
    Literal,
)


class TestStatements:
    """Test statement objects."""

    def test_print(self):
        stmt = PrintStatement(Literal("hi"))
        assert stmt.expression == Literal("hi")
        assert isinstance(stmt, Statement)

    def test_plain_assignment_has_no_operator(self):
        stmt = AssignmentStatement(variable="x", value=Literal(1))
        assert stmt.operator is None

    def test_compound_assignment(self):
        stmt = AssignmentStatement(variable="x", value=Literal(1), operator=AssignmentOperator.ADD)
        assert stmt.operator.value == "+"

    def test_call_defaults_to_same_program(self):
        stmt = CallStatement(function_name="loop")
        assert stmt.external_file is None
        assert stmt.arguments == ()

    def test_conditional(self):
        guard = BinaryExpression(BinaryOperator.LESS_THAN, Identifier("n"), Literal(5))
        stmt = ConditionalStatement(condition=guard, body=(BreakStatement(),))
        assert stmt.body == (BreakStatement(),)

    def test_breaks_are_equal(self):
        assert BreakStatement() == BreakStatement()

    def test_input(self):
        assert InputStatement("name").variable == "name"

    def test_statements_immutable(self):
        stmt = InputStatement("name")
        with pytest.raises(AttributeError):
            stmt.variable = "other"


class TestFunctionDeclaration:
    """Test FunctionDeclaration objects."""

    def test_create_function(self):
        function = FunctionDeclaration(
            name="greet",
            parameters=("first", "last"),
            body=(PrintStatement(Literal("hi")),),
        )
        assert function.name == "greet"
        assert function.parameters == ("first", "last")
        assert len(function.body) == 1

    def test_defaults(self):
        function = FunctionDeclaration(name="main")
        assert function.parameters == ()
        assert function.body == ()

    def test_function_immutable(self):
        function = FunctionDeclaration(name="main")
        with pytest.raises(AttributeError):
            function.name = "other"


class TestProgram:
    """Test Program container."""

    def test_empty_program(self):
        program = Program()
        assert program.functions == {}
        assert program.base_dir is None

    def test_get_function(self):
        main = FunctionDeclaration(name="main")
        program = Program(functions={"main": main})
        assert program.get_function("main") is main
        assert program.get_function("other") is None
        assert "main" in program
        assert "other" not in program
