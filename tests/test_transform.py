"""
Tests for the document transform (markdown → Program).

Each markdown convention should produce the matching statement, and
everything else should be skipped without error.
"""

import pytest
from mdlang.errors import ExpressionSyntaxError, ProgramLookupError, TransformError
from mdlang.expressions import BinaryExpression, Identifier, Literal, TemplateLiteral
from mdlang.model import (
    AssignmentOperator,
    AssignmentStatement,
    BreakStatement,
    CallStatement,
    ConditionalStatement,
    InputStatement,
    PrintStatement,
    Program,
)
from mdlang.transform import parse_program, parse_program_file


def body_of(source: str, name: str = "main"):
    return parse_program(source).functions[name].body


class TestFunctions:
    """Test function declarations and parameters."""

    def test_heading_declares_function(self):
        program = parse_program("# main\n\n**hi**\n")
        assert isinstance(program, Program)
        assert list(program.functions) == ["main"]
        assert program.get_function("main").name == "main"

    def test_parameters_from_list(self):
        program = parse_program("# greet\n\n- first\n- last\n")
        assert program.functions["greet"].parameters == ("first", "last")

    def test_ordered_list_is_not_parameters(self):
        program = parse_program("# greet\n\n1. first\n")
        assert program.functions["greet"].parameters == ()

    def test_last_declaration_wins(self):
        program = parse_program("# main\n\n**one**\n\n# main\n\n**two**\n")
        assert len(program.functions) == 1
        assert program.functions["main"].body == (PrintStatement(Literal("two")),)

    def test_content_before_any_function_is_skipped(self):
        program = parse_program("**orphan**\n\nx = 1\n\n# main\n\n**hi**\n")
        assert len(program.functions["main"].body) == 1

    def test_missing_function_lookup(self):
        assert parse_program("# main\n").get_function("other") is None


class TestPrint:
    """Test bold paragraphs."""

    def test_literal_text(self):
        assert body_of("# main\n\n**Hello, World!**\n") == (PrintStatement(Literal("Hello, World!")),)

    def test_bare_expression(self):
        (stmt,) = body_of("# main\n\n**{count + 1}**\n")
        assert isinstance(stmt.expression, BinaryExpression)

    def test_template(self):
        (stmt,) = body_of("# main\n\n**Count: {count}**\n")
        assert isinstance(stmt.expression, TemplateLiteral)

    def test_bold_with_other_text_is_not_print(self):
        """A bold span with surrounding prose is not a print."""
        assert body_of("# main\n\nsay **hi** now\n") == ()


class TestCalls:
    """Test link paragraphs."""

    def test_local_call(self):
        (stmt,) = body_of("# main\n\n[](#loop)\n")
        assert stmt == CallStatement(function_name="loop")

    def test_arguments(self):
        (stmt,) = body_of("# main\n\n[n - 1, \"x\"](#loop)\n")
        assert len(stmt.arguments) == 2
        assert stmt.arguments[1] == Literal("x")

    def test_external_call(self):
        (stmt,) = body_of("# main\n\n[5](lib/math.md#square)\n")
        assert stmt.external_file == "lib/math.md"
        assert stmt.function_name == "square"

    def test_legacy_bare_target(self):
        (stmt,) = body_of("# main\n\n[](loop)\n")
        assert stmt.function_name == "loop"
        assert stmt.external_file is None

    def test_target_without_function(self):
        with pytest.raises(TransformError):
            parse_program("# main\n\n[x](lib.md#)\n")


class TestAssignments:
    """Test assignment paragraphs."""

    def test_plain_assignment(self):
        (stmt,) = body_of("# main\n\ncount = 0\n")
        assert stmt == AssignmentStatement(variable="count", value=Literal(0))

    @pytest.mark.parametrize("op", ["+", "-", "/"])
    def test_compound_assignment(self, op):
        (stmt,) = body_of(f"# main\n\ncount {op}= 2\n")
        assert stmt.operator == AssignmentOperator(op)

    def test_multiply_assignment(self):
        (stmt,) = body_of("# main\n\ncount *= 2\n")
        assert stmt.operator == AssignmentOperator.MULTIPLY

    def test_prose_is_ignored(self):
        assert body_of("# main\n\nThis function counts things.\n") == ()

    def test_bad_expression_is_an_error(self):
        with pytest.raises(ExpressionSyntaxError):
            parse_program("# main\n\nx = 1 +\n")


class TestConditionals:
    """Test level-2 headings and breaks."""

    def test_conditional_collects_following_statements(self):
        (cond,) = body_of("# main\n\n## *x > 1*\n\n**big**\n\nx = 0\n")
        assert isinstance(cond, ConditionalStatement)
        assert len(cond.body) == 2

    def test_break_resets_to_function_body(self):
        body = body_of("# main\n\n## *x > 1*\n\n**big**\n\n---\n\n**after**\n")
        cond, after = body
        assert cond.body == (PrintStatement(Literal("big")), BreakStatement())
        assert after == PrintStatement(Literal("after"))

    def test_conditionals_nest(self):
        body = body_of("# main\n\n## *a*\n\n## *b*\n\n**both**\n")
        (outer,) = body
        (inner,) = outer.body
        assert inner.condition == Identifier("b")
        assert inner.body == (PrintStatement(Literal("both")),)

    def test_heading_without_emphasis_is_ignored(self):
        body = body_of("# main\n\n## Notes\n\n**hi**\n")
        assert body == (PrintStatement(Literal("hi")),)

    def test_top_level_break(self):
        assert body_of("# main\n\n**a**\n\n---\n\n**b**\n")[1] == BreakStatement()


class TestInput:
    """Test blockquotes."""

    def test_blockquote_reads_variable(self):
        assert body_of("# main\n\n> name\n") == (InputStatement("name"),)

    def test_blockquote_prose_is_ignored(self):
        assert body_of("# main\n\n> a quoted remark\n") == ()


class TestFiles:
    """Test reading programs from disk."""

    def test_base_dir_is_file_directory(self, tmp_path):
        path = tmp_path / "prog.md"
        path.write_text("# main\n\n**hi**\n", encoding="utf-8")
        program = parse_program_file(str(path))
        assert program.base_dir == str(tmp_path)
        assert program.source_path == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProgramLookupError):
            parse_program_file(str(tmp_path / "nope.md"))

    def test_directory_is_a_lookup_error(self, tmp_path):
        with pytest.raises(ProgramLookupError, match="Cannot read program file"):
            parse_program_file(str(tmp_path))

    def test_undecodable_file_is_a_transform_error(self, tmp_path):
        path = tmp_path / "latin.md"
        path.write_bytes(b"# main\n\n**caf\xe9**\n")
        with pytest.raises(TransformError, match="not valid utf-8"):
            parse_program_file(str(path))

    def test_other_encoding_reads(self, tmp_path):
        path = tmp_path / "latin.md"
        path.write_bytes(b"# main\n\n**caf\xe9**\n")
        program = parse_program_file(str(path), encoding="latin-1")
        assert program.functions["main"].body == (PrintStatement(Literal("café")),)
