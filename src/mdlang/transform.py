"""
Document transform (structural document tree → Program).

Markdown conventions:
    # name              function declaration
    - param             parameter of the function being built
    ## *guard*          conditional; nests inside the current block
    **text**            print (literal, `{expr}` or template)
    [a, b](#name)       call in this program
    [a](file.md#name)   call into another program
    name (op)= expr     assignment
    > name              read input into `name`
    ---                 break, then return to the function's top level

Paragraphs that match none of these, and anything outside a function,
are skipped without error.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from mdlang.document import DocumentNode, first_child_of_type, flatten_text, parse_markdown
from mdlang.errors import ProgramLookupError, TransformError
from mdlang.expression_parser import (
    has_template_segments,
    is_bare_expression,
    parse_arguments,
    parse_expression,
    parse_template,
)
from mdlang.expressions import Expression, Literal
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

logger = logging.getLogger(__name__)

_ASSIGNMENT = re.compile(r"^(\w+)\s*([-+*/])?=\s*(.+)$")
_VARIABLE = re.compile(r"^\w+$")


@dataclass
class _ConditionalBuilder:
    condition: Expression
    body: List = field(default_factory=list)


@dataclass
class _FunctionBuilder:
    name: str
    parameters: List[str] = field(default_factory=list)
    body: List = field(default_factory=list)


def _freeze(entry: Union[Statement, _ConditionalBuilder]) -> Statement:
    if isinstance(entry, _ConditionalBuilder):
        return ConditionalStatement(
            condition=entry.condition,
            body=tuple(_freeze(child) for child in entry.body),
        )
    return entry


def parse_print(node: DocumentNode) -> PrintStatement:
    """
    Build a print from a strong span.

    `{expr}` alone prints the raw value; text mixing `{...}` segments is a
    template; anything else prints literally.
    """
    text = flatten_text(node)
    if is_bare_expression(text):
        return PrintStatement(parse_expression(text[1:-1]))
    if has_template_segments(text):
        return PrintStatement(parse_template(text))
    return PrintStatement(Literal(text))


def parse_call(link: DocumentNode) -> CallStatement:
    """
    Build a call from a link.

    Targets: `#name` (this program), `path#name` (another program) or
    a bare `name` (this program, older form).

    Raises:
        TransformError: If the target names no function
    """
    arguments = parse_arguments(flatten_text(link))
    target = link.url or ""
    external_file = None

    if target.startswith("#"):
        function_name = target[1:]
    elif "#" in target:
        external_file, function_name = target.split("#", 1)
    else:
        function_name = target

    if not function_name:
        raise TransformError(f"Call target '{target}' names no function")

    return CallStatement(
        function_name=function_name,
        arguments=arguments,
        external_file=external_file,
    )


def parse_paragraph(node: DocumentNode) -> Optional[Statement]:
    """
    Turn a paragraph into a statement.

    Returns:
        PrintStatement, CallStatement, AssignmentStatement, or None when
        the paragraph is ordinary prose

    Raises:
        ExpressionSyntaxError: If an embedded expression is malformed
    """
    children = [
        child for child in node.children
        if not (child.type == "text" and not (child.value or "").strip())
    ]

    if len(children) == 1 and children[0].type == "strong":
        return parse_print(children[0])

    if len(children) == 1 and children[0].type == "link":
        return parse_call(children[0])

    match = _ASSIGNMENT.match(flatten_text(node))
    if match:
        variable, operator, value = match.groups()
        return AssignmentStatement(
            variable=variable,
            value=parse_expression(value),
            operator=AssignmentOperator(operator) if operator else None,
        )

    return None


def parse_input(node: DocumentNode) -> Optional[InputStatement]:
    """Build an input read from a blockquote naming the target variable."""
    name = flatten_text(node)
    if _VARIABLE.match(name):
        return InputStatement(variable=name)
    return None


def program_from_document(
    root: DocumentNode,
    base_dir: Optional[str] = None,
    source_path: Optional[str] = None,
) -> Program:
    """
    Walk the top-level nodes of a document and build a Program.

    Args:
        root: Structural document tree (type "root")
        base_dir: Directory for resolving external calls
        source_path: Where the document was read from, if anywhere

    Returns:
        Program with one FunctionDeclaration per level-1 heading

    Raises:
        ExpressionSyntaxError: If an embedded expression is malformed
    """
    functions: Dict[str, _FunctionBuilder] = {}
    current_function: Optional[_FunctionBuilder] = None
    current_block: Optional[List] = None

    for node in root.children:
        if node.type == "heading" and node.depth == 1:
            name = flatten_text(node)
            if name in functions:
                logger.debug("Function '%s' redefined; keeping the later one", name)
            current_function = _FunctionBuilder(name=name)
            current_block = current_function.body
            functions[name] = current_function

        elif current_function is None:
            logger.debug("Skipping %s outside any function", node.type)

        elif node.type == "heading" and node.depth == 2:
            emphasis = first_child_of_type(node, "emphasis")
            guard = flatten_text(emphasis) if emphasis is not None else ""
            if guard:
                conditional = _ConditionalBuilder(condition=parse_expression(guard))
                current_block.append(conditional)
                current_block = conditional.body
            else:
                logger.debug("Skipping level-2 heading without a guard")

        elif node.type == "list" and not node.ordered:
            for item in node.children:
                current_function.parameters.append(flatten_text(item))

        elif node.type == "paragraph":
            statement = parse_paragraph(node)
            if statement is not None:
                current_block.append(statement)
            else:
                logger.debug("Skipping paragraph: %r", flatten_text(node))

        elif node.type == "blockquote":
            statement = parse_input(node)
            if statement is not None:
                current_block.append(statement)
            else:
                logger.debug("Skipping blockquote: %r", flatten_text(node))

        elif node.type == "thematicBreak":
            current_block.append(BreakStatement())
            current_block = current_function.body

        else:
            logger.debug("Ignoring %s node", node.type)

    program = Program(base_dir=base_dir, source_path=source_path)
    for name, builder in functions.items():
        program.functions[name] = FunctionDeclaration(
            name=builder.name,
            parameters=tuple(builder.parameters),
            body=tuple(_freeze(entry) for entry in builder.body),
        )
    return program


def parse_program(
    source: str,
    base_dir: Optional[str] = None,
    source_path: Optional[str] = None,
) -> Program:
    """
    Parse markdown source into a Program.

    Args:
        source: Markdown text
        base_dir: Directory for resolving external calls (defaults to the
            current working directory at run time)
        source_path: Absolute path the source came from, if any

    Returns:
        Program
    """
    return program_from_document(parse_markdown(source), base_dir=base_dir, source_path=source_path)


def parse_program_file(filepath: str, encoding: str = "utf-8") -> Program:
    """
    Read and parse a markdown program file.

    The file's directory becomes the program's base directory.

    Raises:
        ProgramLookupError: If the file does not exist or cannot be read
        TransformError: If the file does not decode with `encoding`
    """
    full_path = os.path.abspath(filepath)
    try:
        with open(full_path, "r", encoding=encoding) as f:
            content = f.read()
    except FileNotFoundError:
        raise ProgramLookupError(f"Program file not found: {filepath}")
    except OSError as e:
        raise ProgramLookupError(f"Cannot read program file {filepath}: {e.strerror or e}")
    except UnicodeDecodeError as e:
        raise TransformError(f"Program file {filepath} is not valid {encoding}: {e.reason} at byte {e.start}")

    return parse_program(content, base_dir=os.path.dirname(full_path), source_path=full_path)


__all__ = [
    "program_from_document",
    "parse_program",
    "parse_program_file",
    "parse_paragraph",
    "parse_print",
    "parse_call",
    "parse_input",
]
