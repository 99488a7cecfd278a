"""
Core Program Model Objects

Defines what the document transform produces and the engine executes:
    - Statements (print, assignment, call, conditional, break, input)
    - Function declarations (name, parameters, body)
    - Programs (function table + base directory)

ARCHITECTURAL RULE:
    These objects hold structure only. Statements and declarations are
    immutable once built; a Program's function table is filled in by the
    transform and then only read.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .expressions import Expression


class Statement:
    """Base class for every statement kind."""
    pass


@dataclass(frozen=True)
class PrintStatement(Statement):
    """`**...**` paragraph: print the value of `expression`."""

    expression: Expression


class AssignmentOperator(Enum):
    """Compound assignment operators. A plain `=` has no operator."""
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


@dataclass(frozen=True)
class AssignmentStatement(Statement):
    """
    `name = expr` or `name <op>= expr`.

    Properties:
        variable: Target name in the current frame
        value: Right-hand side
        operator: None for a plain replace
    """

    variable: str
    value: Expression
    operator: Optional[AssignmentOperator] = None


@dataclass(frozen=True)
class CallStatement(Statement):
    """
    `[args](#name)` or `[args](path.md#name)` paragraph.

    Properties:
        function_name: Function to call
        arguments: Argument expressions, in order
        external_file: Relative path of another program, or None for a
            call into the same program
    """

    function_name: str
    arguments: Tuple[Expression, ...] = ()
    external_file: Optional[str] = None


@dataclass(frozen=True)
class ConditionalStatement(Statement):
    """`## *guard*` heading: run `body` when `condition` is truthy."""

    condition: Expression
    body: Tuple[Statement, ...] = ()


@dataclass(frozen=True)
class BreakStatement(Statement):
    """`---`: leave the current function activation."""
    pass


@dataclass(frozen=True)
class InputStatement(Statement):
    """`> name` blockquote: read the next input value into `variable`."""

    variable: str


@dataclass(frozen=True)
class FunctionDeclaration:
    """
    A level-1 heading and everything up to the next one.

    Properties:
        name: Heading text
        parameters: Names bound positionally from call arguments
        body: Top-level statements, in order
    """

    name: str
    parameters: Tuple[str, ...] = ()
    body: Tuple[Statement, ...] = ()


@dataclass
class Program:
    """
    Root container for one parsed document.

    Properties:
        functions: Function table; a later declaration of the same name
            replaces the earlier one
        base_dir: Directory against which external call paths resolve
        source_path: Absolute path of the document, when it came from a file

    INVARIANTS:
        - Keys of `functions` equal the declarations' names
    """

    functions: Dict[str, FunctionDeclaration] = field(default_factory=dict)
    base_dir: Optional[str] = None
    source_path: Optional[str] = None

    def get_function(self, name: str) -> Optional[FunctionDeclaration]:
        """
        Retrieve a function by name.

        Args:
            name: Function name

        Returns:
            FunctionDeclaration or None if not declared
        """
        return self.functions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.functions
