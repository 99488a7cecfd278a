"""
markdownlang: programs written as markdown documents.

    # main                  a function
    **Hello, World!**       print
    count = 0               assignment
    ## *count < 5*          conditional
    [count](#loop)          call
    > name                  read input
    ---                     break

Pipeline:
    markdown text → structural document tree (document)
                  → Program (transform, expression_parser)
                  → output (engine, evaluator, runtime)
"""

__version__ = "0.1.0"

from mdlang.engine import Interpreter, ProgramCache, run, run_async
from mdlang.errors import (
    EvaluationError,
    ExecutionError,
    ExpressionSyntaxError,
    MarkdownLangError,
    ProgramLookupError,
    TransformError,
)
from mdlang.transform import parse_program, parse_program_file

__all__ = [
    "Interpreter",
    "ProgramCache",
    "run",
    "run_async",
    "parse_program",
    "parse_program_file",
    "MarkdownLangError",
    "ExpressionSyntaxError",
    "TransformError",
    "ProgramLookupError",
    "EvaluationError",
    "ExecutionError",
]
