"""
Error taxonomy for markdownlang.

Every failure is fatal to the run that raised it. Callers surface the
message to the user; nothing inside the language can catch these.
"""

from typing import Any, List, Optional


class MarkdownLangError(Exception):
    """Base class for every error raised by the language."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Output printed before the failure, attached by the engine.
        self.output: Optional[List[Any]] = None


class ExpressionSyntaxError(MarkdownLangError):
    """Raised when expression text is not well formed."""

    def __init__(self, message: str, text: str = "", position: Optional[int] = None):
        if position is not None:
            message = f"{message} at position {position} in '{text}'"
        elif text:
            message = f"{message} in '{text}'"
        super().__init__(message)
        self.text = text
        self.position = position


class TransformError(MarkdownLangError):
    """Raised when a document cannot be turned into a program."""
    pass


class ProgramLookupError(MarkdownLangError, LookupError):
    """Raised when an entry function, function or program file is missing."""
    pass


class EvaluationError(MarkdownLangError):
    """Raised for unknown expression nodes/operators and calls in expressions."""
    pass


class ExecutionError(MarkdownLangError):
    """Raised for unknown statements and exhausted call depth."""
    pass


__all__ = [
    "MarkdownLangError",
    "ExpressionSyntaxError",
    "TransformError",
    "ProgramLookupError",
    "EvaluationError",
    "ExecutionError",
]
