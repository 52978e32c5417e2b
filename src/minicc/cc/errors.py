"""
Compiler Error Hierarchy
========================

This module defines the exceptions raised by the compiler pipeline.
All of them inherit from CompileError, which itself inherits from the
base MiniCCError for consistent error handling across the package.

Exception Hierarchy
-------------------
CompileError (base for all pipeline errors)
├── LexError - character that matches no token rule
├── ParseError - missing/unexpected token, malformed primary
├── CodegenError - assignment to a non-lvalue
└── UsageError - wrong number of command-line arguments

Error Message Format
--------------------
Lex and parse errors carry the offending offset and the program text, and
render as the text followed by a caret under the failing column:

    1+;
      ^ expected an expression

Errors without source context render as a plain line:

    error: not an lvalue
"""

from typing import Optional

from minicc.errors import MiniCCError, SourceLocation


# =============================================================================
# Base Compiler Exception
# =============================================================================

class CompileError(MiniCCError):
    """
    Base exception for all compiler pipeline errors.

    Every error is terminal: the pipeline never recovers and never returns
    partial output once one of these has been raised.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        source: The full program text, used for the caret display (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.source = source
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the message, with a caret display when source is known.

        Example output:
            a=1 $ 2;
                ^ invalid token
        """
        if self.location is None or self.source is None:
            return f"error: {self.message}"

        lines = self.source.split("\n")
        source_line = lines[self.location.line - 1]
        padding = " " * (self.location.column - 1)
        return f"{source_line}\n{padding}^ {self.message}"


# =============================================================================
# Pipeline Errors
# =============================================================================

class LexError(CompileError):
    """
    The lexer met a character that starts no token.

    Examples:
        - Uppercase or non-ASCII letters
        - Integer literal too large for a 64-bit signed value
    """
    pass


class ParseError(CompileError):
    """
    The token sequence violates the grammar.

    Examples:
        - Missing semicolon
        - Mismatched parentheses
        - Trailing operator with no operand
    """
    pass


class CodegenError(CompileError):
    """
    Semantic error found while generating code.

    The only semantic check in the pipeline: the left side of an assignment
    must be a variable.

    Example:
        1 = 2;
    """
    pass


class UsageError(CompileError):
    """
    The command line did not supply exactly one source argument.
    """
    pass
