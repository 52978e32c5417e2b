"""
minicc Error Hierarchy
======================

This module defines the base exception and source location types shared by
every part of minicc. All exceptions inherit from MiniCCError, allowing
callers to catch all minicc errors with a single except clause if desired.

Exception Hierarchy
-------------------
MiniCCError (base)
├── CompileError (compiler pipeline, see minicc.cc.errors)
│   ├── LexError - character that starts no token
│   ├── ParseError - grammar violation
│   ├── CodegenError - assignment to a non-variable
│   └── UsageError - wrong command-line argument count
└── EmulatorError - the built-in emulator could not execute the program

Design Philosophy
-----------------
Source positions are tracked as character offsets into the program text,
because the whole program is a single string handed over on the command
line. A SourceLocation also carries the derived line and column so that
messages stay readable when the program text spans several lines.
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class MiniCCError(Exception):
    """
    Base exception for all minicc errors.

    All exceptions in the package inherit from this class, allowing callers
    to catch all minicc-related errors with a single except clause:

        try:
            compile_source("a = 1;")
        except MiniCCError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source (or "<input>" for command-line text)
        offset: Zero-based character offset into the source
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    offset: int
    line: int = 1
    column: int = 1

    @classmethod
    def from_offset(cls, source: str, offset: int, filename: str = "<input>") -> "SourceLocation":
        """Build a location, deriving line and column from the offset."""
        line_start = source.rfind("\n", 0, offset) + 1
        line = source.count("\n", 0, offset) + 1
        return cls(filename, offset, line, offset - line_start + 1)

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Emulator Exceptions
# =============================================================================

class EmulatorError(MiniCCError):
    """
    Error executing generated assembly on the built-in emulator.

    Raised when:
    - An instruction or operand form outside the supported subset is met
    - A jump names a label that was never defined
    - The program divides by zero
    - The step limit is exceeded (runaway program)
    """

    def __init__(self, message: str, line_number: int = 0):
        self.message = message
        self.line_number = line_number
        if line_number:
            message = f"line {line_number}: {message}"
        super().__init__(message)
