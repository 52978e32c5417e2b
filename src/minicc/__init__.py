"""
minicc - A Minimal Compiler for x86-64
======================================

This package compiles a tiny imperative expression language to x86-64
assembly text in GNU as Intel syntax. The output defines `main` and can be
assembled and linked with the host C toolchain; the program's result
becomes the process exit status.

Main Components
---------------
- **cc**: The compiler pipeline
    Lexer, recursive descent parser, AST and code generator

- **emulator**: Assembly interpreter
    Executes the generated assembly directly, without a host toolchain

- **cli**: The `mcc` command

Quick Start
-----------
Compile a program:
    >>> from minicc import compile_source
    >>> asm = compile_source("a = 3; b = a + 2; a * b;")

Run it without assembling:
    >>> from minicc.emulator import run_assembly
    >>> run_assembly(asm)
    15

Or use the command-line tool:
    $ mcc "a = 3; b = a + 2; a * b;" > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    15

Version History
---------------
1.0.0 - Multiple statements, single-letter variables and return
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from minicc.errors import MiniCCError, SourceLocation, EmulatorError
from minicc.cc import (
    Compiler,
    CompilerOptions,
    CompilerResult,
    compile_source,
    CompileError,
    LexError,
    ParseError,
    CodegenError,
    UsageError,
)

__all__ = [
    "__version__",
    # Compiler
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    # Errors
    "MiniCCError",
    "SourceLocation",
    "CompileError",
    "LexError",
    "ParseError",
    "CodegenError",
    "UsageError",
    "EmulatorError",
]
