"""
Compiler Driver
===============

This module runs the complete pipeline over one program text:

    Source → Lex → Parse → Generate → Assembly

Each stage runs to completion before the next one starts, and every call
builds a fresh lexer, parser and code generator; nothing is shared between
compilations.

Usage
-----
Command line:
    $ mcc "a=3; b=a+2; a*b;" > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    15

Programmatic:
    >>> from minicc.cc import compile_source
    >>> asm = compile_source("return 1+2*3;")

Error Handling
--------------
The first error aborts the compilation; no partial assembly is returned.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from minicc.cc.lexer import Lexer, Token
from minicc.cc.parser import Parser
from minicc.cc.codegen import CodeGenerator
from minicc.cc.ast import ProgramNode

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        filename: Name used in diagnostics ("<input>" for command-line text)
        emit_comments: Emit a "# stmt N" marker before each statement block
    """
    filename: str = "<input>"
    emit_comments: bool = False


@dataclass
class CompilerResult:
    """
    Result of a successful compilation.

    Attributes:
        source: The program text
        tokens: Token list produced by the lexer
        ast: The parsed program
        assembly: Generated assembly text
    """
    source: str = ""
    tokens: list[Token] = field(default_factory=list)
    ast: Optional[ProgramNode] = None
    assembly: str = ""

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class Compiler:
    """
    Runs the lex, parse and generate stages over one program.

    Example:
        result = Compiler().compile_source("a=1; return a+1;")
        print(result.assembly)
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str) -> CompilerResult:
        """
        Compile program text to assembly.

        Raises:
            LexError, ParseError, CodegenError: On the first error found
        """
        result = CompilerResult(source=source)
        filename = self.options.filename

        result.tokens = self.tokenize(source)
        result.ast = Parser(result.tokens, source, filename).parse()

        generator = CodeGenerator(emit_comments=self.options.emit_comments)
        result.assembly = generator.generate(result.ast)

        logger.debug(
            "compiled %s: %d tokens, %d statements",
            filename, result.token_count, len(result.ast.statements),
        )
        return result

    def tokenize(self, source: str) -> list[Token]:
        """Run only the lexer stage."""
        return Lexer(source, self.options.filename).tokenize()

    def parse(self, source: str) -> ProgramNode:
        """Run the lexer and parser stages."""
        return Parser(self.tokenize(source), source, self.options.filename).parse()


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(source: str, filename: str = "<input>") -> str:
    """
    Compile program text and return the assembly.

    This is the primary high-level interface.

    Example:
        >>> asm = compile_source("1+2*3;")
        >>> asm.splitlines()[0]
        '.intel_syntax noprefix'
    """
    compiler = Compiler(CompilerOptions(filename=filename))
    return compiler.compile_source(source).assembly
