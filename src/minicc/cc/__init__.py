"""
minicc Compiler Pipeline
========================

This package implements the compiler for a small imperative expression
language, targeting x86-64 assembly (GNU as, Intel syntax).

- A lexer producing the complete token list up front
- A recursive descent parser producing one AST per statement
- A code generator emitting stack-machine style assembly

Pipeline
--------
    Source → Lexer → Parser → AST → Code Generator → Assembly

The generated assembly can be assembled and linked with the host C
toolchain, or executed directly with minicc.emulator.

Usage
-----
>>> from minicc.cc import compile_source
>>> print(compile_source("a = 3; b = a + 2; a * b;"))

Language
--------
- A single 64-bit signed integer type
- Variables: the 26 single letters a-z, always available
- Operators: + - * / == != < <= > >= and assignment (=)
- Statements: expression ";" and "return" expression ";"
"""

from minicc.cc.compiler import Compiler, CompilerOptions, CompilerResult, compile_source
from minicc.cc.errors import (
    CompileError,
    LexError,
    ParseError,
    CodegenError,
    UsageError,
)
from minicc.cc.lexer import Lexer, Token, TokenType, tokenize
from minicc.cc.parser import Parser, parse_source
from minicc.cc.codegen import CodeGenerator, FRAME_SIZE, variable_offset
from minicc.cc.ast import (
    ASTNode,
    ASTPrinter,
    ProgramNode,
    ReturnStatement,
    ExpressionStatement,
    BinaryExpression,
    AssignmentExpression,
    VariableExpression,
    NumberLiteral,
    BinaryOperator,
)

__all__ = [
    # Main API
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    # Errors
    "CompileError",
    "LexError",
    "ParseError",
    "CodegenError",
    "UsageError",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    # Parser
    "Parser",
    "parse_source",
    # Code Generator
    "CodeGenerator",
    "FRAME_SIZE",
    "variable_offset",
    # AST Nodes
    "ASTNode",
    "ASTPrinter",
    "ProgramNode",
    "ReturnStatement",
    "ExpressionStatement",
    "BinaryExpression",
    "AssignmentExpression",
    "VariableExpression",
    "NumberLiteral",
    "BinaryOperator",
]
