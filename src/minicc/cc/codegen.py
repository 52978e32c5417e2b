"""
x86-64 Code Generator
=====================

This module turns the AST into x86-64 assembly for the GNU assembler in
Intel syntax. The output is meant to be assembled and linked by the host
C toolchain, e.g. `cc -o prog out.s`.

Code Generation Strategy
------------------------
The generator is a post-order tree walk over a virtual evaluation stack
realized on the hardware stack:

1. Every expression leaves exactly one 8-byte value on the stack
2. A binary node evaluates its left operand, then its right operand,
   pops the right into RDI and the left into RAX, combines, pushes RAX
3. Statements drop their expression's value; a return statement moves it
   into RAX and jumps to the single shared epilogue

Register Usage
--------------
| Register | Usage                                   |
|----------|-----------------------------------------|
| RAX      | Left operand, result, return value      |
| RDI      | Right operand, value being stored       |
| RBP      | Frame pointer; variables sit below it   |
| RSP      | Evaluation stack                        |

Stack Frame Layout
------------------
    +----------------+ <- RBP
    | a              |  [rbp-8]
    | b              |  [rbp-16]
    | ...            |
    | z              |  [rbp-208]
    +----------------+ <- RSP after the prologue
    | temp values    |  (evaluation stack)
    +----------------+

All 26 slots are reserved up front whether or not the program uses them.

Generated Assembly Format
-------------------------
    .intel_syntax noprefix
    .globl main
    main:
        push rbp
        mov rbp, rsp
        sub rsp, 208
        ... one block per statement ...
    .Lreturn:
        mov rsp, rbp
        pop rbp
        ret

Usage
-----
>>> from minicc.cc.parser import parse_source
>>> from minicc.cc.codegen import CodeGenerator
>>> asm = CodeGenerator().generate(parse_source("return 42;"))
"""

import logging

from minicc.cc.ast import (
    ProgramNode,
    Statement,
    ReturnStatement,
    ExpressionStatement,
    Expression,
    BinaryExpression,
    AssignmentExpression,
    VariableExpression,
    NumberLiteral,
    BinaryOperator,
)
from minicc.cc.errors import CodegenError

logger = logging.getLogger(__name__)


WORD_SIZE = 8
VARIABLE_COUNT = 26
FRAME_SIZE = VARIABLE_COUNT * WORD_SIZE

RETURN_LABEL = ".Lreturn"

# Immediate operands of push are sign-extended 32-bit values
_IMM32_MIN = -(2**31)
_IMM32_MAX = 2**31 - 1

_ARITHMETIC = {
    BinaryOperator.ADD: ("add rax, rdi",),
    BinaryOperator.SUBTRACT: ("sub rax, rdi",),
    BinaryOperator.MULTIPLY: ("imul rax, rdi",),
    BinaryOperator.DIVIDE: ("cqo", "idiv rdi"),
}

_SET_CONDITION = {
    BinaryOperator.EQUAL: "sete",
    BinaryOperator.NOT_EQUAL: "setne",
    BinaryOperator.LESS: "setl",
    BinaryOperator.LESS_EQ: "setle",
}


def variable_offset(name: str) -> int:
    """
    Frame offset (below RBP) of a single-letter variable.

    The mapping is total over a-z and needs no symbol table:
    a -> 8, b -> 16, ..., z -> 208.
    """
    if len(name) != 1 or not "a" <= name <= "z":
        raise ValueError(f"not a variable name: {name!r}")
    return (ord(name) - ord("a") + 1) * WORD_SIZE


class CodeGenerator:
    """
    Generates x86-64 assembly from the AST.

    Attributes:
        emit_comments: Emit a "# stmt N" marker before each statement
    """

    def __init__(self, emit_comments: bool = False):
        self.emit_comments = emit_comments
        self._output: list[str] = []

    def generate(self, program: ProgramNode) -> str:
        """
        Generate a complete assembly program.

        Args:
            program: The root AST node

        Returns:
            Assembly text, newline-terminated

        Raises:
            CodegenError: If an assignment target is not a variable
        """
        self._output = []

        self._emit_prologue()
        for index, stmt in enumerate(program.statements, start=1):
            if self.emit_comments:
                self._emit(f"    # stmt {index}")
            self._generate_statement(stmt)
        self._emit_epilogue()

        logger.debug("emitted %d lines of assembly", len(self._output))
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, line: str) -> None:
        self._output.append(line)

    def _emit_label(self, label: str) -> None:
        self._emit(f"{label}:")

    def _emit_instruction(self, instruction: str) -> None:
        self._emit(f"    {instruction}")

    def _emit_prologue(self) -> None:
        self._emit(".intel_syntax noprefix")
        self._emit(".globl main")
        self._emit_label("main")
        self._emit_instruction("push rbp")
        self._emit_instruction("mov rbp, rsp")
        self._emit_instruction(f"sub rsp, {FRAME_SIZE}")

    def _emit_epilogue(self) -> None:
        self._emit_label(RETURN_LABEL)
        self._emit_instruction("mov rsp, rbp")
        self._emit_instruction("pop rbp")
        self._emit_instruction("ret")

    # =========================================================================
    # Statements
    # =========================================================================

    def _generate_statement(self, stmt: Statement) -> None:
        if isinstance(stmt, ExpressionStatement):
            self._generate_expression(stmt.expression)
            # Drop the value; RAX keeps it as the fall-through result
            self._emit_instruction("pop rax")
        elif isinstance(stmt, ReturnStatement):
            self._generate_expression(stmt.value)
            self._emit_instruction("pop rax")
            self._emit_instruction(f"jmp {RETURN_LABEL}")
        else:
            raise CodegenError(f"unsupported statement {type(stmt).__name__}", stmt.location)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _generate_expression(self, expr: Expression) -> None:
        """Emit code leaving the expression's value on top of the stack."""
        if isinstance(expr, NumberLiteral):
            self._generate_number(expr)
        elif isinstance(expr, VariableExpression):
            self._generate_address(expr)
            self._generate_load()
        elif isinstance(expr, AssignmentExpression):
            self._generate_assignment(expr)
        elif isinstance(expr, BinaryExpression):
            self._generate_binary(expr)
        else:
            raise CodegenError(f"unsupported expression {type(expr).__name__}", expr.location)

    def _generate_number(self, expr: NumberLiteral) -> None:
        if _IMM32_MIN <= expr.value <= _IMM32_MAX:
            self._emit_instruction(f"push {expr.value}")
        else:
            self._emit_instruction(f"mov rax, {expr.value}")
            self._emit_instruction("push rax")

    def _generate_address(self, expr: Expression) -> None:
        """Push the address of an lvalue."""
        if not isinstance(expr, VariableExpression):
            raise CodegenError("not an lvalue", expr.location)
        self._emit_instruction(f"lea rax, [rbp-{variable_offset(expr.name)}]")
        self._emit_instruction("push rax")

    def _generate_load(self) -> None:
        """Replace the address on top of the stack with the value stored there."""
        self._emit_instruction("pop rax")
        self._emit_instruction("mov rax, [rax]")
        self._emit_instruction("push rax")

    def _generate_store(self) -> None:
        """Pop value and address, store, and push the value back."""
        self._emit_instruction("pop rdi")
        self._emit_instruction("pop rax")
        self._emit_instruction("mov [rax], rdi")
        self._emit_instruction("push rdi")

    def _generate_assignment(self, expr: AssignmentExpression) -> None:
        self._generate_address(expr.target)
        self._generate_expression(expr.value)
        self._generate_store()

    def _generate_binary(self, expr: BinaryExpression) -> None:
        self._generate_expression(expr.left)
        self._generate_expression(expr.right)

        self._emit_instruction("pop rdi")
        self._emit_instruction("pop rax")

        if expr.operator in _ARITHMETIC:
            for instruction in _ARITHMETIC[expr.operator]:
                self._emit_instruction(instruction)
        elif expr.operator.is_comparison:
            self._emit_instruction("cmp rax, rdi")
            self._emit_instruction(f"{_SET_CONDITION[expr.operator]} al")
            self._emit_instruction("movzx rax, al")
        else:
            raise CodegenError(f"unsupported operator {expr.operator}", expr.location)

        self._emit_instruction("push rax")
