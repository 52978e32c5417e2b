"""
x86-64 Subset Machine
=====================

This module executes the assembly text produced by minicc's code generator
without an assembler, linker or x86-64 host. It understands exactly the
instruction forms the generator emits and rejects everything else.

Machine Model
-------------
- Registers: RAX, RDX, RDI, RBP, RSP (64-bit), with AL as the low byte of RAX
- Values: unsigned 64-bit words internally, two's complement semantics
- Memory: sparse 8-byte words keyed by address; unwritten words read as 0
- Flags: the signed operands of the last CMP, consumed by the SETcc family

Supported Instructions
----------------------
| Mnemonic        | Operand forms                           |
|-----------------|-----------------------------------------|
| push            | reg, imm32                              |
| pop             | reg                                     |
| mov             | reg, reg/imm/[mem] ; [mem], reg         |
| lea             | reg, [mem]                              |
| add, sub, imul  | reg, reg                                |
| cqo             | -                                       |
| idiv            | reg                                     |
| cmp             | reg, reg                                |
| sete/setne/setl/setle | al                                |
| movzx           | reg, al                                 |
| jmp             | label                                   |
| ret             | -                                       |

Execution starts at `main` with a sentinel return address on the stack;
the `ret` that pops the sentinel ends the run.

Usage
-----
>>> from minicc.cc import compile_source
>>> from minicc.emulator import run_assembly
>>> run_assembly(compile_source("a=3; b=a+2; a*b;"))
15
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from minicc.errors import EmulatorError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

WORD_MASK = (1 << 64) - 1
SIGN_BIT = 1 << 63

REGISTERS = ("rax", "rdx", "rdi", "rbp", "rsp")

# Initial stack pointer; the stack grows down from here
STACK_TOP = 0x7FFF_F000

# Return address pushed before entering main
RETURN_SENTINEL = 0xDEAD_0000

# RBP inside main: below the sentinel and the saved RBP
MAIN_FRAME_BASE = STACK_TOP - 16

DEFAULT_MAX_STEPS = 1_000_000

ENTRY_LABEL = "main"

_KNOWN_DIRECTIVES = (".intel_syntax", ".globl", ".global", ".text")

_MEMORY_OPERAND = re.compile(r"^\[\s*([a-z]+)\s*(?:([+-])\s*(\d+)\s*)?\]$")
_IMMEDIATE = re.compile(r"^-?\d+$")

_SET_CONDITIONS = {
    "sete": lambda left, right: left == right,
    "setne": lambda left, right: left != right,
    "setl": lambda left, right: left < right,
    "setle": lambda left, right: left <= right,
}


def to_signed(value: int) -> int:
    """Interpret a 64-bit word as a two's complement signed integer."""
    value &= WORD_MASK
    return value - (1 << 64) if value & SIGN_BIT else value


def exit_status(value: int) -> int:
    """The process exit status a return value produces (its low 8 bits)."""
    return value & 0xFF


# =============================================================================
# Program Representation
# =============================================================================

@dataclass
class Instruction:
    """
    One decoded instruction.

    Attributes:
        mnemonic: Lowercase instruction name
        operands: Operand strings with surrounding whitespace removed
        line_number: 1-indexed line in the assembly text
    """
    mnemonic: str
    operands: list[str] = field(default_factory=list)
    line_number: int = 0

    def __str__(self) -> str:
        if not self.operands:
            return self.mnemonic
        return f"{self.mnemonic} {', '.join(self.operands)}"


@dataclass
class Program:
    """Decoded assembly: the instruction list and label positions."""
    instructions: list[Instruction] = field(default_factory=list)
    labels: dict[str, int] = field(default_factory=dict)


def parse_assembly(text: str) -> Program:
    """
    Decode assembly text into instructions and labels.

    Comments (from '#' to end of line), blank lines and known directives
    are skipped.

    Raises:
        EmulatorError: On an unknown directive or a duplicate label
    """
    program = Program()

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue

        if line.endswith(":"):
            label = line[:-1].strip()
            if label in program.labels:
                raise EmulatorError(f"duplicate label '{label}'", line_number)
            program.labels[label] = len(program.instructions)
            continue

        if line.startswith("."):
            directive = line.split()[0]
            if directive not in _KNOWN_DIRECTIVES:
                raise EmulatorError(f"unsupported directive '{directive}'", line_number)
            continue

        parts = line.split(None, 1)
        operands = []
        if len(parts) > 1:
            operands = [operand.strip() for operand in parts[1].split(",")]
        program.instructions.append(Instruction(parts[0].lower(), operands, line_number))

    return program


# =============================================================================
# Machine
# =============================================================================

class Machine:
    """
    Executes a decoded program.

    Usage:
        machine = Machine()
        machine.load(assembly_text)
        value = machine.run()

    Attributes:
        max_steps: Instructions executed before the run is aborted
        steps: Instructions executed by the last run
    """

    def __init__(self, max_steps: int = DEFAULT_MAX_STEPS):
        self.max_steps = max_steps
        self.program = Program()
        self.registers: dict[str, int] = {}
        self.memory: dict[int, int] = {}
        self.steps = 0
        self._compare: Optional[tuple[int, int]] = None
        self._pc = 0
        self._halted = False
        self.reset()

    def reset(self) -> None:
        """Clear registers, memory and flags; keep the loaded program."""
        self.registers = {name: 0 for name in REGISTERS}
        self.registers["rsp"] = STACK_TOP
        self.memory = {}
        self.steps = 0
        self._compare = None
        self._pc = 0
        self._halted = False

    def load(self, text: str) -> None:
        """Decode assembly text and reset the machine."""
        self.program = parse_assembly(text)
        self.reset()

    def run(self, entry: str = ENTRY_LABEL) -> int:
        """
        Run from `entry` until it returns.

        Returns:
            The signed 64-bit value of RAX

        Raises:
            EmulatorError: On an unsupported instruction, an unknown label,
                division by zero, or when max_steps is exceeded
        """
        self.reset()
        self._pc = self._label_address(entry, 0)
        self._push(RETURN_SENTINEL)

        while not self._halted:
            if self.steps >= self.max_steps:
                raise EmulatorError(f"step limit of {self.max_steps} exceeded")
            if self._pc >= len(self.program.instructions):
                raise EmulatorError("execution ran past the last instruction")

            instruction = self.program.instructions[self._pc]
            self._pc += 1
            self.steps += 1
            self._execute(instruction)

        logger.debug("executed %d instructions", self.steps)
        return to_signed(self.registers["rax"])

    @property
    def rax(self) -> int:
        """Signed value of RAX."""
        return to_signed(self.registers["rax"])

    def read_variable(self, name: str) -> int:
        """Signed value of a single-letter variable in main's frame."""
        offset = (ord(name) - ord("a") + 1) * 8
        return to_signed(self._read_memory(MAIN_FRAME_BASE - offset))

    # =========================================================================
    # Stack and Memory
    # =========================================================================

    def _push(self, value: int) -> None:
        self.registers["rsp"] = (self.registers["rsp"] - 8) & WORD_MASK
        self._write_memory(self.registers["rsp"], value)

    def _pop(self) -> int:
        value = self._read_memory(self.registers["rsp"])
        self.registers["rsp"] = (self.registers["rsp"] + 8) & WORD_MASK
        return value

    def _read_memory(self, address: int) -> int:
        return self.memory.get(address & WORD_MASK, 0)

    def _write_memory(self, address: int, value: int) -> None:
        self.memory[address & WORD_MASK] = value & WORD_MASK

    # =========================================================================
    # Operand Decoding
    # =========================================================================

    def _register(self, operand: str, instruction: Instruction) -> str:
        if operand not in REGISTERS:
            raise self._unsupported(instruction)
        return operand

    def _address(self, operand: str, instruction: Instruction) -> int:
        """Effective address of a [reg], [reg+N] or [reg-N] operand."""
        match = _MEMORY_OPERAND.match(operand)
        if match is None or match.group(1) not in REGISTERS:
            raise self._unsupported(instruction)
        base, sign, displacement = match.groups()
        address = self.registers[base]
        if displacement is not None:
            address += int(displacement) if sign == "+" else -int(displacement)
        return address & WORD_MASK

    def _source_value(self, operand: str, instruction: Instruction) -> int:
        """Value of a register, immediate or memory source operand."""
        if operand in REGISTERS:
            return self.registers[operand]
        if _IMMEDIATE.match(operand):
            return int(operand) & WORD_MASK
        return self._read_memory(self._address(operand, instruction))

    def _label_address(self, label: str, line_number: int) -> int:
        if label not in self.program.labels:
            raise EmulatorError(f"unknown label '{label}'", line_number)
        return self.program.labels[label]

    def _unsupported(self, instruction: Instruction) -> EmulatorError:
        return EmulatorError(f"unsupported instruction '{instruction}'", instruction.line_number)

    def _expect_operands(self, instruction: Instruction, count: int) -> list[str]:
        if len(instruction.operands) != count:
            raise self._unsupported(instruction)
        return instruction.operands

    # =========================================================================
    # Instruction Execution
    # =========================================================================

    def _execute(self, instruction: Instruction) -> None:
        """Execute a single decoded instruction."""
        match instruction.mnemonic:
            case "push":
                self._op_push(instruction)
            case "pop":
                self._op_pop(instruction)
            case "mov":
                self._op_mov(instruction)
            case "lea":
                self._op_lea(instruction)
            case "add":
                self._op_add(instruction)
            case "sub":
                self._op_sub(instruction)
            case "imul":
                self._op_imul(instruction)
            case "cqo":
                self._op_cqo(instruction)
            case "idiv":
                self._op_idiv(instruction)
            case "cmp":
                self._op_cmp(instruction)
            case "sete" | "setne" | "setl" | "setle":
                self._op_setcc(instruction)
            case "movzx":
                self._op_movzx(instruction)
            case "jmp":
                self._op_jmp(instruction)
            case "ret":
                self._op_ret(instruction)
            case _:
                raise self._unsupported(instruction)

    def _op_push(self, instruction: Instruction) -> None:
        (operand,) = self._expect_operands(instruction, 1)
        if operand in REGISTERS:
            self._push(self.registers[operand])
        elif _IMMEDIATE.match(operand) and -(2**31) <= int(operand) < 2**31:
            self._push(int(operand))
        else:
            raise self._unsupported(instruction)

    def _op_pop(self, instruction: Instruction) -> None:
        (operand,) = self._expect_operands(instruction, 1)
        self.registers[self._register(operand, instruction)] = self._pop()

    def _op_mov(self, instruction: Instruction) -> None:
        dest, src = self._expect_operands(instruction, 2)
        if dest.startswith("["):
            value = self.registers[self._register(src, instruction)]
            self._write_memory(self._address(dest, instruction), value)
        else:
            dest = self._register(dest, instruction)
            self.registers[dest] = self._source_value(src, instruction)

    def _op_lea(self, instruction: Instruction) -> None:
        dest, src = self._expect_operands(instruction, 2)
        self.registers[self._register(dest, instruction)] = self._address(src, instruction)

    def _op_add(self, instruction: Instruction) -> None:
        dest, src = self._expect_operands(instruction, 2)
        dest = self._register(dest, instruction)
        value = self._source_value(src, instruction)
        self.registers[dest] = (self.registers[dest] + value) & WORD_MASK

    def _op_sub(self, instruction: Instruction) -> None:
        dest, src = self._expect_operands(instruction, 2)
        dest = self._register(dest, instruction)
        value = self._source_value(src, instruction)
        self.registers[dest] = (self.registers[dest] - value) & WORD_MASK

    def _op_imul(self, instruction: Instruction) -> None:
        dest, src = self._expect_operands(instruction, 2)
        dest = self._register(dest, instruction)
        product = to_signed(self.registers[dest]) * to_signed(self._source_value(src, instruction))
        self.registers[dest] = product & WORD_MASK

    def _op_cqo(self, instruction: Instruction) -> None:
        self._expect_operands(instruction, 0)
        self.registers["rdx"] = WORD_MASK if self.registers["rax"] & SIGN_BIT else 0

    def _op_idiv(self, instruction: Instruction) -> None:
        """Signed RDX:RAX / operand; quotient to RAX, remainder to RDX."""
        (operand,) = self._expect_operands(instruction, 1)
        divisor = to_signed(self.registers[self._register(operand, instruction)])
        if divisor == 0:
            raise EmulatorError("division by zero", instruction.line_number)

        dividend = (to_signed(self.registers["rdx"]) << 64) | self.registers["rax"]
        # Truncate toward zero, unlike Python's floor division
        quotient = abs(dividend) // abs(divisor)
        if (dividend < 0) != (divisor < 0):
            quotient = -quotient
        if not -(2**63) <= quotient < 2**63:
            raise EmulatorError("division overflow", instruction.line_number)

        remainder = dividend - quotient * divisor
        self.registers["rax"] = quotient & WORD_MASK
        self.registers["rdx"] = remainder & WORD_MASK

    def _op_cmp(self, instruction: Instruction) -> None:
        left, right = self._expect_operands(instruction, 2)
        self._compare = (
            to_signed(self.registers[self._register(left, instruction)]),
            to_signed(self._source_value(right, instruction)),
        )

    def _op_setcc(self, instruction: Instruction) -> None:
        (operand,) = self._expect_operands(instruction, 1)
        if operand != "al":
            raise self._unsupported(instruction)
        if self._compare is None:
            raise EmulatorError(f"'{instruction.mnemonic}' without a preceding cmp", instruction.line_number)
        result = 1 if _SET_CONDITIONS[instruction.mnemonic](*self._compare) else 0
        self.registers["rax"] = (self.registers["rax"] & ~0xFF & WORD_MASK) | result

    def _op_movzx(self, instruction: Instruction) -> None:
        dest, src = self._expect_operands(instruction, 2)
        if src != "al":
            raise self._unsupported(instruction)
        self.registers[self._register(dest, instruction)] = self.registers["rax"] & 0xFF

    def _op_jmp(self, instruction: Instruction) -> None:
        (label,) = self._expect_operands(instruction, 1)
        self._pc = self._label_address(label, instruction.line_number)

    def _op_ret(self, instruction: Instruction) -> None:
        self._expect_operands(instruction, 0)
        target = self._pop()
        if target != RETURN_SENTINEL:
            raise EmulatorError(f"return to unknown address {target:#x}", instruction.line_number)
        self._halted = True


# =============================================================================
# Convenience Functions
# =============================================================================

def run_assembly(text: str, max_steps: int = DEFAULT_MAX_STEPS) -> int:
    """Execute assembly text and return main's signed 64-bit result."""
    machine = Machine(max_steps=max_steps)
    machine.load(text)
    return machine.run()
