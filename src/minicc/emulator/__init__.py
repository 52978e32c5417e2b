"""
minicc Emulator
===============

Executes minicc's generated x86-64 assembly directly in Python, so programs
can be checked on any host without an assembler or linker.

Quick Start
-----------

    >>> from minicc.cc import compile_source
    >>> from minicc.emulator import run_assembly, exit_status
    >>> value = run_assembly(compile_source("return 0 - 1;"))
    >>> value, exit_status(value)
    (-1, 255)

Only the instruction forms emitted by minicc.cc.codegen are supported; see
machine.py for the table.
"""

from minicc.errors import EmulatorError
from minicc.emulator.machine import (
    Machine,
    Instruction,
    Program,
    parse_assembly,
    run_assembly,
    exit_status,
    to_signed,
    DEFAULT_MAX_STEPS,
)

__all__ = [
    "Machine",
    "Instruction",
    "Program",
    "parse_assembly",
    "run_assembly",
    "exit_status",
    "to_signed",
    "DEFAULT_MAX_STEPS",
    "EmulatorError",
]
