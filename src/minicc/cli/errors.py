"""
CLI Error Handling
==================

Converts exceptions into diagnostics on stderr and process exit codes.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Exit codes for mcc."""
    SUCCESS = 0
    COMPILE_ERROR = 1    # Lex, parse, codegen or usage error
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception and exit with the matching code.

    Compile errors print their own formatted text (caret display or
    "error: ..." line). Anything unexpected is an internal error; verbose
    mode adds the traceback.

    Raises:
        SystemExit: Always
    """
    from minicc.errors import MiniCCError

    if isinstance(error, MiniCCError):
        click.echo(str(error), err=True)
        sys.exit(ExitCode.COMPILE_ERROR)

    elif isinstance(error, (FileNotFoundError, PermissionError, IsADirectoryError)):
        # Unwritable -o target
        click.echo(f"error: {error}", err=True)
        sys.exit(ExitCode.COMPILE_ERROR)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
