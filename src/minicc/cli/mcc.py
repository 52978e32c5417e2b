"""
mcc - minicc Command-Line Interface
===================================

This module implements the command-line interface for the compiler. The
program text is passed as the single positional argument and the assembly
is written to stdout.

Usage Examples
--------------
Basic compilation:
    $ mcc "1+2*3;" > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    7

With output file:
    $ mcc -o prog.s "a=3; b=a+2; a*b;"

Run on the built-in emulator:
    $ mcc --run "a=1; return a+1;"
    2

Inspect the front end:
    $ mcc --tokens "a=1;"
    $ mcc --ast "a=1;"

Verbose mode:
    $ mcc -v "1;"
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from minicc import __version__
from minicc.cc import Compiler, CompilerOptions, UsageError
from minicc.cc.ast import ASTPrinter
from minicc.cli.errors import handle_cli_exception
from minicc.emulator import Machine, exit_status

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging on stderr; stdout stays assembly-only."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s" if verbose else "%(message)s",
        stream=sys.stderr,
    )


# =============================================================================
# CLI Definition
# =============================================================================

class ProgramCommand(click.Command):
    """
    Command whose positional arguments are program text, never options.

    Program text such as "-v;" or "-o;" looks like a cluster of short
    options to click. Only arguments that are exactly a declared option name
    (or "--name=value") are parsed as options; everything else is moved
    behind "--" so click passes it through untouched.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        declared = {}
        for param in self.get_params(ctx):
            if isinstance(param, click.Option):
                for name in param.opts + param.secondary_opts:
                    declared[name] = param

        options: list[str] = []
        program: list[str] = []
        index = 0
        while index < len(args):
            arg = args[index]
            index += 1
            if arg == "--":
                program.extend(args[index:])
                break
            param = declared.get(arg)
            if param is not None:
                options.append(arg)
                # Value of -o/--output
                if not param.is_flag and index < len(args):
                    options.append(args[index])
                    index += 1
            elif arg.startswith("--") and arg.split("=", 1)[0] in declared:
                options.append(arg)
            else:
                program.append(arg)

        return super().parse_args(ctx, options + ["--"] + program)


@click.command(cls=ProgramCommand)
@click.argument("source", nargs=-1)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write assembly to a file instead of stdout",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token list and exit (for debugging)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--run",
    is_flag=True,
    help="Execute on the built-in emulator and exit with the program's status "
         "(its value modulo 256, so a program returning 1 exits like a compile error)",
)
@click.option(
    "--comments",
    is_flag=True,
    help="Mark each statement's code with a '# stmt N' comment",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging on stderr)",
)
@click.version_option(version=__version__, prog_name="mcc")
def main(
    source: tuple[str, ...],
    output: Optional[Path],
    tokens: bool,
    ast: bool,
    run: bool,
    comments: bool,
    verbose: bool,
) -> None:
    """
    Compile a program to x86-64 assembly.

    SOURCE is the program text, passed as exactly one argument.

    The output defines `main` in GNU as Intel syntax and can be assembled
    and linked with the host C compiler. The program's value becomes the
    process exit status.

    \b
    Examples:
        mcc "1+2*3;"                   # Assembly on stdout
        mcc -o prog.s "a=3; a*a;"      # Specify output file
        mcc --run "return 6*7;"        # Run without assembling
        mcc --ast "a = b = 5;"         # Show the parse tree

    \b
    Language:
        - 64-bit signed integers
        - Variables a-z (one letter each)
        - + - * / == != < <= > >= and assignment
        - Statements end with ';', "return" ends the program
    """
    setup_logging(verbose)

    try:
        if len(source) != 1:
            raise UsageError(f"expected exactly one program argument, got {len(source)}")
        text = source[0]

        options = CompilerOptions(emit_comments=comments)
        compiler = Compiler(options)

        # Token dump mode
        if tokens:
            for token in compiler.tokenize(text):
                click.echo(repr(token))
            return

        # AST dump mode
        if ast:
            click.echo(ASTPrinter().print(compiler.parse(text)))
            return

        result = compiler.compile_source(text)

        if run:
            machine = Machine()
            machine.load(result.assembly)
            value = machine.run()
            logger.debug("program returned %d after %d steps", value, machine.steps)
            click.echo(value)
            sys.exit(exit_status(value))

        if output is not None:
            output.write_text(result.assembly)
            logger.debug("wrote %d bytes to %s", len(result.assembly), output)
        else:
            click.echo(result.assembly, nl=False)

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
