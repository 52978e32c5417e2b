"""
minicc Compiler Test Suite
==========================

End-to-end tests: program text is compiled to assembly and the assembly is
executed on the built-in emulator.

Test Organization
-----------------
- TestPrograms: Result values of complete programs
- TestVariables: Frame slots and assignment chains
- TestCompilerDriver: Compiler, CompilerOptions and CompilerResult
- TestErrors: Failures abort the pipeline without output
"""

import pytest
from minicc import compile_source, MiniCCError
from minicc.cc import (
    Compiler,
    CompilerOptions,
    CodegenError,
    LexError,
    ParseError,
    TokenType,
)
from minicc.emulator import Machine, exit_status, run_assembly


def evaluate(source: str) -> int:
    return run_assembly(compile_source(source))


# =============================================================================
# Program Result Tests
# =============================================================================

class TestPrograms:
    """The value left in RAX when main returns."""

    @pytest.mark.parametrize("source,expected", [
        ("0;", 0),
        ("42;", 42),
        ("1+2*3;", 7),
        ("(1+2)*3;", 9),
        ("a=3; b=a+2; a*b;", 15),
        ("a=1; return a+1; a=99;", 2),
        ("1==1; 1!=1;", 0),
        ("1==1;", 1),
        ("1!=2;", 1),
        ("5>3;", 1),
        ("3>5;", 0),
        ("3>=5;", 0),
        ("5>=5;", 1),
        ("2<=2;", 1),
        ("1<2;", 1),
        ("2<1;", 0),
        ("-10+20;", 10),
        ("+5;", 5),
        ("return 1; return 2;", 1),
        ("a=b=5; a+b;", 10),
        ("5+20-4;", 21),
        (" 12 + 34 - 5 ;", 41),
        ("5*(9-6);", 15),
        ("(3+5)/2;", 4),
    ])
    def test_result(self, source, expected):
        assert evaluate(source) == expected

    @pytest.mark.parametrize("source,expected", [
        ("-7/2;", -3),
        ("7/-2;", -3),
        ("-7/-2;", 3),
        ("0-3*4;", -12),
    ])
    def test_signed_arithmetic(self, source, expected):
        assert evaluate(source) == expected

    def test_exit_status_is_low_byte(self):
        assert exit_status(evaluate("return 0-1;")) == 255
        assert exit_status(evaluate("return 256+7;")) == 7

    def test_overflow_wraps(self):
        assert evaluate("9223372036854775807+1;") == -(2**63)

    def test_large_literal(self):
        assert evaluate("4294967296*2;") == 8589934592

    def test_comparison_is_zero_or_one(self):
        assert evaluate("(1<2)+(2<3)+(3<4);") == 3

    def test_statements_after_return_do_not_run(self):
        machine = Machine()
        machine.load(compile_source("a=1; return a; a=99;"))
        assert machine.run() == 1
        assert machine.read_variable("a") == 1

    def test_multiline_program(self):
        assert evaluate("a = 6;\nb = 7;\nreturn a * b;\n") == 42


# =============================================================================
# Variable Tests
# =============================================================================

class TestVariables:
    """Single-letter variables in the fixed frame."""

    def test_chained_assignment(self):
        machine = Machine()
        machine.load(compile_source("a=b=5;"))
        assert machine.run() == 5
        assert machine.read_variable("a") == 5
        assert machine.read_variable("b") == 5

    def test_assignment_value(self):
        assert evaluate("a=7;") == 7

    def test_all_variables_are_distinct(self):
        letters = [chr(c) for c in range(ord("a"), ord("z") + 1)]
        source = " ".join(f"{name}={i};" for i, name in enumerate(letters, start=1))
        source += " return " + "+".join(letters) + ";"

        machine = Machine()
        machine.load(compile_source(source))
        assert machine.run() == sum(range(1, 27))
        for i, name in enumerate(letters, start=1):
            assert machine.read_variable(name) == i

    def test_reassignment(self):
        assert evaluate("a=1; a=a+1; a=a*10; a;") == 20


# =============================================================================
# Compiler Driver Tests
# =============================================================================

class TestCompilerDriver:
    """Compiler, CompilerOptions and CompilerResult."""

    def test_result_records_every_stage(self):
        result = Compiler().compile_source("a=1; return a;")
        assert result.source == "a=1; return a;"
        assert result.token_count == len(result.tokens)
        assert result.tokens[-1].type == TokenType.EOF
        assert len(result.ast.statements) == 2
        assert result.assembly.startswith(".intel_syntax noprefix\n")

    def test_default_options(self):
        options = CompilerOptions()
        assert options.filename == "<input>"
        assert options.emit_comments is False

    def test_emit_comments(self):
        compiler = Compiler(CompilerOptions(emit_comments=True))
        assert "# stmt 1" in compiler.compile_source("1;").assembly

    def test_comments_do_not_change_result(self):
        compiler = Compiler(CompilerOptions(emit_comments=True))
        assert run_assembly(compiler.compile_source("a=2; a*a;").assembly) == 4

    def test_filename_in_locations(self):
        compiler = Compiler(CompilerOptions(filename="prog.mc"))
        tokens = compiler.tokenize("a;")
        assert tokens[0].location.filename == "prog.mc"

    def test_parse_only(self):
        program = Compiler().parse("1; 2; 3;")
        assert len(program.statements) == 3

    def test_compilations_are_independent(self):
        compiler = Compiler()
        first = compiler.compile_source("a=1; a;").assembly
        compiler.compile_source("b=2; return b;")
        assert compiler.compile_source("a=1; a;").assembly == first


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Every failure is terminal."""

    @pytest.mark.parametrize("source,error_type", [
        ("1+;", ParseError),
        ("(1+2;", ParseError),
        ("1+2);", ParseError),
        ("1", ParseError),
        ("#;", ParseError),
        ("1=2;", CodegenError),
        ("A;", LexError),
    ])
    def test_malformed_input(self, source, error_type):
        with pytest.raises(error_type):
            compile_source(source)

    def test_errors_share_base_class(self):
        with pytest.raises(MiniCCError):
            compile_source("1+;")

    def test_diagnostic_points_at_offset(self):
        with pytest.raises(ParseError) as exc_info:
            compile_source("#;")
        assert str(exc_info.value) == "#;\n^ expected an expression"
