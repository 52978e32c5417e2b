# =============================================================================
# test_codegen.py - Code Generator Unit Tests
# =============================================================================
# Tests for the x86-64 code generator.
#
# Test coverage includes:
#   - Program skeleton (prologue, shared return epilogue)
#   - Variable slots and addressing
#   - Literal, arithmetic and comparison sequences
#   - Operand-swap equivalence of > and <
#   - Lvalue checking and unsupported nodes
# =============================================================================

import pytest
from minicc.cc.parser import parse_source
from minicc.cc.codegen import (
    CodeGenerator,
    FRAME_SIZE,
    RETURN_LABEL,
    variable_offset,
)
from minicc.cc.errors import CodegenError
from minicc.cc.ast import (
    BinaryExpression,
    BinaryOperator,
    NumberLiteral,
    ProgramNode,
    Statement,
)
from minicc.errors import SourceLocation


# =============================================================================
# Helper Functions
# =============================================================================

def generate(source: str, emit_comments: bool = False) -> str:
    return CodeGenerator(emit_comments=emit_comments).generate(parse_source(source))


def instructions(source: str) -> list:
    """Instruction lines with indentation removed."""
    return [
        line.strip()
        for line in generate(source).splitlines()
        if line.startswith("    ")
    ]


# =============================================================================
# Program Skeleton Tests
# =============================================================================

class TestSkeleton:
    """The fixed parts of every generated program."""

    def test_return_constant(self):
        assert generate("return 42;") == (
            ".intel_syntax noprefix\n"
            ".globl main\n"
            "main:\n"
            "    push rbp\n"
            "    mov rbp, rsp\n"
            "    sub rsp, 208\n"
            "    push 42\n"
            "    pop rax\n"
            "    jmp .Lreturn\n"
            ".Lreturn:\n"
            "    mov rsp, rbp\n"
            "    pop rbp\n"
            "    ret\n"
        )

    def test_empty_program(self):
        lines = generate("").splitlines()
        assert lines[:3] == [".intel_syntax noprefix", ".globl main", "main:"]
        assert lines[-4:] == [f"{RETURN_LABEL}:", "    mov rsp, rbp", "    pop rbp", "    ret"]

    def test_frame_reserves_all_variables(self):
        assert FRAME_SIZE == 26 * 8
        assert "    sub rsp, 208" in generate("1;").splitlines()

    def test_single_epilogue(self):
        asm = generate("return 1; return 2; 3;")
        assert asm.count("    ret\n") == 1
        assert asm.count(f"{RETURN_LABEL}:") == 1
        assert asm.count(f"jmp {RETURN_LABEL}") == 2

    def test_expression_statement_leaves_value_in_rax(self):
        assert instructions("7;")[3:5] == ["push 7", "pop rax"]

    def test_output_is_deterministic(self):
        source = "a=3; b=a+2; a*b;"
        assert generate(source) == generate(source)

    def test_statement_comments(self):
        lines = generate("1; 2;", emit_comments=True).splitlines()
        assert "    # stmt 1" in lines
        assert "    # stmt 2" in lines
        assert "#" not in generate("1; 2;")


# =============================================================================
# Variable Tests
# =============================================================================

class TestVariables:
    """Fixed frame slots for a-z."""

    def test_offsets(self):
        assert variable_offset("a") == 8
        assert variable_offset("b") == 16
        assert variable_offset("z") == 208

    def test_offsets_are_distinct_and_inside_frame(self):
        offsets = [variable_offset(chr(c)) for c in range(ord("a"), ord("z") + 1)]
        assert len(set(offsets)) == 26
        assert all(8 <= off <= FRAME_SIZE and off % 8 == 0 for off in offsets)

    @pytest.mark.parametrize("name", ["A", "ab", "", "1"])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError):
            variable_offset(name)

    def test_load(self):
        assert instructions("a;")[3:8] == [
            "lea rax, [rbp-8]",
            "push rax",
            "pop rax",
            "mov rax, [rax]",
            "push rax",
        ]

    def test_store(self):
        assert instructions("z=1;")[3:10] == [
            "lea rax, [rbp-208]",
            "push rax",
            "push 1",
            "pop rdi",
            "pop rax",
            "mov [rax], rdi",
            "push rdi",
        ]


# =============================================================================
# Expression Tests
# =============================================================================

class TestExpressions:
    """Literal, arithmetic and comparison code."""

    def test_small_literal_is_pushed_directly(self):
        assert "push 2147483647" in instructions("2147483647;")

    def test_large_literal_goes_through_rax(self):
        body = instructions("2147483648;")
        assert "mov rax, 2147483648" in body
        assert "push 2147483648" not in body

    @pytest.mark.parametrize("source,expected", [
        ("1+2;", ["add rax, rdi"]),
        ("1-2;", ["sub rax, rdi"]),
        ("1*2;", ["imul rax, rdi"]),
        ("1/2;", ["cqo", "idiv rdi"]),
    ])
    def test_arithmetic(self, source, expected):
        body = instructions(source)
        # push, push, pop rdi, pop rax, <op>, push rax
        assert body[5:7] == ["pop rdi", "pop rax"]
        assert body[7:7 + len(expected)] == expected
        assert body[7 + len(expected)] == "push rax"

    @pytest.mark.parametrize("source,setcc", [
        ("1==2;", "sete al"),
        ("1!=2;", "setne al"),
        ("1<2;", "setl al"),
        ("1<=2;", "setle al"),
    ])
    def test_comparison(self, source, setcc):
        body = instructions(source)
        assert body[7:11] == ["cmp rax, rdi", setcc, "movzx rax, al", "push rax"]

    def test_left_operand_evaluated_first(self):
        body = instructions("1-2;")
        assert body.index("push 1") < body.index("push 2")


class TestOperandSwap:
    """> and >= compile exactly like < and <= with swapped operands."""

    def test_greater_than(self):
        assert generate("a>b;") == generate("b<a;")

    def test_greater_equal(self):
        assert generate("a>=b;") == generate("b<=a;")

    def test_no_greater_condition_codes(self):
        asm = generate("a>b; a>=b;")
        assert "setg" not in asm


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Semantic errors found during generation."""

    def test_assignment_to_literal(self):
        with pytest.raises(CodegenError) as exc_info:
            generate("1=2;")
        assert str(exc_info.value) == "error: not an lvalue"

    def test_assignment_to_expression(self):
        with pytest.raises(CodegenError):
            generate("(a+1)=2;")

    def test_nested_bad_assignment(self):
        with pytest.raises(CodegenError):
            generate("a=(1=2);")

    def test_unsupported_statement(self):
        location = SourceLocation("<input>", 0)
        program = ProgramNode(location=location, statements=[Statement(location=location)])
        with pytest.raises(CodegenError):
            CodeGenerator().generate(program)


class TestOperators:
    """Operator classification used to pick the instruction sequence."""

    @pytest.mark.parametrize("operator", list(BinaryOperator))
    def test_comparison_operators_use_setcc(self, operator):
        expr = BinaryExpression(
            location=SourceLocation("<input>", 0),
            operator=operator,
            left=NumberLiteral(location=SourceLocation("<input>", 0), value=1),
            right=NumberLiteral(location=SourceLocation("<input>", 0), value=2),
        )
        generator = CodeGenerator()
        generator._generate_expression(expr)
        assert any(line.strip() == "cmp rax, rdi" for line in generator._output) == operator.is_comparison

    def test_comparison_set(self):
        comparisons = {op for op in BinaryOperator if op.is_comparison}
        assert comparisons == {
            BinaryOperator.EQUAL,
            BinaryOperator.NOT_EQUAL,
            BinaryOperator.LESS,
            BinaryOperator.LESS_EQ,
        }
