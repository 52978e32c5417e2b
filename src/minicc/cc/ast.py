"""
Abstract Syntax Tree (AST) Definitions
======================================

This module defines the AST node types produced by the parser and consumed
by the code generator.

Node Hierarchy
--------------
ASTNode (base)
├── ProgramNode - ordered list of top-level statements
├── Statements
│   ├── ReturnStatement - "return" expression ";"
│   └── ExpressionStatement - expression ";"
└── Expressions
    ├── BinaryExpression - arithmetic and comparison operators
    ├── AssignmentExpression - target "=" value
    ├── VariableExpression - one-letter variable reference
    └── NumberLiteral - integer constant

Design Notes
------------
- The node set is closed: the code generator handles every class above and
  raises CodegenError for anything else.
- There are no greater-than operators. The parser rewrites "a > b" as
  "b < a" and "a >= b" as "b <= a".
- Every child node is owned by exactly one parent; trees are acyclic.
"""

from dataclasses import dataclass, field
from enum import Enum, auto

from minicc.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts
    """
    location: SourceLocation

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}@{self.location.offset}"


@dataclass
class Expression(ASTNode):
    """Base class for nodes that leave one value on the evaluation stack."""
    pass


@dataclass
class Statement(ASTNode):
    """Base class for top-level statements."""
    pass


# =============================================================================
# Expression Nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operator types."""
    # Arithmetic
    ADD = auto()        # +
    SUBTRACT = auto()   # -
    MULTIPLY = auto()   # *
    DIVIDE = auto()     # /

    # Comparison
    EQUAL = auto()      # ==
    NOT_EQUAL = auto()  # !=
    LESS = auto()       # <
    LESS_EQ = auto()    # <=

    @property
    def symbol(self) -> str:
        return _OPERATOR_SYMBOLS[self]

    @property
    def is_comparison(self) -> bool:
        return self in (
            BinaryOperator.EQUAL,
            BinaryOperator.NOT_EQUAL,
            BinaryOperator.LESS,
            BinaryOperator.LESS_EQ,
        )


_OPERATOR_SYMBOLS = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUBTRACT: "-",
    BinaryOperator.MULTIPLY: "*",
    BinaryOperator.DIVIDE: "/",
    BinaryOperator.EQUAL: "==",
    BinaryOperator.NOT_EQUAL: "!=",
    BinaryOperator.LESS: "<",
    BinaryOperator.LESS_EQ: "<=",
}


@dataclass
class BinaryExpression(Expression):
    """
    Binary operation expression (left op right).

    Attributes:
        operator: The binary operator
        left: Left operand, evaluated first
        right: Right operand
    """
    operator: BinaryOperator = None
    left: Expression = None
    right: Expression = None


@dataclass
class AssignmentExpression(Expression):
    """
    Assignment expression (target = value).

    The parser accepts any expression as target; the code generator
    rejects targets that are not a VariableExpression.

    Attributes:
        target: The storage location being written
        value: The value expression; the assignment evaluates to it
    """
    target: Expression = None
    value: Expression = None


@dataclass
class VariableExpression(Expression):
    """
    Reference to one of the 26 single-letter variables.

    Attributes:
        name: The variable name, a single letter a-z
    """
    name: str = ""


@dataclass
class NumberLiteral(Expression):
    """
    Integer literal expression.

    Attributes:
        value: The integer value
    """
    value: int = 0


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class ExpressionStatement(Statement):
    """
    Expression evaluated for its side effects.

    Attributes:
        expression: The expression
    """
    expression: Expression = None


@dataclass
class ReturnStatement(Statement):
    """
    Return statement; transfers control to the shared epilogue.

    Attributes:
        value: Return value expression
    """
    value: Expression = None


@dataclass
class ProgramNode(ASTNode):
    """
    Root node: the program's statements in source order.

    Attributes:
        statements: Top-level statements
    """
    statements: list[Statement] = field(default_factory=list)


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care about.

    Usage:
        class VariableCollector(ASTVisitor):
            def visit_VariableExpression(self, node):
                ...

        VariableCollector().visit(program)
    """

    def visit(self, node: ASTNode):
        """Dispatch to visit_<ClassName>, falling back to generic_visit."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all child nodes."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, list):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging (used by `mcc --ast`).

    Usage:
        print(ASTPrinter().print(program))
    """

    def __init__(self):
        self.output: list[str] = []

    def print(self, node: ASTNode) -> str:
        """Print the AST and return as string."""
        self.output = []
        self.visit(node)
        return "\n".join(self.output)

    def visit_ProgramNode(self, node: ProgramNode):
        self.output.append("Program")
        for stmt in node.statements:
            self.visit(stmt)

    def visit_ReturnStatement(self, node: ReturnStatement):
        self.output.append(f"  Return {self._expr_str(node.value)}")

    def visit_ExpressionStatement(self, node: ExpressionStatement):
        self.output.append(f"  Expr: {self._expr_str(node.expression)}")

    def _expr_str(self, expr: Expression) -> str:
        """Convert expression to a fully parenthesized string."""
        if isinstance(expr, NumberLiteral):
            return str(expr.value)
        if isinstance(expr, VariableExpression):
            return expr.name
        if isinstance(expr, BinaryExpression):
            return f"({self._expr_str(expr.left)} {expr.operator.symbol} {self._expr_str(expr.right)})"
        if isinstance(expr, AssignmentExpression):
            return f"({self._expr_str(expr.target)} = {self._expr_str(expr.value)})"
        return f"<{type(expr).__name__}>"
