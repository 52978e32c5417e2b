"""
Recursive Descent Parser
========================

This module builds the AST from the lexer's token list. Parser state is
the token list plus one integer cursor held by the Parser object; every
successful match advances the cursor permanently and nothing in the
grammar needs backtracking.

Grammar (EBNF)
--------------
program    ::= statement*
statement  ::= 'return' expression ';'
             | expression ';'
expression ::= assignment
assignment ::= equality ('=' assignment)?
equality   ::= relational (('==' | '!=') relational)*
relational ::= additive (('<' | '<=' | '>' | '>=') additive)*
additive   ::= term (('+' | '-') term)*
term       ::= unary (('*' | '/') unary)*
unary      ::= ('+' | '-')? primary
primary    ::= NUMBER | IDENTIFIER | '(' expression ')'

Rewrites
--------
- a > b   becomes  b < a
- a >= b  becomes  b <= a
- -x      becomes  0 - x
- +x      becomes  x

Example Usage
-------------
>>> from minicc.cc.parser import parse_source
>>> program = parse_source("a = 1; return a + 1;")
>>> len(program.statements)
2
"""

import logging
from typing import Callable, Optional

from minicc.errors import SourceLocation
from minicc.cc.lexer import Lexer, Token, TokenType
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
from minicc.cc.errors import ParseError

logger = logging.getLogger(__name__)


# Operators whose operands are swapped so the AST only needs < and <=
_SWAPPED_OPERATORS = {
    ">": BinaryOperator.LESS,
    ">=": BinaryOperator.LESS_EQ,
}


class Parser:
    """
    Recursive descent parser for the expression language.

    Attributes:
        tokens: Token list from the lexer, ending with EOF
        source: Original program text, used for caret diagnostics
        filename: Source filename for error messages
        position: Index of the current token
    """

    def __init__(
        self,
        tokens: list[Token],
        source: Optional[str] = None,
        filename: str = "<input>",
    ):
        if not tokens or tokens[-1].type != TokenType.EOF:
            raise ValueError("token list must end with an EOF token")
        self.tokens = tokens
        self.source = source
        self.filename = filename
        self.position = 0

    def parse(self) -> ProgramNode:
        """
        Parse the whole token list.

        Returns:
            ProgramNode holding the statements in source order

        Raises:
            ParseError: On the first grammar violation
        """
        statements = []
        while not self.at_end():
            statements.append(self._parse_statement())

        logger.debug("parsed %d statements", len(statements))
        return ProgramNode(
            location=SourceLocation(self.filename, 0),
            statements=statements,
        )

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    @property
    def current(self) -> Token:
        """The token at the cursor."""
        return self.tokens[self.position]

    def at_end(self) -> bool:
        """True when the cursor is at the EOF token."""
        return self.current.type == TokenType.EOF

    def peek_matches(self, expected: str) -> bool:
        """True if the current token is the punctuator/keyword `expected`."""
        token = self.current
        return token.type == TokenType.PUNCTUATOR and token.text == expected

    def try_consume(self, expected: str) -> bool:
        """Consume the current token if it is `expected`."""
        if self.peek_matches(expected):
            self._advance()
            return True
        return False

    def expect(self, expected: str) -> Token:
        """
        Consume the punctuator `expected`.

        Raises:
            ParseError: If the current token is anything else
        """
        if not self.peek_matches(expected):
            raise self._error(f"expected '{expected}'")
        return self._advance()

    def expect_integer(self) -> int:
        """
        Consume an integer literal and return its value.

        Raises:
            ParseError: If the current token is not a number
        """
        token = self.current
        if token.type != TokenType.NUMBER:
            raise self._error("expected a number")
        self._advance()
        return token.value

    def try_consume_identifier(self) -> Optional[Token]:
        """Consume and return the current token if it is an identifier."""
        if self.current.type != TokenType.IDENTIFIER:
            return None
        return self._advance()

    def _advance(self) -> Token:
        token = self.current
        if token.type != TokenType.EOF:
            self.position += 1
        return token

    def _error(self, message: str) -> ParseError:
        """Create a parse error at the current token."""
        return ParseError(message, self.current.location, self.source)

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        location = self.current.location

        if self.try_consume("return"):
            value = self._parse_expression()
            self.expect(";")
            return ReturnStatement(location=location, value=value)

        expression = self._parse_expression()
        self.expect(";")
        return ExpressionStatement(location=location, expression=expression)

    # =========================================================================
    # Expressions (lowest to highest precedence)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse assignment (right-associative)."""
        target = self._parse_equality()
        if self.try_consume("="):
            value = self._parse_assignment()
            return AssignmentExpression(location=target.location, target=target, value=value)
        return target

    def _parse_equality(self) -> Expression:
        return self._parse_binary(
            self._parse_relational,
            {
                "==": BinaryOperator.EQUAL,
                "!=": BinaryOperator.NOT_EQUAL,
            },
        )

    def _parse_relational(self) -> Expression:
        """Parse < <= > >=, rewriting > and >= by swapping operands."""
        expr = self._parse_additive()

        while True:
            if self.try_consume("<"):
                expr = self._binary(BinaryOperator.LESS, expr, self._parse_additive())
            elif self.try_consume("<="):
                expr = self._binary(BinaryOperator.LESS_EQ, expr, self._parse_additive())
            elif self.peek_matches(">") or self.peek_matches(">="):
                operator = _SWAPPED_OPERATORS[self._advance().text]
                right = self._parse_additive()
                expr = BinaryExpression(
                    location=expr.location,
                    operator=operator,
                    left=right,
                    right=expr,
                )
            else:
                return expr

    def _parse_additive(self) -> Expression:
        return self._parse_binary(
            self._parse_term,
            {
                "+": BinaryOperator.ADD,
                "-": BinaryOperator.SUBTRACT,
            },
        )

    def _parse_term(self) -> Expression:
        return self._parse_binary(
            self._parse_unary,
            {
                "*": BinaryOperator.MULTIPLY,
                "/": BinaryOperator.DIVIDE,
            },
        )

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expression],
        operators: dict[str, BinaryOperator],
    ) -> Expression:
        """
        Generic left-associative binary expression parser.

        Args:
            operand_parser: Parses one operand at the next precedence level
            operators: Map of operator text to binary operator
        """
        expr = operand_parser()

        while True:
            for text, operator in operators.items():
                if self.try_consume(text):
                    expr = self._binary(operator, expr, operand_parser())
                    break
            else:
                return expr

    def _parse_unary(self) -> Expression:
        """Parse unary +/-; minus becomes 0 - operand."""
        location = self.current.location

        if self.try_consume("+"):
            return self._parse_primary()
        if self.try_consume("-"):
            zero = NumberLiteral(location=location, value=0)
            return BinaryExpression(
                location=location,
                operator=BinaryOperator.SUBTRACT,
                left=zero,
                right=self._parse_primary(),
            )
        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        """Parse a number, a variable or a parenthesized expression."""
        token = self.current

        if self.try_consume("("):
            expr = self._parse_expression()
            self.expect(")")
            return expr

        identifier = self.try_consume_identifier()
        if identifier is not None:
            return VariableExpression(location=identifier.location, name=identifier.text)

        if token.type == TokenType.NUMBER:
            return NumberLiteral(location=token.location, value=self.expect_integer())

        raise self._error("expected an expression")

    @staticmethod
    def _binary(operator: BinaryOperator, left: Expression, right: Expression) -> BinaryExpression:
        return BinaryExpression(location=left.location, operator=operator, left=left, right=right)


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, filename: str = "<input>") -> ProgramNode:
    """
    Lex and parse program text into an AST.

    Raises:
        LexError: If the text contains an invalid character
        ParseError: If the tokens violate the grammar
    """
    tokens = Lexer(source, filename).tokenize()
    return Parser(tokens, source, filename).parse()
