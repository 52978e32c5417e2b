"""
Lexer (Tokenizer)
=================

This module converts program text into the complete token list consumed by
the parser. The whole list is produced before parsing begins; there is no
interleaving between the two stages.

Token Categories
----------------
- Punctuators: the keyword "return", the two-character operators
  ==, !=, <=, >= and any single ASCII punctuation character
- Identifiers: exactly one lowercase letter (a-z)
- Numbers: a maximal run of decimal digits
- EOF: one sentinel token at the end of every token list

Matching Order
--------------
At each position the lexer tries, in order: whitespace, the "return"
keyword (only when not followed by an identifier character), two-character
operators, single punctuation, numbers, identifiers. Anything else is a
LexError.

Single punctuation is permissive: "#" or "@" lex as
punctuators and are rejected by the parser, which reports them as a
grammar violation at the same offset.

Example Usage
-------------
>>> from minicc.cc.lexer import Lexer
>>> for token in Lexer("a=12;").tokenize():
...     print(token)
Token(IDENTIFIER, 'a', 0)
Token(PUNCTUATOR, '=', 1)
Token(NUMBER, 12, 2)
Token(PUNCTUATOR, ';', 4)
Token(EOF, 5)
"""

import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from minicc.errors import SourceLocation
from minicc.cc.errors import LexError

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token types for the expression language.

    Keywords are folded into PUNCTUATOR: the parser matches both by their
    exact text, so they need no separate category.
    """
    PUNCTUATOR = auto()     # Keywords and operators/delimiters
    IDENTIFIER = auto()     # Single-letter variable names
    NUMBER = auto()         # Integer literals
    EOF = auto()            # End of input


# Reserved words, matched before identifiers
KEYWORDS = ("return",)

# Operators that must never be split into two single-character tokens
TWO_CHAR_OPERATORS = ("==", "!=", "<=", ">=")

# Characters that continue an identifier-like run (used for keyword boundaries)
IDENT_CHARS = string.ascii_letters + string.digits + "_"

WHITESPACE = " \t\n\r\v\f"

# Largest value representable by the target's signed integer type
MAX_INTEGER = 2**63 - 1


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the program text.

    Attributes:
        type: The TokenType classification
        text: The exact source slice
        offset: Zero-based start offset in the source
        value: The integer value for NUMBER tokens, None otherwise
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source for error messages
    """
    type: TokenType
    text: str
    offset: int
    value: Optional[int] = None
    line: int = 1
    column: int = 1
    filename: str = "<input>"

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.type == TokenType.EOF:
            return f"Token({self.type.name}, {self.offset})"
        if self.value is not None:
            return f"Token({self.type.name}, {self.value}, {self.offset})"
        return f"Token({self.type.name}, {self.text!r}, {self.offset})"

    @property
    def length(self) -> int:
        """Length of the token's source slice."""
        return len(self.text)

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.offset, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes program text.

    Usage:
        tokens = Lexer(source_text).tokenize()

    Attributes:
        source: The program text being tokenized
        filename: Name of the source (for error reporting)
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        # Current position in source
        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> list[Token]:
        """
        Produce the complete token list, ending with an EOF token.

        Raises:
            LexError: On the first character that starts no token
        """
        tokens: list[Token] = []

        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            tokens.append(self._scan_token())

        tokens.append(self._make_token(TokenType.EOF, "", self._pos, self._line, self._column))
        logger.debug("lexed %d tokens from %s", len(tokens), self.filename)
        return tokens

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of source."""
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset; "" past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self, count: int = 1) -> str:
        """Consume count characters and return them, tracking line/column."""
        text = self.source[self._pos:self._pos + count]
        for char in text:
            self._pos += 1
            if char == "\n":
                self._line += 1
                self._column = 1
            else:
                self._column += 1
        return text

    def _starts_with(self, text: str) -> bool:
        return self.source.startswith(text, self._pos)

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        text: str,
        offset: int,
        line: int,
        column: int,
        value: Optional[int] = None,
    ) -> Token:
        return Token(
            type=token_type,
            text=text,
            offset=offset,
            value=value,
            line=line,
            column=column,
            filename=self.filename,
        )

    def _error(self, message: str, offset: int, line: int, column: int) -> LexError:
        """Create a lex error pointing at the given position."""
        location = SourceLocation(self.filename, offset, line, column)
        return LexError(message, location, self.source)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek() in WHITESPACE:
            self._advance()

    def _scan_token(self) -> Token:
        """Scan the next token; the caller guarantees we are not at the end."""
        start = self._pos
        line = self._line
        column = self._column
        char = self._peek()

        # Keyword, only when it is not the prefix of a longer word
        for keyword in KEYWORDS:
            following = self._peek(len(keyword))
            if self._starts_with(keyword) and (not following or following not in IDENT_CHARS):
                text = self._advance(len(keyword))
                return self._make_token(TokenType.PUNCTUATOR, text, start, line, column)

        # Two-character operators before single punctuation
        for operator in TWO_CHAR_OPERATORS:
            if self._starts_with(operator):
                text = self._advance(2)
                return self._make_token(TokenType.PUNCTUATOR, text, start, line, column)

        if char in string.punctuation:
            text = self._advance()
            return self._make_token(TokenType.PUNCTUATOR, text, start, line, column)

        if char in string.digits:
            return self._scan_number(start, line, column)

        if char in string.ascii_lowercase:
            text = self._advance()
            return self._make_token(TokenType.IDENTIFIER, text, start, line, column)

        raise self._error("invalid token", start, line, column)

    def _scan_number(self, start: int, line: int, column: int) -> Token:
        """Scan a maximal run of decimal digits."""
        end = self._pos
        while end < len(self.source) and self.source[end] in string.digits:
            end += 1

        text = self.source[start:end]
        value = int(text)
        if value > MAX_INTEGER:
            raise self._error("integer literal out of range", start, line, column)

        self._advance(end - start)
        return self._make_token(TokenType.NUMBER, text, start, line, column, value=value)


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Tokenize program text into a list ending with an EOF token."""
    return Lexer(source, filename).tokenize()
