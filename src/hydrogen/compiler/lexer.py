"""
Hydrogen Lexer (Tokenizer)
==========================

This module converts Hydrogen source text into a list of tokens for the
parser.

Token Categories
----------------
- Keywords: exit, let, if, elif, else
- Identifiers: a letter followed by letters or digits
- Integer literals: decimal digits only
- Operators: + - * / =
- Delimiters: ( ) { } ;

Comments
--------
- Single-line: // comment
- Multi-line: /* comment */ (an unterminated comment runs to end of input)

The end of the token stream is simply the end of the returned list; there
is no EOF token.

Example Usage
-------------
>>> from hydrogen.compiler.lexer import Lexer
>>> for token in Lexer("exit(42);", "test.hy").tokenize():
...     print(token)
Token(EXIT, 1:1)
Token(LPAREN, 1:5)
Token(INT_LITERAL, '42', 1:6)
Token(RPAREN, 1:8)
Token(SEMICOLON, 1:9)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import string

from hydrogen.errors import SourceLocation
from hydrogen.compiler.errors import InvalidCharacterError


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token kinds of the Hydrogen language."""

    # === Keywords ===
    EXIT = auto()           # exit
    LET = auto()            # let
    IF = auto()             # if
    ELIF = auto()           # elif
    ELSE = auto()           # else

    # === Identifiers and Literals ===
    IDENTIFIER = auto()
    INT_LITERAL = auto()

    # === Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    EQ = auto()             # =

    # === Delimiters ===
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    SEMICOLON = auto()      # ;


KEYWORDS: dict[str, TokenType] = {
    "exit": TokenType.EXIT,
    "let": TokenType.LET,
    "if": TokenType.IF,
    "elif": TokenType.ELIF,
    "else": TokenType.ELSE,
}

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "=": TokenType.EQ,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ";": TokenType.SEMICOLON,
}

# Display text for tokens without a payload, used in diagnostics.
TOKEN_TEXT: dict[TokenType, str] = {
    **{token_type: text for text, token_type in KEYWORDS.items()},
    **{token_type: text for text, token_type in SINGLE_CHAR_TOKENS.items()},
}


# =============================================================================
# Operator Precedence
# =============================================================================

# Binary operator precedence. Every operator is left-associative; the parser
# consults nothing else to decide grouping.
BINARY_PRECEDENCE: dict[TokenType, int] = {
    TokenType.PLUS: 0,
    TokenType.MINUS: 0,
    TokenType.STAR: 1,
    TokenType.SLASH: 1,
}


def binary_precedence(token_type: TokenType) -> Optional[int]:
    """Return the precedence of a binary operator token, or None."""
    return BINARY_PRECEDENCE.get(token_type)


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from Hydrogen source code.

    Attributes:
        type: The TokenType classification
        value: Literal text for identifiers and integer literals, else None
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: Optional[str] = None
    line: int = 1
    column: int = 0
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @property
    def text(self) -> str:
        """Source text of the token, for diagnostics."""
        if self.value is not None:
            return self.value
        return TOKEN_TEXT.get(self.type, self.type.name.lower())


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Hydrogen source code.

    Usage:
        tokens = Lexer(source_text, filename).tokenize()

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    IDENT_START = string.ascii_letters
    IDENT_CHARS = string.ascii_letters + string.digits
    WHITESPACE = string.whitespace

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> list[Token]:
        """
        Convert the whole source into tokens.

        Returns:
            Tokens in source order

        Raises:
            InvalidCharacterError: On a character no token can start with
        """
        tokens = []
        while True:
            self._skip_whitespace_and_comments()
            if self._at_end():
                break
            tokens.append(self._scan_token())
        return tokens

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or "" past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume the current character, keeping line/column up to date."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    def _current_line_text(self) -> str:
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]

    def _make_token(
        self,
        token_type: TokenType,
        value: Optional[str],
        line: int,
        column: int,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=line,
            column=column,
            filename=self.filename,
        )

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            char = self._peek()

            if char in self.WHITESPACE:
                self._advance()
                continue

            if char == "/" and self._peek(1) == "/":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
                continue

            if char == "/" and self._peek(1) == "*":
                self._skip_block_comment()
                continue

            break

    def _skip_block_comment(self) -> None:
        """Skip /* ... */; an unterminated comment swallows the rest of input."""
        self._advance()
        self._advance()
        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            self._advance()

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        line = self._line
        column = self._column
        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_word(line, column)

        if char in string.digits:
            return self._scan_integer(line, column)

        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(SINGLE_CHAR_TOKENS[char], None, line, column)

        raise InvalidCharacterError(
            char,
            SourceLocation(self.filename, line, column),
            self._current_line_text(),
        )

    def _scan_word(self, line: int, column: int) -> Token:
        """Scan a keyword or identifier."""
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        word = "".join(chars)

        if word in KEYWORDS:
            return self._make_token(KEYWORDS[word], None, line, column)
        return self._make_token(TokenType.IDENTIFIER, word, line, column)

    def _scan_integer(self, line: int, column: int) -> Token:
        chars = []
        while self._peek() and self._peek() in string.digits:
            chars.append(self._advance())
        return self._make_token(TokenType.INT_LITERAL, "".join(chars), line, column)


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Convenience wrapper: tokenize source text in one call."""
    return Lexer(source, filename).tokenize()


def source_lines(source: str) -> list[str]:
    """
    Split source into lines the way the lexer numbers them.

    Only '\\n' ends a line; str.splitlines() would also break on
    characters such as U+2028 and shift every later line number.
    """
    return source.split("\n")
