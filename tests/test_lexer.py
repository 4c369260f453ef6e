"""
Hydrogen Lexer Test Suite
=========================

Tests for tokenization: keywords, identifiers, integer literals,
operators, comments, source locations and invalid characters.
"""

import pytest

from hydrogen.compiler.lexer import (
    Lexer,
    Token,
    TokenType,
    tokenize,
    binary_precedence,
    source_lines,
)
from hydrogen.compiler.errors import InvalidCharacterError, HydroSyntaxError


def types_of(source: str) -> list[TokenType]:
    return [token.type for token in tokenize(source, "test.hy")]


# =============================================================================
# Basic Tokenization
# =============================================================================

class TestBasicTokens:
    """Tests for token kinds."""

    def test_empty_source(self):
        """Empty source produces no tokens (there is no EOF token)."""
        assert tokenize("") == []

    def test_whitespace_only(self):
        """Whitespace-only source produces no tokens."""
        assert tokenize("   \n\t  \r\n  ") == []

    def test_keywords(self):
        """All five keywords are recognised."""
        assert types_of("exit let if elif else") == [
            TokenType.EXIT,
            TokenType.LET,
            TokenType.IF,
            TokenType.ELIF,
            TokenType.ELSE,
        ]

    def test_keyword_prefix_is_identifier(self):
        """A word that merely starts with a keyword is an identifier."""
        tokens = tokenize("exitcode letter iffy")
        assert [t.type for t in tokens] == [TokenType.IDENTIFIER] * 3
        assert [t.value for t in tokens] == ["exitcode", "letter", "iffy"]

    def test_identifier_with_digits(self):
        """Identifiers continue with letters and digits."""
        tokens = tokenize("x1 abc2def")
        assert tokens[0] == Token(TokenType.IDENTIFIER, "x1", 1, 1, "<input>")
        assert tokens[1].value == "abc2def"

    def test_integer_literal_keeps_text(self):
        """Integer literals keep their digits exactly as written."""
        tokens = tokenize("007 42")
        assert tokens[0].type == TokenType.INT_LITERAL
        assert tokens[0].value == "007"
        assert tokens[1].value == "42"

    def test_digits_then_letters_split(self):
        """'12ab' is an integer followed by an identifier."""
        tokens = tokenize("12ab")
        assert [(t.type, t.value) for t in tokens] == [
            (TokenType.INT_LITERAL, "12"),
            (TokenType.IDENTIFIER, "ab"),
        ]

    def test_operators_and_delimiters(self):
        """Every single-character token is recognised."""
        assert types_of("+-*/=(){};") == [
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.STAR,
            TokenType.SLASH,
            TokenType.EQ,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.LBRACE,
            TokenType.RBRACE,
            TokenType.SEMICOLON,
        ]

    def test_payload_only_on_identifiers_and_literals(self):
        """Keywords and punctuation carry no value."""
        tokens = tokenize("let x = 5;")
        assert [t.value for t in tokens] == [None, "x", None, "5", None]

    def test_token_text(self):
        """Token.text renders the source spelling for diagnostics."""
        tokens = tokenize("exit(x + 3);")
        assert [t.text for t in tokens] == ["exit", "(", "x", "+", "3", ")", ";"]

    def test_convenience_function_matches_lexer(self):
        """tokenize() and Lexer().tokenize() agree."""
        source = "let y = (1 + 2) * 3;"
        assert tokenize(source, "a.hy") == Lexer(source, "a.hy").tokenize()


# =============================================================================
# Comments
# =============================================================================

class TestComments:
    """Tests for comment skipping."""

    def test_line_comment(self):
        """// comments run to the end of the line."""
        tokens = tokenize("// comment exit(1);\n42")
        assert len(tokens) == 1
        assert tokens[0].value == "42"
        assert tokens[0].line == 2

    def test_block_comment(self):
        """/* */ comments may span lines."""
        tokens = tokenize("/* a\n b\n */ 7")
        assert len(tokens) == 1
        assert tokens[0].line == 3

    def test_unterminated_block_comment_runs_to_end(self):
        """An unterminated block comment swallows the rest of the input."""
        assert types_of("exit /* never closed ( 1 ) ;") == [TokenType.EXIT]

    def test_block_comment_between_tokens(self):
        """Comments separate tokens without producing any."""
        assert types_of("let/**/x") == [TokenType.LET, TokenType.IDENTIFIER]

    def test_slash_is_division(self):
        """A lone slash is the division operator."""
        assert types_of("8/2") == [
            TokenType.INT_LITERAL,
            TokenType.SLASH,
            TokenType.INT_LITERAL,
        ]


# =============================================================================
# Source Locations
# =============================================================================

class TestLocations:
    """Tests for line and column tracking."""

    def test_columns_are_one_indexed(self):
        """Columns count from 1."""
        tokens = tokenize("let x = 5;")
        assert [t.column for t in tokens] == [1, 5, 7, 9, 10]

    def test_lines_advance(self):
        """Line numbers advance on newlines and columns reset."""
        tokens = tokenize("let x = 1;\n  exit(x);")
        exit_token = tokens[5]
        assert exit_token.type == TokenType.EXIT
        assert (exit_token.line, exit_token.column) == (2, 3)

    def test_location_carries_filename(self):
        """Token.location includes the filename."""
        token = tokenize("exit", "prog.hy")[0]
        assert str(token.location) == "prog.hy:1:1"


# =============================================================================
# Errors
# =============================================================================

class TestLexerErrors:
    """Tests for invalid input."""

    def test_invalid_character(self):
        """A character no token starts with is fatal."""
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("let x = 5 % 2;", "test.hy")
        error = exc_info.value
        assert error.char == "%"
        assert error.location.line == 1
        assert error.location.column == 11

    def test_invalid_character_is_syntax_error(self):
        """InvalidCharacterError is a HydroSyntaxError."""
        with pytest.raises(HydroSyntaxError):
            tokenize("exit(1) @")

    def test_underscore_not_allowed(self):
        """Identifiers are letters and digits only."""
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("x_y")
        assert exc_info.value.location.column == 2

    def test_error_message_shows_source_line(self):
        """The formatted message quotes the offending line with a caret."""
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize("exit(1);\nlet y = #;", "test.hy")
        message = str(exc_info.value)
        assert message.startswith("test.hy:2:9: error: invalid character '#'")
        assert "    let y = #;" in message
        assert "            ^" in message

    @pytest.mark.parametrize("char", ["\u00a0", "\u2028", "\u3000"])
    def test_unicode_whitespace_rejected(self, char):
        """Only ASCII whitespace separates tokens."""
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize(f"exit(1);{char}", "test.hy")
        assert exc_info.value.char == char
        assert exc_info.value.location.column == 9

    def test_vertical_tab_and_form_feed_are_whitespace(self):
        assert types_of("exit\v(\f1)\r;") == [
            TokenType.EXIT, TokenType.LPAREN, TokenType.INT_LITERAL,
            TokenType.RPAREN, TokenType.SEMICOLON,
        ]


class TestSourceLines:
    """Tests for source_lines, used to quote lines in diagnostics."""

    def test_splits_on_newline_only(self):
        assert source_lines("a\u2028b\nc") == ["a\u2028b", "c"]

    def test_matches_lexer_line_numbers(self):
        source = "// note\u2028more\nlet x = 1;\nexit(y$);"
        with pytest.raises(InvalidCharacterError) as exc_info:
            tokenize(source)
        line = exc_info.value.location.line
        assert line == 3
        assert source_lines(source)[line - 1] == "exit(y$);"


# =============================================================================
# Precedence Table
# =============================================================================

class TestPrecedence:
    """Tests for the operator precedence table."""

    def test_additive_below_multiplicative(self):
        assert binary_precedence(TokenType.PLUS) == binary_precedence(TokenType.MINUS) == 0
        assert binary_precedence(TokenType.STAR) == binary_precedence(TokenType.SLASH) == 1

    def test_non_operators(self):
        """Tokens that are not binary operators have no precedence."""
        for token_type in (TokenType.EQ, TokenType.SEMICOLON, TokenType.IDENTIFIER):
            assert binary_precedence(token_type) is None
