"""
Hydrogen Recursive Descent Parser
=================================

This module turns the lexer's token list into an Abstract Syntax Tree.
Every node is allocated in the compilation's Arena.

Grammar (EBNF)
--------------
program     ::= statement*
statement   ::= 'exit' '(' expr ')' ';'
              | 'let' IDENTIFIER '=' expr ';'
              | IDENTIFIER '=' expr ';'
              | scope
              | 'if' '(' expr ')' scope predicate?
scope       ::= '{' statement* '}'
predicate   ::= 'elif' '(' expr ')' scope predicate?
              | 'else' scope
expr        ::= term (binop term)*          (precedence climbing)
term        ::= INT_LITERAL | IDENTIFIER | '(' expr ')'

Operator Precedence (lowest to highest)
---------------------------------------
0. additive        + -
1. multiplicative  * /

All operators are left-associative. The table lives in the lexer module
(`binary_precedence`) and is the only place precedence is defined.

Error Handling
--------------
Parsing stops at the first malformed construct with a HydroSyntaxError
naming what was expected and where. There is no recovery and no partial
tree.

Example Usage
-------------
>>> from hydrogen.compiler.parser import parse_source
>>> program = parse_source("let x = 2 + 3 * 4; exit(x);")
>>> len(program.statements)
2
"""

import logging
from typing import Optional

from hydrogen.errors import SourceLocation
from hydrogen.compiler.arena import Arena
from hydrogen.compiler.lexer import Lexer, Token, TokenType, binary_precedence, source_lines
from hydrogen.compiler.ast import (
    ProgramNode,
    Statement,
    ExitStatement,
    LetStatement,
    AssignStatement,
    ScopeStatement,
    IfStatement,
    ElifClause,
    ElseClause,
    PredicateChain,
    Expression,
    IntLiteral,
    IdentifierExpression,
    ParenthesizedExpression,
    BinaryExpression,
    BinaryOperator,
)
from hydrogen.compiler.errors import (
    MissingTokenError,
    NestingTooDeepError,
    UnexpectedTokenError,
)


logger = logging.getLogger(__name__)


# Parser, generator and AST printer all recurse once per level
MAX_NESTING_DEPTH = 200

BINARY_OPERATORS: dict[TokenType, BinaryOperator] = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
}


class Parser:
    """
    Recursive descent parser for Hydrogen.

    Statements are recognised by lookahead over one or more tokens; no
    token is consumed until the leading pattern of a statement form is
    confirmed. Expressions use precedence climbing.

    Attributes:
        tokens: Tokens to parse (end of list is end of stream)
        filename: Source filename for error reporting
        arena: Owner of every node this parser builds
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
        arena: Optional[Arena] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: Tokens from the lexer
            filename: Source filename for error messages
            source_lines: Original source lines for error context
            arena: Arena to allocate nodes in (a fresh one if None)
        """
        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines or []
        self.arena = arena if arena is not None else Arena()

        self._pos = 0
        self._depth = 0

    def parse(self) -> ProgramNode:
        """
        Parse the whole token list into a ProgramNode.

        Raises:
            HydroSyntaxError: On the first malformed construct
            ArenaExhaustedError: If the arena fills up
        """
        statements = []

        while not self._at_end():
            stmt = self.parse_statement()
            if stmt is None:
                self._fail("statement")
            statements.append(stmt)

        program = self._new(ProgramNode(
            location=SourceLocation(self.filename, 1, 1),
            statements=tuple(statements),
        ))
        logger.debug(f"Parsed {len(statements)} top-level statements ({len(self.arena)} nodes)")
        return program

    parse_program = parse

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.tokens)

    def _peek(self, offset: int = 0) -> Optional[Token]:
        """Token at current position + offset, or None past the end."""
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return None
        return self.tokens[pos]

    def _check(self, token_type: TokenType, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.type == token_type

    def _advance(self) -> Token:
        token = self.tokens[self._pos]
        self._pos += 1
        return token

    def _match(self, token_type: TokenType) -> Optional[Token]:
        """Consume the current token if it has the given type."""
        if self._check(token_type):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, text: str) -> Token:
        """
        Consume a required token.

        Raises:
            MissingTokenError: If the current token is of another type
        """
        if self._check(token_type):
            return self._advance()

        location = self._error_location()
        raise MissingTokenError(
            text,
            location,
            self._get_source_line(location.line),
        )

    def _error_location(self) -> SourceLocation:
        """Location of the current token, or of the last one at end of stream."""
        token = self._peek()
        if token is None and self.tokens:
            token = self.tokens[-1]
        if token is None:
            return SourceLocation(self.filename, 1, 0)
        return token.location

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _fail(self, expected: str):
        """Raise the "expected <construct>" diagnostic at the current token."""
        token = self._peek()
        location = self._error_location()
        raise UnexpectedTokenError(
            expected,
            found=token.text if token is not None else None,
            location=location,
            source_line=self._get_source_line(location.line),
        )

    def _new(self, node):
        return self.arena.allocate(node)

    def _descend(self, location: SourceLocation) -> None:
        """
        Enter one nesting level.

        Raises:
            NestingTooDeepError: Past MAX_NESTING_DEPTH levels
        """
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise NestingTooDeepError(
                MAX_NESTING_DEPTH,
                location,
                self._get_source_line(location.line),
            )

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def parse_term(self) -> Optional[Expression]:
        """
        Parse an integer literal, an identifier or a parenthesized expression.

        Returns:
            The term, or None when the current token starts none of them
        """
        token = self._peek()
        if token is None:
            return None

        if token.type == TokenType.INT_LITERAL:
            self._advance()
            return self._new(IntLiteral(location=token.location, value=token.value))

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return self._new(IdentifierExpression(location=token.location, name=token.value))

        if token.type == TokenType.LPAREN:
            self._advance()
            self._descend(token.location)
            inner = self.parse_expression()
            if inner is None:
                self._fail("expression")
            self._expect(TokenType.RPAREN, ")")
            self._depth -= 1
            return self._new(ParenthesizedExpression(location=token.location, inner=inner))

        return None

    def parse_expression(self, min_precedence: int = 0) -> Optional[Expression]:
        """
        Parse an expression by precedence climbing.

        Operators binding at least as tightly as `min_precedence` are
        absorbed; each right operand is parsed one level higher so that
        equal-precedence operators fold to the left. Every fold deepens
        the tree by one and counts toward the nesting limit.

        Returns:
            The expression, or None if no term starts here
        """
        lhs = self.parse_term()
        if lhs is None:
            return None

        folds = 0
        while True:
            token = self._peek()
            if token is None:
                break
            precedence = binary_precedence(token.type)
            if precedence is None or precedence < min_precedence:
                break

            self._advance()
            self._descend(token.location)
            folds += 1
            rhs = self.parse_expression(precedence + 1)
            if rhs is None:
                self._fail("expression")

            lhs = self._new(BinaryExpression(
                location=lhs.location,
                operator=BINARY_OPERATORS[token.type],
                lhs=lhs,
                rhs=rhs,
            ))

        self._depth -= folds
        return lhs

    def _require_expression(self) -> Expression:
        expr = self.parse_expression()
        if expr is None:
            self._fail("expression")
        return expr

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def parse_statement(self) -> Optional[Statement]:
        """
        Parse one statement.

        Returns:
            The statement, or None if no statement form starts here
        """
        token = self._peek()
        if token is None:
            return None

        if token.type == TokenType.EXIT and self._check(TokenType.LPAREN, 1):
            return self._parse_exit()

        if (token.type == TokenType.LET
                and self._check(TokenType.IDENTIFIER, 1)
                and self._check(TokenType.EQ, 2)):
            return self._parse_let()

        if token.type == TokenType.IDENTIFIER and self._check(TokenType.EQ, 1):
            return self._parse_assign()

        if token.type == TokenType.LBRACE:
            return self.parse_scope()

        if token.type == TokenType.IF and self._check(TokenType.LPAREN, 1):
            return self._parse_if()

        return None

    def _parse_exit(self) -> ExitStatement:
        location = self._advance().location
        self._advance()  # (
        expr = self._require_expression()
        self._expect(TokenType.RPAREN, ")")
        self._expect(TokenType.SEMICOLON, ";")
        return self._new(ExitStatement(location=location, expression=expr))

    def _parse_let(self) -> LetStatement:
        location = self._advance().location
        name = self._advance().value
        self._advance()  # =
        expr = self._require_expression()
        self._expect(TokenType.SEMICOLON, ";")
        return self._new(LetStatement(location=location, name=name, expression=expr))

    def _parse_assign(self) -> AssignStatement:
        name_token = self._advance()
        self._advance()  # =
        expr = self._require_expression()
        self._expect(TokenType.SEMICOLON, ";")
        return self._new(AssignStatement(
            location=name_token.location,
            name=name_token.value,
            expression=expr,
        ))

    def parse_scope(self) -> Optional[ScopeStatement]:
        """
        Parse a braced scope.

        Returns:
            The scope, or None if the current token is not '{'
        """
        open_brace = self._match(TokenType.LBRACE)
        if open_brace is None:
            return None

        self._descend(open_brace.location)
        statements = []
        while (stmt := self.parse_statement()) is not None:
            statements.append(stmt)

        self._expect(TokenType.RBRACE, "}")
        self._depth -= 1
        return self._new(ScopeStatement(
            location=open_brace.location,
            statements=tuple(statements),
        ))

    def _require_scope(self) -> ScopeStatement:
        scope = self.parse_scope()
        if scope is None:
            self._fail("scope")
        return scope

    def _parse_if(self) -> IfStatement:
        location = self._advance().location
        self._advance()  # (
        self._descend(location)
        condition = self._require_expression()
        self._expect(TokenType.RPAREN, ")")
        scope = self._require_scope()
        chain = self.parse_predicate_chain()
        self._depth -= 1
        return self._new(IfStatement(
            location=location,
            condition=condition,
            scope=scope,
            chain=chain,
        ))

    def parse_predicate_chain(self) -> Optional[PredicateChain]:
        """
        Parse an optional elif/else continuation of an if statement.

        Returns:
            ElifClause (possibly chaining further), ElseClause, or None
        """
        if elif_token := self._match(TokenType.ELIF):
            self._expect(TokenType.LPAREN, "(")
            self._descend(elif_token.location)
            condition = self._require_expression()
            self._expect(TokenType.RPAREN, ")")
            scope = self._require_scope()
            chain = self.parse_predicate_chain()
            self._depth -= 1
            return self._new(ElifClause(
                location=elif_token.location,
                condition=condition,
                scope=scope,
                chain=chain,
            ))

        if else_token := self._match(TokenType.ELSE):
            scope = self._require_scope()
            return self._new(ElseClause(location=else_token.location, scope=scope))

        return None


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    arena: Optional[Arena] = None,
) -> ProgramNode:
    """
    Parse Hydrogen source code into an AST.

    Combines lexing and parsing in one call.

    Raises:
        HydroSyntaxError: If lexing or parsing fails
    """
    tokens = Lexer(source, filename).tokenize()
    parser = Parser(tokens, filename, source_lines(source), arena)
    return parser.parse()
