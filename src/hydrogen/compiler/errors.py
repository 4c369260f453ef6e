"""
Hydrogen Compiler Error Hierarchy
=================================

This module defines the exception hierarchy for the Hydrogen compiler.
All exceptions inherit from CompilerError, which itself inherits from
the base HydrogenError for consistent error handling across the toolchain.

Exception Hierarchy
-------------------
CompilerError (base for all compiler errors)
├── HydroSyntaxError - lexer and parser syntax errors
│   ├── InvalidCharacterError - unexpected character
│   ├── UnexpectedTokenError - a construct was expected here
│   ├── MissingTokenError - a required token is absent
│   └── NestingTooDeepError - constructs nested past the parser's limit
├── HydroSemanticError - binding errors found during generation
│   ├── UndeclaredIdentifierError - read or assignment of an unbound name
│   └── DuplicateDeclarationError - 'let' of a name already bound in scope
├── ArenaExhaustedError - the AST arena cannot satisfy an allocation
└── CodeGenError - internal code generation errors

There is no error collection: the first error aborts the compilation and
no assembly is produced.

Error Message Format
--------------------
    hello.hy:3:6: error: undeclared identifier 'y'
        exit(y);
             ^
    hint: declare it first with 'let y = ...;'
"""

from typing import Optional

from hydrogen.errors import HydrogenError, SourceLocation


# =============================================================================
# Base Compiler Exception
# =============================================================================

class CompilerError(HydrogenError):
    """
    Base exception for all Hydrogen compiler errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The actual source text at the error location
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        """Source line of the error, if known."""
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

            hello.hy:5:12: error: expected ';'
                let x = 4
                         ^
            hint: statements end with ';'
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Syntax Errors (Lexer and Parser)
# =============================================================================

class HydroSyntaxError(CompilerError):
    """
    Syntax error in Hydrogen source code.

    Raised when the lexer or parser finds a token (or character) that
    does not fit where the grammar requires something else.
    """
    pass


class InvalidCharacterError(HydroSyntaxError):
    """Character that cannot start any token."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"invalid character '{char}' (0x{ord(char):02X})",
            location=location,
            source_line=source_line,
        )


class UnexpectedTokenError(HydroSyntaxError):
    """
    A construct was expected but something else (or nothing) was found.

    The message names the unmet expectation, e.g. "expected expression",
    "expected scope" or "expected statement".
    """

    def __init__(
        self,
        expected: str,
        found: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found

        hint = f"found '{found}'" if found else "reached end of input"
        super().__init__(
            f"expected {expected}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class MissingTokenError(HydroSyntaxError):
    """
    Required token is missing.

    Raised when a required token (like ';' or ')') is not found
    where expected.
    """

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        super().__init__(
            f"expected '{expected}'",
            location=location,
            source_line=source_line,
        )


class NestingTooDeepError(HydroSyntaxError):
    """
    Parentheses, scopes, conditionals or operator chains nest too deeply.

    Attributes:
        limit: The maximum nesting depth the parser accepts
    """

    def __init__(
        self,
        limit: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.limit = limit
        super().__init__(
            f"nesting deeper than {limit} levels",
            location=location,
            hint="split the expression with 'let' or flatten the scopes",
            source_line=source_line,
        )


# =============================================================================
# Semantic Errors (found by the generator)
# =============================================================================

class HydroSemanticError(CompilerError):
    """
    Semantic error in Hydrogen source code.

    The program is syntactically valid but refers to bindings that do
    not exist, or declares a binding twice in the same scope.
    """
    pass


class UndeclaredIdentifierError(HydroSemanticError):
    """
    Reference to an undeclared identifier.

    Raised when an expression reads, or an assignment writes, a name
    with no live binding.
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.identifier = identifier
        super().__init__(
            f"undeclared identifier '{identifier}'",
            location=location,
            hint=f"declare it first with 'let {identifier} = ...;'",
            source_line=source_line,
        )


class DuplicateDeclarationError(HydroSemanticError):
    """
    Identifier declared twice in the same scope.

    Attributes:
        identifier: The redeclared name
        original_location: Where the live binding was declared, if known
    """

    def __init__(
        self,
        identifier: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.identifier = identifier
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{identifier}' was first declared at {original_location}"

        super().__init__(
            f"identifier '{identifier}' already used",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Resource and Code Generation Errors
# =============================================================================

class ArenaExhaustedError(CompilerError):
    """
    The AST arena cannot satisfy an allocation.

    This is fatal: a partially built tree has no meaningful use.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(
            f"AST arena exhausted ({capacity} nodes)",
            hint="raise the arena capacity (--arena-capacity or HYDRO_ARENA_CAPACITY)",
        )


class CodeGenError(CompilerError):
    """
    Error during code generation.

    Raised when the generator meets a node it has no rule for, or when
    its bookkeeping is inconsistent (e.g. closing a scope that was never
    opened).
    """
    pass
