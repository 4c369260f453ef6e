"""
Hydrogen Error Hierarchy
========================

This module defines the root of the exception hierarchy for the Hydrogen
toolchain. All exceptions inherit from HydrogenError, allowing callers to
catch every toolchain failure with a single except clause if desired.

Exception Hierarchy
-------------------
HydrogenError (base)
├── CompilerError (hydrogen.compiler.errors)
│   ├── HydroSyntaxError - lexical and structural mismatches
│   ├── HydroSemanticError - undeclared or redeclared identifiers
│   ├── ArenaExhaustedError - AST arena ran out of capacity
│   └── CodeGenError - internal code generation failures
├── ToolchainError - nasm/ld invocation failed
└── EmulatorError - the assembly interpreter hit an invalid state

Design Philosophy
-----------------
Every failure is fatal for the compilation in progress. Errors carry source
location information (filename, line, column) when it is known, and the
command-line front end turns them into a message on stderr and a non-zero
exit status.

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class HydrogenError(Exception):
    """
    Base exception for all Hydrogen toolchain errors.

        try:
            compile_source("exit(1);")
        except HydrogenError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Toolchain and Emulator Exceptions
# =============================================================================

class ToolchainError(HydrogenError):
    """
    External assembler or linker failure.

    Raised when nasm or ld cannot be found or exit with a non-zero status.
    The captured stderr of the tool is kept for display.

    Attributes:
        command: The command line that was executed
        returncode: Exit status of the tool (None if it could not start)
        stderr: Captured error output of the tool
    """

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
        text = message
        if stderr:
            text = f"{message}\n{stderr.rstrip()}"
        super().__init__(text)


class EmulatorError(HydrogenError):
    """
    Invalid state while interpreting generated assembly.

    Raised for unknown instructions, stack underflow, division by zero,
    jumps to undefined labels and runaway programs.

    Attributes:
        reason: The fault without its line prefix
        line_number: 1-indexed line of the assembly text (0 when unknown)
    """

    def __init__(self, message: str, line_number: int = 0):
        self.reason = message
        self.line_number = line_number
        if line_number:
            message = f"line {line_number}: {message}"
        super().__init__(message)
