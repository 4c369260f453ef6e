"""
hydroc Error Reporting
======================

hydroc fails in one of three stages, and each reports differently:

    compile   CompilerError, already "file:line:col: error: ..." formatted
    build     ToolchainError from nasm or ld, with the tool's stderr
    run       EmulatorError, pointed at the line of the generated assembly

Anything else is an internal error.

Exit Codes
----------
With --run a successful program's own status becomes hydroc's exit status,
so statuses 1-3 are ambiguous there; the message on stderr is not.
"""

from enum import IntEnum
from pathlib import Path
from typing import Optional

from hydrogen.compiler.errors import CompilerError
from hydrogen.errors import EmulatorError, ToolchainError


class ExitCode(IntEnum):
    """Exit codes for hydroc."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Compilation, assembly, link or emulation failure
    INVALID_ARGS = 2     # Unreadable input or unwritable output
    INTERNAL_ERROR = 3   # Bug in hydroc itself


def _runtime_message(error: EmulatorError, assembly_path: Optional[Path],
                     assembly: Optional[str]) -> str:
    if not error.line_number:
        return f"Runtime error: {error.reason}"

    where = f"{assembly_path}:{error.line_number}" if assembly_path else f"line {error.line_number}"
    lines = [f"Runtime error: {where}: {error.reason}"]
    if assembly is not None:
        asm_lines = assembly.split("\n")
        if error.line_number <= len(asm_lines):
            lines.append(f"    {asm_lines[error.line_number - 1].strip()}")
    return "\n".join(lines)


def describe_error(
    error: Exception,
    verbose: bool = False,
    assembly_path: Optional[Path] = None,
    assembly: Optional[str] = None,
) -> tuple[ExitCode, str]:
    """
    Choose the exit code and stderr message for a failed hydroc run.

    Args:
        error: The exception that stopped hydroc
        verbose: Include the failing tool's command line for build errors
        assembly_path: Where the generated assembly was written
        assembly: The generated assembly, to quote the faulting instruction

    Returns:
        (exit code, message)
    """
    if isinstance(error, CompilerError):
        return ExitCode.BUILD_ERROR, str(error)

    if isinstance(error, ToolchainError):
        message = f"Build error: {error}"
        if verbose and error.command:
            message += f"\ncommand: {' '.join(error.command)}"
        return ExitCode.BUILD_ERROR, message

    if isinstance(error, EmulatorError):
        return ExitCode.BUILD_ERROR, _runtime_message(error, assembly_path, assembly)

    if isinstance(error, OSError):
        # Missing, unreadable or unwritable source and output files
        filename = f" {error.filename}" if error.filename else ""
        return ExitCode.INVALID_ARGS, f"Error:{filename}: {error.strerror or error}"

    return ExitCode.INTERNAL_ERROR, f"Internal error: {type(error).__name__}: {error}"
