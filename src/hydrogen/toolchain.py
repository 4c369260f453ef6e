"""
Assembler and Linker Wrapper
============================

Turns generated NASM assembly into a Linux executable by running the
external tools:

    nasm -f elf64 out.asm -o out.o
    ld -o out out.o

The tool names and object format come from CompilerOptions (and thus
from HYDRO_NASM, HYDRO_LD and HYDRO_OBJECT_FORMAT).
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional

from hydrogen.errors import ToolchainError
from hydrogen.compiler.compiler import CompilerOptions


logger = logging.getLogger(__name__)


TOOL_TIMEOUT = 60


def _run_tool(cmd: list[str]) -> None:
    """
    Run one external tool, raising ToolchainError on any failure.
    """
    logger.info(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=TOOL_TIMEOUT,
        )
    except FileNotFoundError:
        raise ToolchainError(f"{cmd[0]} not found - is it installed and on PATH?", command=cmd)
    except subprocess.TimeoutExpired:
        raise ToolchainError(f"{cmd[0]} timed out after {TOOL_TIMEOUT}s", command=cmd)

    if result.returncode != 0:
        raise ToolchainError(
            f"{cmd[0]} failed with exit status {result.returncode}",
            command=cmd,
            returncode=result.returncode,
            stderr=result.stderr,
        )


def assemble(
    asm_path: str | Path,
    object_path: Optional[str | Path] = None,
    options: Optional[CompilerOptions] = None,
) -> Path:
    """
    Assemble a NASM source file into an object file.

    Args:
        asm_path: Assembly source
        object_path: Output object file (default: asm_path with .o)
        options: Tool names and object format

    Returns:
        Path of the object file

    Raises:
        ToolchainError: If nasm is missing or rejects the input
    """
    options = options or CompilerOptions()
    asm_path = Path(asm_path)
    object_path = Path(object_path) if object_path else asm_path.with_suffix(".o")

    _run_tool([options.nasm, "-f", options.object_format, str(asm_path), "-o", str(object_path)])
    return object_path


def link(
    object_path: str | Path,
    exe_path: Optional[str | Path] = None,
    options: Optional[CompilerOptions] = None,
) -> Path:
    """
    Link an object file into an executable.

    Raises:
        ToolchainError: If ld is missing or fails
    """
    options = options or CompilerOptions()
    object_path = Path(object_path)
    exe_path = Path(exe_path) if exe_path else object_path.with_suffix("")

    _run_tool([options.ld, "-o", str(exe_path), str(object_path)])
    return exe_path


def build_executable(
    asm_path: str | Path,
    exe_path: Optional[str | Path] = None,
    options: Optional[CompilerOptions] = None,
) -> Path:
    """
    Assemble and link in one step.

    The intermediate object file is written next to the assembly source.

    Returns:
        Path of the linked executable
    """
    object_path = assemble(asm_path, options=options)
    exe_path = link(object_path, exe_path or Path(asm_path).with_suffix(""), options)
    logger.info(f"Built executable {exe_path}")
    return exe_path
