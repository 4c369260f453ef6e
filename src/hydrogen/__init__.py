"""
Hydrogen - A Tiny Compiler for Linux x86-64
===========================================

This package provides a compiler for the Hydrogen language together with
the tools around it.

Main Components
---------------
- **compiler**: lexer, arena-owned AST, parser and NASM code generator
- **toolchain**: runs nasm and ld to turn generated assembly into an executable
- **emulator**: interprets the generated assembly subset without nasm/ld
- **cli**: the `hydroc` command

Quick Start
-----------
    >>> from hydrogen import compile_source, run_assembly
    >>> run_assembly(compile_source("exit(2 + 3 * 4);"))
    14

Or from the shell:
    $ hydroc prog.hy -o out.asm --build
    $ ./out; echo $?
"""

__version__ = "1.0.0"

from hydrogen.errors import (
    HydrogenError,
    SourceLocation,
    ToolchainError,
    EmulatorError,
)
from hydrogen.compiler import (
    HydrogenCompiler,
    CompilerOptions,
    CompilerResult,
    CompilerError,
    compile_source,
    compile_file,
)
from hydrogen.toolchain import assemble, link, build_executable
from hydrogen.emulator import Machine, run_assembly

__all__ = [
    "__version__",
    # Errors
    "HydrogenError",
    "SourceLocation",
    "ToolchainError",
    "EmulatorError",
    "CompilerError",
    # Compiler
    "HydrogenCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    "compile_file",
    # Toolchain
    "assemble",
    "link",
    "build_executable",
    # Emulator
    "Machine",
    "run_assembly",
]
