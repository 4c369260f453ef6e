"""
Hydrogen Compiler Main Module
=============================

This module provides the main compiler interface. It orchestrates the
complete compilation process:

    Source → Lex → Parse (arena-owned AST) → Generate → Assembly

Usage
-----
Command line:
    $ hydroc hello.hy -o hello.asm

Programmatic:
    >>> from hydrogen.compiler import compile_source
    >>> asm = compile_source('exit(0);')

Error Handling
--------------
Compilation is fail-fast: the first error raised by any stage propagates
to the caller unchanged and no assembly is returned.

Configuration
-------------
CompilerOptions holds the settings. Defaults can be overridden from the
environment with `CompilerOptions.from_env()`:

    HYDRO_ARENA_CAPACITY   maximum AST nodes per compilation (integer)
    HYDRO_EMIT_COMMENTS    0/1/true/false, statement markers in output
    HYDRO_NASM             assembler executable
    HYDRO_LD               linker executable
    HYDRO_OBJECT_FORMAT    nasm -f argument (default elf64)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from hydrogen.compiler.arena import Arena, DEFAULT_ARENA_CAPACITY
from hydrogen.compiler.lexer import Lexer, Token, source_lines
from hydrogen.compiler.parser import Parser
from hydrogen.compiler.codegen import CodeGenerator
from hydrogen.compiler.ast import ProgramNode


logger = logging.getLogger(__name__)


_TRUE_WORDS = ("1", "true", "yes", "on")
_FALSE_WORDS = ("0", "false", "no", "off")


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        arena_capacity: Maximum number of AST nodes one compilation may allocate
        emit_comments: Emit ';; <statement>' markers in the assembly
        nasm: Assembler executable used by the toolchain wrapper
        ld: Linker executable used by the toolchain wrapper
        object_format: Object format passed to nasm -f
    """
    arena_capacity: int = DEFAULT_ARENA_CAPACITY
    emit_comments: bool = True
    nasm: str = "nasm"
    ld: str = "ld"
    object_format: str = "elf64"

    @classmethod
    def from_env(cls) -> "CompilerOptions":
        """
        Create CompilerOptions from HYDRO_* environment variables.

        Invalid values are ignored and the default is kept.
        """
        options = cls()

        if capacity := os.environ.get("HYDRO_ARENA_CAPACITY"):
            try:
                value = int(capacity)
            except ValueError:
                logger.warning(f"Ignoring invalid HYDRO_ARENA_CAPACITY={capacity!r}")
            else:
                if value > 0:
                    options.arena_capacity = value

        if comments := os.environ.get("HYDRO_EMIT_COMMENTS"):
            if comments.lower() in _TRUE_WORDS:
                options.emit_comments = True
            elif comments.lower() in _FALSE_WORDS:
                options.emit_comments = False

        if nasm := os.environ.get("HYDRO_NASM"):
            options.nasm = nasm

        if ld := os.environ.get("HYDRO_LD"):
            options.ld = ld

        if object_format := os.environ.get("HYDRO_OBJECT_FORMAT"):
            options.object_format = object_format

        return options


@dataclass
class CompilerResult:
    """
    Result of a successful compilation.

    Attributes:
        filename: Source filename
        assembly: Generated assembly code
        ast: The program's AST
        tokens: Tokens produced by the lexer
        node_count: Number of AST nodes allocated in the arena
    """
    filename: str = ""
    assembly: str = ""
    ast: Optional[ProgramNode] = None
    tokens: list[Token] = field(default_factory=list)
    node_count: int = 0

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class HydrogenCompiler:
    """
    Hydrogen compiler front door.

    Each compilation gets its own arena, parser and generator; nothing is
    shared between calls.

    Example:
        compiler = HydrogenCompiler()
        result = compiler.compile_file("hello.hy")
        print(result.assembly)
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile Hydrogen source code to assembly.

        Raises:
            CompilerError: On the first lexical, syntax or binding error
        """
        result = CompilerResult(filename=filename)

        # Stage 1: Lexical analysis
        result.tokens = Lexer(source, filename).tokenize()
        logger.debug(f"{filename}: {result.token_count} tokens")

        # Stage 2: Parsing into a fresh arena
        arena = Arena(self.options.arena_capacity)
        parser = Parser(result.tokens, filename, source_lines(source), arena)
        result.ast = parser.parse()
        result.node_count = len(arena)

        # Stage 3: Code generation
        generator = CodeGenerator(self.options.emit_comments, source_lines(source))
        result.assembly = generator.generate(result.ast)
        logger.debug(f"{filename}: {len(result.assembly)} bytes of assembly")

        return result

    def compile_file(self, filepath: str | Path) -> CompilerResult:
        """
        Compile a Hydrogen source file.

        Raises:
            FileNotFoundError: If the source file does not exist
            CompilerError: If compilation fails
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(filepath))


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(
    source: str,
    filename: str = "<input>",
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile Hydrogen source code and return the assembly text.

    Example:
        >>> asm = compile_source("let x = 6 / 2; exit(x);")
    """
    return HydrogenCompiler(options).compile_source(source, filename).assembly


def compile_file(
    filepath: str | Path,
    output_path: Optional[str | Path] = None,
    options: Optional[CompilerOptions] = None,
) -> str:
    """
    Compile a Hydrogen source file, optionally writing the assembly out.

    Returns:
        The generated assembly code
    """
    result = HydrogenCompiler(options).compile_file(filepath)

    if output_path:
        Path(output_path).write_text(result.assembly, encoding="utf-8")
        logger.info(f"Wrote {output_path}")

    return result.assembly
