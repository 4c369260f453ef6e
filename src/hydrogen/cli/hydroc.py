"""
hydroc - Hydrogen Compiler Command-Line Interface
=================================================

This module implements the command-line interface for the Hydrogen
compiler.

Usage Examples
--------------
Basic compilation (writes prog.asm):
    $ hydroc prog.hy

With output file:
    $ hydroc prog.hy -o out.asm

Assemble and link with nasm/ld:
    $ hydroc prog.hy --build && ./prog; echo $?

Run in the built-in emulator, exiting with the program's status:
    $ hydroc prog.hy --run

Inspect the front end:
    $ hydroc prog.hy --tokens
    $ hydroc prog.hy --ast
"""

import logging
import sys
import traceback
from pathlib import Path
from typing import Optional

import click

from hydrogen import __version__
from hydrogen.compiler import HydrogenCompiler, CompilerOptions
from hydrogen.compiler.ast import ASTPrinter
from hydrogen.compiler.lexer import tokenize
from hydrogen.cli.errors import ExitCode, describe_error


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def _default_executable(input_file: Path) -> Path:
    exe = input_file.with_suffix("")
    if exe == input_file:
        exe = input_file.with_suffix(".out")
    return exe


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output assembly file (default: input.asm)",
)
@click.option(
    "-b", "--build",
    is_flag=True,
    help="Assemble and link the output with nasm and ld",
)
@click.option(
    "--exe",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Executable path for --build (default: input without extension)",
)
@click.option(
    "--run",
    "run_program",
    is_flag=True,
    help="Run the program in the emulator and exit with its status",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print tokens and exit (for debugging)",
)
@click.option(
    "--no-comments",
    is_flag=True,
    help="Omit ';;' statement markers from the assembly",
)
@click.option(
    "--arena-capacity",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of AST nodes (default: 1048576 or HYDRO_ARENA_CAPACITY)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="hydroc")
def main(
    input_file: Path,
    output: Optional[Path],
    build: bool,
    exe: Optional[Path],
    run_program: bool,
    ast: bool,
    tokens: bool,
    no_comments: bool,
    arena_capacity: Optional[int],
    verbose: bool,
) -> None:
    """
    Compile Hydrogen source code to x86-64 NASM assembly.

    INPUT_FILE is the Hydrogen source file (.hy) to compile.

    \b
    Examples:
        hydroc prog.hy                 # Outputs prog.asm
        hydroc prog.hy -o out.asm      # Specify output file
        hydroc prog.hy --build         # Also produce ./prog via nasm + ld
        hydroc prog.hy --run           # Emulate; exit status is the program's
    """
    setup_logging(verbose)

    if output is None:
        output = input_file.with_suffix(".asm")

    options = CompilerOptions.from_env()
    if no_comments:
        options.emit_comments = False
    if arena_capacity is not None:
        options.arena_capacity = arena_capacity

    result = None
    try:
        source = input_file.read_text(encoding="utf-8")

        if tokens:
            for token in tokenize(source, str(input_file)):
                click.echo(f"{token.line}:{token.column}\t{token.type.name}\t{token.text}")
            return

        result = HydrogenCompiler(options).compile_source(source, str(input_file))

        if ast:
            click.echo(ASTPrinter().print(result.ast))
            return

        output.write_text(result.assembly, encoding="utf-8")

        if verbose:
            click.echo(f"Tokenized: {result.token_count} tokens")
            click.echo(f"Parsed: {len(result.ast.statements)} statements, {result.node_count} nodes")
            click.echo(f"Wrote {len(result.assembly)} bytes to {output}")

        click.echo(f"Compiled {input_file} -> {output}")

        if build:
            from hydrogen.toolchain import build_executable
            exe_path = build_executable(output, exe or _default_executable(input_file), options)
            click.echo(f"Built {exe_path}")

        if run_program:
            from hydrogen.emulator import run_assembly
            status = run_assembly(result.assembly)
            if verbose:
                click.echo(f"Program exited with status {status}")
            sys.exit(status)

    except Exception as e:
        code, message = describe_error(
            e,
            verbose,
            assembly_path=output,
            assembly=result.assembly if result is not None else None,
        )
        click.echo(message, err=True)
        if code == ExitCode.INTERNAL_ERROR and verbose:
            traceback.print_exc()
        sys.exit(code)


if __name__ == "__main__":
    main()
