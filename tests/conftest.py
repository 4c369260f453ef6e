"""
Hydrogen Test Configuration
===========================

Shared fixtures for the Hydrogen test suite:

    run_source    - compile source and run it in the emulator, returning
                    the exit status
    source_file   - write source text to a temporary .hy file
    has_toolchain - True when nasm and ld are on PATH (session-scoped)
"""

import platform
import shutil
from pathlib import Path
from typing import Callable

import pytest

from hydrogen.compiler import compile_source
from hydrogen.emulator import run_assembly


@pytest.fixture
def run_source() -> Callable[[str], int]:
    """
    Fixture: compile and emulate a program.

    Example:
        def test_exit(run_source):
            assert run_source("exit(3);") == 3
    """
    def _run(source: str) -> int:
        return run_assembly(compile_source(source, "test.hy"))
    return _run


@pytest.fixture
def source_file(tmp_path: Path) -> Callable[..., Path]:
    """Fixture: factory writing a source file under tmp_path."""
    def _write(text: str, name: str = "prog.hy") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture(scope="session")
def has_toolchain() -> bool:
    return (
        platform.system() == "Linux"
        and platform.machine() in ("x86_64", "AMD64")
        and shutil.which("nasm") is not None
        and shutil.which("ld") is not None
    )
