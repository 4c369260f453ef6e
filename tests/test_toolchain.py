"""
Toolchain Wrapper Tests
=======================

Tests for the nasm/ld wrapper. Command construction and error handling
are checked with subprocess.run replaced; the real tools are only used
when they are installed on an x86-64 Linux host.
"""

import subprocess

import pytest

from hydrogen import toolchain
from hydrogen.toolchain import assemble, link, build_executable
from hydrogen.compiler import CompilerOptions, compile_file
from hydrogen.errors import ToolchainError, HydrogenError


class FakeRun:
    """Records commands and returns a canned result."""

    def __init__(self, returncode: int = 0, stderr: str = "", raises=None):
        self.returncode = returncode
        self.stderr = stderr
        self.raises = raises
        self.commands: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        if self.raises is not None:
            raise self.raises
        return subprocess.CompletedProcess(cmd, self.returncode, "", self.stderr)


@pytest.fixture
def fake_run(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(toolchain.subprocess, "run", fake)
    return fake


class TestCommands:
    """Tests for the command lines handed to the tools."""

    def test_assemble_command(self, fake_run, tmp_path):
        asm = tmp_path / "prog.asm"
        obj = assemble(asm)
        assert obj == tmp_path / "prog.o"
        assert fake_run.commands == [
            ["nasm", "-f", "elf64", str(asm), "-o", str(tmp_path / "prog.o")],
        ]

    def test_link_command(self, fake_run, tmp_path):
        obj = tmp_path / "prog.o"
        exe = link(obj)
        assert exe == tmp_path / "prog"
        assert fake_run.commands == [["ld", "-o", str(tmp_path / "prog"), str(obj)]]

    def test_options_choose_tools(self, fake_run, tmp_path):
        options = CompilerOptions(nasm="/opt/nasm", ld="ld.gold", object_format="elfx32")
        assemble(tmp_path / "a.asm", tmp_path / "b.o", options)
        link(tmp_path / "b.o", tmp_path / "c", options)
        assert fake_run.commands[0][:3] == ["/opt/nasm", "-f", "elfx32"]
        assert fake_run.commands[0][-1] == str(tmp_path / "b.o")
        assert fake_run.commands[1][0] == "ld.gold"

    def test_build_executable_runs_both(self, fake_run, tmp_path):
        exe = build_executable(tmp_path / "prog.asm", tmp_path / "bin" / "prog")
        assert exe == tmp_path / "bin" / "prog"
        assert [cmd[0] for cmd in fake_run.commands] == ["nasm", "ld"]
        assert fake_run.commands[1][-1] == str(tmp_path / "prog.o")


class TestToolErrors:
    """Tests for failing tools."""

    def test_nonzero_exit(self, monkeypatch, tmp_path):
        monkeypatch.setattr(
            toolchain.subprocess, "run",
            FakeRun(returncode=1, stderr="prog.asm:3: error: parser: instruction expected\n"),
        )
        with pytest.raises(ToolchainError) as exc_info:
            assemble(tmp_path / "prog.asm")
        error = exc_info.value
        assert error.returncode == 1
        assert error.command[0] == "nasm"
        assert "instruction expected" in error.stderr
        assert "nasm failed with exit status 1" in str(error)
        assert "instruction expected" in str(error)

    def test_missing_tool(self, monkeypatch, tmp_path):
        monkeypatch.setattr(toolchain.subprocess, "run", FakeRun(raises=FileNotFoundError()))
        with pytest.raises(ToolchainError, match="ld not found"):
            link(tmp_path / "prog.o")

    def test_timeout(self, monkeypatch, tmp_path):
        monkeypatch.setattr(
            toolchain.subprocess, "run",
            FakeRun(raises=subprocess.TimeoutExpired(["nasm"], 60)),
        )
        with pytest.raises(ToolchainError, match="timed out"):
            assemble(tmp_path / "prog.asm")

    def test_link_skipped_when_assembly_fails(self, monkeypatch, tmp_path):
        fake = FakeRun(returncode=2)
        monkeypatch.setattr(toolchain.subprocess, "run", fake)
        with pytest.raises(HydrogenError):
            build_executable(tmp_path / "prog.asm")
        assert len(fake.commands) == 1


@pytest.mark.requires_toolchain
class TestRealToolchain:
    """Builds and runs real executables when nasm and ld are available."""

    @pytest.mark.parametrize("source, expected", [
        ("exit(2 + 3 * 4);", 14),
        ("let x = 1; { let x = 2; exit(x); }", 2),
        ("let r = 0; if (0) { r = 1; } elif (1) { r = 2; } else { r = 3; } exit(r);", 2),
        ("exit((0 - 7) / 2 + 10);", 7),
        ("let x = 3;", 0),
    ])
    def test_native_exit_status(self, has_toolchain, source_file, tmp_path, source, expected):
        if not has_toolchain:
            pytest.skip("nasm/ld not available on an x86-64 Linux host")

        src = source_file(source)
        asm = tmp_path / "prog.asm"
        compile_file(src, asm)
        exe = build_executable(asm, tmp_path / "prog")

        result = subprocess.run([str(exe)], timeout=10)
        assert result.returncode == expected
