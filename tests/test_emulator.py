"""
Assembly Emulator Test Suite
============================

Tests for the x86-64 subset interpreter used to run generated programs.
"""

import pytest

from hydrogen.errors import EmulatorError
from hydrogen.emulator import Machine, run_assembly, STACK_TOP


def program(*lines: str) -> str:
    return "\n".join(["global _start", "_start:", *lines])


EXIT_WITH_RDI = ("mov rax, 60", "syscall")


class TestExecution:
    """Tests for normal execution."""

    def test_exit_status(self):
        assert run_assembly(program("mov rdi, 7", *EXIT_WITH_RDI)) == 7

    def test_status_is_low_byte(self):
        """The OS only reports the low 8 bits of the status."""
        assert run_assembly(program("mov rdi, 259", *EXIT_WITH_RDI)) == 3

    def test_comments_and_blank_lines_ignored(self):
        text = program(
            "",
            "    ;; a comment",
            "    mov rdi, 1 ; trailing",
            *EXIT_WITH_RDI,
        )
        assert run_assembly(text) == 1

    def test_entry_is_start_label(self):
        text = "\n".join([
            "skipped:",
            "    mov rdi, 9",
            "    mov rax, 60",
            "    syscall",
            "_start:",
            "    mov rdi, 4",
            "    mov rax, 60",
            "    syscall",
        ])
        assert run_assembly(text) == 4

    def test_push_pop_and_stack_memory(self):
        text = program(
            "mov rax, 5",
            "push rax",
            "mov rax, 6",
            "push rax",
            "push QWORD [rsp + 8]",
            "pop rdi",
            *EXIT_WITH_RDI,
        )
        assert run_assembly(text) == 5

    def test_store_to_stack(self):
        text = program(
            "mov rax, 1",
            "push rax",
            "mov rax, 2",
            "push rax",
            "mov rax, 42",
            "mov [rsp + 8], rax",
            "add rsp, 8",
            "pop rdi",
            *EXIT_WITH_RDI,
        )
        assert run_assembly(text) == 42

    def test_conditional_jump(self):
        text = program(
            "mov rax, 0",
            "test rax, rax",
            "jz zero",
            "mov rdi, 1",
            "jmp done",
            "zero:",
            "mov rdi, 2",
            "done:",
            *EXIT_WITH_RDI,
        )
        assert run_assembly(text) == 2

    def test_machine_state_after_run(self):
        machine = Machine()
        machine.load(program("mov rdi, 3", *EXIT_WITH_RDI))
        assert machine.run() == 3
        assert machine.halted
        assert machine.steps == 3
        assert machine.registers["rsp"] == STACK_TOP
        assert machine.step() is False


class TestArithmetic:
    """Tests for 64-bit arithmetic semantics."""

    def test_subtraction_wraps(self):
        text = program("mov rax, 0", "mov rbx, 1", "sub rax, rbx", "mov rdi, rax", *EXIT_WITH_RDI)
        machine = Machine()
        machine.load(text)
        assert machine.run() == 255
        assert machine.registers["rdi"] == (1 << 64) - 1

    def test_mul_sets_high_half(self):
        machine = Machine()
        machine.load(program(
            "mov rax, 0x8000000000000000",
            "mov rbx, 4",
            "mul rbx",
            "mov rcx, rax",
            "mov rdi, rdx",
            *EXIT_WITH_RDI,
        ))
        assert machine.run() == 2
        assert machine.registers["rcx"] == 0

    def test_signed_division_truncates(self):
        """-7 / 2 is -3 (toward zero), remainder -1."""
        machine = Machine()
        machine.load(program(
            "mov rax, -7",
            "cqo",
            "mov rbx, 2",
            "idiv rbx",
            "mov rcx, rax",
            "mov rdi, rax",
            *EXIT_WITH_RDI,
        ))
        machine.run()
        assert machine.registers["rcx"] == (-3) & ((1 << 64) - 1)
        assert machine.registers["rdx"] == (-1) & ((1 << 64) - 1)

    def test_leading_zero_immediates_are_decimal(self):
        assert run_assembly(program("mov rdi, 010", *EXIT_WITH_RDI)) == 10
        assert run_assembly(program("mov rdi, 0x10", *EXIT_WITH_RDI)) == 16

    def test_cqo_positive_clears_rdx(self):
        machine = Machine()
        machine.load(program("mov rdx, 99", "mov rax, 5", "cqo", "mov rdi, rdx", *EXIT_WITH_RDI))
        assert machine.run() == 0


class TestEmulatorErrors:
    """Tests for invalid programs."""

    def test_division_by_zero(self):
        text = program("mov rax, 1", "cqo", "mov rbx, 0", "idiv rbx", *EXIT_WITH_RDI)
        with pytest.raises(EmulatorError, match="division by zero"):
            run_assembly(text)

    def test_stack_underflow(self):
        with pytest.raises(EmulatorError, match="stack underflow"):
            run_assembly(program("pop rax"))

    def test_releasing_too_much_stack(self):
        with pytest.raises(EmulatorError, match="stack underflow"):
            run_assembly(program("add rsp, 8"))

    def test_unsupported_instruction(self):
        with pytest.raises(EmulatorError) as exc_info:
            run_assembly(program("nop"))
        assert exc_info.value.line_number == 3
        assert "unsupported instruction 'nop'" in str(exc_info.value)

    def test_unsupported_syscall(self):
        with pytest.raises(EmulatorError, match="unsupported syscall 1"):
            run_assembly(program("mov rax, 1", "syscall"))

    def test_undefined_label(self):
        with pytest.raises(EmulatorError, match="undefined label 'nowhere'"):
            run_assembly(program("jmp nowhere"))

    def test_duplicate_label(self):
        with pytest.raises(EmulatorError, match="duplicate label"):
            run_assembly(program("again:", "again:"))

    def test_running_off_the_end(self):
        with pytest.raises(EmulatorError, match="ran past the last instruction"):
            run_assembly(program("mov rax, 1"))

    def test_step_limit(self):
        with pytest.raises(EmulatorError, match="step limit"):
            run_assembly(program("loop:", "jmp loop"), max_steps=100)

    def test_runtime_error_carries_line(self):
        with pytest.raises(EmulatorError) as exc_info:
            run_assembly(program("mov rax, 1", "pop rbx"))
        assert exc_info.value.line_number == 4
        assert str(exc_info.value).startswith("line 4: ")
