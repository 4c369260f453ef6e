"""
x86-64 Subset Interpreter
=========================

Executes the NASM assembly emitted by the Hydrogen code generator without
an assembler, linker or Linux host. It exists so generated programs can be
checked by their exit status anywhere Python runs.

Supported Subset
----------------
- Directives: `global`, `section` (ignored), `name:` labels
- mov   reg, imm | reg | QWORD [rsp + n]
- mov   [rsp + n], reg
- push  reg | imm | QWORD [rsp + n]
- pop   reg
- add / sub   reg, reg | imm   (including rsp)
- mul   reg        unsigned RDX:RAX = RAX * reg
- cqo              sign-extend RAX into RDX
- idiv  reg        signed RDX:RAX / reg, truncating toward zero
- test  reg, reg
- jz / jnz / jmp   label
- syscall          only exit (RAX = 60, status in RDI)

Registers hold unsigned 64-bit values; arithmetic wraps modulo 2**64.
Only the zero flag is modelled, which is all `jz`/`jnz` need.

Memory Model
------------
The stack is the only memory. It grows down from STACK_TOP in 8-byte
words; reading or popping at or above STACK_TOP is an underflow.

Example
-------
>>> from hydrogen.emulator import run_assembly
>>> run_assembly('''
... global _start
... _start:
...     mov rax, 60
...     mov rdi, 7
...     syscall
... ''')
7
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from hydrogen.errors import EmulatorError


logger = logging.getLogger(__name__)


WORD_SIZE = 8
MASK64 = (1 << 64) - 1
SIGN_BIT = 1 << 63
STACK_TOP = 0x7FFF_FFFF_F000
DEFAULT_MAX_STEPS = 1_000_000
SYS_EXIT = 60

REGISTERS = ("rax", "rbx", "rcx", "rdx", "rsi", "rdi", "rbp", "rsp",
             "r8", "r9", "r10", "r11", "r12", "r13", "r14", "r15")

_MEMORY_OPERAND = re.compile(
    r"^(?:qword\s+)?\[\s*(?P<base>[a-z0-9]+)\s*(?:(?P<sign>[+-])\s*(?P<disp>\w+)\s*)?\]$"
)
_LABEL = re.compile(r"^(?P<name>[A-Za-z_.$][\w.$]*):$")


def to_signed(value: int) -> int:
    """Interpret an unsigned 64-bit value as two's complement."""
    return value - (1 << 64) if value & SIGN_BIT else value


@dataclass(frozen=True)
class Instruction:
    """
    One decoded assembly instruction.

    Attributes:
        mnemonic: Lower-cased mnemonic
        operands: Operand texts, stripped and lower-cased
        line_number: 1-indexed source line for error messages
    """
    mnemonic: str
    operands: tuple[str, ...]
    line_number: int


class Machine:
    """
    Interpreter for the x86-64 subset produced by the code generator.

    Example:
        >>> machine = Machine()
        >>> machine.load(assembly_text)
        >>> status = machine.run()
        >>> machine.steps
        12
    """

    def __init__(self, max_steps: int = DEFAULT_MAX_STEPS):
        self.max_steps = max_steps
        self.program: list[Instruction] = []
        self.labels: dict[str, int] = {}

        self._handlers: dict[str, Callable[[Instruction], None]] = {
            "mov": self._op_mov,
            "push": self._op_push,
            "pop": self._op_pop,
            "add": self._op_add,
            "sub": self._op_sub,
            "mul": self._op_mul,
            "cqo": self._op_cqo,
            "idiv": self._op_idiv,
            "test": self._op_test,
            "jz": self._op_jz,
            "je": self._op_jz,
            "jnz": self._op_jnz,
            "jne": self._op_jnz,
            "jmp": self._op_jmp,
            "syscall": self._op_syscall,
        }
        self.reset()

    def reset(self) -> None:
        """Clear registers, stack and execution state; keep the loaded program."""
        self.registers: dict[str, int] = {name: 0 for name in REGISTERS}
        self.registers["rsp"] = STACK_TOP
        self.memory: dict[int, int] = {}
        self.zero_flag = False
        self.pc = self.labels.get("_start", 0)
        self.steps = 0
        self.halted = False
        self.exit_status: Optional[int] = None

    # ========================================
    # Loading
    # ========================================

    def load(self, text: str) -> None:
        """
        Decode assembly text and reset the machine to its entry point.

        Execution starts at `_start` when defined, otherwise at the first
        instruction.

        Raises:
            EmulatorError: On duplicate labels or unsupported mnemonics
        """
        self.program = []
        self.labels = {}

        for line_number, raw in enumerate(text.splitlines(), start=1):
            line = raw.split(";", 1)[0].strip()
            if not line:
                continue

            if match := _LABEL.match(line):
                name = match.group("name").lower()
                if name in self.labels:
                    raise EmulatorError(f"duplicate label '{name}'", line_number)
                self.labels[name] = len(self.program)
                continue

            parts = line.split(None, 1)
            mnemonic = parts[0].lower()
            if mnemonic in ("global", "section", "bits", "default", "extern"):
                continue
            if mnemonic not in self._handlers:
                raise EmulatorError(f"unsupported instruction '{mnemonic}'", line_number)

            operands: tuple[str, ...] = ()
            if len(parts) > 1:
                operands = tuple(op.strip().lower() for op in parts[1].split(","))
            self.program.append(Instruction(mnemonic, operands, line_number))

        self.reset()
        logger.debug(f"Loaded {len(self.program)} instructions, {len(self.labels)} labels")

    # ========================================
    # Execution
    # ========================================

    def step(self) -> bool:
        """
        Execute one instruction.

        Returns:
            False once the program has exited, True otherwise
        """
        if self.halted:
            return False

        if self.pc >= len(self.program):
            raise EmulatorError("execution ran past the last instruction")
        if self.steps >= self.max_steps:
            raise EmulatorError(f"step limit of {self.max_steps} exceeded")

        instruction = self.program[self.pc]
        self.pc += 1
        self.steps += 1
        try:
            self._handlers[instruction.mnemonic](instruction)
        except EmulatorError as e:
            if e.line_number:
                raise
            raise EmulatorError(str(e), instruction.line_number) from None

        return not self.halted

    def run(self) -> int:
        """
        Run until the program exits.

        Returns:
            The exit status as the OS reports it (low 8 bits of RDI)
        """
        while self.step():
            pass
        logger.debug(f"Exited with status {self.exit_status} after {self.steps} steps")
        return self.exit_status

    # ========================================
    # Operand Access
    # ========================================

    def _register(self, name: str) -> str:
        if name not in self.registers:
            raise EmulatorError(f"unknown register '{name}'")
        return name

    def _address(self, operand: str) -> Optional[int]:
        """Effective address of a memory operand, or None for non-memory operands."""
        match = _MEMORY_OPERAND.match(operand)
        if match is None:
            return None

        address = self.registers[self._register(match.group("base"))]
        if match.group("disp"):
            displacement = self._immediate(match.group("disp"))
            if match.group("sign") == "-":
                displacement = -displacement
            address += displacement
        return address

    def _immediate(self, operand: str) -> int:
        # NASM reads plain digit strings as decimal, leading zeros included
        digits = operand[1:] if operand[:1] in "+-" else operand
        try:
            if digits.isdigit():
                return int(operand, 10)
            return int(operand, 0)
        except ValueError:
            raise EmulatorError(f"invalid operand '{operand}'") from None

    def _read_memory(self, address: int) -> int:
        if address >= STACK_TOP or address < self.registers["rsp"]:
            raise EmulatorError(f"read outside the live stack at 0x{address:X}")
        return self.memory.get(address, 0)

    def _write_memory(self, address: int, value: int) -> None:
        if address >= STACK_TOP or address < self.registers["rsp"]:
            raise EmulatorError(f"write outside the live stack at 0x{address:X}")
        self.memory[address] = value & MASK64

    def _read(self, operand: str) -> int:
        """Value of a register, memory or immediate operand."""
        if operand in self.registers:
            return self.registers[operand]
        address = self._address(operand)
        if address is not None:
            return self._read_memory(address)
        return self._immediate(operand) & MASK64

    def _expect_operands(self, instruction: Instruction, count: int) -> tuple[str, ...]:
        if len(instruction.operands) != count:
            raise EmulatorError(
                f"'{instruction.mnemonic}' takes {count} operand(s), "
                f"got {len(instruction.operands)}"
            )
        return instruction.operands

    def _push_value(self, value: int) -> None:
        self.registers["rsp"] -= WORD_SIZE
        self.memory[self.registers["rsp"]] = value & MASK64

    def _pop_value(self) -> int:
        rsp = self.registers["rsp"]
        if rsp >= STACK_TOP:
            raise EmulatorError("stack underflow")
        value = self.memory.pop(rsp, 0)
        self.registers["rsp"] = rsp + WORD_SIZE
        return value

    def _jump(self, label: str) -> None:
        if label not in self.labels:
            raise EmulatorError(f"jump to undefined label '{label}'")
        self.pc = self.labels[label]

    # ========================================
    # Instruction Handlers
    # ========================================

    def _op_mov(self, instruction: Instruction) -> None:
        dst, src = self._expect_operands(instruction, 2)
        value = self._read(src)
        if dst in self.registers:
            self.registers[dst] = value
            return
        address = self._address(dst)
        if address is None:
            raise EmulatorError(f"invalid mov destination '{dst}'")
        self._write_memory(address, value)

    def _op_push(self, instruction: Instruction) -> None:
        (src,) = self._expect_operands(instruction, 1)
        # The source address uses RSP from before the push
        self._push_value(self._read(src))

    def _op_pop(self, instruction: Instruction) -> None:
        (dst,) = self._expect_operands(instruction, 1)
        self.registers[self._register(dst)] = self._pop_value()

    def _arith(self, instruction: Instruction, combine: Callable[[int, int], int]) -> None:
        dst, src = self._expect_operands(instruction, 2)
        dst = self._register(dst)
        result = combine(self.registers[dst], self._read(src)) & MASK64
        if dst == "rsp" and result > STACK_TOP:
            raise EmulatorError("stack underflow")
        self.registers[dst] = result
        self.zero_flag = result == 0

    def _op_add(self, instruction: Instruction) -> None:
        self._arith(instruction, lambda a, b: a + b)

    def _op_sub(self, instruction: Instruction) -> None:
        self._arith(instruction, lambda a, b: a - b)

    def _op_mul(self, instruction: Instruction) -> None:
        (src,) = self._expect_operands(instruction, 1)
        product = self.registers["rax"] * self._read(src)
        self.registers["rax"] = product & MASK64
        self.registers["rdx"] = (product >> 64) & MASK64

    def _op_cqo(self, instruction: Instruction) -> None:
        self._expect_operands(instruction, 0)
        self.registers["rdx"] = MASK64 if self.registers["rax"] & SIGN_BIT else 0

    def _op_idiv(self, instruction: Instruction) -> None:
        (src,) = self._expect_operands(instruction, 1)
        divisor = to_signed(self._read(src))
        if divisor == 0:
            raise EmulatorError("division by zero")

        combined = (self.registers["rdx"] << 64) | self.registers["rax"]
        if combined & (1 << 127):
            combined -= 1 << 128

        quotient = abs(combined) // abs(divisor)
        if (combined < 0) != (divisor < 0):
            quotient = -quotient
        if not -(1 << 63) <= quotient < (1 << 63):
            raise EmulatorError("division overflow")
        remainder = combined - quotient * divisor

        self.registers["rax"] = quotient & MASK64
        self.registers["rdx"] = remainder & MASK64

    def _op_test(self, instruction: Instruction) -> None:
        a, b = self._expect_operands(instruction, 2)
        self.zero_flag = (self._read(a) & self._read(b)) == 0

    def _op_jz(self, instruction: Instruction) -> None:
        (label,) = self._expect_operands(instruction, 1)
        if self.zero_flag:
            self._jump(label)

    def _op_jnz(self, instruction: Instruction) -> None:
        (label,) = self._expect_operands(instruction, 1)
        if not self.zero_flag:
            self._jump(label)

    def _op_jmp(self, instruction: Instruction) -> None:
        (label,) = self._expect_operands(instruction, 1)
        self._jump(label)

    def _op_syscall(self, instruction: Instruction) -> None:
        self._expect_operands(instruction, 0)
        number = self.registers["rax"]
        if number != SYS_EXIT:
            raise EmulatorError(f"unsupported syscall {number}")
        self.exit_status = self.registers["rdi"] & 0xFF
        self.halted = True


def run_assembly(text: str, max_steps: int = DEFAULT_MAX_STEPS) -> int:
    """
    Load and run assembly text, returning its exit status.

    Raises:
        EmulatorError: On any invalid state or when max_steps is exceeded
    """
    machine = Machine(max_steps)
    machine.load(text)
    return machine.run()
