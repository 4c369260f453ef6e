"""
x86-64 Code Generator for Hydrogen
==================================

This module generates NASM assembly (Linux x86-64, ELF) from the Hydrogen
AST. The output is assembled with `nasm -felf64` and linked with `ld`.

Code Generation Strategy
------------------------
The generator uses a pure stack machine:

1. Every expression leaves exactly one 64-bit value pushed on the stack
2. Binary operations evaluate the right operand, then the left, pop the
   left into RAX and the right into RBX, combine them into RAX and push
3. Variables live in the stack slot their initializer was pushed into;
   they are read and written relative to RSP

The generator tracks a *virtual stack size* (number of values pushed and
not yet popped) so that a variable's offset from the current stack top
can be computed at compile time:

    offset = (stack_size - slot - 1) * 8

Register Usage
--------------
| Register | Usage                                    |
|----------|------------------------------------------|
| RAX      | Scratch A: left operand and result       |
| RBX      | Scratch B: right operand                 |
| RDX      | High half for MUL/IDIV                   |
| RDI      | exit status argument to the syscall      |
| RSP      | Stack pointer                            |

Bindings and Scopes
-------------------
Bindings are kept in one flat list in declaration order. Lookup scans
from the most recent binding backwards, which gives inner declarations
precedence over outer ones. Entering a scope records the list length;
leaving it discards every binding declared since and releases their
stack slots with a single `add rsp, n*8`.

Example output for `let x = 7; exit(x);`:

    global _start
    _start:
        ;; let x
        mov rax, 7
        push rax
        ;; exit
        push QWORD [rsp + 0]
        mov rax, 60
        pop rdi
        syscall
        ;; implicit exit(0)
        mov rax, 60
        mov rdi, 0
        syscall

Usage
-----
>>> from hydrogen.compiler.parser import parse_source
>>> from hydrogen.compiler.codegen import CodeGenerator
>>> asm = CodeGenerator().generate(parse_source("exit(3);"))
"""

import logging
from dataclasses import dataclass
from typing import Optional

from hydrogen.errors import SourceLocation
from hydrogen.compiler.ast import (
    ProgramNode,
    ExitStatement,
    LetStatement,
    AssignStatement,
    ScopeStatement,
    IfStatement,
    ElifClause,
    ElseClause,
    PredicateChain,
    Expression,
    IntLiteral,
    IdentifierExpression,
    ParenthesizedExpression,
    BinaryExpression,
    BinaryOperator,
)
from hydrogen.compiler.errors import (
    CodeGenError,
    DuplicateDeclarationError,
    UndeclaredIdentifierError,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Binding Table Entry
# =============================================================================

@dataclass(frozen=True)
class Binding:
    """
    A live variable.

    Attributes:
        name: Variable name
        slot: Virtual stack depth of the variable's value, fixed at declaration
        location: Where the variable was declared
    """
    name: str
    slot: int
    location: Optional[SourceLocation] = None


# =============================================================================
# Code Generator Class
# =============================================================================

class CodeGenerator:
    """
    Generates x86-64 NASM assembly from a Hydrogen AST.

    All bookkeeping (virtual stack size, binding table, scope markers,
    label counter) is reset at the start of every `generate()` call and
    left in place afterwards for inspection.

    Attributes:
        emit_comments: Emit ';; <statement>' markers into the output
        source_lines: Original source lines, quoted in binding errors
    """

    WORD_SIZE = 8
    EXIT_SYSCALL = 60

    # Operator instruction sequences, applied with the left operand in RAX
    # and the right operand in RBX. CQO sign-extends RAX into RDX so IDIV
    # never divides stale high bits.
    OPERATOR_INSTRUCTIONS: dict[BinaryOperator, tuple[tuple[str, str], ...]] = {
        BinaryOperator.ADD: (("add", "rax, rbx"),),
        BinaryOperator.SUB: (("sub", "rax, rbx"),),
        BinaryOperator.MUL: (("mul", "rbx"),),
        BinaryOperator.DIV: (("cqo", ""), ("idiv", "rbx")),
    }

    def __init__(self, emit_comments: bool = True, source_lines: Optional[list[str]] = None):
        self.emit_comments = emit_comments
        self.source_lines = source_lines or []
        self._reset()

    def _reset(self) -> None:
        self._output: list[str] = []
        self._stack_size = 0
        self._bindings: list[Binding] = []
        self._scope_markers: list[int] = []
        self._label_counter = 0

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def stack_size(self) -> int:
        """Number of values currently tracked on the virtual stack."""
        return self._stack_size

    @property
    def bindings(self) -> tuple[Binding, ...]:
        """Live bindings, oldest first."""
        return tuple(self._bindings)

    @property
    def scope_depth(self) -> int:
        """Number of currently open scopes."""
        return len(self._scope_markers)

    @property
    def label_count(self) -> int:
        """Number of labels minted so far."""
        return self._label_counter

    # =========================================================================
    # Entry Point
    # =========================================================================

    def generate(self, program: ProgramNode) -> str:
        """
        Generate assembly for a whole program.

        Args:
            program: The root AST node

        Returns:
            Complete NASM source text

        Raises:
            UndeclaredIdentifierError: Read or assignment of an unbound name
            DuplicateDeclarationError: 'let' of a name bound in the same scope
        """
        self._reset()

        self._emit("global _start")
        self._emit_label("_start")

        for stmt in program.statements:
            self._generate_statement(stmt)

        # Programs that never reach exit() still terminate successfully
        self._emit_comment("implicit exit(0)")
        self._emit_instruction("mov", f"rax, {self.EXIT_SYSCALL}")
        self._emit_instruction("mov", "rdi, 0")
        self._emit_instruction("syscall")

        logger.debug(
            f"Generated {len(self._output)} lines, {self._label_counter} labels, "
            f"{len(self._bindings)} top-level bindings"
        )
        return "\n".join(self._output) + "\n"

    generate_program = generate

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, line: str = "") -> None:
        self._output.append(line)

    def _emit_comment(self, comment: str) -> None:
        if self.emit_comments:
            self._emit(f"    ;; {comment}")

    def _emit_label(self, label: str) -> None:
        self._emit(f"{label}:")

    def _emit_instruction(self, mnemonic: str, operand: str = "") -> None:
        if operand:
            self._emit(f"    {mnemonic} {operand}")
        else:
            self._emit(f"    {mnemonic}")

    def _new_label(self) -> str:
        """Mint a label; labels are never reused within one program."""
        label = f"label{self._label_counter}"
        self._label_counter += 1
        return label

    def _push(self, operand: str) -> None:
        self._emit_instruction("push", operand)
        self._stack_size += 1

    def _pop(self, register: str) -> None:
        if self._stack_size == 0:
            raise CodeGenError("virtual stack underflow")
        self._emit_instruction("pop", register)
        self._stack_size -= 1

    # =========================================================================
    # Binding Table Management
    # =========================================================================

    def _get_source_line(self, location: Optional[SourceLocation]) -> Optional[str]:
        if location is not None and 0 < location.line <= len(self.source_lines):
            return self.source_lines[location.line - 1]
        return None

    def _lookup(self, name: str) -> Optional[Binding]:
        """Most recently declared live binding with this name."""
        for binding in reversed(self._bindings):
            if binding.name == name:
                return binding
        return None

    def _lookup_in_current_scope(self, name: str) -> Optional[Binding]:
        start = self._scope_markers[-1] if self._scope_markers else 0
        for binding in self._bindings[start:]:
            if binding.name == name:
                return binding
        return None

    def _require_binding(self, name: str, location: SourceLocation) -> Binding:
        binding = self._lookup(name)
        if binding is None:
            raise UndeclaredIdentifierError(name, location, self._get_source_line(location))
        return binding

    def _slot_offset(self, binding: Binding) -> int:
        """Byte offset of a binding's slot from the current stack top."""
        return (self._stack_size - binding.slot - 1) * self.WORD_SIZE

    def _begin_scope(self) -> None:
        self._scope_markers.append(len(self._bindings))

    def _end_scope(self) -> None:
        if not self._scope_markers:
            raise CodeGenError("scope closed without being opened")

        marker = self._scope_markers.pop()
        pop_count = len(self._bindings) - marker
        if pop_count > 0:
            self._emit_instruction("add", f"rsp, {pop_count * self.WORD_SIZE}")
            self._stack_size -= pop_count
            del self._bindings[marker:]

    # =========================================================================
    # Statement Generation
    # =========================================================================

    def _generate_statement(self, stmt) -> None:
        if isinstance(stmt, ExitStatement):
            self._generate_exit(stmt)
        elif isinstance(stmt, LetStatement):
            self._generate_let(stmt)
        elif isinstance(stmt, AssignStatement):
            self._generate_assign(stmt)
        elif isinstance(stmt, ScopeStatement):
            self._generate_scope(stmt)
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt)
        else:
            raise CodeGenError(
                f"no code generation rule for {type(stmt).__name__}",
                getattr(stmt, "location", None),
            )

    def _generate_exit(self, stmt: ExitStatement) -> None:
        self._emit_comment("exit")
        self._generate_expression(stmt.expression)
        self._emit_instruction("mov", f"rax, {self.EXIT_SYSCALL}")
        self._pop("rdi")
        self._emit_instruction("syscall")

    def _generate_let(self, stmt: LetStatement) -> None:
        """
        Declare a binding in the current scope.

        The slot is the stack depth the initializer's value will occupy.
        The binding only becomes visible after the initializer, so
        `let x = x + 1;` inside a scope reads the enclosing x.
        """
        existing = self._lookup_in_current_scope(stmt.name)
        if existing is not None:
            raise DuplicateDeclarationError(
                stmt.name,
                location=stmt.location,
                original_location=existing.location,
                source_line=self._get_source_line(stmt.location),
            )

        self._emit_comment(f"let {stmt.name}")
        slot = self._stack_size
        self._generate_expression(stmt.expression)
        self._bindings.append(Binding(stmt.name, slot, stmt.location))

    def _generate_assign(self, stmt: AssignStatement) -> None:
        binding = self._require_binding(stmt.name, stmt.location)

        self._emit_comment(f"assign {stmt.name}")
        self._generate_expression(stmt.expression)
        self._pop("rax")
        self._emit_instruction("mov", f"[rsp + {self._slot_offset(binding)}], rax")

    def _generate_scope(self, scope: ScopeStatement) -> None:
        self._begin_scope()
        for stmt in scope.statements:
            self._generate_statement(stmt)
        self._end_scope()

    def _generate_if(self, stmt: IfStatement) -> None:
        self._emit_comment("if")
        self._generate_expression(stmt.condition)
        self._pop("rax")
        false_label = self._new_label()
        self._emit_instruction("test", "rax, rax")
        self._emit_instruction("jz", false_label)
        self._generate_scope(stmt.scope)

        if stmt.chain is not None:
            end_label = self._new_label()
            self._emit_instruction("jmp", end_label)
            self._emit_label(false_label)
            self._generate_predicate_chain(stmt.chain, end_label)
            self._emit_label(end_label)
        else:
            self._emit_label(false_label)
        self._emit_comment("/if")

    def _generate_predicate_chain(self, chain: PredicateChain, end_label: str) -> None:
        if isinstance(chain, ElifClause):
            self._emit_comment("elif")
            self._generate_expression(chain.condition)
            self._pop("rax")
            false_label = self._new_label()
            self._emit_instruction("test", "rax, rax")
            self._emit_instruction("jz", false_label)
            self._generate_scope(chain.scope)
            self._emit_instruction("jmp", end_label)
            self._emit_label(false_label)
            if chain.chain is not None:
                self._generate_predicate_chain(chain.chain, end_label)
        elif isinstance(chain, ElseClause):
            self._emit_comment("else")
            self._generate_scope(chain.scope)
        else:
            raise CodeGenError(
                f"no code generation rule for {type(chain).__name__}",
                getattr(chain, "location", None),
            )

    # =========================================================================
    # Expression Generation
    # =========================================================================

    def _generate_expression(self, expr: Expression) -> None:
        """Generate code leaving the expression's value pushed on the stack."""
        if isinstance(expr, IntLiteral):
            self._emit_instruction("mov", f"rax, {expr.value}")
            self._push("rax")
        elif isinstance(expr, IdentifierExpression):
            binding = self._require_binding(expr.name, expr.location)
            self._push(f"QWORD [rsp + {self._slot_offset(binding)}]")
        elif isinstance(expr, ParenthesizedExpression):
            self._generate_expression(expr.inner)
        elif isinstance(expr, BinaryExpression):
            self._generate_binary(expr)
        else:
            raise CodeGenError(
                f"no code generation rule for {type(expr).__name__}",
                getattr(expr, "location", None),
            )

    def _generate_binary(self, expr: BinaryExpression) -> None:
        """
        Generate a binary operation.

        Right operand first, then left: the left value ends up on top and
        is popped into RAX, the right into RBX. Swapping this order would
        reverse '-' and '/'.
        """
        instructions = self.OPERATOR_INSTRUCTIONS.get(expr.operator)
        if instructions is None:
            raise CodeGenError(f"unsupported operator {expr.operator}", expr.location)

        self._generate_expression(expr.rhs)
        self._generate_expression(expr.lhs)
        self._pop("rax")
        self._pop("rbx")
        for mnemonic, operand in instructions:
            self._emit_instruction(mnemonic, operand)
        self._push("rax")
