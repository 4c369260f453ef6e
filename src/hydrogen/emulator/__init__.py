"""
Hydrogen Assembly Emulator
==========================

Interprets the x86-64 NASM subset emitted by the Hydrogen code generator,
so compiled programs can be run and their exit status checked without
nasm, ld or a Linux host.

Usage:
    from hydrogen.emulator import run_assembly
    status = run_assembly(assembly_text)
"""

from hydrogen.emulator.machine import (
    Machine,
    Instruction,
    run_assembly,
    DEFAULT_MAX_STEPS,
    STACK_TOP,
)

__all__ = [
    "Machine",
    "Instruction",
    "run_assembly",
    "DEFAULT_MAX_STEPS",
    "STACK_TOP",
]
