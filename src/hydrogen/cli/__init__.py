"""
Hydrogen Command-Line Interface
===============================

- **hydroc**: compile Hydrogen source to NASM assembly, optionally
  building an executable with nasm/ld or running it in the emulator

The tool is a Click application; exit codes are defined in cli.errors.
"""

__all__ = ["hydroc"]
