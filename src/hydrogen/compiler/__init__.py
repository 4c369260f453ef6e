"""
Hydrogen Compiler
=================

This package implements the compiler for Hydrogen, a tiny imperative
language with integer variables, block scopes, if/elif/else and an
exit statement. It emits x86-64 NASM assembly for Linux.

- A lexer (tokenizer) for Hydrogen source
- A recursive descent parser producing an arena-owned AST
- A stack-machine code generator emitting NASM assembly

Pipeline
--------
    Source → Lexer → Parser → AST → Code Generator → Assembly

The generated assembly is assembled with nasm and linked with ld (see
hydrogen.toolchain), or interpreted directly by hydrogen.emulator.

Usage
-----
>>> from hydrogen.compiler import compile_source
>>> asm = compile_source('''
... let x = 6;
... if (x - 6) {
...     exit(1);
... } else {
...     exit(x * 7);
... }
... ''')

Language Summary
----------------
- One type: signed 64-bit integer
- Operators: + - * / (left-associative; * and / bind tighter)
- Statements: exit(e); let x = e; x = e; { ... } if (e) { ... } elif/else
- Comments: // to end of line, /* ... */
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Imports
# =============================================================================

from hydrogen.compiler.compiler import (
    HydrogenCompiler,
    CompilerOptions,
    CompilerResult,
    compile_source,
    compile_file,
)
from hydrogen.compiler.errors import (
    CompilerError,
    HydroSyntaxError,
    InvalidCharacterError,
    UnexpectedTokenError,
    MissingTokenError,
    NestingTooDeepError,
    HydroSemanticError,
    UndeclaredIdentifierError,
    DuplicateDeclarationError,
    ArenaExhaustedError,
    CodeGenError,
)
from hydrogen.compiler.arena import Arena, DEFAULT_ARENA_CAPACITY
from hydrogen.compiler.lexer import Lexer, Token, TokenType, tokenize, source_lines
from hydrogen.compiler.parser import Parser, parse_source
from hydrogen.compiler.codegen import CodeGenerator, Binding
from hydrogen.compiler.ast import (
    ASTNode,
    ASTVisitor,
    ASTPrinter,
    ProgramNode,
    ExitStatement,
    LetStatement,
    AssignStatement,
    ScopeStatement,
    IfStatement,
    ElifClause,
    ElseClause,
    IntLiteral,
    IdentifierExpression,
    ParenthesizedExpression,
    BinaryExpression,
    BinaryOperator,
)

__all__ = [
    "__version__",
    # Main API
    "HydrogenCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    "compile_file",
    # Errors
    "CompilerError",
    "HydroSyntaxError",
    "InvalidCharacterError",
    "UnexpectedTokenError",
    "MissingTokenError",
    "NestingTooDeepError",
    "HydroSemanticError",
    "UndeclaredIdentifierError",
    "DuplicateDeclarationError",
    "ArenaExhaustedError",
    "CodeGenError",
    # Arena
    "Arena",
    "DEFAULT_ARENA_CAPACITY",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "source_lines",
    # Parser
    "Parser",
    "parse_source",
    # Code Generator
    "CodeGenerator",
    "Binding",
    # AST Nodes
    "ASTNode",
    "ASTVisitor",
    "ASTPrinter",
    "ProgramNode",
    "ExitStatement",
    "LetStatement",
    "AssignStatement",
    "ScopeStatement",
    "IfStatement",
    "ElifClause",
    "ElseClause",
    "IntLiteral",
    "IdentifierExpression",
    "ParenthesizedExpression",
    "BinaryExpression",
    "BinaryOperator",
]
