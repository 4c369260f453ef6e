"""
Hydrogen Abstract Syntax Tree (AST) Definitions
===============================================

This module defines the AST node types built by the parser and consumed
by the code generator.

Node Hierarchy
--------------
ASTNode (base)
├── ProgramNode - root node, ordered top-level statements
├── Statements
│   ├── ExitStatement - exit(expr);
│   ├── LetStatement - let name = expr;
│   ├── AssignStatement - name = expr;
│   ├── ScopeStatement - { statement* }
│   └── IfStatement - if (expr) scope [predicate chain]
├── Predicate chain
│   ├── ElifClause - elif (expr) scope [predicate chain]
│   └── ElseClause - else scope
└── Expressions
    ├── IntLiteral - integer constant (kept as its source text)
    ├── IdentifierExpression - variable reference
    ├── ParenthesizedExpression - ( expr )
    └── BinaryExpression - lhs op rhs

Design Notes
------------
- Nodes are frozen dataclasses: the tree is read-only once built
- Child sequences are tuples
- Each node stores its source location for error reporting
- The variant sets are closed; code dispatching over them ends in an
  error branch for anything unexpected
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from hydrogen.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts
    """
    location: SourceLocation

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}@{self.location.line}:{self.location.column}"


@dataclass(frozen=True)
class Expression(ASTNode):
    """Base class for nodes that evaluate to one integer value."""
    pass


@dataclass(frozen=True)
class Statement(ASTNode):
    """Base class for statement nodes."""
    pass


# =============================================================================
# Operators
# =============================================================================

class BinaryOperator(Enum):
    """Binary arithmetic operators; the value is the source symbol."""
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class IntLiteral(Expression):
    """
    Integer literal expression.

    Attributes:
        value: The literal's digits exactly as written
    """
    value: str = "0"


@dataclass(frozen=True)
class IdentifierExpression(Expression):
    """Variable reference expression."""
    name: str = ""


@dataclass(frozen=True)
class ParenthesizedExpression(Expression):
    """
    Parenthesized expression. Grouping only, no instructions of its own.

    Attributes:
        inner: The enclosed expression
    """
    inner: Expression = None


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Binary operation expression (lhs op rhs).

    The parser always builds these by folding the expression accumulated
    so far into `lhs`, so a chain like a - b - c is ((a - b) - c).

    Attributes:
        operator: The binary operator
        lhs: Left operand
        rhs: Right operand
    """
    operator: BinaryOperator = None
    lhs: Expression = None
    rhs: Expression = None


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class ExitStatement(Statement):
    """exit(expression); terminates the process with the value as status."""
    expression: Expression = None


@dataclass(frozen=True)
class LetStatement(Statement):
    """
    Declaration of a new binding.

    Attributes:
        name: The declared name
        expression: Initializer
    """
    name: str = ""
    expression: Expression = None


@dataclass(frozen=True)
class AssignStatement(Statement):
    """Store into an existing binding (name = expression;)."""
    name: str = ""
    expression: Expression = None


@dataclass(frozen=True)
class ScopeStatement(Statement):
    """
    Braced block introducing a nested lexical region.

    Attributes:
        statements: Statements in source order
    """
    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class ElseClause(ASTNode):
    """Terminal 'else' of a predicate chain."""
    scope: ScopeStatement = None


@dataclass(frozen=True)
class ElifClause(ASTNode):
    """
    'elif' link of a predicate chain.

    Attributes:
        condition: Tested when every earlier condition was zero
        scope: Executed when the condition is non-zero
        chain: Optional next link
    """
    condition: Expression = None
    scope: ScopeStatement = None
    chain: Optional["PredicateChain"] = None


PredicateChain = Union[ElifClause, ElseClause]


@dataclass(frozen=True)
class IfStatement(Statement):
    """
    Conditional statement.

    Attributes:
        condition: Non-zero selects `scope`
        scope: The "then" scope
        chain: Optional elif/else continuation
    """
    condition: Expression = None
    scope: ScopeStatement = None
    chain: Optional[PredicateChain] = None


# =============================================================================
# Program Root Node
# =============================================================================

@dataclass(frozen=True)
class ProgramNode(ASTNode):
    """Root node: the ordered top-level statements of one source file."""
    statements: tuple[Statement, ...] = ()


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care
    about; everything else falls through to generic_visit, which walks
    the children.

        class LetCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_LetStatement(self, node):
                self.count += 1
                self.generic_visit(node)
    """

    def visit(self, node: ASTNode):
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all child nodes in field order."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, tuple):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging (hydroc --ast).

        printer = ASTPrinter()
        print(printer.print(program))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _nested(self, node: ASTNode) -> None:
        self.indent_level += 1
        self.visit(node)
        self.indent_level -= 1

    def visit_ProgramNode(self, node: ProgramNode):
        self._emit("Program")
        for stmt in node.statements:
            self._nested(stmt)

    def visit_ExitStatement(self, node: ExitStatement):
        self._emit(f"Exit {self._expr_str(node.expression)}")

    def visit_LetStatement(self, node: LetStatement):
        self._emit(f"Let {node.name} = {self._expr_str(node.expression)}")

    def visit_AssignStatement(self, node: AssignStatement):
        self._emit(f"Assign {node.name} = {self._expr_str(node.expression)}")

    def visit_ScopeStatement(self, node: ScopeStatement):
        self._emit("Scope")
        for stmt in node.statements:
            self._nested(stmt)

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If ({self._expr_str(node.condition)})")
        self._nested(node.scope)
        if node.chain is not None:
            self.visit(node.chain)

    def visit_ElifClause(self, node: ElifClause):
        self._emit(f"Elif ({self._expr_str(node.condition)})")
        self._nested(node.scope)
        if node.chain is not None:
            self.visit(node.chain)

    def visit_ElseClause(self, node: ElseClause):
        self._emit("Else")
        self._nested(node.scope)

    def _expr_str(self, expr: Expression) -> str:
        """Render an expression with explicit grouping of binary operations."""
        if isinstance(expr, IntLiteral):
            return expr.value
        if isinstance(expr, IdentifierExpression):
            return expr.name
        if isinstance(expr, ParenthesizedExpression):
            return self._expr_str(expr.inner)
        if isinstance(expr, BinaryExpression):
            return f"({self._expr_str(expr.lhs)} {expr.operator.value} {self._expr_str(expr.rhs)})"
        return f"<{type(expr).__name__}>"
