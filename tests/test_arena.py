"""
AST Arena Test Suite
====================

Tests for node ownership, the capacity limit, the copy ban and
ownership transfer.
"""

import copy
import pickle

import pytest

from hydrogen.errors import SourceLocation
from hydrogen.compiler.arena import Arena, DEFAULT_ARENA_CAPACITY
from hydrogen.compiler.ast import IntLiteral
from hydrogen.compiler.errors import ArenaExhaustedError, CompilerError
from hydrogen.compiler.parser import parse_source
from hydrogen.compiler.compiler import HydrogenCompiler, CompilerOptions


LOC = SourceLocation("test.hy", 1, 1)


def literal(value: str = "1") -> IntLiteral:
    return IntLiteral(location=LOC, value=value)


class TestAllocation:
    """Tests for allocate()."""

    def test_default_capacity(self):
        assert Arena().capacity == DEFAULT_ARENA_CAPACITY == 1 << 20

    def test_allocate_returns_same_node(self):
        """The handle handed back is the node itself."""
        arena = Arena()
        node = literal()
        assert arena.allocate(node) is node

    def test_counts(self):
        arena = Arena(capacity=10)
        for i in range(3):
            arena.allocate(literal(str(i)))
        assert len(arena) == 3
        assert arena.remaining == 7

    def test_membership_is_by_identity(self):
        """Equal but distinct nodes are not owned."""
        arena = Arena()
        owned = arena.allocate(literal("5"))
        assert owned in arena
        assert literal("5") not in arena

    def test_exhaustion(self):
        """Allocating past capacity raises ArenaExhaustedError."""
        arena = Arena(capacity=2)
        arena.allocate(literal())
        arena.allocate(literal())
        with pytest.raises(ArenaExhaustedError) as exc_info:
            arena.allocate(literal())
        assert exc_info.value.capacity == 2
        assert len(arena) == 2

    def test_exhaustion_is_compiler_error(self):
        arena = Arena(capacity=1)
        arena.allocate(literal())
        with pytest.raises(CompilerError, match="arena exhausted"):
            arena.allocate(literal())

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            Arena(capacity)


class TestOwnership:
    """Tests for the copy ban and transfer()."""

    def test_copy_is_rejected(self):
        with pytest.raises(TypeError):
            copy.copy(Arena())

    def test_deepcopy_is_rejected(self):
        with pytest.raises(TypeError):
            copy.deepcopy(Arena())

    def test_pickle_is_rejected(self):
        with pytest.raises(TypeError):
            pickle.dumps(Arena())

    def test_transfer_moves_nodes(self):
        """transfer() moves every node and empties the source."""
        source = Arena(capacity=4)
        node = source.allocate(literal())

        moved = source.transfer()

        assert node in moved
        assert len(moved) == 1
        assert moved.capacity == 4
        assert len(source) == 0
        assert node not in source

    def test_source_unusable_after_transfer(self):
        source = Arena(capacity=4)
        source.transfer()
        assert source.capacity == 0
        with pytest.raises(ArenaExhaustedError):
            source.allocate(literal())


class TestParserUsesArena:
    """The parser allocates every node in the arena it is given."""

    def test_node_count(self):
        """exit(1); builds a literal, an exit statement and the program."""
        arena = Arena()
        program = parse_source("exit(1);", arena=arena)
        assert len(arena) == 3
        assert program in arena
        assert program.statements[0] in arena
        assert program.statements[0].expression in arena

    def test_parser_exhausts_small_arena(self):
        with pytest.raises(ArenaExhaustedError):
            parse_source("exit(1);", arena=Arena(capacity=2))

    def test_compiler_honours_capacity(self):
        """CompilerOptions.arena_capacity bounds each compilation."""
        compiler = HydrogenCompiler(CompilerOptions(arena_capacity=3))
        assert compiler.compile_source("exit(1);").node_count == 3
        with pytest.raises(ArenaExhaustedError):
            compiler.compile_source("exit(1 + 2);")
