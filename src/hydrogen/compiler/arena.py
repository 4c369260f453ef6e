"""
AST Node Arena
==============

Every AST node of one compilation is allocated through a single Arena.
The arena owns the nodes for the lifetime of the compilation: nodes are
never released one by one, and the whole tree goes away with the arena.

Nodes reference their children directly. A Python object reference is
already a stable handle, so `allocate()` hands back the node it was given
after recording it; the arena's job is ownership accounting and the
capacity limit.

    arena = Arena(capacity=1024)
    literal = arena.allocate(IntLiteral(location, "42"))
    len(arena)          # 1
    arena.remaining     # 1023

An arena cannot be copied. Ownership can be moved with `transfer()`,
which leaves the source arena empty and unusable.
"""

from typing import TypeVar

from hydrogen.compiler.errors import ArenaExhaustedError


T = TypeVar("T")

DEFAULT_ARENA_CAPACITY = 1 << 20


class Arena:
    """
    Bump allocator owning the AST of one compilation.

    Attributes:
        capacity: Maximum number of nodes this arena accepts
    """

    __slots__ = ("_capacity", "_nodes")

    def __init__(self, capacity: int = DEFAULT_ARENA_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"arena capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._nodes: list = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def remaining(self) -> int:
        """Number of allocations still available."""
        return self._capacity - len(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node) -> bool:
        return any(owned is node for owned in self._nodes)

    def allocate(self, node: T) -> T:
        """
        Take ownership of a node and return the stable reference to it.

        Raises:
            ArenaExhaustedError: If the arena is full
        """
        if len(self._nodes) >= self._capacity:
            raise ArenaExhaustedError(self._capacity)
        self._nodes.append(node)
        return node

    def transfer(self) -> "Arena":
        """
        Move every owned node into a new arena.

        The new arena inherits the capacity; this arena is left empty with
        zero capacity, so any further allocation through it fails.
        """
        moved = Arena.__new__(Arena)
        moved._capacity = self._capacity
        moved._nodes = self._nodes
        self._capacity = 0
        self._nodes = []
        return moved

    def __copy__(self):
        raise TypeError("Arena cannot be copied; use transfer() to move ownership")

    def __deepcopy__(self, memo):
        raise TypeError("Arena cannot be copied; use transfer() to move ownership")

    def __reduce__(self):
        raise TypeError("Arena cannot be copied; use transfer() to move ownership")

    def __repr__(self) -> str:
        return f"Arena({len(self._nodes)}/{self._capacity} nodes)"
