"""Per-call traversal state and its reuse pool."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, NamedTuple


class Visited(NamedTuple):
    """Identity pair recorded while traversing through references."""
    v1: int
    v2: int


class State:
    """
    Mutable state of one top-level comparison.

    Hooks and comparison steps must leave the state as they found it when
    they return: depth is restored and every entered pair is left.
    """

    __slots__ = ("depth", "visited")

    def __init__(self):
        self.depth = 0
        self.visited: list[Visited] = []

    def reset(self):
        self.depth = 0
        self.visited.clear()

    def enter(self, v1: int, v2: int) -> bool:
        """
        Push an identity pair on the visited stack.

        Returns:
            True if the pair is already on the stack; nothing is pushed then
        """
        pair = Visited(v1, v2)
        if pair in self.visited:
            return True
        self.visited.append(pair)
        return False

    def leave(self):
        self.visited.pop()


class StatePool:
    """Thread-safe pool of reusable State objects."""

    def __init__(self, max_size: int = 32):
        self.max_size = max_size
        self._lock = threading.Lock()
        self._free: list[State] = []

    @contextmanager
    def acquire(self) -> Iterator[State]:
        """Borrow a reset State for the duration of one comparison."""
        with self._lock:
            st = self._free.pop() if self._free else State()
        st.reset()
        try:
            yield st
        finally:
            st.reset()
            with self._lock:
                if len(self._free) < self.max_size:
                    self._free.append(st)

    def __len__(self) -> int:
        return len(self._free)
