"""Path model locating a difference inside the compared values."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Union

_IDENTIFIER = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


def _jsonpath_key(key: str) -> str:
    if _IDENTIFIER.match(key):
        return f".{key}"
    escaped = key.replace("\\", "\\\\").replace("'", "\\'")
    return f"['{escaped}']"


@dataclass(frozen=True)
class StructField:
    """A struct field step."""
    name: str

    def __str__(self) -> str:
        return f".{self.name}"

    def to_dict(self) -> dict:
        return {"struct": self.name}

    def to_jsonpath(self) -> str:
        return _jsonpath_key(self.name)


@dataclass(frozen=True)
class MapKey:
    """A map key step, holding the rendered key text."""
    key: str

    def __str__(self) -> str:
        return f"[{self.key}]"

    def to_dict(self) -> dict:
        return {"map": self.key}

    def to_jsonpath(self) -> str:
        return _jsonpath_key(self.key)


@dataclass(frozen=True)
class Index:
    """A slice/array index step."""
    index: int

    def __str__(self) -> str:
        return f"[{self.index}]"

    def to_dict(self) -> dict:
        return {"index": self.index}

    def to_jsonpath(self) -> str:
        return f"[{self.index}]"


PathElem = Union[StructField, MapKey, Index]


class Path:
    """
    Immutable location of a difference, as a prepend-only linked list.

    Differences are found at the deepest level first and their path grows
    as the traversal unwinds, so each level prepends its own element in
    O(1) and shares the tail with the child path. Iteration goes from the
    shallowest element to the deepest, which is also the rendering order.
    """

    __slots__ = ("_head", "_tail", "_len")

    def __init__(self, head: Optional[PathElem] = None, tail: Optional[Path] = None):
        self._head = head
        self._tail = tail
        if head is None:
            self._len = 0
        else:
            self._len = 1 + (len(tail) if tail is not None else 0)

    @classmethod
    def from_elems(cls, *elems: PathElem) -> Path:
        """Build a path from elements listed shallowest first."""
        path = EMPTY_PATH
        for elem in reversed(elems):
            path = path.prepend(elem)
        return path

    def prepend(self, elem: PathElem) -> Path:
        return Path(elem, self if self._head is not None else None)

    def __iter__(self) -> Iterator[PathElem]:
        node: Optional[Path] = self
        while node is not None and node._head is not None:
            yield node._head
            node = node._tail

    def __len__(self) -> int:
        return self._len

    def __bool__(self) -> bool:
        return self._head is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._len == other._len and tuple(self) == tuple(other)

    def __hash__(self) -> int:
        return hash(tuple(self))

    def __str__(self) -> str:
        if self._head is None:
            return "."
        return "".join(str(e) for e in self)

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"

    def to_list(self) -> list[dict]:
        return [e.to_dict() for e in self]

    def to_jsonpath(self) -> str:
        """Render as a JSONPath expression rooted at '$'."""
        return "$" + "".join(e.to_jsonpath() for e in self)


EMPTY_PATH = Path()
