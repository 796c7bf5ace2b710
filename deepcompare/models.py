"""Data models for comparison results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .path import EMPTY_PATH, Path, PathElem


MSG_ONLY_ONE_IS_VALID = "only one is valid"
MSG_ONLY_ONE_IS_NIL = "only one is nil"
MSG_TYPE_NOT_EQUAL = "type not equal"
MSG_CAPACITY_NOT_EQUAL = "capacity not equal"
MSG_LENGTH_NOT_EQUAL = "length not equal"
MSG_BOOL_NOT_EQUAL = "bool not equal"
MSG_INT_NOT_EQUAL = "int not equal"
MSG_UINT_NOT_EQUAL = "uint not equal"
MSG_FLOAT_NOT_EQUAL = "float not equal"
MSG_COMPLEX_NOT_EQUAL = "complex not equal"
MSG_STRING_NOT_EQUAL = "string not equal"
MSG_MAP_KEY_NOT_DEFINED = "map key not defined"
MSG_UNSAFE_POINTER_NOT_EQUAL = "unsafe pointer not equal"
MSG_FUNC_POINTER_NOT_EQUAL = "func pointer not equal"
MSG_METHOD_EQUAL_FALSE = "method .{name}() returned false"
MSG_METHOD_CMP_NOT_EQUAL = "method .{name}() returned {result}"


@dataclass(frozen=True)
class Difference:
    """A single difference found during comparison."""
    path: Path = field(default=EMPTY_PATH)
    message: str = ""
    v1: str = ""
    v2: str = ""

    def with_parent(self, elem: PathElem) -> Difference:
        """Return a copy located one level deeper under elem."""
        return Difference(
            path=self.path.prepend(elem),
            message=self.message,
            v1=self.v1,
            v2=self.v2,
        )

    def format(self, verbose: bool = False) -> str:
        text = f"{self.path}: {self.message}"
        if verbose and (self.v1 or self.v2):
            text += f"\n\tv1={self.v1}\n\tv2={self.v2}"
        return text

    def __str__(self) -> str:
        return self.format()

    def __format__(self, spec: str) -> str:
        return self.format(_verbose_spec(spec, self))

    def to_dict(self) -> dict:
        result: dict = {}
        if self.path:
            result["path"] = self.path.to_list()
        if self.message:
            result["message"] = self.message
        if self.v1:
            result["v1"] = self.v1
        if self.v2:
            result["v2"] = self.v2
        return result


class Result(list):
    """
    Ordered list of differences; empty means the values are equal.

    str() gives the concise rendering and format(result, "+") the verbose
    one, which adds the v1/v2 lines under each difference.
    """

    def merge(self, other: Iterable[Difference]) -> Result:
        self.extend(other)
        return self

    def prepend(self, elem: PathElem) -> Result:
        """Return a new result with elem prepended to every path."""
        return Result(d.with_parent(elem) for d in self)

    @property
    def is_equal(self) -> bool:
        return len(self) == 0

    def paths(self) -> list[str]:
        return [str(d.path) for d in self]

    def format(self, verbose: bool = False) -> str:
        if not self:
            return "<none>"
        return "\n".join(d.format(verbose) for d in self)

    def __str__(self) -> str:
        return self.format()

    def __format__(self, spec: str) -> str:
        return self.format(_verbose_spec(spec, self))

    def to_list(self) -> list[dict]:
        return [d.to_dict() for d in self]


def _verbose_spec(spec: str, obj: object) -> bool:
    if spec == "":
        return False
    if spec == "+":
        return True
    raise ValueError(
        f"Unknown format code {spec!r} for object of type '{type(obj).__name__}'"
    )
