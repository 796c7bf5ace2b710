"""Comparison functions for scalar kinds and map keys."""

from __future__ import annotations

import json
import math
import struct
from enum import Enum
from typing import Any, Iterator

from .models import (
    Difference,
    Result,
    MSG_BOOL_NOT_EQUAL,
    MSG_COMPLEX_NOT_EQUAL,
    MSG_FLOAT_NOT_EQUAL,
    MSG_INT_NOT_EQUAL,
    MSG_STRING_NOT_EQUAL,
    MSG_UINT_NOT_EQUAL,
)
from .value import Kind, Value


def format_bool(b: bool) -> str:
    return "true" if b else "false"


def _to_float32(f: float) -> float:
    return struct.unpack("f", struct.pack("f", f))[0]


def format_float(f: float, bits: int = 64) -> str:
    """
    Format a float with the shortest representation that round-trips.

    Args:
        f: The value
        bits: Native width of the value (32 or 64)

    Returns:
        The shortest decimal text that parses back to the same value
    """
    if bits != 32 or not math.isfinite(f):
        return repr(f)
    for precision in range(1, 10):
        text = f"{f:.{precision}g}"
        try:
            if _to_float32(float(text)) == f:
                return repr(float(text))
        except OverflowError:
            continue
    return repr(f)


def format_complex(c: complex) -> str:
    return repr(c)


def quote_string(s: str) -> str:
    """Double-quote a string, escaping what JSON escapes."""
    return json.dumps(s, ensure_ascii=False)


def compare_bool(v1: Value, v2: Value) -> Result:
    b1 = bool(v1.raw())
    b2 = bool(v2.raw())
    if b1 == b2:
        return Result()
    return Result([Difference(
        message=MSG_BOOL_NOT_EQUAL,
        v1=format_bool(b1),
        v2=format_bool(b2),
    )])


def compare_int(v1: Value, v2: Value) -> Result:
    i1 = int(v1.raw())
    i2 = int(v2.raw())
    if i1 == i2:
        return Result()
    message = MSG_UINT_NOT_EQUAL if v1.kind is Kind.UINT else MSG_INT_NOT_EQUAL
    return Result([Difference(message=message, v1=str(i1), v2=str(i2))])


def compare_float(v1: Value, v2: Value) -> Result:
    f1 = float(v1.raw())
    f2 = float(v2.raw())
    if f1 == f2:
        return Result()
    return Result([Difference(
        message=MSG_FLOAT_NOT_EQUAL,
        v1=format_float(f1, v1.bits),
        v2=format_float(f2, v2.bits),
    )])


def compare_complex(v1: Value, v2: Value) -> Result:
    c1 = complex(v1.raw())
    c2 = complex(v2.raw())
    if c1 == c2:
        return Result()
    return Result([Difference(
        message=MSG_COMPLEX_NOT_EQUAL,
        v1=format_complex(c1),
        v2=format_complex(c2),
    )])


def compare_string(v1: Value, v2: Value) -> Result:
    s1 = str(_plain_enum_value(v1.raw()))
    s2 = str(_plain_enum_value(v2.raw()))
    if s1 == s2:
        return Result()
    return Result([Difference(
        message=MSG_STRING_NOT_EQUAL,
        v1=quote_string(s1),
        v2=quote_string(s2),
    )])


SCALAR_COMPARATORS = {
    Kind.BOOL: compare_bool,
    Kind.INT: compare_int,
    Kind.UINT: compare_int,
    Kind.FLOAT: compare_float,
    Kind.COMPLEX: compare_complex,
    Kind.STRING: compare_string,
}


ABSENT = object()
"""Placeholder for the missing side of a key present in one map only."""


def _plain_enum_value(key: Any) -> Any:
    # int and str mixin enums stand for their value
    if isinstance(key, Enum) and isinstance(key, (int, str)):
        return key.value
    return key


def map_key_sort_key(key: Any) -> tuple:
    """
    Sort key giving map keys a deterministic total order.

    Numbers (bools included, since True == 1 as a key) order directly with
    NaN last, then complex numbers, then strings; any other key falls back
    to its type name and structural rendering, which never depends on
    object identity.
    """
    if isinstance(key, (bool, int, float)):
        if isinstance(key, float) and math.isnan(key):
            return (1, 1, 0)
        return (1, 0, key)
    if isinstance(key, complex):
        return (2, key.real, key.imag)
    if isinstance(key, str):
        return (3, key)
    tp = type(key)
    return (4, tp.__module__, tp.__qualname__, _key_text(key, set()))


def sorted_map_keys(keys: list) -> list[tuple[tuple, Any]]:
    """Sort keys, returning (sort key, key) pairs."""
    pairs = [(map_key_sort_key(k), k) for k in keys]
    pairs.sort(key=lambda p: p[0])
    return pairs


def _same_key(k1: Any, k2: Any) -> bool:
    """Whether a dict would store both keys in the same slot."""
    return k1 is k2 or (hash(k1) == hash(k2) and bool(k1 == k2))


def _pair_keys(run1: list, run2: list) -> Iterator[tuple[Any, Any]]:
    unmatched = list(run2)
    for k1 in run1:
        for idx, k2 in enumerate(unmatched):
            if _same_key(k1, k2):
                del unmatched[idx]
                yield k1, k2
                break
        else:
            yield k1, ABSENT
    for k2 in unmatched:
        yield ABSENT, k2


def merge_map_keys(keys1: list, keys2: list) -> Iterator[tuple[Any, Any]]:
    """
    Merge-join the keys of two maps into (k1, k2) pairs, in key order.

    Both key lists are sorted independently and walked with two pointers.
    A key found in one map only is paired with ABSENT. Keys sharing a sort
    key are paired by key equality, never by position.
    """
    sorted1 = sorted_map_keys(keys1)
    sorted2 = sorted_map_keys(keys2)
    n1 = len(sorted1)
    n2 = len(sorted2)
    i = j = 0
    while i < n1 or j < n2:
        if j >= n2 or (i < n1 and sorted1[i][0] < sorted2[j][0]):
            yield sorted1[i][1], ABSENT
            i += 1
        elif i >= n1 or sorted2[j][0] < sorted1[i][0]:
            yield ABSENT, sorted2[j][1]
            j += 1
        else:
            sort_key = sorted1[i][0]
            run1 = []
            while i < n1 and sorted1[i][0] == sort_key:
                run1.append(sorted1[i][1])
                i += 1
            run2 = []
            while j < n2 and sorted2[j][0] == sort_key:
                run2.append(sorted2[j][1])
                j += 1
            yield from _pair_keys(run1, run2)


def render_map_key(key: Any) -> str:
    """
    Render a map key as path text.

    Strings render bare. Objects keeping the default repr render as their
    type name and fields, e.g. Key(id=1), so equal copies render alike.
    """
    key = _plain_enum_value(key)
    if isinstance(key, str):
        return key
    return _key_text(key, set())


def _key_text(key: Any, seen: set) -> str:
    key = _plain_enum_value(key)
    if key is None or isinstance(key, (str, bool, int, float, complex)):
        return repr(key)
    if id(key) in seen:
        return "..."
    seen.add(id(key))
    try:
        return _composite_key_text(key, seen)
    finally:
        seen.discard(id(key))


def _composite_key_text(key: Any, seen: set) -> str:
    tp = type(key)
    if isinstance(key, (set, frozenset)):
        return "{" + ", ".join(sorted(_key_text(k, seen) for k in key)) + "}"
    if isinstance(key, dict):
        items = (f"{_key_text(k, seen)}: {_key_text(v, seen)}" for k, v in key.items())
        return "{" + ", ".join(items) + "}"
    if isinstance(key, list):
        return "[" + ", ".join(_key_text(k, seen) for k in key) + "]"
    if isinstance(key, tuple) and not hasattr(tp, "_fields"):
        items = [_key_text(k, seen) for k in key]
        if len(items) == 1:
            return f"({items[0]},)"
        return "(" + ", ".join(items) + ")"
    if tp.__repr__ is not object.__repr__ and not hasattr(tp, "_fields"):
        return repr(key)
    value = Value.of(key)
    fields = (
        f"{name}={_key_text(value.field(name).obj, seen)}"
        for name in value.field_names()
    )
    return f"{tp.__qualname__}({', '.join(fields)})"
