"""Runtime value handles used by the comparison engine."""

from __future__ import annotations

import array
import asyncio
import collections
import ctypes
import dataclasses
import queue
import types
import weakref
from enum import Enum
from functools import lru_cache
from typing import Any, Iterator, Optional


class Kind(Enum):
    """Structural category of a value, independent of its declared type."""
    INVALID = "invalid"
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    COMPLEX = "complex"
    STRING = "string"
    ARRAY = "array"
    SLICE = "slice"
    MAP = "map"
    STRUCT = "struct"
    POINTER = "pointer"
    INTERFACE = "interface"
    CHAN = "chan"
    FUNC = "func"
    UNSAFE_POINTER = "unsafe_pointer"
    OPAQUE = "opaque"


SCALAR_KINDS = frozenset({
    Kind.BOOL,
    Kind.INT,
    Kind.UINT,
    Kind.FLOAT,
    Kind.COMPLEX,
    Kind.STRING,
})

_CTYPES_SIGNED = (
    ctypes.c_byte,
    ctypes.c_short,
    ctypes.c_int,
    ctypes.c_long,
    ctypes.c_longlong,
)
_CTYPES_UNSIGNED = (
    ctypes.c_ubyte,
    ctypes.c_ushort,
    ctypes.c_uint,
    ctypes.c_ulong,
    ctypes.c_ulonglong,
)
_FUNC_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.MethodWrapperType,
    types.WrapperDescriptorType,
    types.MethodDescriptorType,
)
_CHAN_TYPES = (queue.Queue, queue.SimpleQueue, asyncio.Queue)
_SLICE_TYPES = (list, bytes, bytearray, collections.deque, array.array)
_MAP_TYPES = (dict, types.MappingProxyType, set, frozenset)


@lru_cache(maxsize=None)
def resolve_kind(tp: type) -> tuple[Kind, int]:
    """
    Resolve the kind and native bit width for a concrete type.

    Args:
        tp: The concrete type of a value

    Returns:
        Tuple of (kind, bits); bits is 0 where the width is unbounded
    """
    if tp is type(None):
        return Kind.INVALID, 0
    if issubclass(tp, bool):
        return Kind.BOOL, 0
    if issubclass(tp, Enum) and not issubclass(tp, (int, str)):
        return Kind.OPAQUE, 0
    if issubclass(tp, int):
        return Kind.INT, 0
    if issubclass(tp, float):
        return Kind.FLOAT, 64
    if issubclass(tp, complex):
        return Kind.COMPLEX, 128
    if issubclass(tp, str):
        return Kind.STRING, 0
    if issubclass(tp, _SLICE_TYPES):
        return Kind.SLICE, 0
    if issubclass(tp, tuple):
        if hasattr(tp, "_fields"):
            return Kind.STRUCT, 0
        return Kind.ARRAY, 0
    if issubclass(tp, _MAP_TYPES):
        return Kind.MAP, 0

    ctypes_kind = _resolve_ctypes_kind(tp)
    if ctypes_kind is not None:
        return ctypes_kind

    if issubclass(tp, weakref.ref):
        return Kind.POINTER, 0
    if tp is types.CellType:
        return Kind.INTERFACE, 0
    if issubclass(tp, _CHAN_TYPES):
        return Kind.CHAN, 0
    if issubclass(tp, _FUNC_TYPES):
        return Kind.FUNC, 0
    if issubclass(tp, (type, types.ModuleType)):
        return Kind.OPAQUE, 0
    if dataclasses.is_dataclass(tp) or hasattr(tp, "__attrs_attrs__"):
        return Kind.STRUCT, 0
    if tp.__eq__ is not object.__eq__:
        return Kind.OPAQUE, 0
    return Kind.STRUCT, 0


def _resolve_ctypes_kind(tp: type) -> Optional[tuple[Kind, int]]:
    if issubclass(tp, ctypes.c_bool):
        return Kind.BOOL, 0
    if issubclass(tp, _CTYPES_SIGNED):
        return Kind.INT, ctypes.sizeof(tp) * 8
    if issubclass(tp, _CTYPES_UNSIGNED):
        return Kind.UINT, ctypes.sizeof(tp) * 8
    if issubclass(tp, ctypes.c_float):
        return Kind.FLOAT, 32
    if issubclass(tp, (ctypes.c_double, ctypes.c_longdouble)):
        return Kind.FLOAT, 64
    if issubclass(tp, ctypes.c_void_p):
        return Kind.UNSAFE_POINTER, 0
    if issubclass(tp, ctypes._Pointer):
        return Kind.POINTER, 0
    if issubclass(tp, ctypes.Array):
        return Kind.ARRAY, 0
    if issubclass(tp, (ctypes.Structure, ctypes.Union)):
        return Kind.STRUCT, 0
    if issubclass(tp, ctypes._SimpleCData):
        return Kind.OPAQUE, 0
    return None


@lru_cache(maxsize=None)
def _field_layout(tp: type) -> tuple[tuple[str, ...], bool]:
    """Declared field names of a struct type, and whether __dict__ adds more."""
    if dataclasses.is_dataclass(tp):
        return tuple(f.name for f in dataclasses.fields(tp)), False
    if issubclass(tp, tuple):
        return tuple(tp._fields), False
    if issubclass(tp, (ctypes.Structure, ctypes.Union)):
        names = []
        for cls in reversed(tp.__mro__):
            for spec in cls.__dict__.get("_fields_", ()):
                names.append(spec[0])
        return tuple(names), False
    attrs = getattr(tp, "__attrs_attrs__", None)
    if attrs is not None:
        return tuple(a.name for a in attrs), False
    return _slot_names(tp), True


def _slot_names(tp: type) -> tuple[str, ...]:
    names: list[str] = []
    for cls in reversed(tp.__mro__):
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in ("__dict__", "__weakref__"):
                continue
            # Private slots are stored under their mangled name.
            if slot.startswith("__") and not slot.endswith("__"):
                slot = f"_{cls.__name__.lstrip('_')}{slot}"
            if slot not in names:
                names.append(slot)
    return tuple(names)


def _element_kind(obj: Any) -> Optional[tuple[Kind, int]]:
    """Kind of the elements of a typed container, when the container fixes it."""
    if isinstance(obj, (bytes, bytearray)):
        return Kind.UINT, 8
    if isinstance(obj, array.array):
        code = obj.typecode
        bits = obj.itemsize * 8
        if code in "bhilq":
            return Kind.INT, bits
        if code in "BHILQ":
            return Kind.UINT, bits
        if code in "fd":
            return Kind.FLOAT, bits
        return Kind.STRING, 0
    if isinstance(obj, ctypes.Array):
        item = obj._type_
        if issubclass(item, ctypes._SimpleCData):
            kind, bits = resolve_kind(item)
            if kind in SCALAR_KINDS:
                return kind, bits
    return None


def type_name(tp: type) -> str:
    """Get a printable name for a type."""
    if tp.__module__ == "builtins":
        return tp.__qualname__
    return f"{tp.__module__}.{tp.__qualname__}"


def func_name(func: Any) -> str:
    """Get the best available printable identity for a function."""
    qualname = getattr(func, "__qualname__", None) or getattr(func, "__name__", None)
    if qualname is None:
        return repr(func)
    module = getattr(func, "__module__", None)
    if module:
        return f"{module}.{qualname}"
    return qualname


class Value:
    """
    Introspectable handle to a runtime value.

    A handle exposes the concrete type and kind of the value it wraps, plus
    the kind-specific accessors the comparator needs: fields, elements,
    map keys, pointer dereference and raw scalar extraction.

    Passing a Value to the comparator compares the values it wraps.
    """

    __slots__ = ("obj", "type", "kind", "bits")

    def __init__(self, obj: Any, kind: Optional[Kind] = None, bits: int = 0):
        self.obj = obj
        self.type = type(obj)
        if kind is None:
            kind, bits = resolve_kind(self.type)
        self.kind = kind
        self.bits = bits

    @classmethod
    def of(cls, obj: Any) -> Value:
        return cls(obj)

    @classmethod
    def invalid(cls) -> Value:
        return cls(None)

    def __repr__(self) -> str:
        return f"Value({self.obj!r}, kind={self.kind.value})"

    @property
    def is_valid(self) -> bool:
        return self.kind is not Kind.INVALID

    @property
    def type_name(self) -> str:
        return type_name(self.type)

    def raw(self) -> Any:
        """Get the underlying Python value of a scalar."""
        if isinstance(self.obj, ctypes._SimpleCData):
            return self.obj.value
        return self.obj

    def len(self) -> int:
        if self.kind is Kind.CHAN:
            return self.obj.qsize()
        return len(self.obj)

    def cap(self) -> int:
        """Capacity of a channel; 0 means unbounded."""
        return getattr(self.obj, "maxsize", 0) or 0

    def is_nil(self) -> bool:
        kind = self.kind
        if kind is Kind.POINTER:
            if isinstance(self.obj, ctypes._Pointer):
                return not self.obj
            return self.obj() is None
        if kind is Kind.INTERFACE:
            try:
                self.obj.cell_contents
            except ValueError:
                return True
            return False
        if kind is Kind.UNSAFE_POINTER:
            return self.obj.value is None
        return False

    def pointer(self) -> int:
        """Identity of the referenced storage."""
        kind = self.kind
        if kind is Kind.POINTER:
            if isinstance(self.obj, ctypes._Pointer):
                return ctypes.addressof(self.obj.contents)
            return id(self.obj())
        if kind is Kind.INTERFACE:
            return id(self.obj.cell_contents)
        if kind is Kind.UNSAFE_POINTER:
            return self.obj.value or 0
        return id(self.obj)

    def elem(self) -> Value:
        """Dereference a pointer or interface."""
        if self.kind is Kind.INTERFACE:
            return Value(self.obj.cell_contents)
        if isinstance(self.obj, ctypes._Pointer):
            return Value(self.obj.contents)
        return Value(self.obj())

    def index(self, i: int) -> Value:
        item = self.obj[i]
        elem_kind = _element_kind(self.obj)
        if elem_kind is not None:
            return Value(item, *elem_kind)
        return Value(item)

    def elements(self) -> Iterator[Value]:
        elem_kind = _element_kind(self.obj)
        if elem_kind is not None:
            kind, bits = elem_kind
            for item in self.obj:
                yield Value(item, kind, bits)
        else:
            for item in self.obj:
                yield Value(item)

    def field_names(self) -> tuple[str, ...]:
        declared, from_dict = _field_layout(self.type)
        if not from_dict:
            return declared
        instance_dict = getattr(self.obj, "__dict__", None)
        if not instance_dict:
            return declared
        return declared + tuple(n for n in instance_dict if n not in declared)

    def field(self, name: str) -> Value:
        """Get a field; a field the value does not carry is invalid."""
        instance_dict = getattr(self.obj, "__dict__", None)
        if instance_dict is not None and name in instance_dict:
            return Value(instance_dict[name])
        try:
            return Value(getattr(self.obj, name))
        except AttributeError:
            return Value.invalid()

    def map_keys(self) -> list:
        return list(self.obj)

    def map_index(self, key: Any) -> Value:
        if isinstance(self.obj, (set, frozenset)):
            return Value(True)
        return Value(self.obj[key])
