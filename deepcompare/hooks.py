"""Override hooks tried before the default kind-based comparison."""

from __future__ import annotations

import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, NamedTuple, Optional, Protocol

from .models import (
    Difference,
    Result,
    MSG_METHOD_CMP_NOT_EQUAL,
    MSG_METHOD_EQUAL_FALSE,
)
from .state import State
from .value import Value

if TYPE_CHECKING:
    from .engine import Comparator

logger = logging.getLogger(__name__)


class Hook(Protocol):
    """
    A comparison override.

    Both values are valid and of the same concrete type when a hook is
    called. Returning stop=True makes the returned result the result for
    this pair of values; stop=False falls through to the next hook and then
    to the default comparison.
    """

    def __call__(
        self,
        comparator: Comparator,
        st: State,
        v1: Value,
        v2: Value,
    ) -> tuple[Result, bool]:
        ...


def bytes_equal_hook(comparator: Comparator, st: State, v1: Value, v2: Value) -> tuple[Result, bool]:
    """Fast path for equal bytes and bytearray values."""
    if not isinstance(v1.obj, (bytes, bytearray)):
        return Result(), False
    if v1.obj == v2.obj:
        return Result(), True
    # Unequal bytes go through the generic slice comparison,
    # so the differing indices get reported.
    return Result(), False


def value_hook(comparator: Comparator, st: State, v1: Value, v2: Value) -> tuple[Result, bool]:
    """Compare the values wrapped by Value handles."""
    if v1.type is not Value:
        return Result(), False
    return comparator.compare_values(st, v1.obj, v2.obj), True


class Capability(NamedTuple):
    """A self-comparison method found on a type."""
    name: str
    func: Callable[[Any, Any], Any]


class CapabilityCache:
    """
    Process-wide cache of capability probes, keyed by type and probe.

    Entries are written once, including negative results, and never
    invalidated. Reads don't take the lock.
    """

    _MISSING = object()

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[tuple, Optional[Capability]] = {}

    def get(self, key: tuple, probe: Callable[[], Optional[Capability]]) -> Optional[Capability]:
        entry = self._entries.get(key, self._MISSING)
        if entry is not self._MISSING:
            return entry
        with self._lock:
            entry = self._entries.get(key, self._MISSING)
            if entry is self._MISSING:
                entry = probe()
                self._entries[key] = entry
                logger.debug("Capability probe %s: %s", key, entry.name if entry else None)
            return entry

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


CAPABILITIES = CapabilityCache()

_SELF_ANNOTATIONS = ("Self", "typing.Self", "typing_extensions.Self")


def _annotation_matches(annotation: Any, expected: Any, names: tuple) -> bool:
    if annotation is inspect.Parameter.empty:
        return True
    if annotation is expected:
        return True
    if isinstance(annotation, str):
        return annotation.strip("'\"") in names
    return getattr(annotation, "_name", None) == "Self"


def probe_method(tp: type, name: str, returns: type) -> Optional[Capability]:
    """
    Look for a method callable as obj.name(other) -> returns on a type.

    Args:
        tp: The type to probe
        name: Method name
        returns: Expected return type, checked when annotated

    Returns:
        The capability, or None if the type has no matching method
    """
    method = inspect.getattr_static(tp, name, None)
    if method is None:
        return None
    if isinstance(method, (staticmethod, classmethod)) or not callable(method):
        return None
    try:
        signature = inspect.signature(method)
    except (TypeError, ValueError):
        return None
    params = list(signature.parameters.values())
    positional = (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )
    if len(params) != 2 or any(p.kind not in positional for p in params):
        return None
    type_names = (tp.__name__, tp.__qualname__) + _SELF_ANNOTATIONS
    if not _annotation_matches(params[1].annotation, tp, type_names):
        return None
    if not _annotation_matches(signature.return_annotation, returns, (returns.__name__,)):
        return None
    return Capability(name, getattr(tp, name))


class MethodEqualHook:
    """
    Compare with a self-equality method, such as a.Equal(b) -> bool.

    Method names are tried in order; the first one with a matching
    signature is used for the type.
    """

    def __init__(self, names: tuple[str, ...] = ("Equal", "equal")):
        self.names = tuple(names)

    def _probe(self, tp: type) -> Optional[Capability]:
        for name in self.names:
            capability = probe_method(tp, name, bool)
            if capability is not None:
                return capability
        return None

    def __call__(self, comparator: Comparator, st: State, v1: Value, v2: Value) -> tuple[Result, bool]:
        tp = v1.type
        capability = CAPABILITIES.get(("equal", tp, self.names), lambda: self._probe(tp))
        if capability is None:
            return Result(), False
        if capability.func(v1.obj, v2.obj):
            return Result(), True
        return Result([Difference(
            message=MSG_METHOD_EQUAL_FALSE.format(name=capability.name),
        )]), True

    def __repr__(self) -> str:
        return f"MethodEqualHook(names={self.names!r})"


class MethodCmpHook:
    """Compare with a self-ordering method, such as a.Cmp(b) -> int."""

    def __init__(self, names: tuple[str, ...] = ("Cmp", "cmp")):
        self.names = tuple(names)

    def _probe(self, tp: type) -> Optional[Capability]:
        for name in self.names:
            capability = probe_method(tp, name, int)
            if capability is not None:
                return capability
        return None

    def __call__(self, comparator: Comparator, st: State, v1: Value, v2: Value) -> tuple[Result, bool]:
        tp = v1.type
        capability = CAPABILITIES.get(("cmp", tp, self.names), lambda: self._probe(tp))
        if capability is None:
            return Result(), False
        cmp_result = int(capability.func(v1.obj, v2.obj))
        if cmp_result == 0:
            return Result(), True
        return Result([Difference(
            message=MSG_METHOD_CMP_NOT_EQUAL.format(name=capability.name, result=cmp_result),
        )]), True

    def __repr__(self) -> str:
        return f"MethodCmpHook(names={self.names!r})"


class TypeHook:
    """
    Caller-defined comparison for one type and its subclasses.

    The function receives the two raw objects and returns a Result (or any
    iterable of Difference); the hook always stops for matching values.

    Usage:
        comparator.register_hook(TypeHook(Decimal, compare_decimals))
    """

    def __init__(self, tp: type, func: Callable[[Any, Any], Any]):
        self.type = tp
        self.func = func

    def __call__(self, comparator: Comparator, st: State, v1: Value, v2: Value) -> tuple[Result, bool]:
        if not isinstance(v1.obj, self.type):
            return Result(), False
        return Result(self.func(v1.obj, v2.obj) or ()), True

    def __repr__(self) -> str:
        return f"TypeHook({self.type.__qualname__}, {self.func!r})"


def default_hooks(
    method_equal_names: tuple[str, ...] = ("Equal", "equal"),
    method_cmp_names: tuple[str, ...] = ("Cmp", "cmp"),
) -> list[Hook]:
    """Build the default hook list, in the order they are tried."""
    return [
        bytes_equal_hook,
        value_hook,
        MethodEqualHook(method_equal_names),
        MethodCmpHook(method_cmp_names),
    ]
