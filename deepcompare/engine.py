"""Main comparison engine for deepcompare."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, TYPE_CHECKING

from .comparators import (
    ABSENT,
    SCALAR_COMPARATORS,
    format_bool,
    merge_map_keys,
    render_map_key,
)
from .hooks import Hook, default_hooks
from .models import (
    Difference,
    Result,
    MSG_CAPACITY_NOT_EQUAL,
    MSG_FUNC_POINTER_NOT_EQUAL,
    MSG_LENGTH_NOT_EQUAL,
    MSG_MAP_KEY_NOT_DEFINED,
    MSG_METHOD_EQUAL_FALSE,
    MSG_ONLY_ONE_IS_NIL,
    MSG_ONLY_ONE_IS_VALID,
    MSG_TYPE_NOT_EQUAL,
    MSG_UNSAFE_POINTER_NOT_EQUAL,
)
from .path import Index, MapKey, StructField
from .state import State, StatePool
from .value import Kind, Value, func_name

if TYPE_CHECKING:
    from .config import ComparatorConfig

logger = logging.getLogger(__name__)

_state_pool = StatePool()


class Comparator:
    """
    Compares two values structurally and reports their differences.

    Each node of the two value trees goes through, in order:
    1. Depth limit: nodes at max_depth or deeper are treated as equal
    2. Validity: None on one side only is a difference
    3. Type: differing concrete types are a difference, nothing more
    4. Hooks: the first hook that stops supplies the result
    5. Kind: scalar equality, or element/key/field-wise recursion

    Slices and maps report at most slice_max_differences and
    map_max_differences differing items (0 disables the cap). Cycles are
    closed optimistically: re-entering a pair of references already being
    compared on the current path counts as equal.

    A Comparator may be shared by threads; each compare() call borrows its
    own traversal state from a pool. Don't mutate its attributes while
    comparisons are running.
    """

    def __init__(
        self,
        max_depth: int = 0,
        slice_max_differences: int = 10,
        map_max_differences: int = 10,
        hooks: Optional[Iterable[Hook]] = None,
    ):
        """
        Initialize the comparator.

        Args:
            max_depth: Maximum comparison depth (0 = unlimited)
            slice_max_differences: Maximum differing items reported per
                slice or array (0 = unlimited)
            map_max_differences: Maximum differing keys reported per map
                (0 = unlimited)
            hooks: Override hooks, tried in order (uses default_hooks() if
                not provided)
        """
        self.max_depth = max_depth
        self.slice_max_differences = slice_max_differences
        self.map_max_differences = map_max_differences
        self.hooks: list[Hook] = list(hooks) if hooks is not None else default_hooks()
        self._kind_handlers = {
            Kind.ARRAY: self._compare_array,
            Kind.SLICE: self._compare_slice,
            Kind.MAP: self._compare_map,
            Kind.STRUCT: self._compare_struct,
            Kind.POINTER: self._compare_pointer,
            Kind.INTERFACE: self._compare_pointer,
            Kind.CHAN: self._compare_chan,
            Kind.FUNC: self._compare_func,
            Kind.UNSAFE_POINTER: self._compare_unsafe_pointer,
            Kind.OPAQUE: self._compare_opaque,
        }

    @classmethod
    def from_config(cls, config: ComparatorConfig) -> Comparator:
        """Build a comparator from a ComparatorConfig."""
        from .config import configure_logging

        configure_logging(config.log_level)
        return cls(
            max_depth=config.max_depth,
            slice_max_differences=config.slice_max_differences,
            map_max_differences=config.map_max_differences,
            hooks=default_hooks(config.method_equal_names, config.method_cmp_names),
        )

    def register_hook(self, hook: Hook, index: Optional[int] = None):
        """
        Add a hook to this comparator.

        Args:
            hook: The hook to add
            index: Position in the hook list (appended if not provided)
        """
        if index is None:
            self.hooks.append(hook)
        else:
            self.hooks.insert(index, hook)

    def compare(self, v1: Any, v2: Any) -> Result:
        """
        Compare two values.

        Args:
            v1: The first value
            v2: The second value

        Returns:
            Result listing the differences; empty if the values are equal
        """
        with _state_pool.acquire() as st:
            return self.compare_values(st, Value.of(v1), Value.of(v2))

    def compare_values(self, st: State, v1: Value, v2: Value) -> Result:
        """Compare two value handles; hooks call this to recurse."""
        if self.max_depth > 0 and st.depth >= self.max_depth:
            logger.debug("Max depth %d reached, treating values as equal", self.max_depth)
            return Result()
        st.depth += 1
        try:
            r, stop = self._compare_valid(v1, v2)
            if stop:
                return r
            r, stop = self._compare_type(v1, v2)
            if stop:
                return r
            r, stop = self._compare_hooks(st, v1, v2)
            if stop:
                return r
            return self._compare_kind(st, v1, v2)
        finally:
            st.depth -= 1

    def _compare_valid(self, v1: Value, v2: Value) -> tuple[Result, bool]:
        valid1 = v1.is_valid
        valid2 = v2.is_valid
        if valid1 and valid2:
            return Result(), False
        if valid1 == valid2:
            return Result(), True
        return Result([Difference(
            message=MSG_ONLY_ONE_IS_VALID,
            v1=format_bool(valid1),
            v2=format_bool(valid2),
        )]), True

    def _compare_type(self, v1: Value, v2: Value) -> tuple[Result, bool]:
        if v1.type is v2.type:
            return Result(), False
        return Result([Difference(
            message=MSG_TYPE_NOT_EQUAL,
            v1=v1.type_name,
            v2=v2.type_name,
        )]), True

    def _compare_hooks(self, st: State, v1: Value, v2: Value) -> tuple[Result, bool]:
        for hook in self.hooks:
            r, stop = hook(self, st, v1, v2)
            if stop:
                return r, True
        return Result(), False

    def _compare_kind(self, st: State, v1: Value, v2: Value) -> Result:
        scalar = SCALAR_COMPARATORS.get(v1.kind)
        if scalar is not None:
            return scalar(v1, v2)
        return self._kind_handlers[v1.kind](st, v1, v2)

    def _compare_nil(self, v1: Value, v2: Value) -> tuple[Result, bool]:
        nil1 = v1.is_nil()
        nil2 = v2.is_nil()
        if nil1 and nil2:
            return Result(), True
        if nil1 != nil2:
            return Result([Difference(
                message=MSG_ONLY_ONE_IS_NIL,
                v1=format_bool(nil1),
                v2=format_bool(nil2),
            )]), True
        return Result(), False

    def _compare_nil_len_pointer(self, v1: Value, v2: Value) -> tuple[Result, bool]:
        """Checks shared by containers: nil, then length, then aliasing."""
        r, stop = self._compare_nil(v1, v2)
        if stop:
            return r, True
        len1 = v1.len()
        len2 = v2.len()
        if len1 != len2:
            return Result([Difference(
                message=MSG_LENGTH_NOT_EQUAL,
                v1=str(len1),
                v2=str(len2),
            )]), True
        if len1 == 0:
            return Result(), True
        if v1.pointer() == v2.pointer():
            return Result(), True
        return Result(), False

    def _enter(self, st: State, v1: Value, v2: Value) -> bool:
        if st.enter(v1.pointer(), v2.pointer()):
            logger.debug("Cycle closed at depth %d, treating values as equal", st.depth)
            return True
        return False

    def _compare_elements(self, st: State, v1: Value, v2: Value) -> Result:
        r = Result()
        diff_count = 0
        for i, (e1, e2) in enumerate(zip(v1.elements(), v2.elements())):
            ri = self.compare_values(st, e1, e2)
            if not ri:
                continue
            r.extend(ri.prepend(Index(i)))
            diff_count += 1
            if 0 < self.slice_max_differences <= diff_count:
                break
        return r

    def _compare_array(self, st: State, v1: Value, v2: Value) -> Result:
        # Tuple length is not part of the type, so arrays get the
        # container checks too.
        r, stop = self._compare_nil_len_pointer(v1, v2)
        if stop:
            return r
        return self._compare_elements(st, v1, v2)

    def _compare_slice(self, st: State, v1: Value, v2: Value) -> Result:
        r, stop = self._compare_nil_len_pointer(v1, v2)
        if stop:
            return r
        if self._enter(st, v1, v2):
            return Result()
        try:
            return self._compare_elements(st, v1, v2)
        finally:
            st.leave()

    def _compare_map(self, st: State, v1: Value, v2: Value) -> Result:
        r, stop = self._compare_nil_len_pointer(v1, v2)
        if stop:
            return r
        if self._enter(st, v1, v2):
            return Result()
        try:
            return self._compare_map_keys(st, v1, v2)
        finally:
            st.leave()

    def _compare_map_keys(self, st: State, v1: Value, v2: Value) -> Result:
        """Walk the merge-joined keys of both maps; the cap counts keys."""
        r = Result()
        diff_count = 0
        for k1, k2 in merge_map_keys(v1.map_keys(), v2.map_keys()):
            if k2 is ABSENT:
                ri = self._map_key_not_defined(k1, True, False)
            elif k1 is ABSENT:
                ri = self._map_key_not_defined(k2, False, True)
            else:
                ri = self.compare_values(st, v1.map_index(k1), v2.map_index(k2))
                if ri:
                    ri = ri.prepend(MapKey(render_map_key(k1)))
            if not ri:
                continue
            r.extend(ri)
            diff_count += 1
            if 0 < self.map_max_differences <= diff_count:
                break
        return r

    def _map_key_not_defined(self, key: Any, defined1: bool, defined2: bool) -> Result:
        return Result([Difference(
            message=MSG_MAP_KEY_NOT_DEFINED,
            v1=format_bool(defined1),
            v2=format_bool(defined2),
        ).with_parent(MapKey(render_map_key(key)))])

    def _compare_pointer(self, st: State, v1: Value, v2: Value) -> Result:
        r, stop = self._compare_nil(v1, v2)
        if stop:
            return r
        if v1.pointer() == v2.pointer():
            return Result()
        if self._enter(st, v1, v2):
            return Result()
        try:
            return self.compare_values(st, v1.elem(), v2.elem())
        finally:
            st.leave()

    def _compare_struct(self, st: State, v1: Value, v2: Value) -> Result:
        # Instances are reached by reference, like pointers.
        if v1.pointer() == v2.pointer():
            return Result()
        if self._enter(st, v1, v2):
            return Result()
        try:
            return self._compare_fields(st, v1, v2)
        finally:
            st.leave()

    def _compare_fields(self, st: State, v1: Value, v2: Value) -> Result:
        names = v1.field_names()
        extra = tuple(n for n in v2.field_names() if n not in names)
        if not names and not extra:
            # No readable state (partials, generators, locks), so == decides.
            return self._compare_opaque(st, v1, v2)
        r = Result()
        for name in names + extra:
            ri = self.compare_values(st, v1.field(name), v2.field(name))
            if ri:
                r.extend(ri.prepend(StructField(name)))
        return r

    def _compare_chan(self, st: State, v1: Value, v2: Value) -> Result:
        r, stop = self._compare_nil(v1, v2)
        if stop:
            return r
        if v1.pointer() == v2.pointer():
            return Result()
        cap1 = v1.cap()
        cap2 = v2.cap()
        if cap1 != cap2:
            return Result([Difference(
                message=MSG_CAPACITY_NOT_EQUAL,
                v1=str(cap1),
                v2=str(cap2),
            )])
        len1 = v1.len()
        len2 = v2.len()
        if len1 != len2:
            return Result([Difference(
                message=MSG_LENGTH_NOT_EQUAL,
                v1=str(len1),
                v2=str(len2),
            )])
        return Result()

    def _compare_func(self, st: State, v1: Value, v2: Value) -> Result:
        r, stop = self._compare_nil(v1, v2)
        if stop:
            return r
        # Bound methods are created on attribute access, so compare them
        # with == (same function, same instance).
        if v1.obj is v2.obj or v1.obj == v2.obj:
            return Result()
        return Result([Difference(
            message=MSG_FUNC_POINTER_NOT_EQUAL,
            v1=func_name(v1.obj),
            v2=func_name(v2.obj),
        )])

    def _compare_unsafe_pointer(self, st: State, v1: Value, v2: Value) -> Result:
        p1 = v1.pointer()
        p2 = v2.pointer()
        if p1 == p2:
            return Result()
        return Result([Difference(
            message=MSG_UNSAFE_POINTER_NOT_EQUAL,
            v1=f"0x{p1:x}",
            v2=f"0x{p2:x}",
        )])

    def _compare_opaque(self, st: State, v1: Value, v2: Value) -> Result:
        """Values without introspectable structure compare with ==."""
        o1 = v1.raw()
        o2 = v2.raw()
        if o1 is o2:
            return Result()
        try:
            equal = bool(o1 == o2)
        except (TypeError, ValueError):
            # Element-wise __eq__ (arrays) has no single truth value.
            logger.debug("Ambiguous == for %s, comparing identity", v1.type_name)
            equal = False
        if equal:
            return Result()
        return Result([Difference(
            message=MSG_METHOD_EQUAL_FALSE.format(name="__eq__"),
            v1=repr(o1),
            v2=repr(o2),
        )])


DEFAULT_COMPARATOR = Comparator()


def compare(v1: Any, v2: Any) -> Result:
    """
    Compare two values with DEFAULT_COMPARATOR.

    Args:
        v1: The first value
        v2: The second value

    Returns:
        Result listing the differences; empty if the values are equal
    """
    return DEFAULT_COMPARATOR.compare(v1, v2)
