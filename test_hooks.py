"""Tests for comparison hooks and the capability cache."""

import threading
from dataclasses import dataclass

import pytest
from deepcompare import (
    Comparator,
    Difference,
    Index,
    MapKey,
    MethodCmpHook,
    MethodEqualHook,
    Path,
    Result,
    StructField,
    TypeHook,
    Value,
    bytes_equal_hook,
    compare,
    State,
)
from deepcompare.hooks import CAPABILITIES, CapabilityCache, probe_method


@dataclass
class Money:
    amount: int
    note: str = ""

    def Equal(self, other: "Money") -> bool:
        return self.amount == other.amount


class Version:
    def __init__(self, major):
        self.major = major

    def Cmp(self, other: "Version") -> int:
        return (self.major > other.major) - (self.major < other.major)


class Lower:
    def __init__(self, value):
        self.value = value

    def equal(self, other):
        return self.value == other.value


class ThreeArgs:
    def __init__(self, value):
        self.value = value

    def Equal(self, other, strict):
        return True


class WrongReturn:
    def __init__(self, value):
        self.value = value

    def Equal(self, other) -> str:
        return "yes"


class StaticEqual:
    def __init__(self, value):
        self.value = value

    @staticmethod
    def Equal(a, b):
        return True


class Flagged:
    Equal = True

    def __init__(self, value):
        self.value = value


def fail_probe():
    raise AssertionError("probe should be cached")


class TestMethodHooks:
    """Test self-comparison methods."""

    def test_equal_method(self):
        """Test that Equal replaces the field-wise comparison."""
        assert compare(Money(1, "a"), Money(1, "b")) == []
        assert compare(Money(1), Money(2)) == [
            Difference(message="method .Equal() returned false"),
        ]

    def test_equal_method_nested(self):
        result = compare({"price": Money(1)}, {"price": Money(2)})
        assert result == [
            Difference(Path.from_elems(MapKey("price")), "method .Equal() returned false"),
        ]

    def test_cmp_method(self):
        assert compare(Version(1), Version(1)) == []
        assert compare(Version(1), Version(2)) == [
            Difference(message="method .Cmp() returned -1"),
        ]
        assert compare(Version(3), Version(2)) == [
            Difference(message="method .Cmp() returned 1"),
        ]

    def test_lowercase_name(self):
        assert compare(Lower(1), Lower(2)) == [
            Difference(message="method .equal() returned false"),
        ]

    @pytest.mark.parametrize("cls", [ThreeArgs, WrongReturn, StaticEqual, Flagged])
    def test_mismatched_method_falls_through(self, cls):
        """Test that a method with the wrong shape is not used."""
        assert compare(cls(1), cls(2)) == [
            Difference(Path.from_elems(StructField("value")), "int not equal", "1", "2"),
        ]

    def test_custom_names(self):
        comparator = Comparator(hooks=[MethodEqualHook(("equal",))])
        assert compare(Money(1), Money(2)) != comparator.compare(Money(1), Money(2))
        assert comparator.compare(Money(1), Money(2)).paths() == [".amount"]

    def test_cmp_hook_alone(self):
        comparator = Comparator(hooks=[MethodCmpHook()])
        assert comparator.compare(Version(2), Version(1))[0].message == "method .Cmp() returned 1"

    def test_no_hooks(self):
        """Test that a comparator without hooks compares field by field."""
        comparator = Comparator(hooks=[])
        assert comparator.compare(Money(1), Money(2)) == [
            Difference(Path.from_elems(StructField("amount")), "int not equal", "1", "2"),
        ]


class TestCapabilityCache:
    """Test the capability cache."""

    def test_probe_method(self):
        capability = probe_method(Money, "Equal", bool)
        assert capability.name == "Equal"
        assert capability.func(Money(1), Money(1)) is True
        assert probe_method(Money, "Cmp", int) is None
        assert probe_method(Version, "Cmp", int).name == "Cmp"

    def test_positive_entry_cached(self):
        compare(Money(1), Money(1))
        capability = CAPABILITIES.get(("equal", Money, ("Equal", "equal")), fail_probe)
        assert capability.name == "Equal"

    def test_negative_entry_cached(self):
        """Test that a type without the method is remembered too."""
        compare(1, 2)
        assert CAPABILITIES.get(("equal", int, ("Equal", "equal")), fail_probe) is None

    def test_probe_runs_once(self):
        cache = CapabilityCache()
        calls = []

        def probe():
            calls.append(1)
            return None

        assert cache.get(("k",), probe) is None
        assert cache.get(("k",), probe) is None
        assert len(calls) == 1
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0

    def test_concurrent_fill(self):
        """Test that concurrent lookups of one key probe once."""
        cache = CapabilityCache()
        calls = []
        barrier = threading.Barrier(8)

        def probe():
            calls.append(1)
            return None

        def worker():
            barrier.wait()
            cache.get(("shared",), probe)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(calls) == 1


class TestBuiltinHooks:
    """Test the bytes and Value hooks."""

    def setup_method(self):
        self.comparator = Comparator()

    def test_bytes_equal(self):
        r, stop = bytes_equal_hook(self.comparator, State(), Value.of(b"ab"), Value.of(b"ab"))
        assert r == [] and stop is True

    def test_bytes_not_equal_falls_through(self):
        r, stop = bytes_equal_hook(self.comparator, State(), Value.of(b"ab"), Value.of(b"ac"))
        assert r == [] and stop is False

    def test_bytes_hook_ignores_other_types(self):
        _, stop = bytes_equal_hook(self.comparator, State(), Value.of([1]), Value.of([1]))
        assert stop is False

    def test_value_unwrap(self):
        """Test that Value handles compare the values they wrap."""
        assert compare(Value.of(1), Value.of(2)) == [
            Difference(message="int not equal", v1="1", v2="2"),
        ]
        assert compare(Value.of(None), Value.of(None)) == []
        assert compare([Value.of("a")], [Value.of("a")]) == []


def close_floats(a, b):
    if abs(a - b) < 1e-9:
        return None
    return [Difference(message="floats too far apart")]


class TestCustomHooks:
    """Test caller-registered hooks."""

    def test_type_hook(self):
        comparator = Comparator()
        comparator.register_hook(TypeHook(float, close_floats), index=0)
        assert compare(0.1 + 0.2, 0.3) != []
        assert comparator.compare(0.1 + 0.2, 0.3) == []
        assert comparator.compare([1.0], [2.0]) == [
            Difference(Path.from_elems(Index(0)), "floats too far apart"),
        ]

    def test_hook_order(self):
        """Test that the first hook to stop wins."""
        custom = TypeHook(Money, lambda a, b: [Difference(message="custom")])

        appended = Comparator()
        appended.register_hook(custom)
        assert appended.compare(Money(1), Money(1)) == []

        first = Comparator()
        first.register_hook(custom, index=0)
        assert first.compare(Money(1), Money(1)) == [Difference(message="custom")]

    def test_recursive_hook(self):
        """Test a hook that recurses through the comparator."""
        def amount_only(comparator, st, v1, v2):
            if v1.type is not Money:
                return Result(), False
            r = comparator.compare_values(st, v1.field("amount"), v2.field("amount"))
            return r.prepend(StructField("amount")), True

        comparator = Comparator(hooks=[amount_only])
        assert comparator.compare(Money(1, "a"), Money(1, "b")) == []
        assert comparator.compare(Money(1, "a"), Money(2, "b")) == [
            Difference(Path.from_elems(StructField("amount")), "int not equal", "1", "2"),
        ]

    def test_hook_error_propagates(self):
        """Test that hook errors reach the caller and leave state clean."""
        def broken(comparator, st, v1, v2):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            Comparator(hooks=[broken]).compare([1], [1])

        seen = []

        def record(comparator, st, v1, v2):
            seen.append((st.depth, list(st.visited)))
            return Result(), False

        assert Comparator(hooks=[record]).compare(1, 1) == []
        assert seen == [(1, [])]
