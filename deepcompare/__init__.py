"""
deepcompare - Structural deep-equality comparison

Compares two arbitrary Python values and reports a path-annotated list of
differences, for test assertions and diffing tools. Handles scalars,
sequences, mappings, sets, objects and references, detects cycles, caps
the differences reported per container, and lets callers override the
comparison for specific types with hooks.

    >>> print(format(compare({"a": [1, 2]}, {"a": [1, 3]}), "+"))
    [a][1]: int not equal
    	v1=2
    	v2=3
"""

from .engine import Comparator, DEFAULT_COMPARATOR, compare
from .models import Difference, Result
from .path import Path, StructField, MapKey, Index
from .value import Kind, Value
from .state import State
from .hooks import (
    Hook,
    TypeHook,
    MethodEqualHook,
    MethodCmpHook,
    bytes_equal_hook,
    value_hook,
    default_hooks,
)
from .config import ComparatorConfig, LogLevel, load_config
from .exceptions import DeepCompareError, ConfigError, PathPatternError
from .assertion import assert_equal, DiffAssertionError

__version__ = "1.0.0"
__all__ = [
    # Engine
    "Comparator",
    "DEFAULT_COMPARATOR",
    "compare",
    # Results
    "Difference",
    "Result",
    "Path",
    "StructField",
    "MapKey",
    "Index",
    # Values
    "Kind",
    "Value",
    "State",
    # Hooks
    "Hook",
    "TypeHook",
    "MethodEqualHook",
    "MethodCmpHook",
    "bytes_equal_hook",
    "value_hook",
    "default_hooks",
    # Configuration
    "ComparatorConfig",
    "LogLevel",
    "load_config",
    # Errors
    "DeepCompareError",
    "ConfigError",
    "PathPatternError",
    # Assertions
    "assert_equal",
    "DiffAssertionError",
]
