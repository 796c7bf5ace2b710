"""Assertion helpers for tests."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from .engine import DEFAULT_COMPARATOR, Comparator
from .jsonpath_utils import exclude_paths
from .models import Result


class DiffAssertionError(AssertionError):
    """Raised by assert_equal; carries the comparison result."""

    def __init__(self, result: Result, msg: Optional[str] = None):
        text = f"values are not equal:\n{result:+}"
        if msg:
            text = f"{msg}\n{text}"
        super().__init__(text)
        self.result = result


def assert_equal(
    v1: Any,
    v2: Any,
    comparator: Optional[Comparator] = None,
    ignore_paths: Iterable[str] = (),
    msg: Optional[str] = None,
) -> None:
    """
    Assert that two values are deeply equal.

    Args:
        v1: The expected value
        v2: The actual value
        comparator: Comparator to use (DEFAULT_COMPARATOR if not provided)
        ignore_paths: JSONPath patterns of differences to disregard
        msg: Text prepended to the failure message

    Raises:
        DiffAssertionError: If differences remain
    """
    result = (comparator or DEFAULT_COMPARATOR).compare(v1, v2)
    result = exclude_paths(result, ignore_paths)
    if result:
        raise DiffAssertionError(result, msg)
