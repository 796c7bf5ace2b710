"""JSONPath utilities for selecting differences by path."""

from __future__ import annotations

import re
from typing import Iterable

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JSONPathError

from .exceptions import PathPatternError
from .models import Difference, Result

# Placeholder for '..' while the rest of the pattern is escaped
_DESCENT = "\x00"

_STEP = r"(?:\.[^.\[]+|\[[^\]]*\])"


class JSONPathMatcher:
    """Matches difference paths against JSONPath patterns."""

    # Cache for compiled patterns
    _cache: dict = {}

    @classmethod
    def compile(cls, pattern: str) -> re.Pattern:
        """
        Validate a JSONPath pattern and compile it to a path regex.

        Supports:
        - Exact match: $.foo.bar
        - Recursive descent: $..field
        - Wildcards: $.items[*].name, $.map.*

        A pattern also matches every path below the one it names.

        Raises:
            PathPatternError: If the pattern is not valid JSONPath
        """
        if pattern not in cls._cache:
            try:
                jsonpath_parse(pattern)
            except JSONPathError as e:
                raise PathPatternError(pattern, str(e))
            cls._cache[pattern] = re.compile(cls._to_regex(pattern))
        return cls._cache[pattern]

    @staticmethod
    def _to_regex(pattern: str) -> str:
        if not pattern.startswith("$"):
            pattern = "$." + pattern
        regex = re.escape(pattern.replace("..", _DESCENT))
        regex = regex.replace(re.escape(_DESCENT), _STEP + r"*\.")
        regex = regex.replace(r"\[\*\]", r"\[[^\]]*\]")
        regex = regex.replace(r"\.\*", _STEP)
        return f"^{regex}(?:[.\\[].*)?$"

    @classmethod
    def matches_pattern(cls, concrete_path: str, pattern: str) -> bool:
        """Check if a concrete path is at or below a JSONPath pattern."""
        return bool(cls.compile(pattern).match(concrete_path))


def matches_any(diff: Difference, patterns: Iterable[str]) -> bool:
    path = diff.path.to_jsonpath()
    return any(JSONPathMatcher.matches_pattern(path, p) for p in patterns)


def exclude_paths(result: Result, patterns: Iterable[str]) -> Result:
    """
    Drop the differences located at or below any of the patterns.

    Args:
        result: The comparison result
        patterns: JSONPath patterns, e.g. '$..updated_at'

    Returns:
        A new Result with the remaining differences, in order
    """
    patterns = list(patterns)
    for pattern in patterns:
        JSONPathMatcher.compile(pattern)
    if not patterns:
        return Result(result)
    return Result(d for d in result if not matches_any(d, patterns))
