"""Custom exceptions for deepcompare.

Comparisons never raise: differences, including type and validity
mismatches, are reported in the Result. These exceptions cover the outer
surfaces only.
"""


class DeepCompareError(Exception):
    """Base exception for deepcompare errors."""
    pass


class ConfigError(DeepCompareError):
    """Raised when comparator configuration is invalid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PathPatternError(DeepCompareError):
    """Raised when a path pattern cannot be parsed."""
    def __init__(self, pattern: str, reason: str = None):
        super().__init__(f"Invalid path pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason
