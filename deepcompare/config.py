"""Comparator configuration and its YAML loader."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Union

import yaml

from .exceptions import ConfigError


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass
class ComparatorConfig:
    """Configuration for a Comparator."""
    max_depth: int = 0
    slice_max_differences: int = 10
    map_max_differences: int = 10
    method_equal_names: tuple[str, ...] = ("Equal", "equal")
    method_cmp_names: tuple[str, ...] = ("Cmp", "cmp")
    log_level: LogLevel = LogLevel.WARN

    @classmethod
    def from_dict(cls, data: dict) -> ComparatorConfig:
        """
        Build a configuration from a plain mapping.

        Args:
            data: Mapping of option names to values; missing options keep
                their defaults

        Returns:
            The configuration

        Raises:
            ConfigError: If an option is unknown or has an invalid value
        """
        if not isinstance(data, dict):
            raise ConfigError(
                "Configuration must be a mapping",
                {"type": type(data).__name__}
            )

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("Unknown configuration options", {"options": unknown})

        kwargs: dict[str, Any] = {}
        for name in ("max_depth", "slice_max_differences", "map_max_differences"):
            if name in data:
                kwargs[name] = _non_negative_int(name, data[name])
        for name in ("method_equal_names", "method_cmp_names"):
            if name in data:
                kwargs[name] = _names(name, data[name])
        if "log_level" in data:
            try:
                kwargs["log_level"] = LogLevel(str(data["log_level"]).upper())
            except ValueError:
                raise ConfigError(
                    f"Invalid log_level: {data['log_level']}",
                    {"allowed": [level.value for level in LogLevel]}
                )

        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            "max_depth": self.max_depth,
            "slice_max_differences": self.slice_max_differences,
            "map_max_differences": self.map_max_differences,
            "method_equal_names": list(self.method_equal_names),
            "method_cmp_names": list(self.method_cmp_names),
            "log_level": self.log_level.value,
        }


def _non_negative_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(
            f"{name} must be a non-negative integer",
            {"option": name, "value": value}
        )
    return value


def _names(name: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(v, str) and v.isidentifier() for v in value
    ):
        raise ConfigError(
            f"{name} must be a list of method names",
            {"option": name, "value": value}
        )
    return tuple(value)


def load_config(path: Union[str, Path]) -> ComparatorConfig:
    """
    Load a comparator configuration from a YAML or JSON file.

    The file may hold the options at the top level or under a
    'deepcompare' key.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the file can't be parsed or holds invalid options
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        content = f.read()

    # YAML also handles JSON since JSON is valid YAML
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file: {e}", {"path": str(config_path)})

    if data is None:
        return ComparatorConfig()
    if isinstance(data, dict) and isinstance(data.get("deepcompare"), dict):
        data = data["deepcompare"]
    return ComparatorConfig.from_dict(data)


def configure_logging(level: LogLevel):
    """Set the level of the package logger."""
    logging.getLogger("deepcompare").setLevel(level.value)
