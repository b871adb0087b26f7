#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Configuration schema definition for plsql-spec.

This module defines all configuration items in a centralized schema.
Adding a new config item only requires modifying this file.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ConfigType(Enum):
    """Configuration item types."""

    STRING = "string"
    SECRET = "secret"  # Never echoed back
    NUMBER = "number"
    DIR_PATH = "dir_path"
    STRING_LIST = "string_list"


class ConfigGroup(Enum):
    """Configuration groups."""

    CONNECTION = "connection"  # Database connection
    COVERAGE = "coverage"  # Coverage defaults


GROUP_LABELS = {
    ConfigGroup.CONNECTION: "Connection",
    ConfigGroup.COVERAGE: "Coverage",
}


@dataclass
class ConfigItem:
    """Configuration item definition."""

    key: str  # Config key name (snake_case)
    label: str  # Display label
    group: ConfigGroup
    config_type: ConfigType
    default: Any
    tooltip: str = ""
    required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    order: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = asdict(self)
        result["group"] = self.group.value
        result["config_type"] = self.config_type.value
        return result


# =============================================================================
# Configuration Schema Definition
# =============================================================================

CONFIG_SCHEMA: List[ConfigItem] = [
    # === Connection ===
    ConfigItem(
        key="username",
        label="Username",
        group=ConfigGroup.CONNECTION,
        config_type=ConfigType.STRING,
        default="",
        required=True,
        order=10,
    ),
    ConfigItem(
        key="password",
        label="Password",
        group=ConfigGroup.CONNECTION,
        config_type=ConfigType.SECRET,
        default="",
        required=True,
        order=20,
    ),
    ConfigItem(
        key="database",
        label="Database",
        group=ConfigGroup.CONNECTION,
        config_type=ConfigType.STRING,
        default="",
        tooltip="Service name when host is set, otherwise a TNS alias or EZConnect string",
        required=True,
        order=30,
    ),
    ConfigItem(
        key="host",
        label="Host",
        group=ConfigGroup.CONNECTION,
        config_type=ConfigType.STRING,
        default="",
        order=40,
    ),
    ConfigItem(
        key="port",
        label="Port",
        group=ConfigGroup.CONNECTION,
        config_type=ConfigType.NUMBER,
        default=1521,
        min_value=1,
        max_value=65535,
        order=50,
    ),
    # === Coverage ===
    ConfigItem(
        key="coverage_dir",
        label="Coverage Directory",
        group=ConfigGroup.COVERAGE,
        config_type=ConfigType.DIR_PATH,
        default="coverage",
        tooltip="Where index.html and detail reports are written",
        order=10,
    ),
    ConfigItem(
        key="ignore_schemas",
        label="Ignored Schemas",
        group=ConfigGroup.COVERAGE,
        config_type=ConfigType.STRING_LIST,
        default=[],
        tooltip="Schemas never instrumented, in addition to Oracle-maintained ones",
        order=20,
    ),
    ConfigItem(
        key="like",
        label="Name Pattern",
        group=ConfigGroup.COVERAGE,
        config_type=ConfigType.STRING,
        default="",
        tooltip="SCHEMA.OBJECT glob; % or * for any run, _ or ? for one character",
        order=30,
    ),
]


# =============================================================================
# Helper Functions
# =============================================================================


def get_config_item(key: str) -> Optional[ConfigItem]:
    """Get config item by key."""
    for item in CONFIG_SCHEMA:
        if item.key == key:
            return item
    return None


def get_default_config() -> Dict[str, Any]:
    """Get default configuration values."""
    return {item.key: item.default for item in CONFIG_SCHEMA}


def get_persistent_keys() -> List[str]:
    """Get list of keys read from the config file."""
    return [item.key for item in CONFIG_SCHEMA]


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate a merged config against the schema.

    Returns:
        List of problems, empty when the config is usable
    """
    problems = []
    for item in sorted(CONFIG_SCHEMA, key=lambda i: (i.group.value, i.order)):
        value = config.get(item.key, item.default)
        if item.required and value in (None, ""):
            problems.append(f"'{item.key}' is required")
            continue
        if item.config_type == ConfigType.NUMBER and value not in (None, ""):
            try:
                number = float(value)
            except (TypeError, ValueError):
                problems.append(f"'{item.key}' must be a number")
                continue
            if item.min_value is not None and number < item.min_value:
                problems.append(f"'{item.key}' must be >= {item.min_value:g}")
            if item.max_value is not None and number > item.max_value:
                problems.append(f"'{item.key}' must be <= {item.max_value:g}")
        if item.config_type == ConfigType.STRING_LIST and not isinstance(
            value, (list, str)
        ):
            problems.append(f"'{item.key}' must be a list of names")
    return problems
