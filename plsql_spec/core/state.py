#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
State management for plsql-spec.

Holds the loaded connection config and the shared database connection
that test modules use while the suite runs.
"""

import json
import logging
import os
import threading

from plsql_spec.core.config_schema import (
    get_default_config,
    get_persistent_keys,
    validate_config,
)
from plsql_spec.core.errors import ConfigError

try:
    import oracledb

    HAS_ORACLEDB = True
except ImportError:
    HAS_ORACLEDB = False

# Config file path, relative to the project directory
CONFIG_FILE = os.path.join("spec", "database.json")

# Config version for migration support
CONFIG_VERSION = 1


class AppState:
    """Global application state manager."""

    def __init__(self):
        self._lock = threading.Lock()
        self.config = get_default_config()
        self.config_path = None
        self.connection = None

    def load_config(self, path: str = None) -> dict:
        """
        Load configuration from a JSON file over the schema defaults.

        Raises:
            ConfigError: file exists but is not valid JSON
        """
        logger = logging.getLogger(__name__)
        path = path or CONFIG_FILE
        config = get_default_config()

        if not os.path.exists(path):
            logger.info(f"Config file not found: {path}, using defaults")
        else:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Error loading config {path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config {path} must contain a JSON object")

            for key in get_persistent_keys():
                if key in data:
                    config[key] = data[key]
            logger.info(f"Config loaded from {path}")

        with self._lock:
            self.config = config
            self.config_path = path
        return config

    def save_config(self, path: str = None) -> None:
        """Save configuration to JSON file."""
        logger = logging.getLogger(__name__)
        path = path or self.config_path or CONFIG_FILE
        data = {"version": CONFIG_VERSION}
        data.update({key: self.config.get(key) for key in get_persistent_keys()})

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Config saved to {path}")

    def dsn(self) -> str:
        """Connect descriptor built from the config."""
        config = self.config
        if config.get("host"):
            return oracledb.makedsn(
                config["host"],
                int(config.get("port") or 1521),
                service_name=config["database"],
            )
        return config["database"]

    def connect(self):
        """
        Open the shared database connection.

        Raises:
            ConfigError: config invalid, driver missing or connect failed
        """
        problems = validate_config(self.config)
        if problems:
            raise ConfigError(f"Invalid database config: {', '.join(problems)}")
        if not HAS_ORACLEDB:
            raise ConfigError(
                "python-oracledb not installed. Install with: pip install oracledb"
            )

        try:
            connection = oracledb.connect(
                user=self.config["username"],
                password=self.config["password"],
                dsn=self.dsn(),
            )
        except Exception as e:
            raise ConfigError(f"Failed to connect to {self.config['database']}: {e}") from e

        with self._lock:
            self.connection = connection
        logging.getLogger(__name__).info(
            f"Connected to {self.config['database']} as {self.config['username']}"
        )
        return connection

    def disconnect(self) -> None:
        """Close the shared connection if open."""
        with self._lock:
            connection, self.connection = self.connection, None
        if connection is not None:
            connection.close()


# Global state instance
state = AppState()
