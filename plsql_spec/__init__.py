#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
plsql-spec: run unit tests against Oracle PL/SQL code and measure line
coverage of the stored procedures, functions, packages, triggers and type
bodies they exercise.

Module structure:
- cli.py: command line entry point
- core/: coverage engine (catalog, instrumenter, tracker, aggregator,
  report renderer, restorer) and connection state
- services/: test suite runner
- utils/: shared helpers
"""

from plsql_spec.version import __version__

__all__ = ["__version__"]
