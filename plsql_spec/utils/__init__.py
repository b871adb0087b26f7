#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
plsql-spec Utilities Package.

This package contains utility modules:
- helpers: report file naming and number formatting
"""

__all__ = []
