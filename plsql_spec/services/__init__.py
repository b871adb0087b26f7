#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
plsql-spec Services Package.

This package contains the collaborators around the coverage engine:
- test_runner: unittest suite loading and execution
"""

__all__ = []
