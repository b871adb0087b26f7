#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Shared helper functions for plsql-spec.
"""

import string

DETAIL_EXTENSION = ".html"
NAME_SEPARATOR = "-"

# Characters kept as-is in report file names; everything else is %XX encoded
_SAFE_NAME_CHARS = frozenset(string.ascii_uppercase + string.digits + "_$#")


def _encode_name_part(value: str) -> str:
    parts = []
    for char in value:
        if char in _SAFE_NAME_CHARS:
            parts.append(char)
        else:
            parts.extend(f"%{byte:02X}" for byte in char.encode("utf-8"))
    return "".join(parts)


def detail_file_name(owner: str, name: str) -> str:
    """
    File name of the detail report for SCHEMA.OBJECT.

    Both parts are joined with '-'. Characters that are not upper-case
    identifier characters (including '-' and lower-case letters from quoted
    identifiers) are percent-encoded, so two different objects never share a
    file, even on case-insensitive file systems.
    """
    return (
        _encode_name_part(owner)
        + NAME_SEPARATOR
        + _encode_name_part(name)
        + DETAIL_EXTENSION
    )


def format_percentage(value: float) -> str:
    """Percentage with two decimals, never rounding a partial result up to 100."""
    if value < 100.0 and round(value, 2) >= 100.0:
        return "99.99"
    return f"{value:.2f}"
