"""
plsql-spec version definition - single source of truth

DO NOT EDIT MANUALLY - bump VERSION_* together with pyproject.toml.
"""

VERSION_MAJOR = 0
VERSION_MINOR = 5
VERSION_PATCH = 0

VERSION_STRING = f"v{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"

__version__ = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"
