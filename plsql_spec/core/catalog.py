#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Object catalog resolver.

Enumerates the procedural objects visible to the connected account and
applies the schema-ignore list and the SCHEMA.OBJECT name pattern.
"""

import functools
import logging
import re
from typing import List

from plsql_spec.core.errors import CatalogAccessError
from plsql_spec.core.models import OBJECT_TYPES, ObjectId, RunFilter

logger = logging.getLogger(__name__)

# Oracle-maintained accounts never worth instrumenting
DEFAULT_IGNORED_SCHEMAS = frozenset(
    [
        "ANONYMOUS",
        "APEX_PUBLIC_USER",
        "APPQOSSYS",
        "AUDSYS",
        "CTXSYS",
        "DBSFWUSER",
        "DBSNMP",
        "DIP",
        "DVSYS",
        "EXFSYS",
        "FLOWS_FILES",
        "GSMADMIN_INTERNAL",
        "LBACSYS",
        "MDSYS",
        "OJVMSYS",
        "OLAPSYS",
        "ORACLE_OCM",
        "ORDDATA",
        "ORDPLUGINS",
        "ORDSYS",
        "OUTLN",
        "SI_INFORMTN_SCHEMA",
        "SYS",
        "SYSMAN",
        "SYSTEM",
        "WMSYS",
        "XDB",
        "XS$NULL",
    ]
)

# Prefix of the tracker's own objects
TRACKER_PREFIX = "PLSQL_SPEC_COVERAGE"


@functools.lru_cache(maxsize=64)
def _compile_pattern(pattern: str):
    parts = []
    for char in pattern:
        if char in "%*":
            parts.append(".*")
        elif char in "_?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def name_matches(pattern: str, value: str) -> bool:
    """
    Match SCHEMA.OBJECT against a glob.

    '%' and '*' match any run of characters (including none), '_' and '?'
    match exactly one character. Matching is case-insensitive and must
    cover the whole value.
    """
    return _compile_pattern(pattern).fullmatch(value) is not None


def effective_ignored_schemas(run_filter: RunFilter) -> frozenset:
    if run_filter.include_default_ignores:
        return run_filter.ignore_schemas | DEFAULT_IGNORED_SCHEMAS
    return run_filter.ignore_schemas


def is_selected(object_id: ObjectId, run_filter: RunFilter, ignored=None) -> bool:
    """Check one object against the filter."""
    if ignored is None:
        ignored = effective_ignored_schemas(run_filter)
    if object_id.owner.upper() in ignored:
        return False
    if object_id.name.upper().startswith(TRACKER_PREFIX):
        return False
    if run_filter.like and not name_matches(run_filter.like, object_id.qualified_name):
        return False
    return True


class ObjectCatalog:
    """Resolve instrumentable objects from database metadata."""

    def __init__(self, database):
        self.database = database

    def resolve(self, run_filter: RunFilter) -> List[ObjectId]:
        """
        List the objects selected by the filter.

        Args:
            run_filter: Schema and name filter for this run

        Returns:
            ObjectIds sorted by owner, name and type

        Raises:
            CatalogAccessError: metadata could not be read
        """
        try:
            rows = self.database.list_objects(OBJECT_TYPES)
        except Exception as e:
            raise CatalogAccessError(f"Cannot read object catalog: {e}") from e

        ignored = effective_ignored_schemas(run_filter)
        selected = []
        for owner, name, object_type in rows:
            object_id = ObjectId(owner, name, object_type)
            if is_selected(object_id, run_filter, ignored):
                selected.append(object_id)
            else:
                logger.debug(f"Filtered out {object_id}")

        selected = sorted(set(selected), key=ObjectId.sort_key)
        logger.info(f"Resolved {len(selected)} objects for coverage")
        return selected
