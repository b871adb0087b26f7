#!/usr/bin/env python3
"""plsql-spec Core Package."""

from plsql_spec.core.catalog import ObjectCatalog, name_matches
from plsql_spec.core.coverage_session import CoverageSession
from plsql_spec.core.database import OracleDatabase
from plsql_spec.core.errors import (
    AggregationError,
    CatalogAccessError,
    ConfigError,
    CoverageError,
    InstrumentationError,
    RestorationError,
    TrackerError,
)
from plsql_spec.core.models import CoverageReport, CoverageRunResult, ObjectId, RunFilter

__all__ = [
    "ObjectCatalog",
    "name_matches",
    "CoverageSession",
    "OracleDatabase",
    "AggregationError",
    "CatalogAccessError",
    "ConfigError",
    "CoverageError",
    "InstrumentationError",
    "RestorationError",
    "TrackerError",
    "CoverageReport",
    "CoverageRunResult",
    "ObjectId",
    "RunFilter",
]
