#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Exception types raised by the coverage engine.

CatalogAccessError and TrackerError abort a run before anything is
instrumented. ReportError is raised after the tests when the report
cannot be written; restoration still runs. The per-object errors are
collected into the CoverageRunResult and never abort the batch.
"""


class CoverageError(Exception):
    """Base class for coverage engine errors."""

    def __init__(self, message, object_id=None):
        super().__init__(message)
        self.object_id = object_id

    def to_dict(self) -> dict:
        data = {"error": type(self).__name__, "message": str(self)}
        if self.object_id is not None:
            data["object"] = str(self.object_id)
        return data


class ConfigError(CoverageError):
    """Connection config file missing or invalid."""

    pass


class CatalogAccessError(CoverageError):
    """Database metadata could not be read."""

    pass


class InstrumentationError(CoverageError):
    """Instrumented source failed to deploy for one object."""

    pass


class RestorationError(CoverageError):
    """Original source failed to redeploy for one object."""

    pass


class AggregationError(CoverageError):
    """Counter data could not be read for one object."""

    pass


class TrackerError(CoverageError):
    """Counter table or hit procedure could not be installed."""

    pass


class ReportError(CoverageError):
    """Coverage report files could not be written."""

    pass
