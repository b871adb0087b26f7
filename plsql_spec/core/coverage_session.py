#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Coverage session: the instrument / run / restore bracket.

Usage:
    with CoverageSession(database, run_filter) as session:
        run_tests()
    result = session.result

Entering resolves the catalog, installs the tracker and instruments the
selected objects. Leaving aggregates counters, renders the reports and
then restores every instrumented object. Restoration runs on every exit
path; when the run was interrupted (KeyboardInterrupt, SystemExit) the
counters are not collected but restoration still happens.
"""

import logging
from typing import Dict, List, Optional

from jinja2 import TemplateError

from plsql_spec.core.aggregator import Aggregator
from plsql_spec.core.catalog import ObjectCatalog
from plsql_spec.core.errors import CatalogAccessError, ReportError, TrackerError
from plsql_spec.core.instrumenter import Instrumenter
from plsql_spec.core.models import (
    CoverageRunResult,
    ObjectId,
    ProceduralObject,
    RunFilter,
)
from plsql_spec.core.report import ReportRenderer
from plsql_spec.core.restorer import Restorer
from plsql_spec.core.tracker import ExecutionTracker

logger = logging.getLogger(__name__)


class CoverageSession:
    """Scoped coverage run over one database connection."""

    def __init__(
        self,
        database,
        run_filter: Optional[RunFilter] = None,
        renderer: Optional[ReportRenderer] = None,
        cleanup: bool = False,
    ):
        self.database = database
        self.run_filter = run_filter or RunFilter()
        self.cleanup = cleanup

        self.catalog = ObjectCatalog(database)
        self.tracker = ExecutionTracker(database)
        self.instrumenter = Instrumenter(database, self.tracker)
        self.aggregator = Aggregator(self.tracker)
        self.restorer = Restorer(database)
        self.renderer = renderer or ReportRenderer(self.run_filter.output_dir)

        # Arena: every object whose source was fetched for this run
        self.objects: Dict[ObjectId, ProceduralObject] = {}
        # Objects successfully instrumented (coverage scope)
        self.in_scope: List[ProceduralObject] = []
        self.result = CoverageRunResult()
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> "CoverageSession":
        """
        Resolve and instrument.

        Raises:
            CatalogAccessError: metadata unreadable, nothing was changed
            TrackerError: counter objects could not be installed
        """
        try:
            object_ids = self.catalog.resolve(self.run_filter)
        except CatalogAccessError as e:
            logger.error(str(e))
            self.result.fatal_error = e
            raise

        try:
            self.tracker.install()
        except Exception as e:
            error = TrackerError(f"Cannot install execution tracker: {e}")
            logger.error(str(error))
            self.result.fatal_error = error
            raise error from e

        self._active = True
        try:
            self.in_scope, errors = self.instrumenter.instrument_all(
                object_ids, self.objects
            )
        except BaseException:
            logger.error("Instrumentation interrupted, restoring objects")
            self._restore()
            self._active = False
            raise

        self.result.instrumentation_errors.extend(errors)
        logger.info(
            f"Coverage enabled for {len(self.in_scope)} objects "
            f"({len(errors)} failed)"
        )
        return self

    def collect(self) -> None:
        """
        Aggregate counters and write the report files.

        Raises:
            ReportError: report directory or files could not be written
        """
        reports, unavailable, errors = self.aggregator.collect(self.in_scope)
        self.result.reports = reports
        self.result.unavailable = unavailable
        self.result.aggregation_errors.extend(errors)
        try:
            self.result.files = self.renderer.render(reports, unavailable)
        except (OSError, TemplateError) as e:
            error = ReportError(
                f"Cannot write coverage report to {self.renderer.output_dir}: {e}"
            )
            logger.error(str(error))
            self.result.fatal_error = error
            raise error from e

    def finish(self, collect: bool = True) -> CoverageRunResult:
        """
        Collect coverage (optional) and restore all objects.

        Restoration runs even if collecting raises; the collecting error
        then propagates after restoration.
        """
        if not self._active:
            return self.result
        try:
            if collect:
                self.collect()
        finally:
            self._restore()
            self._active = False
            if self.cleanup:
                self._uninstall_tracker()
        return self.result

    def _restore(self) -> None:
        errors = self.restorer.restore_all(list(self.objects.values()))
        self.result.restoration_errors.extend(errors)

    def _uninstall_tracker(self) -> None:
        try:
            self.tracker.uninstall()
        except Exception as e:
            logger.warning(f"Could not drop coverage tracker: {e}")

    def __enter__(self) -> "CoverageSession":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> bool:
        # Test failures surface as results, not exceptions; anything that is
        # not an Exception (Ctrl-C, SystemExit) aborts collection
        collect = exc_type is None or issubclass(exc_type, Exception)
        self.finish(collect=collect)
        return False
