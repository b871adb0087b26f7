#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Turn raw counter slots into per-line coverage reports.
"""

import logging
from typing import Dict, List, Mapping, Optional, Tuple

from plsql_spec.core.errors import AggregationError
from plsql_spec.core.models import (
    STATUS_COVERED,
    STATUS_NON_EXECUTABLE,
    STATUS_UNCOVERED,
    CounterSnapshot,
    CoverageReport,
    LineCoverage,
    ObjectId,
    ProceduralObject,
)

logger = logging.getLogger(__name__)


def aggregate(obj: ProceduralObject, counts: Optional[Mapping[int, int]]) -> CoverageReport:
    """
    Build the coverage report of one object from its slot counts.

    Slots missing from counts are treated as never hit.
    """
    counts = counts or {}
    lines = []
    for info, text in zip(obj.line_map, obj.original_lines):
        text = text.rstrip("\r\n")
        if not info.executable:
            lines.append(LineCoverage(info.line, text, None, STATUS_NON_EXECUTABLE))
            continue
        hits = max(0, int(counts.get(info.slot_id, 0)))
        status = STATUS_COVERED if hits > 0 else STATUS_UNCOVERED
        lines.append(LineCoverage(info.line, text, hits, status))
    return CoverageReport(obj.object_id, tuple(lines))


class Aggregator:
    """Read the tracker once and build reports for every object."""

    def __init__(self, tracker):
        self.tracker = tracker

    def snapshot(
        self, objects: List[ProceduralObject]
    ) -> Tuple[CounterSnapshot, List[AggregationError]]:
        """Read counters for all objects that carry slots."""
        snapshot: Dict[ObjectId, Dict[int, int]] = {}
        errors = []
        for obj in objects:
            if not obj.needs_deploy:
                snapshot[obj.object_id] = {}
                continue
            try:
                snapshot[obj.object_id] = self.tracker.read_counts(obj.object_id)
            except AggregationError as e:
                logger.warning(str(e))
                errors.append(e)
        return snapshot, errors

    def collect(
        self, objects: List[ProceduralObject]
    ) -> Tuple[List[CoverageReport], List[ObjectId], List[AggregationError]]:
        """
        Aggregate all objects in scope.

        Returns:
            Tuple of (reports, unavailable_object_ids, errors)
        """
        snapshot, errors = self.snapshot(objects)
        reports = []
        unavailable = []
        for obj in sorted(objects, key=lambda o: o.object_id.sort_key()):
            if obj.object_id not in snapshot:
                unavailable.append(obj.object_id)
                continue
            reports.append(aggregate(obj, snapshot[obj.object_id]))
        logger.info(f"Aggregated coverage for {len(reports)} objects")
        return reports, unavailable, errors
