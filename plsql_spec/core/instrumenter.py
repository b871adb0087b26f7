#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Source-to-source instrumentation of stored PL/SQL objects.

Strategy:
1. Fetch the live source and keep it as the original
2. Classify lines and assign one counter slot per executable line
3. Insert a tracker call in front of the first statement on each
   executable line (never adding a newline, so line numbers stay valid)
4. Deploy the rewritten source and check it compiled
5. On failure, redeploy the original at once and drop the object from
   this run
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from plsql_spec.core.errors import InstrumentationError
from plsql_spec.core.models import ObjectId, ProceduralObject
from plsql_spec.core.source_parser import analyze, is_wrapped

logger = logging.getLogger(__name__)


def _sql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def hit_call(tracker_procedure: str, object_id: ObjectId, slot_id: int) -> str:
    """PL/SQL statement that bumps one counter slot."""
    return (
        f"{tracker_procedure}("
        f"{_sql_literal(object_id.owner)}, "
        f"{_sql_literal(object_id.name)}, "
        f"{_sql_literal(object_id.object_type)}, "
        f"{slot_id}); "
    )


def instrument_source(
    object_id: ObjectId, lines: List[str], tracker_procedure: str
) -> ProceduralObject:
    """
    Build the arena entry for one object without touching the database.

    Args:
        object_id: Object being instrumented
        lines: Original source lines
        tracker_procedure: Qualified name of the hit procedure

    Returns:
        ProceduralObject with instrumented_lines and line_map filled in
    """
    analysis = analyze(lines)
    instrumented = []
    for info, text in zip(analysis.line_map, lines):
        if info.executable:
            col = analysis.insert_columns[info.line]
            call = hit_call(tracker_procedure, object_id, info.slot_id)
            text = text[:col] + call + text[col:]
        instrumented.append(text)

    return ProceduralObject(
        object_id=object_id,
        original_lines=list(lines),
        instrumented_lines=instrumented,
        line_map=analysis.line_map,
    )


class Instrumenter:
    """Instrument and deploy objects one at a time."""

    def __init__(self, database, tracker):
        self.database = database
        self.tracker = tracker

    def prepare(self, object_id: ObjectId) -> Optional[ProceduralObject]:
        """
        Fetch source and build the instrumented version.

        Returns:
            ProceduralObject, or None for wrapped source that cannot be
            instrumented
        """
        try:
            lines = self.database.fetch_source(object_id)
        except Exception as e:
            raise InstrumentationError(
                f"Cannot read source of {object_id}: {e}", object_id
            ) from e

        if not lines:
            raise InstrumentationError(f"No source found for {object_id}", object_id)
        if is_wrapped(lines):
            logger.debug(f"Skipping wrapped {object_id}")
            return None

        obj = instrument_source(object_id, lines, self.tracker.procedure_name)
        if object_id.object_type == "TRIGGER":
            try:
                obj.enabled = self.database.trigger_enabled(object_id)
            except Exception as e:
                raise InstrumentationError(
                    f"Cannot read trigger status of {object_id}: {e}", object_id
                ) from e
        if len(obj.instrumented_lines) != len(obj.original_lines):
            raise InstrumentationError(
                f"Instrumentation changed line count of {object_id}", object_id
            )
        return obj

    def deploy(self, obj: ProceduralObject) -> None:
        """
        Deploy the instrumented version of an object.

        Raises:
            InstrumentationError: deploy failed. The original has already
                been redeployed; obj.deployed stays True only if that
                immediate revert failed as well.
        """
        if not obj.needs_deploy:
            logger.debug(f"{obj.object_id} has no executable lines, left as is")
            return

        try:
            self.tracker.register(obj)
        except Exception as e:
            raise InstrumentationError(
                f"Cannot register counters for {obj.object_id}: {e}", obj.object_id
            ) from e

        obj.deployed = True
        obj.deployed_at = datetime.now()
        success, error = self.database.deploy(
            obj.object_id, obj.instrumented_lines, disabled=not obj.enabled
        )
        if success:
            logger.info(
                f"Instrumented {obj.object_id}: "
                f"{obj.line_map.executable_count} executable lines"
            )
            return

        restored, restore_error = self.database.deploy(
            obj.object_id,
            obj.original_lines,
            check_errors=False,
            disabled=not obj.enabled,
        )
        if restored:
            obj.deployed = False
        else:
            logger.error(
                f"Could not revert {obj.object_id} after failed instrumentation: "
                f"{restore_error}"
            )
        raise InstrumentationError(
            f"Instrumented {obj.object_id} failed to deploy: {error}", obj.object_id
        )

    def instrument_all(
        self, object_ids: List[ObjectId], arena: Dict[ObjectId, ProceduralObject]
    ) -> Tuple[List[ProceduralObject], List[InstrumentationError]]:
        """
        Instrument objects in sequence.

        Every prepared object is put into the arena before it is deployed,
        so a caller interrupted part-way can still restore it.

        Args:
            object_ids: Resolved objects
            arena: Run arena, filled in place

        Returns:
            Tuple of (objects_in_coverage_scope, errors)
        """
        instrumented = []
        errors = []
        for object_id in object_ids:
            try:
                obj = self.prepare(object_id)
                if obj is None:
                    continue
                arena[object_id] = obj
                self.deploy(obj)
            except InstrumentationError as e:
                logger.warning(str(e))
                errors.append(e)
                continue
            instrumented.append(obj)
        return instrumented, errors
