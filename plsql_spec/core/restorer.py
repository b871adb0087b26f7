#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Redeploy original object definitions after a coverage run.
"""

import logging
from typing import Iterable, List

from plsql_spec.core.errors import RestorationError
from plsql_spec.core.models import ProceduralObject

logger = logging.getLogger(__name__)


class Restorer:
    """Put every instrumented object back to its recorded original source."""

    def __init__(self, database):
        self.database = database

    def restore(self, obj: ProceduralObject) -> None:
        """
        Redeploy one object.

        Raises:
            RestorationError: the original could not be redeployed
        """
        try:
            success, error = self.database.deploy(
                obj.object_id,
                obj.original_lines,
                check_errors=False,
                disabled=not obj.enabled,
            )
        except Exception as e:
            success, error = False, str(e)

        if not success:
            raise RestorationError(
                f"{obj.object_id} is still instrumented, restore failed: {error}",
                obj.object_id,
            )

        obj.deployed = False
        logger.debug(f"Restored {obj.object_id}")

    def restore_all(self, objects: Iterable[ProceduralObject]) -> List[RestorationError]:
        """
        Restore all deployed objects, continuing past failures.

        Returns:
            One RestorationError per object left instrumented
        """
        errors = []
        restored = 0
        for obj in objects:
            if not obj.deployed:
                continue
            try:
                self.restore(obj)
                restored += 1
            except RestorationError as e:
                logger.error(str(e))
                errors.append(e)

        logger.info(f"Restored {restored} objects")
        return errors
