#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Oracle access layer for the coverage engine.

Wraps an externally established DB-API 2.0 connection (python-oracledb).
The engine never opens or closes the connection itself; every metadata
query and DDL statement it needs goes through this class.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from plsql_spec.core.models import ObjectId

logger = logging.getLogger(__name__)

SQL_LIST_OBJECTS = """
SELECT owner, object_name, object_type
  FROM all_objects
 WHERE object_type IN ({types})
"""

SQL_FETCH_SOURCE = """
SELECT text
  FROM all_source
 WHERE owner = :owner
   AND name = :name
   AND type = :object_type
 ORDER BY line
"""

SQL_COMPILE_ERRORS = """
SELECT line, position, text
  FROM all_errors
 WHERE owner = :owner
   AND name = :name
   AND type = :object_type
 ORDER BY sequence
"""

SQL_CURRENT_SCHEMA = "SELECT SYS_CONTEXT('USERENV', 'CURRENT_SCHEMA') FROM dual"

SQL_TRIGGER_STATUS = """
SELECT status
  FROM all_triggers
 WHERE owner = :owner
   AND trigger_name = :name
"""


class OracleDatabase:
    """Thin wrapper over a DB-API connection."""

    def __init__(self, connection):
        self.connection = connection
        self._user = None

    def query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[tuple]:
        """Run a query and return all rows."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params or {})
            return cursor.fetchall()
        finally:
            cursor.close()

    def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Run a statement (DML or DDL)."""
        cursor = self.connection.cursor()
        try:
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
        finally:
            cursor.close()

    def execute_many(self, sql: str, rows: List[Dict[str, Any]]) -> None:
        """Run one statement for a batch of bind sets."""
        if not rows:
            return
        cursor = self.connection.cursor()
        try:
            cursor.executemany(sql, rows)
        finally:
            cursor.close()

    def commit(self) -> None:
        self.connection.commit()

    def current_user(self) -> str:
        """Schema of the connected account."""
        if self._user is None:
            rows = self.query("SELECT USER FROM dual")
            self._user = rows[0][0]
        return self._user

    def list_objects(self, object_types: Sequence[str]) -> List[Tuple[str, str, str]]:
        """List (owner, name, type) of all visible objects of the given types."""
        binds = {f"t{i}": t for i, t in enumerate(object_types)}
        placeholders = ", ".join(f":{key}" for key in binds)
        rows = self.query(SQL_LIST_OBJECTS.format(types=placeholders), binds)
        return [(row[0], row[1], row[2]) for row in rows]

    def fetch_source(self, object_id: ObjectId) -> List[str]:
        """Fetch source lines of an object, each keeping its line terminator."""
        rows = self.query(SQL_FETCH_SOURCE, object_id.binds())
        lines = [row[0] or "" for row in rows]
        # ALL_SOURCE keeps the newline on every line except possibly the last
        for i in range(len(lines) - 1):
            if not lines[i].endswith("\n"):
                lines[i] += "\n"
        return lines

    def compile_errors(self, object_id: ObjectId) -> List[str]:
        """Compilation errors currently recorded for an object."""
        rows = self.query(SQL_COMPILE_ERRORS, object_id.binds())
        return [f"line {row[0]}, col {row[1]}: {str(row[2]).strip()}" for row in rows]

    def current_schema(self) -> str:
        """Schema unqualified names currently resolve to."""
        rows = self.query(SQL_CURRENT_SCHEMA)
        return rows[0][0]

    def set_current_schema(self, schema: str) -> None:
        self.execute(f'ALTER SESSION SET CURRENT_SCHEMA = "{schema}"')

    def trigger_enabled(self, object_id: ObjectId) -> bool:
        """Whether a trigger is ENABLED; unknown triggers count as enabled."""
        rows = self.query(
            SQL_TRIGGER_STATUS, {"owner": object_id.owner, "name": object_id.name}
        )
        return not rows or rows[0][0] == "ENABLED"

    def deploy(
        self,
        object_id: ObjectId,
        lines: Iterable[str],
        check_errors: bool = True,
        disabled: bool = False,
    ) -> Tuple[bool, str]:
        """
        Replace the live definition of an object with the given source.

        The DDL runs with CURRENT_SCHEMA switched to the object's owner, so
        unqualified source text lands in the right schema.

        Args:
            object_id: Object to replace
            lines: Source lines as returned by fetch_source (no CREATE prefix)
            check_errors: Treat compile errors as failure. When False, an
                executed DDL counts as deployed and errors are only logged.
            disabled: Disable the trigger again after replacing it

        Returns:
            Tuple of (success, error_message)
        """
        ddl = "CREATE OR REPLACE " + "".join(lines)
        try:
            previous = self.current_schema()
            self.set_current_schema(object_id.owner)
            try:
                self.execute(ddl)
            finally:
                self.set_current_schema(previous)
        except Exception as e:
            return False, str(e).strip()

        if disabled and object_id.object_type == "TRIGGER":
            try:
                self.execute(f'ALTER TRIGGER "{object_id.owner}"."{object_id.name}" DISABLE')
            except Exception as e:
                return False, f"Could not disable trigger: {e}"

        try:
            errors = self.compile_errors(object_id)
        except Exception as e:
            if check_errors:
                return False, f"Could not read compile errors: {e}"
            logger.warning(f"Could not read compile errors of {object_id}: {e}")
            errors = []

        if errors:
            if check_errors:
                return False, "; ".join(errors)
            logger.warning(f"{object_id} deployed with errors: {'; '.join(errors)}")

        logger.debug(f"Deployed {object_id}")
        return True, ""
