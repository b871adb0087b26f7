#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Execution tracker: the shared counter table written by instrumented code.

Every slot gets a zero row before its object is deployed, so the hit
procedure only ever runs one UPDATE ... SET hits = hits + 1. The update
is atomic in the database, which keeps counts exact when many test
sessions execute instrumented code at once. The procedure runs as an
autonomous transaction so test rollbacks do not discard hits.
"""

import logging
from typing import Dict

from plsql_spec.core.errors import AggregationError
from plsql_spec.core.models import ObjectId, ProceduralObject

logger = logging.getLogger(__name__)

COUNTER_TABLE = "PLSQL_SPEC_COVERAGE"
HIT_PROCEDURE = "PLSQL_SPEC_COVERAGE_HIT"

# ORA-00955: name is already used by an existing object
ORA_NAME_IN_USE = "ORA-00955"
# ORA-00942 / ORA-04043: table / object does not exist
ORA_MISSING = ("ORA-00942", "ORA-04043")

SQL_CREATE_TABLE = f"""
CREATE TABLE {COUNTER_TABLE} (
  owner       VARCHAR2(128) NOT NULL,
  object_name VARCHAR2(128) NOT NULL,
  object_type VARCHAR2(30)  NOT NULL,
  slot_id     NUMBER        NOT NULL,
  hits        NUMBER        DEFAULT 0 NOT NULL,
  CONSTRAINT {COUNTER_TABLE}_PK PRIMARY KEY (owner, object_name, object_type, slot_id)
)"""

SQL_CREATE_PROCEDURE = f"""
CREATE OR REPLACE PROCEDURE {HIT_PROCEDURE} (
  p_owner VARCHAR2,
  p_name  VARCHAR2,
  p_type  VARCHAR2,
  p_slot  NUMBER
) IS
  PRAGMA AUTONOMOUS_TRANSACTION;
BEGIN
  UPDATE {COUNTER_TABLE}
     SET hits = hits + 1
   WHERE owner = p_owner
     AND object_name = p_name
     AND object_type = p_type
     AND slot_id = p_slot;
  COMMIT;
END;"""

SQL_GRANT = f"GRANT EXECUTE ON {HIT_PROCEDURE} TO PUBLIC"

SQL_CLEAR = f"DELETE FROM {COUNTER_TABLE}"

SQL_CLEAR_OBJECT = f"""
DELETE FROM {COUNTER_TABLE}
 WHERE owner = :owner AND object_name = :name AND object_type = :object_type"""

SQL_SEED = f"""
INSERT INTO {COUNTER_TABLE} (owner, object_name, object_type, slot_id, hits)
VALUES (:owner, :name, :object_type, :slot_id, 0)"""

SQL_READ = f"""
SELECT slot_id, hits
  FROM {COUNTER_TABLE}
 WHERE owner = :owner AND object_name = :name AND object_type = :object_type"""


class ExecutionTracker:
    """Counter table plus the hit procedure, owned by the connected schema."""

    def __init__(self, database):
        self.database = database
        self._owner = None

    @property
    def owner(self) -> str:
        if self._owner is None:
            self._owner = self.database.current_user()
        return self._owner

    @property
    def procedure_name(self) -> str:
        """Schema-qualified hit procedure, callable from any schema."""
        return f'"{self.owner}".{HIT_PROCEDURE}'

    def install(self) -> None:
        """Create the counter table and hit procedure, then clear old counts."""
        try:
            self.database.execute(SQL_CREATE_TABLE)
            logger.info(f"Created counter table {COUNTER_TABLE}")
        except Exception as e:
            if ORA_NAME_IN_USE not in str(e):
                raise
            logger.debug(f"Counter table {COUNTER_TABLE} already exists")

        self.database.execute(SQL_CREATE_PROCEDURE)
        try:
            self.database.execute(SQL_GRANT)
        except Exception as e:
            logger.warning(f"Could not grant execute on {HIT_PROCEDURE}: {e}")

        self.database.execute(SQL_CLEAR)
        self.database.commit()

    def register(self, obj: ProceduralObject) -> None:
        """Seed a zero row for every slot of an object."""
        binds = obj.object_id.binds()
        self.database.execute(SQL_CLEAR_OBJECT, binds)
        rows = [dict(binds, slot_id=slot) for slot in obj.line_map.slots()]
        self.database.execute_many(SQL_SEED, rows)
        self.database.commit()

    def read_counts(self, object_id: ObjectId) -> Dict[int, int]:
        """
        Read slot counts for one object.

        Raises:
            AggregationError: counter rows could not be read
        """
        try:
            rows = self.database.query(SQL_READ, object_id.binds())
        except Exception as e:
            raise AggregationError(
                f"Cannot read counters for {object_id}: {e}", object_id
            ) from e
        return {int(slot): int(hits or 0) for slot, hits in rows}

    def uninstall(self) -> None:
        """Drop the tracker objects."""
        for ddl in (f"DROP PROCEDURE {HIT_PROCEDURE}", f"DROP TABLE {COUNTER_TABLE}"):
            try:
                self.database.execute(ddl)
            except Exception as e:
                if not any(code in str(e) for code in ORA_MISSING):
                    raise
        logger.info("Dropped coverage tracker objects")
