#!/usr/bin/env python3
"""
In-memory stand-in for OracleDatabase used by the unit tests.

Keeps the live source of every object, the counter table and a log of
deploys. Executing code is simulated by run(), which bumps the counter
slots of the tracker calls found on the given lines of the live source.
"""

import re

from plsql_spec.core import tracker as tracker_sql
from plsql_spec.core.models import ObjectId
from plsql_spec.core.source_parser import split_lines

HIT_CALL = re.compile(
    tracker_sql.HIT_PROCEDURE
    + r"\('((?:[^']|'')*)', '((?:[^']|'')*)', '((?:[^']|'')*)', (\d+)\)"
)


def _unquote(value):
    return value.replace("''", "'")


class FakeDatabase:
    """Fake of the OracleDatabase interface"""

    def __init__(self, user="TESTER"):
        self.user = user
        self.sources = {}
        self.counters = {}
        self.deploy_log = []
        self.statements = []

        # Failure injection
        self.fail_list = False
        self.fail_deploy = set()
        self.fail_restore = set()
        self.fail_read = set()
        self.fail_tracker = False

        # Objects that do not compile even in their original form
        self.invalid = set()
        # Triggers currently disabled
        self.disabled = set()

    def add_object(self, owner, name, object_type, text):
        object_id = ObjectId(owner, name, object_type)
        self.sources[object_id] = split_lines(text)
        return object_id

    # OracleDatabase interface

    def current_user(self):
        return self.user

    def list_objects(self, object_types):
        if self.fail_list:
            raise Exception("ORA-00942: table or view does not exist")
        return [
            (oid.owner, oid.name, oid.object_type)
            for oid in self.sources
            if oid.object_type in object_types
        ]

    def fetch_source(self, object_id):
        return list(self.sources.get(object_id, []))

    def trigger_enabled(self, object_id):
        return object_id not in self.disabled

    def deploy(self, object_id, lines, check_errors=True, disabled=False):
        lines = list(lines)
        instrumented = tracker_sql.HIT_PROCEDURE in "".join(lines)
        self.deploy_log.append((object_id, instrumented))
        if instrumented and object_id in self.fail_deploy:
            return False, "line 3, col 5: PLS-00103: Encountered the symbol"
        if not instrumented and object_id in self.fail_restore:
            return False, "ORA-04021: timeout occurred while waiting to lock object"
        self.sources[object_id] = lines
        if disabled:
            self.disabled.add(object_id)
        else:
            self.disabled.discard(object_id)
        if check_errors and object_id in self.invalid:
            return False, "line 4, col 3: PLS-00201: identifier 'MISSING_PKG' must be declared"
        return True, ""

    def execute(self, sql, params=None):
        if self.fail_tracker and sql == tracker_sql.SQL_CREATE_PROCEDURE:
            raise Exception("ORA-01031: insufficient privileges")
        self.statements.append(sql)
        if sql == tracker_sql.SQL_CLEAR:
            self.counters.clear()
        elif sql == tracker_sql.SQL_CLEAR_OBJECT:
            key = (params["owner"], params["name"], params["object_type"])
            for counter_key in [k for k in self.counters if k[:3] == key]:
                del self.counters[counter_key]

    def execute_many(self, sql, rows):
        for row in rows:
            key = (row["owner"], row["name"], row["object_type"], row["slot_id"])
            self.counters[key] = 0

    def query(self, sql, params=None):
        if sql == tracker_sql.SQL_READ:
            object_id = ObjectId(params["owner"], params["name"], params["object_type"])
            if object_id in self.fail_read:
                raise Exception("ORA-00942: table or view does not exist")
            key = (params["owner"], params["name"], params["object_type"])
            return [(k[3], hits) for k, hits in self.counters.items() if k[:3] == key]
        return []

    def commit(self):
        pass

    # Test helpers

    def run(self, object_id, line_numbers):
        """Execute the given lines of the live code once each."""
        lines = self.sources[object_id]
        for number in line_numbers:
            for match in HIT_CALL.finditer(lines[number - 1]):
                owner, name, object_type, slot = match.groups()
                key = (_unquote(owner), _unquote(name), _unquote(object_type), int(slot))
                if key in self.counters:
                    self.counters[key] += 1

    def text(self, object_id):
        return "".join(self.sources[object_id])

    def instrumented_deploys(self, object_id):
        return [entry for entry in self.deploy_log if entry == (object_id, True)]
