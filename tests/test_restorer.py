#!/usr/bin/env python3
"""
Test cases for core/restorer.py
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from fake_oracle import FakeDatabase
from plsql_spec.core.errors import RestorationError
from plsql_spec.core.instrumenter import Instrumenter
from plsql_spec.core.restorer import Restorer
from plsql_spec.core.tracker import ExecutionTracker
import plsql_samples as samples


class TestRestorer(unittest.TestCase):
    """Test Restorer class"""

    def setUp(self):
        self.db = FakeDatabase()
        tracker = ExecutionTracker(self.db)
        tracker.install()
        self.instrumenter = Instrumenter(self.db, tracker)
        self.restorer = Restorer(self.db)

    def deploy(self, name, text):
        oid = self.db.add_object("HR", name, "PROCEDURE", text)
        obj = self.instrumenter.prepare(oid)
        self.instrumenter.deploy(obj)
        return obj

    def test_restore_byte_for_byte(self):
        """Test live source equals the original after restore"""
        obj = self.deploy("ADD_BONUS", samples.ADD_BONUS)
        self.assertNotEqual(self.db.text(obj.object_id), samples.ADD_BONUS)

        self.restorer.restore(obj)

        self.assertEqual(self.db.text(obj.object_id), samples.ADD_BONUS)
        self.assertFalse(obj.deployed)

    def test_restore_failure(self):
        """Test failed redeploy raises RestorationError"""
        obj = self.deploy("ADD_BONUS", samples.ADD_BONUS)
        self.db.fail_restore.add(obj.object_id)

        with self.assertRaises(RestorationError) as ctx:
            self.restorer.restore(obj)
        self.assertEqual(ctx.exception.object_id, obj.object_id)
        self.assertTrue(obj.deployed)

    def test_restore_all_continues(self):
        """Test every object is attempted and failures are collected"""
        first = self.deploy("ADD_BONUS", samples.ADD_BONUS)
        second = self.deploy("SIMPLE", samples.SIMPLE)
        third = self.deploy("TEN_STEPS", samples.TEN_STEPS)
        self.db.fail_restore.add(second.object_id)

        errors = self.restorer.restore_all([first, second, third])

        self.assertEqual([e.object_id for e in errors], [second.object_id])
        self.assertEqual(self.db.text(first.object_id), samples.ADD_BONUS)
        self.assertEqual(self.db.text(third.object_id), samples.TEN_STEPS)
        self.assertFalse(first.deployed)
        self.assertTrue(second.deployed)

    def test_restore_all_skips_undeployed(self):
        """Test objects never deployed are not touched"""
        oid = self.db.add_object("HR", "SIMPLE", "PROCEDURE", samples.SIMPLE)
        obj = self.instrumenter.prepare(oid)

        self.assertEqual(self.restorer.restore_all([obj]), [])
        self.assertEqual(self.db.deploy_log, [])

    def test_restore_invalid_original(self):
        """Test an object invalid before the run restores without error"""
        obj = self.deploy("ADD_BONUS", samples.ADD_BONUS)
        self.db.invalid.add(obj.object_id)

        errors = self.restorer.restore_all([obj])

        self.assertEqual(errors, [])
        self.assertEqual(self.db.text(obj.object_id), samples.ADD_BONUS)
        self.assertFalse(obj.deployed)

    def test_disabled_trigger_stays_disabled(self):
        """Test a disabled trigger is disabled again after restore"""
        oid = self.db.add_object("HR", "EMP_AUDIT", "TRIGGER", samples.TRIGGER)
        self.db.disabled.add(oid)
        obj = self.instrumenter.prepare(oid)
        self.instrumenter.deploy(obj)

        self.restorer.restore(obj)

        self.assertFalse(obj.enabled)
        self.assertIn(oid, self.db.disabled)
        self.assertEqual(self.db.text(oid), samples.TRIGGER)

    def test_enabled_trigger_stays_enabled(self):
        """Test an enabled trigger is not disabled by restore"""
        oid = self.db.add_object("HR", "EMP_AUDIT", "TRIGGER", samples.TRIGGER)
        obj = self.instrumenter.prepare(oid)
        self.instrumenter.deploy(obj)

        self.restorer.restore(obj)

        self.assertNotIn(oid, self.db.disabled)

    def test_deploy_exception_wrapped(self):
        """Test driver exceptions become RestorationError"""
        obj = self.deploy("SIMPLE", samples.SIMPLE)
        database = MagicMock()
        database.deploy.side_effect = Exception("ORA-03113: end-of-file on communication channel")

        with self.assertRaises(RestorationError):
            Restorer(database).restore(obj)


if __name__ == "__main__":
    unittest.main()
