#!/usr/bin/env python3
"""
Test cases for core/aggregator.py
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from plsql_spec.core.aggregator import Aggregator, aggregate
from plsql_spec.core.errors import AggregationError
from plsql_spec.core.instrumenter import instrument_source
from plsql_spec.core.models import (
    STATUS_COVERED,
    STATUS_NON_EXECUTABLE,
    STATUS_UNCOVERED,
    ObjectId,
)
from plsql_spec.core.source_parser import split_lines
import plsql_samples as samples


def make_object(owner, name, object_type, text):
    return instrument_source(ObjectId(owner, name, object_type), split_lines(text), "P")


class TestAggregate(unittest.TestCase):
    """Test aggregate function"""

    def test_seven_of_ten(self):
        """Test 7 of 10 executable lines hit gives 70%"""
        obj = make_object("HR", "TEN_STEPS", "PROCEDURE", samples.TEN_STEPS)
        counts = {slot: (1 if slot <= 7 else 0) for slot in range(1, 11)}

        report = aggregate(obj, counts)

        self.assertEqual(report.executable_lines, 10)
        self.assertEqual(report.covered_lines, 7)
        self.assertEqual(report.uncovered_lines, 3)
        self.assertAlmostEqual(report.percentage, 70.0)

    def test_line_statuses(self):
        """Test non-executable lines carry no hit count"""
        obj = make_object("HR", "SIMPLE", "PROCEDURE", samples.SIMPLE)
        report = aggregate(obj, {1: 4})

        self.assertEqual(
            [lc.status for lc in report.lines],
            [STATUS_NON_EXECUTABLE, STATUS_NON_EXECUTABLE, STATUS_COVERED, STATUS_NON_EXECUTABLE],
        )
        self.assertIsNone(report.lines[0].hits)
        self.assertEqual(report.lines[2].hits, 4)
        self.assertEqual(report.lines[2].text, "  NULL;")

    def test_missing_slots_are_uncovered(self):
        """Test slots with no counter row count as zero"""
        obj = make_object("HR", "SIMPLE", "PROCEDURE", samples.SIMPLE)
        report = aggregate(obj, {})
        self.assertEqual(report.lines[2].status, STATUS_UNCOVERED)
        self.assertEqual(report.lines[2].hits, 0)

    def test_no_executable_lines_is_full(self):
        """Test package spec reports 100%"""
        obj = make_object("HR", "PKG", "PACKAGE", samples.PKG_SPEC)
        report = aggregate(obj, {})
        self.assertEqual(report.executable_lines, 0)
        self.assertEqual(report.percentage, 100.0)

    def test_idempotent(self):
        """Test same counts give equal reports"""
        obj = make_object("HR", "ADD_BONUS", "PROCEDURE", samples.ADD_BONUS)
        counts = {1: 2, 3: 1}
        self.assertEqual(aggregate(obj, counts), aggregate(obj, dict(counts)))

    def test_counts_are_reported_not_flags(self):
        """Test hit counts above one are kept"""
        obj = make_object("HR", "SIMPLE", "PROCEDURE", samples.SIMPLE)
        self.assertEqual(aggregate(obj, {1: 250}).lines[2].hits, 250)


class TestAggregator(unittest.TestCase):
    """Test Aggregator class"""

    def test_collect_sorted_with_unavailable(self):
        """Test unreadable objects are listed as unavailable"""
        body = make_object("HR", "PKG", "PACKAGE BODY", samples.PKG_BODY)
        spec = make_object("HR", "PKG", "PACKAGE", samples.PKG_SPEC)
        broken = make_object("HR", "ADD_BONUS", "PROCEDURE", samples.ADD_BONUS)

        tracker = MagicMock()

        def read_counts(object_id):
            if object_id == broken.object_id:
                raise AggregationError("no counters", object_id)
            return {1: 1}

        tracker.read_counts.side_effect = read_counts
        reports, unavailable, errors = Aggregator(tracker).collect([body, broken, spec])

        self.assertEqual(
            [r.object_id.object_type for r in reports], ["PACKAGE", "PACKAGE BODY"]
        )
        self.assertEqual(unavailable, [broken.object_id])
        self.assertEqual(len(errors), 1)
        # Package spec has no slots and is never read
        tracker.read_counts.assert_any_call(body.object_id)
        self.assertNotIn(
            spec.object_id, [c.args[0] for c in tracker.read_counts.call_args_list]
        )


if __name__ == "__main__":
    unittest.main()
