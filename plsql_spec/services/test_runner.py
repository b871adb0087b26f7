#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Test suite runner.

Loads unittest test modules from the project's spec directory (or from
explicit files) and runs them with unittest's text runner.
"""

import importlib.util
import logging
import os
import sys
import unittest
from dataclasses import dataclass
from typing import List, Optional, TextIO

logger = logging.getLogger(__name__)

# Default test directory and file pattern
DEFAULT_SPEC_DIR = "spec"
DEFAULT_PATTERN = "test_*.py"


@dataclass
class TestRunSummary:
    """Counts reported back to the CLI."""

    __test__ = False

    tests_run: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0

    @property
    def success(self) -> bool:
        return self.failures == 0 and self.errors == 0

    def summary_line(self) -> str:
        examples = "example" if self.tests_run == 1 else "examples"
        failures = self.failures + self.errors
        failure_word = "failure" if failures == 1 else "failures"
        return f"{self.tests_run} {examples}, {failures} {failure_word}"


def _load_file(loader: unittest.TestLoader, path: str, index: int) -> unittest.TestSuite:
    """Import one test file under a unique module name and load its tests."""
    path = os.path.abspath(path)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Test file not found: {path}")

    stem = os.path.splitext(os.path.basename(path))[0]
    module_name = f"plsql_spec_tests_{index}_{stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return loader.loadTestsFromModule(module)


def build_suite(
    files: Optional[List[str]] = None,
    spec_dir: str = DEFAULT_SPEC_DIR,
    pattern: str = DEFAULT_PATTERN,
) -> unittest.TestSuite:
    """
    Build the test suite.

    Args:
        files: Explicit test files; the same file given twice runs twice
        spec_dir: Directory searched when no files are given
        pattern: Discovery file pattern

    Returns:
        unittest.TestSuite
    """
    loader = unittest.TestLoader()
    spec_dir = os.path.abspath(spec_dir)
    if os.path.isdir(spec_dir) and spec_dir not in sys.path:
        # Lets test modules import shared helpers from the test directory
        sys.path.insert(0, spec_dir)

    if files:
        suite = unittest.TestSuite()
        for index, path in enumerate(files):
            suite.addTests(_load_file(loader, path, index))
        return suite

    if not os.path.isdir(spec_dir):
        raise FileNotFoundError(f"Spec directory not found: {spec_dir}")
    return loader.discover(spec_dir, pattern=pattern, top_level_dir=spec_dir)


def run_suite(
    suite: unittest.TestSuite, verbosity: int = 1, stream: Optional[TextIO] = None
) -> TestRunSummary:
    """Run a suite and print the summary line."""
    stream = stream or sys.stdout
    runner = unittest.TextTestRunner(stream=stream, verbosity=verbosity)
    result = runner.run(suite)

    summary = TestRunSummary(
        tests_run=result.testsRun,
        failures=len(result.failures),
        errors=len(result.errors),
        skipped=len(result.skipped),
    )
    stream.write(f"\n{summary.summary_line()}\n")
    logger.debug(f"Test run finished: {summary}")
    return summary
