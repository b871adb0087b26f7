#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
plsql-spec CLI - run PL/SQL unit tests with optional line coverage

Usage:
  plsql-spec run [FILES...]
  plsql-spec run --coverage [DIR] [--ignore-schemas S ...] [--like PATTERN]
  plsql-spec --version
  plsql-spec --help

Test output goes to stdout; diagnostics go to stderr. With --json the
coverage result is printed to stdout as JSON and test output moves to
stderr.
"""

import argparse
import json
import logging
import os
import signal
import sys
from contextlib import contextmanager
from importlib import metadata
from typing import Any, Dict, List, Optional

from plsql_spec.core.coverage_session import CoverageSession
from plsql_spec.core.database import OracleDatabase
from plsql_spec.core.errors import ConfigError, CoverageError
from plsql_spec.core.models import ENV_COVERAGE, CoverageRunResult, RunFilter
from plsql_spec.core.state import CONFIG_FILE, state
from plsql_spec.services.test_runner import DEFAULT_SPEC_DIR, build_suite, run_suite
from plsql_spec.utils.helpers import format_percentage
from plsql_spec.version import __version__

# Exit codes
EXIT_OK = 0
EXIT_TESTS_FAILED = 1
EXIT_ENGINE_ERROR = 2
EXIT_INTERRUPTED = 130

# Marker for "--coverage" given without a directory
COVERAGE_DEFAULT_DIR = ""


def version_text() -> str:
    """Version banner with the driver and template engine versions."""
    lines = [f"plsql-spec {__version__}"]
    for label, dist in (("oracledb", "oracledb"), ("jinja2", "Jinja2")):
        try:
            lines.append(f"{label} {metadata.version(dist)}")
        except metadata.PackageNotFoundError:
            lines.append(f"{label} not installed")
    return "\n".join(lines)


@contextmanager
def terminate_as_interrupt():
    """Turn SIGTERM into KeyboardInterrupt so cleanup still runs."""

    def handler(signum, frame):
        raise KeyboardInterrupt()

    try:
        previous = signal.signal(signal.SIGTERM, handler)
    except ValueError:
        # Not in the main thread
        previous = None
    try:
        yield
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)


class PLSQLSpecCLI:
    """Command line front end around the test runner and coverage engine."""

    def __init__(
        self,
        verbose: bool = False,
        config_path: Optional[str] = None,
        spec_dir: str = DEFAULT_SPEC_DIR,
        json_output: bool = False,
    ):
        self.verbose = verbose
        self.config_path = config_path or CONFIG_FILE
        self.spec_dir = spec_dir
        self.json_output = json_output
        self.setup_logging()

    def setup_logging(self):
        """Setup logging based on verbosity"""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s",
            stream=sys.stderr,
        )

    @property
    def test_stream(self):
        return sys.stderr if self.json_output else sys.stdout

    def output_json(self, data: Dict[str, Any]) -> None:
        """Output result as JSON to stdout"""
        print(json.dumps(data, indent=2, ensure_ascii=False))

    def output_error(self, message: str, error: Optional[Exception] = None) -> None:
        """Report an error on stderr, or as JSON with --json"""
        if self.json_output:
            error_data = {"success": False, "error": message}
            if error and self.verbose:
                error_data["exception"] = str(error)
            self.output_json(error_data)
        else:
            print(f"Error: {message}", file=sys.stderr)

    def report_coverage(self, result: CoverageRunResult) -> None:
        """Print the coverage outcome and any engine warnings."""
        if result.files:
            print(
                f"Coverage: {format_percentage(result.percentage)}% of executable lines "
                f"in {len(result.reports)} objects, report: {result.files[0]}",
                file=sys.stderr,
            )
        for error in result.instrumentation_errors:
            print(f"Warning: not instrumented: {error}", file=sys.stderr)
        for error in result.aggregation_errors:
            print(f"Warning: coverage unavailable: {error}", file=sys.stderr)
        if result.restoration_errors:
            print(
                "WARNING: the following objects are still instrumented and must be "
                "recompiled from their original source:",
                file=sys.stderr,
            )
            for error in result.restoration_errors:
                print(f"  {error.object_id}: {error}", file=sys.stderr)
        if self.json_output:
            self.output_json(result.to_dict())

    def run(
        self,
        files: Optional[List[str]] = None,
        coverage: Optional[str] = None,
        ignore_schemas: Optional[List[str]] = None,
        like: Optional[str] = None,
        cleanup: bool = False,
    ) -> int:
        """
        Run the test suite, optionally bracketed by a coverage session.

        Args:
            files: Explicit test files (default: discover spec directory)
            coverage: None to disable, "" for the default directory, or a
                report directory
            ignore_schemas: Schemas excluded from instrumentation
            like: SCHEMA.OBJECT glob
            cleanup: Drop tracker objects after the run

        Returns:
            Process exit code
        """
        try:
            config = state.load_config(self.config_path)
            suite = build_suite(files, self.spec_dir)
            connection = state.connect()
        except (ConfigError, FileNotFoundError, ImportError, SyntaxError) as e:
            self.output_error(str(e), e)
            return EXIT_ENGINE_ERROR

        try:
            if coverage is None:
                summary = run_suite(suite, self.verbosity, self.test_stream)
                return EXIT_OK if summary.success else EXIT_TESTS_FAILED

            run_filter = RunFilter.from_options(
                output_dir=coverage or None,
                ignore_schemas=ignore_schemas,
                like=like,
                config=config,
            )
            session = CoverageSession(
                OracleDatabase(connection), run_filter, cleanup=cleanup
            )
            try:
                with terminate_as_interrupt():
                    with session:
                        summary = run_suite(suite, self.verbosity, self.test_stream)
            except CoverageError as e:
                self.output_error(f"Coverage failed: {e}", e)
                return EXIT_ENGINE_ERROR
            finally:
                if session.result.restoration_errors or session.result.files:
                    self.report_coverage(session.result)

            return EXIT_OK if summary.success else EXIT_TESTS_FAILED
        finally:
            state.disconnect()

    @property
    def verbosity(self) -> int:
        return 2 if self.verbose else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plsql-spec",
        description="plsql-spec - unit tests and line coverage for Oracle PL/SQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Run all spec/test_*.py modules
  plsql-spec run

  # Run selected files
  plsql-spec run spec/test_orders.py spec/test_invoices.py

  # Measure coverage, reports in ./coverage
  plsql-spec run --coverage

  # Reports in ./plsql_coverage, only HR objects starting with EMP
  plsql-spec run --coverage plsql_coverage --like "HR.EMP%"

  # Skip schemas
  plsql-spec run --coverage --ignore-schemas UTIL LOGGER

Environment:
  {ENV_COVERAGE}=<dir>                     enable coverage (same as --coverage <dir>)
  PLSQL_COVERAGE_IGNORE_SCHEMAS=A,B    default for --ignore-schemas
  PLSQL_COVERAGE_LIKE=<pattern>        default for --like
        """,
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument("--version", action="version", version=version_text())
    parser.add_argument(
        "--config",
        default=CONFIG_FILE,
        help=f"Connection config file (default: {CONFIG_FILE})",
    )
    parser.add_argument(
        "--spec-dir",
        default=DEFAULT_SPEC_DIR,
        help=f"Test directory (default: {DEFAULT_SPEC_DIR})",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print coverage result as JSON"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    run_parser = subparsers.add_parser("run", help="Run tests")
    run_parser.add_argument("files", nargs="*", help="Test files (default: all)")
    run_parser.add_argument(
        "--coverage",
        nargs="?",
        const=COVERAGE_DEFAULT_DIR,
        default=None,
        metavar="DIR",
        help="Measure PL/SQL line coverage, reports in DIR (default: coverage)",
    )
    run_parser.add_argument(
        "--ignore-schemas",
        "--ignore_schemas",
        nargs="+",
        default=None,
        metavar="SCHEMA",
        help="Schemas excluded from coverage",
    )
    run_parser.add_argument(
        "--like",
        default=None,
        help="Only cover SCHEMA.OBJECT matching this pattern (%%, *, _, ?)",
    )
    run_parser.add_argument(
        "--coverage-cleanup",
        action="store_true",
        help="Drop the coverage counter table and procedure afterwards",
    )
    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_ENGINE_ERROR)

    cli = PLSQLSpecCLI(
        verbose=args.verbose,
        config_path=args.config,
        spec_dir=args.spec_dir,
        json_output=args.json,
    )

    coverage = args.coverage
    if coverage is None and state_env_coverage():
        coverage = COVERAGE_DEFAULT_DIR

    try:
        code = cli.run(
            files=args.files,
            coverage=coverage,
            ignore_schemas=args.ignore_schemas,
            like=args.like,
            cleanup=args.coverage_cleanup,
        )
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(code)


def state_env_coverage() -> bool:
    """PLSQL_COVERAGE set in the environment switches coverage on."""
    return bool(os.environ.get(ENV_COVERAGE))


if __name__ == "__main__":
    main()
