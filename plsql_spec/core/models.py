#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
Data model for the coverage engine.

ObjectId identifies a stored PL/SQL unit, ProceduralObject is its arena
entry for one run (original text, instrumented text, line map), and
CoverageReport is the read-only result derived after the run.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

# Supported object types, in report order
OBJECT_TYPES = (
    "PROCEDURE",
    "FUNCTION",
    "PACKAGE",
    "PACKAGE BODY",
    "TRIGGER",
    "TYPE BODY",
)

STATUS_NON_EXECUTABLE = "non-executable"
STATUS_COVERED = "covered"
STATUS_UNCOVERED = "uncovered"

DEFAULT_OUTPUT_DIR = "coverage"

# Environment variables understood by RunFilter.from_options
ENV_COVERAGE = "PLSQL_COVERAGE"
ENV_IGNORE_SCHEMAS = "PLSQL_COVERAGE_IGNORE_SCHEMAS"
ENV_LIKE = "PLSQL_COVERAGE_LIKE"


@dataclass(frozen=True)
class ObjectId:
    """Identity of a stored procedural unit."""

    owner: str
    name: str
    object_type: str

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.name}"

    @property
    def anchor(self) -> str:
        """HTML anchor for this unit inside its detail page."""
        return self.object_type.replace(" ", "_")

    def binds(self) -> Dict[str, str]:
        """Bind variables for queries keyed by owner, name and type."""
        return {"owner": self.owner, "name": self.name, "object_type": self.object_type}

    def sort_key(self) -> Tuple[str, str, int]:
        try:
            rank = OBJECT_TYPES.index(self.object_type)
        except ValueError:
            rank = len(OBJECT_TYPES)
        return (self.owner, self.name, rank)

    def __str__(self) -> str:
        return f"{self.qualified_name} ({self.object_type})"


@dataclass(frozen=True)
class LineInfo:
    line: int
    executable: bool
    slot_id: Optional[int] = None


@dataclass(frozen=True)
class LineMap:
    """Per-line executable flags and counter slots of one object."""

    lines: Tuple[LineInfo, ...]

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def slots(self) -> List[int]:
        return [info.slot_id for info in self.lines if info.executable]

    def slot_for(self, line: int) -> Optional[int]:
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1].slot_id
        return None

    @property
    def executable_count(self) -> int:
        return sum(1 for info in self.lines if info.executable)


@dataclass
class ProceduralObject:
    """Arena entry: what was deployed for an object and how to undo it."""

    object_id: ObjectId
    original_lines: List[str]
    instrumented_lines: List[str] = field(default_factory=list)
    line_map: Optional[LineMap] = None
    deployed: bool = False
    deployed_at: Optional[datetime] = None
    # Triggers only: status before the run
    enabled: bool = True

    @property
    def original_text(self) -> str:
        return "".join(self.original_lines)

    @property
    def instrumented_text(self) -> str:
        return "".join(self.instrumented_lines)

    @property
    def needs_deploy(self) -> bool:
        """Objects with no counters are left untouched in the database."""
        return self.line_map is not None and self.line_map.executable_count > 0


# ObjectId -> {slot_id: hits}
CounterSnapshot = Dict[ObjectId, Dict[int, int]]


@dataclass(frozen=True)
class LineCoverage:
    line: int
    text: str
    hits: Optional[int]
    status: str


@dataclass(frozen=True)
class CoverageReport:
    object_id: ObjectId
    lines: Tuple[LineCoverage, ...]

    @property
    def total_lines(self) -> int:
        return len(self.lines)

    @property
    def executable_lines(self) -> int:
        return sum(1 for lc in self.lines if lc.status != STATUS_NON_EXECUTABLE)

    @property
    def covered_lines(self) -> int:
        return sum(1 for lc in self.lines if lc.status == STATUS_COVERED)

    @property
    def uncovered_lines(self) -> int:
        return self.executable_lines - self.covered_lines

    @property
    def percentage(self) -> float:
        if self.executable_lines == 0:
            return 100.0
        return 100.0 * self.covered_lines / self.executable_lines

    def to_dict(self) -> dict:
        return {
            "owner": self.object_id.owner,
            "name": self.object_id.name,
            "type": self.object_id.object_type,
            "total_lines": self.total_lines,
            "executable_lines": self.executable_lines,
            "covered_lines": self.covered_lines,
            "percentage": round(self.percentage, 2),
        }


def _split_names(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = [value]
    names = []
    for item in value:
        names.extend(str(item).replace(",", " ").split())
    return names


@dataclass(frozen=True)
class RunFilter:
    """Which objects a coverage run instruments and where reports go."""

    ignore_schemas: FrozenSet[str] = frozenset()
    like: Optional[str] = None
    output_dir: str = DEFAULT_OUTPUT_DIR
    include_default_ignores: bool = True

    def __post_init__(self):
        object.__setattr__(
            self,
            "ignore_schemas",
            frozenset(s.upper() for s in self.ignore_schemas),
        )

    @classmethod
    def from_options(
        cls,
        output_dir: Optional[str] = None,
        ignore_schemas=None,
        like: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        config: Optional[Mapping] = None,
    ) -> "RunFilter":
        """
        Build a filter from CLI flags, falling back to the environment and
        then to the loaded config.

        Args:
            output_dir: Report directory from --coverage
            ignore_schemas: Schema names (list or comma separated string)
            like: SCHEMA.OBJECT glob
            environ: Environment mapping (default: os.environ)
            config: Loaded config dict

        Returns:
            RunFilter instance
        """
        environ = os.environ if environ is None else environ
        config = config or {}

        if not output_dir:
            output_dir = (
                environ.get(ENV_COVERAGE)
                or config.get("coverage_dir")
                or DEFAULT_OUTPUT_DIR
            )
        # PLSQL_COVERAGE=true only switches coverage on
        if output_dir.lower() in ("1", "true", "yes", "on"):
            output_dir = config.get("coverage_dir") or DEFAULT_OUTPUT_DIR

        schemas = _split_names(ignore_schemas)
        if not schemas:
            schemas = _split_names(environ.get(ENV_IGNORE_SCHEMAS))
        if not schemas:
            schemas = _split_names(config.get("ignore_schemas"))

        like = like or environ.get(ENV_LIKE) or config.get("like") or None

        return cls(
            ignore_schemas=frozenset(schemas),
            like=like,
            output_dir=output_dir,
        )


@dataclass
class CoverageRunResult:
    """Structured outcome of one coverage run."""

    reports: List[CoverageReport] = field(default_factory=list)
    unavailable: List[ObjectId] = field(default_factory=list)
    instrumentation_errors: List = field(default_factory=list)
    aggregation_errors: List = field(default_factory=list)
    restoration_errors: List = field(default_factory=list)
    fatal_error: Optional[Exception] = None
    files: List[str] = field(default_factory=list)

    @property
    def has_engine_errors(self) -> bool:
        return bool(
            self.fatal_error
            or self.instrumentation_errors
            or self.aggregation_errors
            or self.restoration_errors
        )

    @property
    def percentage(self) -> float:
        total = sum(r.executable_lines for r in self.reports)
        if total == 0:
            return 100.0
        return 100.0 * sum(r.covered_lines for r in self.reports) / total

    def to_dict(self) -> dict:
        return {
            "success": not self.has_engine_errors,
            "percentage": round(self.percentage, 2),
            "objects": [r.to_dict() for r in self.reports],
            "unavailable": [str(o) for o in self.unavailable],
            "fatal_error": str(self.fatal_error) if self.fatal_error else None,
            "instrumentation_errors": [e.to_dict() for e in self.instrumentation_errors],
            "aggregation_errors": [e.to_dict() for e in self.aggregation_errors],
            "restoration_errors": [e.to_dict() for e in self.restoration_errors],
            "files": list(self.files),
        }
