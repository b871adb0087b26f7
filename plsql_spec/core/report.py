#!/usr/bin/env python3

# MIT License
# Copyright (c) 2025 - 2026 _VIFEXTech

"""
HTML coverage report renderer.

Writes index.html plus one <OWNER>-<NAME>.html per object name. Units that
share a name (a package and its body) share one detail page, one section
per unit. Output depends only on the reports passed in, so rendering the
same reports twice gives byte-identical files.
"""

import logging
import os
from itertools import groupby
from typing import List, Optional
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape

from plsql_spec.core.models import CoverageReport, ObjectId
from plsql_spec.utils.helpers import detail_file_name, format_percentage

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates"
)

INDEX_FILE = "index.html"


def create_environment(template_dir: str = TEMPLATE_DIR) -> Environment:
    """Jinja2 environment used for all report pages."""
    env = Environment(
        loader=FileSystemLoader(template_dir),
        autoescape=select_autoescape(["html"]),
        keep_trailing_newline=True,
    )
    env.trim_blocks = True
    env.lstrip_blocks = True
    env.filters["percent"] = format_percentage
    env.filters["urlquote"] = lambda value: quote(value)
    return env


class ReportRenderer:
    """Render coverage reports into an output directory."""

    def __init__(self, output_dir: str, env: Optional[Environment] = None):
        self.output_dir = output_dir
        self.env = env or create_environment()

    def _write(self, file_name: str, content: str) -> str:
        path = os.path.join(self.output_dir, file_name)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        return path

    def render_index(
        self,
        reports: List[CoverageReport],
        unavailable: Optional[List[ObjectId]] = None,
    ) -> str:
        """Render the summary page and return its HTML."""
        rows = [
            {"report": r, "href": detail_file_name(r.object_id.owner, r.object_id.name)}
            for r in reports
        ]
        executable = sum(r.executable_lines for r in reports)
        covered = sum(r.covered_lines for r in reports)
        total = {
            "objects": len(reports),
            "executable": executable,
            "covered": covered,
            "uncovered": executable - covered,
            "percentage": 100.0 if executable == 0 else 100.0 * covered / executable,
        }
        template = self.env.get_template("index.html")
        return template.render(
            rows=rows,
            unavailable=sorted(unavailable or [], key=ObjectId.sort_key),
            total=total,
        )

    def render_detail(self, reports: List[CoverageReport]) -> str:
        """Render the detail page of units sharing one OWNER.NAME."""
        first = reports[0].object_id
        template = self.env.get_template("detail.html")
        return template.render(owner=first.owner, name=first.name, reports=reports)

    def render(
        self,
        reports: List[CoverageReport],
        unavailable: Optional[List[ObjectId]] = None,
    ) -> List[str]:
        """
        Write the index and all detail pages.

        Args:
            reports: Coverage reports, any order
            unavailable: Objects whose counters could not be read

        Returns:
            List of written file paths, index first
        """
        os.makedirs(self.output_dir, exist_ok=True)
        reports = sorted(reports, key=lambda r: r.object_id.sort_key())

        files = [self._write(INDEX_FILE, self.render_index(reports, unavailable))]
        for (owner, name), group in groupby(
            reports, key=lambda r: (r.object_id.owner, r.object_id.name)
        ):
            files.append(
                self._write(detail_file_name(owner, name), self.render_detail(list(group)))
            )

        logger.info(f"Coverage report written to {os.path.join(self.output_dir, INDEX_FILE)}")
        return files
