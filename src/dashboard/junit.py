"""JUnit XML summary reader for functional test totals."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from src.errors import ReportParseError
from src.models.session import FunctionalTotals

logger = logging.getLogger(__name__)


def _int_attr(element: ET.Element, name: str) -> int:
    return int(element.get(name, "0") or 0)


def parse_junit_results(path: Path) -> FunctionalTotals:
    """Sum tests/failures/errors/skipped/time over every <testsuite> in the file."""
    try:
        root = ET.parse(path).getroot()
    except (ET.ParseError, OSError) as e:
        raise ReportParseError(path, str(e)) from e

    suites = [root] if root.tag == "testsuite" else root.findall("testsuite")
    total = failures = errors = skipped = 0
    duration = 0.0
    try:
        for suite in suites:
            total += _int_attr(suite, "tests")
            failures += _int_attr(suite, "failures")
            errors += _int_attr(suite, "errors")
            skipped += _int_attr(suite, "skipped")
            duration += float(suite.get("time", "0") or 0)
    except ValueError as e:
        raise ReportParseError(path, f"non-numeric testsuite attribute: {e}") from e

    failed = failures + errors
    return FunctionalTotals(
        total=total,
        passed=max(total - failed - skipped, 0),
        failed=failed,
        skipped=skipped,
        duration_seconds=round(duration, 2),
    )


def find_junit_file(config_dir: Path) -> Path | None:
    candidates = sorted(config_dir.glob("junit-results*.xml"))
    return candidates[0] if candidates else None
