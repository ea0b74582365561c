"""Merges per-run reports from every device configuration into a session summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Mapping, Optional

from src.errors import AggregationInputMissing
from src.models.session import (
    ConfigurationRun,
    FunctionalTotals,
    ScreenMatrixRow,
    SessionSummary,
    TimelineEvent,
)
from src.models.visual_result import RunReport, parse_timestamp
from src.reporter.json_report import load_run_report
from src.reporter.reporter import JSON_REPORT_NAME

from .device_catalog import android_version, device_name
from .junit import find_junit_file, parse_junit_results

logger = logging.getLogger(__name__)

PASS_CUTOFF = 90.0
WARNING_CUTOFF = 80.0


@dataclass
class CollectedRuns:
    """Run reports found under a results root, keyed by configuration id."""
    reports: dict[str, RunReport] = field(default_factory=dict)
    functional: dict[str, FunctionalTotals] = field(default_factory=dict)
    missing: list[AggregationInputMissing] = field(default_factory=list)

    @property
    def configurations(self) -> list[str]:
        return list(self.reports) + [m.configuration for m in self.missing]


def collect_run_reports(results_root: Path, configurations: list[str] | None = None) -> CollectedRuns:
    """Read ``<root>/<configuration>/visual-regression-report.json`` for each configuration.

    Configurations without a report are recorded as missing and skipped.
    A report that exists but cannot be parsed raises ReportParseError.
    """
    if configurations is None:
        configurations = sorted(p.name for p in results_root.iterdir() if p.is_dir()) if results_root.is_dir() else []

    collected = CollectedRuns()
    for configuration in configurations:
        config_dir = results_root / configuration
        report_path = config_dir / JSON_REPORT_NAME
        if not report_path.is_file():
            missing = AggregationInputMissing(configuration, report_path)
            logger.warning("%s", missing)
            collected.missing.append(missing)
            continue

        collected.reports[configuration] = load_run_report(report_path)
        junit_file = find_junit_file(config_dir)
        if junit_file is not None:
            collected.functional[configuration] = parse_junit_results(junit_file)
        logger.debug("Loaded run report for %s", configuration)
    return collected


def screen_status(match: float) -> str:
    if match >= PASS_CUTOFF:
        return "pass"
    if match >= WARNING_CUTOFF:
        return "warning"
    return "fail"


def _run_status(report: RunReport, functional: FunctionalTotals | None, now: datetime, stale_after: timedelta) -> str:
    if now - parse_timestamp(report.timestamp) > stale_after:
        return "stale"
    if report.total_screens == 0 and functional is None:
        return "empty"
    if report.failed_count > 0 or (functional is not None and functional.failed > 0):
        return "failure"
    return "success"


def _run_title(report: RunReport) -> str:
    if report.api_level and report.api_level != "unknown":
        return f"API {report.api_level} Tests"
    return f"{report.device_id} Tests"


def _build_screen_matrix(runs: list[ConfigurationRun]) -> list[ScreenMatrixRow]:
    """Per-screen match on each configuration that compared it, averaged over those configurations only.

    Screens with no comparison (missing capture or baseline, decode errors)
    are absent data here, not 0% matches.
    """
    per_screen: dict[str, dict[str, float]] = {}
    for run in runs:
        for entry in run.report.screens:
            if entry.has_match:
                per_screen.setdefault(entry.name, {})[run.configuration] = entry.match

    rows = []
    for name, results in per_screen.items():
        average = sum(results.values()) / len(results)
        rows.append(ScreenMatrixRow(
            name=name,
            results=results,
            average_match=average,
            status=screen_status(average),
        ))
    return rows


def aggregate_session(
    reports: Mapping[str, Optional[RunReport]],
    configurations: list[str] | None = None,
    functional: Mapping[str, FunctionalTotals] | None = None,
    now: datetime | None = None,
    stale_after_hours: float = 24.0,
) -> SessionSummary:
    """Merge run reports from every configuration of one session.

    ``configurations`` lists every configuration the session targeted; any
    of them with no report (absent or None) is reported as missing and
    excluded from all aggregates instead of counting as zero.
    """
    now = now or datetime.now(timezone.utc)
    functional = functional or {}
    stale_after = timedelta(hours=stale_after_hours)
    targeted = list(configurations) if configurations is not None else list(reports)
    for configuration in reports:
        if configuration not in targeted:
            targeted.append(configuration)

    runs: list[ConfigurationRun] = []
    missing: list[str] = []
    for configuration in targeted:
        report = reports.get(configuration)
        if report is None:
            logger.warning("No results found for %s", configuration)
            missing.append(configuration)
            continue
        totals = functional.get(configuration)
        runs.append(ConfigurationRun(
            configuration=configuration,
            report=report,
            status=_run_status(report, totals, now, stale_after),
            android_version=android_version(report.api_level),
            device_name=report.device_name or device_name(report.api_level),
            functional=totals,
        ))

    scored = [r.report.average_match for r in runs if r.report.total_screens > 0]
    overall = sum(scored) / len(scored) if scored else None

    timeline = [
        TimelineEvent(
            timestamp=run.report.timestamp,
            configuration=run.configuration,
            title=_run_title(run.report),
            description=f"{run.report.passed_count}/{run.report.total_screens} screens passed",
            status=run.status,
        )
        for run in runs
    ]
    timeline.sort(key=lambda e: parse_timestamp(e.timestamp), reverse=True)

    summary = SessionSummary(
        runs=runs,
        missing_configurations=missing,
        total_screens=sum(r.report.total_screens for r in runs),
        passed=sum(r.report.passed_count for r in runs),
        failed=sum(r.report.failed_count for r in runs),
        duration_seconds=round(sum(r.duration_seconds for r in runs), 2),
        overall_compliance=overall,
        screens=_build_screen_matrix(runs),
        timeline=timeline,
        configured_count=len(targeted),
    )
    logger.info(
        "Aggregated %d/%d configurations: %d screens, %d passed, compliance %s",
        len(runs), len(targeted), summary.total_screens, summary.passed,
        "n/a" if overall is None else f"{overall:.2f}%",
    )
    return summary


def aggregate_results_root(
    results_root: Path,
    configurations: list[str] | None = None,
    now: datetime | None = None,
    stale_after_hours: float = 24.0,
) -> SessionSummary:
    """Collect every configuration's report under ``results_root`` and aggregate them."""
    collected = collect_run_reports(results_root, configurations)
    reports: dict[str, Optional[RunReport]] = dict(collected.reports)
    for m in collected.missing:
        reports[m.configuration] = None
    return aggregate_session(
        reports,
        configurations=configurations if configurations is not None else collected.configurations,
        functional=collected.functional,
        now=now,
        stale_after_hours=stale_after_hours,
    )
