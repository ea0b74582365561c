"""Session summary rendered in the JSON shape consumed by the dashboard page."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from src.errors import ReportWriteError
from src.models.session import ConfigurationRun, HistoryEntry, SessionSummary
from src.reporter.json_report import report_to_dict

logger = logging.getLogger(__name__)


def _iso(now: datetime) -> str:
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _matrix_row(run: ConfigurationRun) -> dict[str, Any]:
    report = run.report
    row: dict[str, Any] = {
        "configuration": run.configuration,
        "level": report.api_level,
        "version": run.android_version,
        "device": run.device_name,
        "status": run.status,
        "duration": run.duration_seconds,
        "timestamp": report.timestamp,
        "passRate": round(report.passed_count / report.total_screens * 100) if report.total_screens else 0,
        "visualCompliance": report.average_match,
        "report": report_to_dict(report),
    }
    if run.functional is not None:
        row["tests"] = run.functional.model_dump()
    return row


def build_dashboard(summary: SessionSummary, now: datetime | None = None) -> dict[str, Any]:
    """Render a session summary as dashboard JSON."""
    now = now or datetime.now(timezone.utc)
    run_count = len(summary.runs)
    covered = sum(1 for r in summary.runs if r.status == "success")
    configured = summary.configured_count or run_count
    avg_duration = round(summary.duration_seconds / run_count) if run_count else 0

    return {
        "metrics": {
            "totalTests": summary.total_screens,
            "passed": summary.passed,
            "failed": summary.failed,
            "passRate": f"{round(summary.pass_rate)}%",
            "avgDuration": f"{avg_duration}s",
            "apiCoverage": f"{covered}/{configured}",
            "coveragePercentage": round(covered / configured * 100) if configured else 0,
        },
        "testMatrix": [_matrix_row(r) for r in summary.runs],
        "visualRegression": {
            "screens": [
                {
                    "name": row.name,
                    "averageMatch": row.average_match,
                    "status": row.status,
                    "results": row.results,
                }
                for row in summary.screens
            ],
            "overallCompliance": summary.overall_compliance,
        },
        "timeline": [
            {
                "time": event.timestamp,
                "configuration": event.configuration,
                "title": event.title,
                "description": event.description,
                "status": event.status,
            }
            for event in summary.timeline
        ],
        "missingConfigurations": [
            {"configuration": c, "message": "No results found"} for c in summary.missing_configurations
        ],
        "lastUpdated": _iso(now),
    }


def history_entry(summary: SessionSummary, now: datetime | None = None) -> HistoryEntry:
    """Snapshot a session's headline metrics for the compliance history."""
    now = now or datetime.now(timezone.utc)
    return HistoryEntry(
        timestamp=_iso(now),
        duration=summary.duration_seconds,
        pass_rate=round(summary.pass_rate, 2),
        visual_compliance=summary.overall_compliance,
    )


def save_dashboard(data: dict[str, Any], output_path: Path) -> None:
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        raise ReportWriteError(output_path, str(e)) from e
    logger.info("Dashboard data saved to %s", output_path)
