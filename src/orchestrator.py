"""Pipeline orchestrator — coordinates per-device runs and session aggregation."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path

from src.dashboard.aggregator import aggregate_results_root
from src.dashboard.dashboard import build_dashboard, history_entry, save_dashboard
from src.dashboard.history import ComplianceHistory
from src.models.config import EngineConfig
from src.models.visual_result import ComparisonResult, RunReport
from src.reporter.reporter import RunReporter
from src.reporter.run_report import build_run_report
from src.visual.antialiasing import AntialiasingDetector
from src.visual.comparison import VisualComparison, discover_captures

logger = logging.getLogger(__name__)

DASHBOARD_DIR = "dashboard"
DASHBOARD_FILE = "data.json"
HISTORY_FILE = "performance-history.json"


class Orchestrator:
    """Coordinates compare → report for one device, and aggregate → history for a session."""

    def __init__(self, config: EngineConfig, detector: AntialiasingDetector | None = None):
        self.config = config
        self.output_dir = Path(config.output_dir)
        self.prototypes_dir = Path(config.prototypes_dir)
        self.detector = detector
        self.dashboard_dir = self.output_dir / DASHBOARD_DIR
        self.history = ComplianceHistory(
            self.dashboard_dir / HISTORY_FILE,
            capacity=config.history_capacity,
        )

    @property
    def run_dir(self) -> Path:
        return self.output_dir / self.config.configuration_id

    def _comparison(self) -> VisualComparison:
        return VisualComparison(
            prototypes_dir=self.prototypes_dir,
            results_dir=self.run_dir,
            config=self.config.visual,
            detector=self.detector,
            max_parallel=self.config.max_parallel_comparisons,
            name_prefix=self.config.configuration_id,
        )

    def compare_one(self, actual_path: Path, prototype_file: str, name: str) -> ComparisonResult:
        return self._comparison().compare_with_prototype(actual_path, prototype_file, name)

    def run_device(self, screens_dir: Path, prototype_map: dict[str, str] | None = None) -> tuple[RunReport, dict[str, str]]:
        """Compare every captured screen of one device run and write its reports."""
        start = time.time()
        logger.info("=== Visual run for %s ===", self.config.configuration_id)
        captures = discover_captures(screens_dir, prototype_map)
        entries = self._comparison().compare_screens(captures)

        report = build_run_report(
            entries,
            device_id=self.config.device_id,
            api_level=self.config.api_level,
            device_name=self.config.device_name,
            duration_seconds=time.time() - start,
        )
        paths = RunReporter(self.run_dir, self.config.report_formats).write(report)
        logger.info("Run complete: %d/%d screens passed", report.passed_count, report.total_screens)
        return report, paths

    def _configurations(self, results_root: Path) -> list[str] | None:
        if self.config.configurations:
            return list(self.config.configurations)
        if not results_root.is_dir():
            return None
        return sorted(p.name for p in results_root.iterdir() if p.is_dir() and p.name != DASHBOARD_DIR)

    def aggregate(self, results_root: Path | None = None, output_path: Path | None = None,
                  now: datetime | None = None) -> dict:
        """Aggregate every configuration under ``results_root``; writes dashboard data and appends history."""
        root = results_root or self.output_dir
        summary = aggregate_results_root(
            root,
            configurations=self._configurations(root),
            now=now,
            stale_after_hours=self.config.stale_after_hours,
        )
        dashboard = build_dashboard(summary, now=now)
        dashboard_path = output_path or self.dashboard_dir / DASHBOARD_FILE
        save_dashboard(dashboard, dashboard_path)

        self.history.load()
        self.history.append(history_entry(summary, now=now))
        return {
            "summary": summary,
            "dashboard": dashboard,
            "dashboard_path": str(dashboard_path),
            "history_path": str(self.history.path),
        }
