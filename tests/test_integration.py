"""Integration tests for the visual regression engine.

These tests drive several device runs through the orchestrator on real
image files, then aggregate the results into dashboard data and history.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from src.models.config import EngineConfig
from src.models.visual_result import ScreenStatus
from src.orchestrator import Orchestrator

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def _device_config(tmp_path: Path, prototypes_dir: Path, api_level: str) -> EngineConfig:
    return EngineConfig(
        output_dir=str(tmp_path / "results"),
        prototypes_dir=str(prototypes_dir),
        device_id=f"emulator-api-{api_level}",
        api_level=api_level,
        max_parallel_comparisons=2,
    )


@pytest.mark.integration
class TestDeviceRuns:
    """Per-device compare and report flow."""

    def test_run_device_writes_report_and_artifacts(self, tmp_path, prototypes_dir, screens_dir):
        orchestrator = Orchestrator(_device_config(tmp_path, prototypes_dir, "31"))
        report, paths = orchestrator.run_device(screens_dir)

        assert report.api_level == "31"
        assert report.total_screens == 2
        assert report.screen("login").status == ScreenStatus.PASSED
        assert report.screen("shop").status == ScreenStatus.FAILED
        assert Path(paths["json"]).parent == tmp_path / "results" / "api-31"
        assert Path(report.screen("shop").result.comparison_image_path).exists()
        assert report.screen("login").result.diff_image_path is None

    def test_screen_without_baseline_is_flagged(self, tmp_path, prototypes_dir, screens_dir, save_solid):
        save_solid(screens_dir / "profile-actual.png", (100, 100), RED)
        report, _ = Orchestrator(_device_config(tmp_path, prototypes_dir, "31")).run_device(screens_dir)
        profile = report.screen("profile")
        assert profile.status == ScreenStatus.MISSING_BASELINE
        assert profile.match == 0.0
        assert report.failed_count == 2


@pytest.mark.integration
class TestSession:
    """Several device runs aggregated into one session."""

    def test_fleet_session(self, tmp_path, prototypes_dir, save_solid):
        # api-26 matches everything, api-31 fails the shop screen
        for level, shop_color in (("26", BLUE), ("31", RED)):
            screens = tmp_path / f"screens-{level}"
            save_solid(screens / "login-actual.png", (100, 100), RED)
            save_solid(screens / "shop-actual.png", (100, 100), shop_color)
            Orchestrator(_device_config(tmp_path, prototypes_dir, level)).run_device(screens)

        config = _device_config(tmp_path, prototypes_dir, "31")
        config.configurations = ["api-26", "api-31", "api-34"]
        now = datetime.now(timezone.utc)
        outcome = Orchestrator(config).aggregate(now=now)

        summary = outcome["summary"]
        assert summary.total_screens == 4
        assert summary.passed == 3
        assert summary.overall_compliance == pytest.approx((100.0 + 50.0) / 2)
        assert summary.missing_configurations == ["api-34"]
        assert {r.configuration: r.status for r in summary.runs} == {"api-26": "success", "api-31": "failure"}

        data = json.loads(Path(outcome["dashboard_path"]).read_text())
        assert data["metrics"]["apiCoverage"] == "1/3"
        shop = next(s for s in data["visualRegression"]["screens"] if s["name"] == "shop")
        assert shop["averageMatch"] == pytest.approx(50.0)
        assert shop["status"] == "fail"

        history = json.loads(Path(outcome["history_path"]).read_text())
        assert history[-1]["passRate"] == 75.0
        assert history[-1]["visualCompliance"] == pytest.approx(75.0)

    def test_history_accumulates_across_sessions(self, tmp_path, prototypes_dir, screens_dir):
        config = _device_config(tmp_path, prototypes_dir, "31")
        Orchestrator(config).run_device(screens_dir)
        for _ in range(3):
            Orchestrator(config).aggregate()
        entries = Orchestrator(config).history.load()
        assert len(entries) == 3

    def test_dashboard_directory_is_not_a_configuration(self, tmp_path, prototypes_dir, screens_dir):
        config = _device_config(tmp_path, prototypes_dir, "31")
        orchestrator = Orchestrator(config)
        orchestrator.run_device(screens_dir)
        orchestrator.aggregate()
        second = orchestrator.aggregate()
        assert second["summary"].missing_configurations == []
        assert [r.configuration for r in second["summary"].runs] == ["api-31"]
