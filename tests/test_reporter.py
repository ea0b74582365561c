"""Tests for reporter orchestration."""

import json
from pathlib import Path

import pytest

from src.errors import ReportWriteError
from src.reporter.json_report import load_run_report
from src.reporter.reporter import HTML_REPORT_NAME, JSON_REPORT_NAME, RunReporter
from src.reporter.run_report import utc_timestamp
from src.models.visual_result import parse_timestamp


class TestRunReporter:
    """Tests for RunReporter.write."""

    def test_writes_both_formats(self, tmp_path: Path, make_report):
        out = tmp_path / "api-31"
        paths = RunReporter(out).write(make_report({"login": 100.0}))
        assert paths == {"json": str(out / JSON_REPORT_NAME), "html": str(out / HTML_REPORT_NAME)}
        assert (out / JSON_REPORT_NAME).exists()
        assert (out / HTML_REPORT_NAME).exists()

    def test_json_only(self, tmp_path: Path, make_report):
        paths = RunReporter(tmp_path, ["json"]).write(make_report())
        assert list(paths) == ["json"]
        assert not (tmp_path / HTML_REPORT_NAME).exists()

    def test_written_report_is_loadable(self, tmp_path: Path, make_report):
        report = make_report({"login": 99.0, "shop": 20.0})
        RunReporter(tmp_path, ["json"]).write(report)
        assert load_run_report(tmp_path / JSON_REPORT_NAME) == report
        assert json.loads((tmp_path / JSON_REPORT_NAME).read_text())["failed"] == 1

    def test_unwritable_output_dir(self, tmp_path: Path, make_report):
        blocker = tmp_path / "blocked"
        blocker.write_text("file in the way")
        with pytest.raises(ReportWriteError):
            RunReporter(blocker / "api-31").write(make_report())


def test_utc_timestamp_is_iso8601():
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert parse_timestamp(stamp).utcoffset().total_seconds() == 0
