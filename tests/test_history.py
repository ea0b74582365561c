"""Tests for the bounded compliance history store."""

import json
import threading
from pathlib import Path

import pytest

from src.errors import ReportWriteError
from src.dashboard.history import ComplianceHistory
from src.models.session import HistoryEntry


def _entry(i: int) -> HistoryEntry:
    return HistoryEntry(
        timestamp=f"2025-01-{(i % 28) + 1:02d}T00:00:00Z",
        duration=float(i),
        pass_rate=90.0,
        visual_compliance=95.0,
    )


class TestComplianceHistory:
    """Tests for ComplianceHistory."""

    def test_append_in_order(self):
        history = ComplianceHistory()
        for i in range(3):
            history.append(_entry(i))
        assert [e.duration for e in history.entries] == [0.0, 1.0, 2.0]

    def test_capacity_drops_oldest(self):
        """The 31st append evicts the first entry and keeps the rest in order."""
        history = ComplianceHistory()
        for i in range(31):
            history.append(_entry(i))
        assert len(history) == 30
        assert history.entries[0].duration == 1.0
        assert history.entries[-1].duration == 30.0

    def test_custom_capacity(self):
        history = ComplianceHistory(capacity=2)
        for i in range(5):
            history.append(_entry(i))
        assert [e.duration for e in history.entries] == [3.0, 4.0]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            ComplianceHistory(capacity=0)

    def test_entries_is_a_copy(self):
        history = ComplianceHistory()
        history.append(_entry(0))
        history.entries.clear()
        assert len(history) == 1

    def test_concurrent_appends(self):
        history = ComplianceHistory(capacity=1000)
        threads = [threading.Thread(target=lambda i=i: history.append(_entry(i))) for i in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(history) == 50


class TestPersistence:
    def test_persists_with_wire_names(self, tmp_path: Path):
        path = tmp_path / "dashboard" / "performance-history.json"
        ComplianceHistory(path).append(_entry(1))
        data = json.loads(path.read_text())
        assert data == [{
            "timestamp": "2025-01-02T00:00:00Z",
            "duration": 1.0,
            "passRate": 90.0,
            "visualCompliance": 95.0,
        }]

    def test_reload(self, tmp_path: Path):
        path = tmp_path / "history.json"
        first = ComplianceHistory(path)
        for i in range(3):
            first.append(_entry(i))
        second = ComplianceHistory(path)
        assert second.load() == first.entries

    def test_load_trims_to_capacity(self, tmp_path: Path):
        path = tmp_path / "history.json"
        path.write_text(json.dumps([_entry(i).model_dump(by_alias=True) for i in range(40)]))
        entries = ComplianceHistory(path).load()
        assert len(entries) == 30
        assert entries[0].duration == 10.0

    def test_missing_file_starts_empty(self, tmp_path: Path):
        assert ComplianceHistory(tmp_path / "absent.json").load() == []

    def test_corrupt_file_starts_empty(self, tmp_path: Path, caplog):
        path = tmp_path / "history.json"
        path.write_text("{broken")
        assert ComplianceHistory(path).load() == []
        assert "Starting new" in caplog.text

    def test_wrong_shape_starts_empty(self, tmp_path: Path):
        path = tmp_path / "history.json"
        path.write_text(json.dumps({"entries": []}))
        assert ComplianceHistory(path).load() == []

    def test_write_failure(self, tmp_path: Path):
        blocker = tmp_path / "blocked"
        blocker.write_text("x")
        history = ComplianceHistory(blocker / "history.json")
        with pytest.raises(ReportWriteError):
            history.append(_entry(0))
        assert len(history) == 0
