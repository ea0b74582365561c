"""Per-run report assembly."""

from __future__ import annotations

import time
from typing import Iterable

from src.models.visual_result import ScreenEntry, RunReport


def utc_timestamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def build_run_report(
    entries: Iterable[ScreenEntry],
    device_id: str,
    api_level: str,
    device_name: str | None = None,
    timestamp: str | None = None,
    duration_seconds: float = 0.0,
) -> RunReport:
    """Collect one run's screen entries. Totals are derived from the entries, so an empty run is valid."""
    return RunReport(
        device_id=device_id,
        api_level=api_level,
        device_name=device_name,
        timestamp=timestamp or utc_timestamp(),
        duration_seconds=round(duration_seconds, 2),
        screens=list(entries),
    )
