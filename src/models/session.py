"""Session-level aggregation and history data structures."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .visual_result import RunReport


class FunctionalTotals(BaseModel):
    """Functional test counts read from a configuration's JUnit output."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_seconds: float = 0.0


class ConfigurationRun(BaseModel):
    """One device/OS configuration that produced a run report."""
    configuration: str  # e.g. "api-31"
    report: RunReport
    status: str = "unknown"  # success, failure, stale
    android_version: str = ""
    device_name: str = ""
    functional: Optional[FunctionalTotals] = None

    @property
    def duration_seconds(self) -> float:
        if self.functional is not None and self.functional.duration_seconds > 0:
            return self.functional.duration_seconds
        return self.report.duration_seconds


class ScreenMatrixRow(BaseModel):
    name: str
    results: dict[str, float] = Field(default_factory=dict)  # configuration -> match
    average_match: float = 0.0
    status: str = "fail"  # pass, warning, fail


class TimelineEvent(BaseModel):
    timestamp: str
    configuration: str
    title: str
    description: str
    status: str


class SessionSummary(BaseModel):
    runs: list[ConfigurationRun] = Field(default_factory=list)
    missing_configurations: list[str] = Field(default_factory=list)
    total_screens: int = 0
    passed: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    overall_compliance: Optional[float] = None
    screens: list[ScreenMatrixRow] = Field(default_factory=list)
    timeline: list[TimelineEvent] = Field(default_factory=list)
    configured_count: int = 0

    @property
    def pass_rate(self) -> float:
        if self.total_screens == 0:
            return 0.0
        return self.passed / self.total_screens * 100


class HistoryEntry(BaseModel):
    """Point-in-time snapshot of one session's headline metrics."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: str
    duration: float
    pass_rate: float = Field(alias="passRate")
    visual_compliance: Optional[float] = Field(default=None, alias="visualCompliance")
