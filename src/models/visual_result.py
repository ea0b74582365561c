"""Comparison and run report data structures."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MATCH_TOLERANCE = 1e-6


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid ISO 8601 timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ScreenStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    MISSING_BASELINE = "missing_baseline"
    MISSING_CAPTURE = "missing_capture"
    ERROR = "error"


class ComparisonResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    match: float  # percentage, 0..100
    diff_pixel_count: int
    total_pixel_count: int
    passed: bool
    antialiased_pixel_count: int = 0
    diff_image_path: Optional[str] = None
    comparison_image_path: Optional[str] = None

    @model_validator(mode="after")
    def check_counts(self) -> "ComparisonResult":
        if self.total_pixel_count <= 0:
            raise ValueError(f"total_pixel_count must be positive, got {self.total_pixel_count}")
        if not 0 <= self.diff_pixel_count <= self.total_pixel_count:
            raise ValueError(
                f"diff_pixel_count {self.diff_pixel_count} outside [0, {self.total_pixel_count}]"
            )
        expected = (self.total_pixel_count - self.diff_pixel_count) / self.total_pixel_count * 100
        if abs(self.match - expected) > MATCH_TOLERANCE:
            raise ValueError(f"match {self.match} inconsistent with pixel counts (expected {expected})")
        return self


class ScreenEntry(BaseModel):
    """One captured screen of a run.

    ``result`` is absent when no comparison could be made. Screens loaded
    from reports that only record a match string (no pixel totals) carry it
    in ``recorded_match`` instead, with any diff count and diff image they list.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    status: ScreenStatus
    result: Optional[ComparisonResult] = None
    recorded_match: Optional[float] = None
    recorded_diff_pixels: Optional[int] = None
    recorded_diff_image: Optional[str] = None
    error: Optional[str] = None

    @field_validator("recorded_match")
    @classmethod
    def check_recorded_match(cls, v: float | None) -> float | None:
        if v is not None and not 0.0 <= v <= 100.0:
            raise ValueError(f"recorded match out of range: {v}")
        return v

    @model_validator(mode="after")
    def check_status(self) -> "ScreenEntry":
        compared = self.status in (ScreenStatus.PASSED, ScreenStatus.FAILED)
        if compared and self.result is None and self.recorded_match is None:
            raise ValueError(f"Screen '{self.name}' has status {self.status.value} but no comparison result")
        if not compared and self.recorded_match is not None:
            raise ValueError(f"Screen '{self.name}' has status {self.status.value} but records a match")
        if self.recorded_match is None and (self.recorded_diff_pixels is not None or self.recorded_diff_image):
            raise ValueError(f"Screen '{self.name}' records diff output without a recorded match")
        if self.recorded_diff_pixels is not None and self.recorded_diff_pixels < 0:
            raise ValueError(f"Screen '{self.name}' has negative diff pixel count")
        if self.result is not None and compared and self.result.passed != (self.status == ScreenStatus.PASSED):
            verdict = "passed" if self.result.passed else "failed"
            raise ValueError(f"Screen '{self.name}' marked {self.status.value} but its comparison {verdict}")
        return self

    @classmethod
    def from_result(cls, name: str, result: ComparisonResult) -> "ScreenEntry":
        status = ScreenStatus.PASSED if result.passed else ScreenStatus.FAILED
        return cls(name=name, status=status, result=result)

    @property
    def passed(self) -> bool:
        return self.status == ScreenStatus.PASSED

    @property
    def has_match(self) -> bool:
        """False for screens that were never compared (missing files, errors)."""
        return self.result is not None or self.recorded_match is not None

    @property
    def match(self) -> float:
        if self.result is not None:
            return self.result.match
        return self.recorded_match if self.recorded_match is not None else 0.0


class RunReport(BaseModel):
    """All screens compared during one run on one device/OS configuration."""

    device_id: str
    api_level: str
    timestamp: str  # ISO 8601, UTC
    device_name: Optional[str] = None
    duration_seconds: float = 0.0
    screens: list[ScreenEntry] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def check_timestamp(cls, v: str) -> str:
        parse_timestamp(v)
        return v

    @model_validator(mode="after")
    def check_unique_names(self) -> "RunReport":
        seen: set[str] = set()
        for entry in self.screens:
            if entry.name in seen:
                raise ValueError(f"Duplicate screen name in run: {entry.name}")
            seen.add(entry.name)
        return self

    @property
    def total_screens(self) -> int:
        return len(self.screens)

    @property
    def passed_count(self) -> int:
        return sum(1 for s in self.screens if s.passed)

    @property
    def failed_count(self) -> int:
        return self.total_screens - self.passed_count

    @property
    def average_match(self) -> float | None:
        """Mean screen match, or ``None`` for a run without screens."""
        if not self.screens:
            return None
        return sum(s.match for s in self.screens) / len(self.screens)

    @property
    def all_passed(self) -> bool:
        return self.total_screens > 0 and self.failed_count == 0

    def screen(self, name: str) -> ScreenEntry | None:
        for entry in self.screens:
            if entry.name == name:
                return entry
        return None
