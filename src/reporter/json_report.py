"""JSON report output and strict loading of per-run reports."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.errors import ReportParseError, ReportWriteError
from src.models.visual_result import ComparisonResult, RunReport, ScreenEntry, ScreenStatus

logger = logging.getLogger(__name__)

# Display rounding of "NN.NN%" plus float slack.
_MATCH_DISPLAY_TOLERANCE = 0.005 + 1e-9


def format_match(value: float) -> str:
    return f"{value:.2f}%"


def screen_to_dict(entry: ScreenEntry) -> dict[str, Any]:
    result = entry.result
    data: dict[str, Any] = {
        "name": entry.name,
        "match": format_match(entry.match),
        "passed": entry.passed,
        "status": entry.status.value,
        "diffPixels": result.diff_pixel_count if result else entry.recorded_diff_pixels,
        "totalPixels": result.total_pixel_count if result else None,
        "antialiasedPixels": result.antialiased_pixel_count if result else 0,
    }
    diff_image = result.diff_image_path if result else entry.recorded_diff_image
    if diff_image:
        data["diffImage"] = diff_image
    if result and result.comparison_image_path:
        data["comparisonImage"] = result.comparison_image_path
    if entry.error:
        data["error"] = entry.error
    return data


def report_to_dict(report: RunReport) -> dict[str, Any]:
    return {
        "timestamp": report.timestamp,
        "apiLevel": report.api_level,
        "deviceId": report.device_id,
        "deviceName": report.device_name,
        "totalScreens": report.total_screens,
        "passed": report.passed_count,
        "failed": report.failed_count,
        "averageMatch": report.average_match,
        "durationSeconds": report.duration_seconds,
        "screens": [screen_to_dict(s) for s in report.screens],
    }


def generate_json_report(report: RunReport, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    try:
        with open(output_path, "w") as f:
            json.dump(report_to_dict(report), f, indent=2)
    except OSError as e:
        raise ReportWriteError(output_path, str(e)) from e


class ScreenRecord(BaseModel):
    """Wire shape of one screen in a run report."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    match: str
    passed: bool
    status: Optional[ScreenStatus] = None
    diff_pixels: Optional[int] = Field(default=None, alias="diffPixels")
    total_pixels: Optional[int] = Field(default=None, alias="totalPixels")
    antialiased_pixels: int = Field(default=0, alias="antialiasedPixels")
    diff_image: Optional[str] = Field(default=None, alias="diffImage")
    comparison_image: Optional[str] = Field(default=None, alias="comparisonImage")
    error: Optional[str] = None

    @field_validator("match")
    @classmethod
    def check_match_format(cls, v: str) -> str:
        if not v.endswith("%"):
            raise ValueError(f"match must look like 'NN.NN%', got {v!r}")
        value = float(v[:-1])
        if not 0.0 <= value <= 100.0:
            raise ValueError(f"match out of range: {v}")
        return v

    def to_entry(self) -> ScreenEntry:
        status = self.status
        if status is None:
            status = ScreenStatus.PASSED if self.passed else ScreenStatus.FAILED
        if self.passed != (status == ScreenStatus.PASSED):
            raise ValueError(f"Screen '{self.name}' has status {status.value} but passed={self.passed}")

        result = None
        if self.total_pixels is not None:
            if self.diff_pixels is None:
                raise ValueError(f"Screen '{self.name}' has totalPixels but no diffPixels")
            result = ComparisonResult(
                match=(self.total_pixels - self.diff_pixels) / self.total_pixels * 100,
                diff_pixel_count=self.diff_pixels,
                total_pixel_count=self.total_pixels,
                passed=self.passed,
                antialiased_pixel_count=self.antialiased_pixels,
                diff_image_path=self.diff_image,
                comparison_image_path=self.comparison_image,
            )
            if abs(float(self.match[:-1]) - result.match) > _MATCH_DISPLAY_TOLERANCE:
                raise ValueError(f"Screen '{self.name}' match {self.match} disagrees with pixel counts")
        elif status in (ScreenStatus.PASSED, ScreenStatus.FAILED):
            # compact reports carry only the match string and the diff count
            return ScreenEntry(
                name=self.name, status=status,
                recorded_match=float(self.match[:-1]),
                recorded_diff_pixels=self.diff_pixels,
                recorded_diff_image=self.diff_image,
                error=self.error,
            )

        return ScreenEntry(name=self.name, status=status, result=result, error=self.error)


class RunRecord(BaseModel):
    """Wire shape of a per-run report."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    api_level: Optional[str] = Field(default=None, alias="apiLevel")
    device_id: Optional[str] = Field(default=None, alias="deviceId")
    device_name: Optional[str] = Field(default=None, alias="deviceName")
    total_screens: int = Field(alias="totalScreens")
    passed: int
    failed: int
    average_match: Optional[float] = Field(default=None, alias="averageMatch")
    duration_seconds: float = Field(default=0.0, alias="durationSeconds")
    screens: list[ScreenRecord] = Field(default_factory=list)

    @field_validator("api_level", mode="before")
    @classmethod
    def coerce_api_level(cls, v):
        return str(v) if isinstance(v, int) else v

    def to_report(self) -> RunReport:
        if not (self.api_level or self.device_id or self.device_name):
            raise ValueError("Report names neither apiLevel nor deviceId")
        api_level = self.api_level or "unknown"
        report = RunReport(
            device_id=self.device_id or self.device_name or f"api-{api_level}",
            api_level=api_level,
            device_name=self.device_name,
            timestamp=self.timestamp,
            duration_seconds=self.duration_seconds,
            screens=[s.to_entry() for s in self.screens],
        )
        if (report.total_screens, report.passed_count, report.failed_count) != (
            self.total_screens, self.passed, self.failed
        ):
            raise ValueError(
                f"Totals {self.total_screens}/{self.passed}/{self.failed} do not match the screen list "
                f"({report.total_screens}/{report.passed_count}/{report.failed_count})"
            )
        if self.average_match is not None:
            actual = report.average_match
            if actual is None or abs(self.average_match - actual) > _MATCH_DISPLAY_TOLERANCE:
                raise ValueError(f"averageMatch {self.average_match} does not match the screen list ({actual})")
        return report


def load_run_report(path: Path) -> RunReport:
    """Read a per-run JSON report, rejecting anything malformed."""
    try:
        with open(path) as f:
            data = json.load(f)
    except OSError as e:
        raise ReportParseError(path, str(e)) from e
    except json.JSONDecodeError as e:
        raise ReportParseError(path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ReportParseError(path, "top-level value must be an object")
    try:
        return RunRecord.model_validate(data).to_report()
    except (ValidationError, ValueError) as e:
        raise ReportParseError(path, str(e)) from e
