"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
from PIL import Image

from src.models.config import EngineConfig, VisualConfig
from src.models.raster import RasterImage
from src.models.visual_result import ComparisonResult, RunReport, ScreenEntry, ScreenStatus

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


# ============================================================================
# Builders
# ============================================================================


def _save_solid(path: Path, size: tuple[int, int], color: tuple[int, int, int, int]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, "PNG")
    return path


def _make_result(diff: int = 0, total: int = 100, passed: bool | None = None) -> ComparisonResult:
    match = (total - diff) / total * 100
    return ComparisonResult(
        match=match,
        diff_pixel_count=diff,
        total_pixel_count=total,
        passed=match >= 95.0 if passed is None else passed,
    )


def _make_entry(name: str, diff: int = 0, total: int = 100) -> ScreenEntry:
    return ScreenEntry.from_result(name, _make_result(diff, total))


def _make_report(
    matches: dict[str, float] | None = None,
    api_level: str = "31",
    timestamp: str = "2025-01-01T10:00:00Z",
    duration: float = 12.0,
) -> RunReport:
    """Build a run report whose screens have the given match percentages (total = 10000 pixels)."""
    entries = []
    for name, match in (matches or {}).items():
        diff = round(10000 - match * 100)
        entries.append(_make_entry(name, diff=diff, total=10000))
    return RunReport(
        device_id=f"emulator-api-{api_level}",
        api_level=api_level,
        timestamp=timestamp,
        duration_seconds=duration,
        screens=entries,
    )


@pytest.fixture
def save_solid():
    """Write a solid-colour PNG: ``save_solid(path, (w, h), rgba)``."""
    return _save_solid


@pytest.fixture
def make_result():
    return _make_result


@pytest.fixture
def make_entry():
    return _make_entry


@pytest.fixture
def make_report():
    """Build a RunReport from ``{screen: match}``; every screen has 10000 pixels."""
    return _make_report


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def visual_config() -> VisualConfig:
    return VisualConfig()


@pytest.fixture
def engine_config(tmp_path: Path) -> EngineConfig:
    return EngineConfig(
        output_dir=str(tmp_path / "results"),
        prototypes_dir=str(tmp_path / "prototypes"),
        device_id="emulator-5554",
        device_name="Pixel 4",
        api_level="31",
        max_parallel_comparisons=2,
    )


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def red_raster() -> RasterImage:
    return RasterImage.solid(100, 100, RED)


@pytest.fixture
def blue_raster() -> RasterImage:
    return RasterImage.solid(100, 100, BLUE)


@pytest.fixture
def prototypes_dir(tmp_path: Path) -> Path:
    d = tmp_path / "prototypes"
    _save_solid(d / "login.png", (100, 100), RED)
    _save_solid(d / "shop.png", (100, 100), BLUE)
    return d


@pytest.fixture
def screens_dir(tmp_path: Path) -> Path:
    d = tmp_path / "screens"
    _save_solid(d / "login-actual.png", (100, 100), RED)
    _save_solid(d / "shop-actual.png", (100, 100), RED)
    return d


@pytest.fixture
def empty_report() -> RunReport:
    return RunReport(device_id="emulator-5554", api_level="31", timestamp="2025-01-01T10:00:00Z")


@pytest.fixture
def missing_baseline_entry() -> ScreenEntry:
    return ScreenEntry(
        name="profile",
        status=ScreenStatus.MISSING_BASELINE,
        error="Prototype image not found: /prototypes/profile.png",
    )
