"""Comparison result builder — scoring, pass/fail and review composites."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from src.errors import ReportWriteError
from src.models.raster import RasterImage
from src.models.visual_result import ComparisonResult

logger = logging.getLogger(__name__)

COMPOSITE_WIDTH = 1200
COMPOSITE_HEIGHT = 800
PANEL_WIDTH = 400
LABEL_HEIGHT = 50
PANEL_TOP = 50
PANELS = (
    ("Actual", "#4CAF50"),
    ("Expected", "#2196F3"),
    ("Difference", "#F44336"),
)


def match_percentage(diff_pixel_count: int, total_pixel_count: int) -> float:
    return (total_pixel_count - diff_pixel_count) / total_pixel_count * 100


def is_passing(match: float, threshold: float) -> bool:
    """A match exactly at the cutoff passes."""
    return match >= 100 - threshold * 100 - 1e-9


def build_comparison_result(
    diff_pixel_count: int,
    total_pixel_count: int,
    threshold: float,
    antialiased_pixel_count: int = 0,
    diff_image_path: str | None = None,
    comparison_image_path: str | None = None,
) -> ComparisonResult:
    """Score raw comparator counts. Pure; raises ValueError on impossible counts."""
    if total_pixel_count <= 0:
        raise ValueError(f"total_pixel_count must be positive, got {total_pixel_count}")
    match = match_percentage(diff_pixel_count, total_pixel_count)
    return ComparisonResult(
        match=match,
        diff_pixel_count=diff_pixel_count,
        total_pixel_count=total_pixel_count,
        passed=is_passing(match, threshold),
        antialiased_pixel_count=antialiased_pixel_count,
        diff_image_path=diff_image_path,
        comparison_image_path=comparison_image_path,
    )


def _labeled_panel(image: Image.Image, label: str, color: str) -> Image.Image:
    panel_height = COMPOSITE_HEIGHT - PANEL_TOP
    panel = Image.new("RGBA", (PANEL_WIDTH, panel_height), (255, 255, 255, 255))
    draw = ImageDraw.Draw(panel)
    draw.rectangle([0, 0, PANEL_WIDTH, LABEL_HEIGHT], fill=color)
    font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
    draw.text(
        ((PANEL_WIDTH - (right - left)) / 2, (LABEL_HEIGHT - (bottom - top)) / 2),
        label,
        fill="white",
        font=font,
    )

    thumb = image.convert("RGBA")
    thumb.thumbnail((PANEL_WIDTH, panel_height - LABEL_HEIGHT), Image.Resampling.LANCZOS)
    panel.alpha_composite(thumb, (0, LABEL_HEIGHT))
    return panel


def build_composite(actual: RasterImage, reference: RasterImage, diff: RasterImage) -> Image.Image:
    """Actual, expected and diff side by side under coloured labels on a fixed canvas."""
    canvas = Image.new("RGBA", (COMPOSITE_WIDTH, COMPOSITE_HEIGHT), (255, 255, 255, 255))
    for index, (raster, (label, color)) in enumerate(zip((actual, reference, diff), PANELS)):
        panel = _labeled_panel(raster.to_pil(), label, color)
        canvas.alpha_composite(panel, (index * PANEL_WIDTH, PANEL_TOP))
    return canvas


def write_diff_artifacts(
    output_dir: Path,
    output_name: str,
    actual: RasterImage,
    reference: RasterImage,
    diff: RasterImage,
) -> tuple[str, str]:
    """Write ``diff-<name>.png`` and ``comparison-<name>.png``; returns both paths."""
    diff_path = output_dir / f"diff-{output_name}.png"
    comparison_path = output_dir / f"comparison-{output_name}.png"
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        diff.to_pil().save(diff_path, "PNG")
        build_composite(actual, reference, diff).save(comparison_path, "PNG")
    except OSError as e:
        raise ReportWriteError(output_dir, str(e)) from e
    logger.debug("Wrote diff artifacts for %s", output_name)
    return str(diff_path), str(comparison_path)
