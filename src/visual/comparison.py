"""Screen comparison service — runs normalize, compare and score for captured screens."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from src.errors import (
    ImageDecodeError,
    InvalidImageDimensions,
    MissingReferenceImage,
    ReportWriteError,
)
from src.models.config import VisualConfig
from src.models.visual_result import ComparisonResult, ScreenEntry, ScreenStatus

from .antialiasing import AntialiasingDetector
from .comparator import PixelComparator
from .normalizer import decode_image, normalize_pair
from .result_builder import build_comparison_result, write_diff_artifacts

logger = logging.getLogger(__name__)

ACTUAL_SUFFIX = "-actual"
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif")
_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class ScreenCapture:
    """A screen to compare. ``actual_path`` is None when capture never happened."""
    name: str
    prototype_file: str
    actual_path: Path | None = None


def safe_name(value: str) -> str:
    return _UNSAFE_NAME.sub("_", value).strip("_") or "screen"


def artifact_name(value: str) -> str:
    """Filesystem-safe name that stays distinct for distinct inputs.

    Names that needed sanitizing get a short digest of the original, so
    "home page" and "home/page" never share artifact files.
    """
    name = safe_name(value)
    if name == value:
        return name
    digest = hashlib.sha1(value.encode("utf-8")).hexdigest()[:8]
    return f"{name}-{digest}"


def load_prototype_map(path: str | Path) -> dict[str, str]:
    """Read a ``{screen: prototype filename}`` JSON mapping."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise ValueError(f"Prototype map must be a JSON object of strings: {path}")
    return data


def discover_captures(screens_dir: Path, prototype_map: dict[str, str] | None = None) -> list[ScreenCapture]:
    """Pair ``<screen>-actual.<ext>`` files with their prototypes.

    Screens named in ``prototype_map`` without a capture are kept with no
    actual path so they surface as missing captures. Captures absent from
    the map are compared against ``<screen>.png``.
    """
    prototype_map = prototype_map or {}
    actuals: dict[str, Path] = {}
    if screens_dir.is_dir():
        for path in sorted(screens_dir.iterdir()):
            if path.suffix.lower() in IMAGE_EXTENSIONS and path.stem.endswith(ACTUAL_SUFFIX):
                actuals[path.stem[: -len(ACTUAL_SUFFIX)]] = path
    else:
        logger.warning("Screens directory not found: %s", screens_dir)

    captures = [
        ScreenCapture(name=name, prototype_file=prototype, actual_path=actuals.get(name))
        for name, prototype in prototype_map.items()
    ]
    for name, path in actuals.items():
        if name not in prototype_map:
            captures.append(ScreenCapture(name=name, prototype_file=f"{name}.png", actual_path=path))
    return captures


class VisualComparison:
    """Compares screenshots with design prototypes."""

    def __init__(
        self,
        prototypes_dir: Path,
        results_dir: Path,
        config: VisualConfig | None = None,
        detector: AntialiasingDetector | None = None,
        max_parallel: int = 4,
        name_prefix: str = "",
    ):
        self.prototypes_dir = prototypes_dir
        self.results_dir = results_dir
        self.config = config or VisualConfig()
        self.comparator = PixelComparator(self.config, detector)
        self.max_parallel = max_parallel
        self.name_prefix = name_prefix

    def compare_with_prototype(
        self, actual_image_path: str | Path, prototype_file_name: str, output_name: str
    ) -> ComparisonResult:
        """Compare one screenshot with its prototype.

        Diff and composite images are written (before returning) only when
        at least one pixel differs.
        """
        prototype_path = self.prototypes_dir / prototype_file_name
        if not prototype_path.is_file():
            raise MissingReferenceImage(prototype_path)

        actual, prototype = normalize_pair(decode_image(actual_image_path), decode_image(prototype_path))
        pixel_diff = self.comparator.compare(actual, prototype)

        diff_image_path = comparison_image_path = None
        if pixel_diff.diff_pixel_count > 0:
            diff_image_path, comparison_image_path = write_diff_artifacts(
                self.results_dir, output_name, actual, prototype, pixel_diff.diff_image
            )

        return build_comparison_result(
            pixel_diff.diff_pixel_count,
            pixel_diff.total_pixel_count,
            self.config.threshold,
            antialiased_pixel_count=pixel_diff.antialiased_pixel_count,
            diff_image_path=diff_image_path,
            comparison_image_path=comparison_image_path,
        )

    def output_name(self, screen: str) -> str:
        name = artifact_name(screen)
        return f"{artifact_name(self.name_prefix)}-{name}" if self.name_prefix else name

    def compare_screen(self, capture: ScreenCapture) -> ScreenEntry:
        """Compare one screen, turning per-screen failures into flagged entries.

        ReportWriteError is not caught: a run that cannot persist artifacts fails.
        """
        if capture.actual_path is None or not Path(capture.actual_path).exists():
            logger.warning("Screen %s was never captured", capture.name)
            return ScreenEntry(
                name=capture.name, status=ScreenStatus.MISSING_CAPTURE,
                error="No screenshot captured for this screen",
            )
        try:
            result = self.compare_with_prototype(
                capture.actual_path, capture.prototype_file, self.output_name(capture.name)
            )
        except MissingReferenceImage as e:
            logger.warning("Missing baseline for %s: %s", capture.name, e.path)
            return ScreenEntry(name=capture.name, status=ScreenStatus.MISSING_BASELINE, error=str(e))
        except (ImageDecodeError, InvalidImageDimensions) as e:
            logger.error("Comparison failed for %s: %s", capture.name, e)
            return ScreenEntry(name=capture.name, status=ScreenStatus.ERROR, error=str(e))
        except ReportWriteError:
            raise
        except Exception as e:
            logger.exception("Unexpected error comparing %s", capture.name)
            return ScreenEntry(name=capture.name, status=ScreenStatus.ERROR, error=f"{type(e).__name__}: {e}")

        entry = ScreenEntry.from_result(capture.name, result)
        logger.info("[%s] %s: %.2f%% match (%d diff pixels)",
                    entry.status.value.upper(), capture.name, result.match, result.diff_pixel_count)
        return entry

    def compare_screens(self, captures: list[ScreenCapture]) -> list[ScreenEntry]:
        """Compare all screens, bounded by ``max_parallel``; results keep input order."""
        return asyncio.run(self.compare_screens_async(captures))

    async def compare_screens_async(self, captures: list[ScreenCapture]) -> list[ScreenEntry]:
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def _run_one(capture: ScreenCapture) -> ScreenEntry:
            async with semaphore:
                return await asyncio.to_thread(self.compare_screen, capture)

        logger.info("Comparing %d screens (max %d in parallel)", len(captures), self.max_parallel)
        return list(await asyncio.gather(*(_run_one(c) for c in captures)))
