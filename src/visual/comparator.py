"""Per-pixel perceptual diff between two equal-sized rasters."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.errors import InvalidImageDimensions
from src.models.config import VisualConfig
from src.models.raster import RasterImage

from .antialiasing import AntialiasingDetector, NeighbourhoodAntialiasingDetector
from .color import color_delta, max_delta_for, rgb2y

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PixelDiff:
    diff_image: RasterImage
    diff_pixel_count: int
    antialiased_pixel_count: int = 0

    @property
    def total_pixel_count(self) -> int:
        return self.diff_image.pixel_count


class PixelComparator:
    """Counts structurally different pixels and renders a diff raster.

    Counted differences are drawn in ``diff_color``; differences classified
    as anti-aliasing are drawn in ``aa_color`` and left out of the count.
    Matching pixels are transparent, or a faded grayscale copy of the first
    image when ``diff_mask`` is off.
    """

    def __init__(self, config: VisualConfig | None = None, detector: AntialiasingDetector | None = None):
        self.config = config or VisualConfig()
        self.detector = detector or NeighbourhoodAntialiasingDetector()

    def compare(self, first: RasterImage, second: RasterImage) -> PixelDiff:
        if first.size != second.size:
            raise InvalidImageDimensions(
                f"Image sizes do not match: {first.width}x{first.height} vs {second.width}x{second.height}"
            )

        width, height = first.width, first.height
        output = bytearray(width * height * 4)  # all-transparent

        if first.pixels == second.pixels:
            if not self.config.diff_mask:
                self._draw_gray_rows(first, output, 0, height)
            return PixelDiff(diff_image=RasterImage(width, height, bytes(output)), diff_pixel_count=0)

        max_delta = max_delta_for(self.config.threshold)
        diff_color = bytes(self.config.diff_color)
        aa_color = bytes(self.config.aa_color)
        buf1, buf2 = first.pixels, second.pixels
        row_bytes = width * 4
        diff_count = 0
        aa_count = 0

        for y in range(height):
            row_start = y * row_bytes
            if buf1[row_start:row_start + row_bytes] == buf2[row_start:row_start + row_bytes]:
                if not self.config.diff_mask:
                    self._draw_gray_rows(first, output, y, y + 1)
                continue

            for x in range(width):
                pos = row_start + x * 4
                delta = color_delta(buf1, buf2, pos, pos)

                if abs(delta) > max_delta:
                    if self.config.ignore_antialiasing and self.detector.is_antialiased(first, second, x, y):
                        output[pos:pos + 4] = aa_color
                        aa_count += 1
                    else:
                        output[pos:pos + 4] = diff_color
                        diff_count += 1
                elif not self.config.diff_mask:
                    self._draw_gray_pixel(buf1, pos, output)

        logger.debug("Pixel diff %dx%d: %d different, %d anti-aliased", width, height, diff_count, aa_count)
        return PixelDiff(
            diff_image=RasterImage(width, height, bytes(output)),
            diff_pixel_count=diff_count,
            antialiased_pixel_count=aa_count,
        )

    def _draw_gray_pixel(self, buf: bytes, pos: int, output: bytearray) -> None:
        r, g, b, a = buf[pos], buf[pos + 1], buf[pos + 2], buf[pos + 3]
        value = 255 + (rgb2y(r, g, b) - 255) * self.config.alpha * a / 255
        v = max(0, min(255, int(round(value))))
        output[pos:pos + 4] = bytes((v, v, v, 255))

    def _draw_gray_rows(self, img: RasterImage, output: bytearray, start: int, stop: int) -> None:
        row_bytes = img.width * 4
        for pos in range(start * row_bytes, stop * row_bytes, 4):
            self._draw_gray_pixel(img.pixels, pos, output)
