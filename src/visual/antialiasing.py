"""Anti-aliasing classifiers used by the pixel comparator.

A classifier decides whether a pixel that differs between two images is
edge smoothing rather than a structural change. The comparator only needs
``is_antialiased``; swap in another strategy to change the heuristic.
"""

from __future__ import annotations

from typing import Protocol

from src.models.raster import RasterImage

from .color import color_delta


class AntialiasingDetector(Protocol):
    def is_antialiased(self, first: RasterImage, second: RasterImage, x: int, y: int) -> bool:
        ...


def _has_many_siblings(img: RasterImage, x1: int, y1: int) -> bool:
    """True when the pixel has 3+ identical neighbours (counting the image border as one)."""
    width, height, buf = img.width, img.height, img.pixels
    x0, y0 = max(x1 - 1, 0), max(y1 - 1, 0)
    x2, y2 = min(x1 + 1, width - 1), min(y1 + 1, height - 1)
    pos = (y1 * width + x1) * 4
    zeroes = 1 if x1 == x0 or x1 == x2 or y1 == y0 or y1 == y2 else 0
    pixel = buf[pos:pos + 4]

    for x in range(x0, x2 + 1):
        for y in range(y0, y2 + 1):
            if x == x1 and y == y1:
                continue
            pos2 = (y * width + x) * 4
            if buf[pos2:pos2 + 4] == pixel:
                zeroes += 1
            if zeroes > 2:
                return True
    return False


def _is_edge_blend(img: RasterImage, other: RasterImage, x1: int, y1: int) -> bool:
    width, height, buf = img.width, img.height, img.pixels
    x0, y0 = max(x1 - 1, 0), max(y1 - 1, 0)
    x2, y2 = min(x1 + 1, width - 1), min(y1 + 1, height - 1)
    pos = (y1 * width + x1) * 4
    zeroes = 1 if x1 == x0 or x1 == x2 or y1 == y0 or y1 == y2 else 0
    darkest = brightest = 0.0
    min_x = min_y = max_x = max_y = 0

    for x in range(x0, x2 + 1):
        for y in range(y0, y2 + 1):
            if x == x1 and y == y1:
                continue
            delta = color_delta(buf, buf, pos, (y * width + x) * 4, y_only=True)
            if delta == 0:
                zeroes += 1
                # more than two identical neighbours: part of a flat area, not an edge
                if zeroes > 2:
                    return False
            elif delta < darkest:
                darkest = delta
                min_x, min_y = x, y
            elif delta > brightest:
                brightest = delta
                max_x, max_y = x, y

    # a blend pixel needs both a darker and a brighter neighbour
    if darkest == 0 or brightest == 0:
        return False

    return (
        (_has_many_siblings(img, min_x, min_y) and _has_many_siblings(other, min_x, min_y))
        or (_has_many_siblings(img, max_x, max_y) and _has_many_siblings(other, max_x, max_y))
    )


class NeighbourhoodAntialiasingDetector:
    """Brightness-gradient heuristic over the 3x3 neighbourhood.

    A pixel counts as anti-aliasing when, in either image, it sits between a
    darker and a brighter neighbour, has at most two identical neighbours,
    and one of those extreme neighbours belongs to a flat region in both
    images. Known behaviour: one-pixel-wide lines drawn over a flat
    background can be classified as smoothing (false positive), and
    smoothing next to textured areas with no flat run is counted as a real
    difference (false negative).
    """

    def is_antialiased(self, first: RasterImage, second: RasterImage, x: int, y: int) -> bool:
        return _is_edge_blend(first, second, x, y) or _is_edge_blend(second, first, x, y)
