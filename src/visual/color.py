"""Perceptual colour distance on RGBA byte buffers (YIQ colour space)."""

from __future__ import annotations

# Squared YIQ delta between black and white; per-pixel thresholds scale this.
MAX_YIQ_DELTA = 35215.0


def _blend(channel: float, alpha: float) -> float:
    """Composite a channel over a white background."""
    return 255 + (channel - 255) * alpha


def rgb2y(r: float, g: float, b: float) -> float:
    return r * 0.29889531 + g * 0.58662247 + b * 0.11448223


def rgb2i(r: float, g: float, b: float) -> float:
    return r * 0.59597799 - g * 0.27417610 - b * 0.32180189


def rgb2q(r: float, g: float, b: float) -> float:
    return r * 0.21147017 - g * 0.52261711 + b * 0.31114694


def color_delta(buf1: bytes, buf2: bytes, k: int, m: int, y_only: bool = False) -> float:
    """Signed perceptual distance between pixel ``k`` of buf1 and pixel ``m`` of buf2.

    ``k`` and ``m`` are byte offsets. The magnitude is symmetric in argument
    order; the sign is negative when the first pixel is the brighter one.
    With ``y_only`` only the brightness difference is returned.
    """
    r1, g1, b1, a1 = buf1[k], buf1[k + 1], buf1[k + 2], buf1[k + 3]
    r2, g2, b2, a2 = buf2[m], buf2[m + 1], buf2[m + 2], buf2[m + 3]

    if a1 == a2 and r1 == r2 and g1 == g2 and b1 == b2:
        return 0.0

    if a1 < 255:
        a = a1 / 255
        r1, g1, b1 = _blend(r1, a), _blend(g1, a), _blend(b1, a)
    if a2 < 255:
        a = a2 / 255
        r2, g2, b2 = _blend(r2, a), _blend(g2, a), _blend(b2, a)

    y1 = rgb2y(r1, g1, b1)
    y2 = rgb2y(r2, g2, b2)
    y = y1 - y2
    if y_only:
        return y

    i = rgb2i(r1, g1, b1) - rgb2i(r2, g2, b2)
    q = rgb2q(r1, g1, b1) - rgb2q(r2, g2, b2)
    delta = 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q
    return -delta if y1 > y2 else delta


def max_delta_for(threshold: float) -> float:
    return MAX_YIQ_DELTA * threshold * threshold
