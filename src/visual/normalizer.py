"""Image normalizer — decodes screenshots and brings image pairs to a common size."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from src.errors import ImageDecodeError, InvalidImageDimensions
from src.models.raster import RasterImage

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255, 255)


def decode_image(path: str | Path) -> RasterImage:
    """Decode any Pillow-readable image file into an RGBA raster."""
    p = Path(path)
    if not p.is_file():
        raise ImageDecodeError(p, "file does not exist")
    try:
        with Image.open(p) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(p, str(e)) from e
    if rgba.width == 0 or rgba.height == 0:
        raise InvalidImageDimensions(f"Image has zero area: {p}")
    return RasterImage.from_pil(rgba)


def _contain(image: RasterImage, width: int, height: int) -> RasterImage:
    """Fit ``image`` inside width x height without cropping, centred on white."""
    if image.size == (width, height):
        return image
    padded = ImageOps.pad(
        image.to_pil(),
        (width, height),
        method=Image.Resampling.LANCZOS,
        color=BACKGROUND,
    )
    return RasterImage.from_pil(padded)


def normalize_pair(actual: RasterImage, reference: RasterImage) -> tuple[RasterImage, RasterImage]:
    """Resize both images to min(width) x min(height).

    The smaller common size avoids upsampling; each image is contain-fit, so
    a mismatched aspect ratio leaves opaque white margins instead of
    cropping or stretching content.
    """
    width = min(actual.width, reference.width)
    height = min(actual.height, reference.height)
    if actual.size != reference.size:
        logger.debug(
            "Normalizing %dx%d and %dx%d to %dx%d",
            actual.width, actual.height, reference.width, reference.height, width, height,
        )
    return _contain(actual, width, height), _contain(reference, width, height)


def load_normalized_pair(actual_path: str | Path, reference_path: str | Path) -> tuple[RasterImage, RasterImage]:
    """Decode and normalize an (actual, reference) file pair."""
    return normalize_pair(decode_image(actual_path), decode_image(reference_path))
