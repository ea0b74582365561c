"""Decoded raster image buffer."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from src.errors import InvalidImageDimensions


@dataclass(frozen=True)
class RasterImage:
    """RGBA pixels, row-major, 4 bytes per pixel."""

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidImageDimensions(f"Image has zero area: {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise InvalidImageDimensions(
                f"Pixel buffer holds {len(self.pixels)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        width, height = rgba.size
        if width == 0 or height == 0:
            raise InvalidImageDimensions(f"Image has zero area: {width}x{height}")
        return cls(width=width, height=height, pixels=rgba.tobytes())

    @classmethod
    def solid(cls, width: int, height: int, color: tuple[int, int, int, int]) -> "RasterImage":
        if width <= 0 or height <= 0:
            raise InvalidImageDimensions(f"Image has zero area: {width}x{height}")
        return cls(width=width, height=height, pixels=bytes(color) * (width * height))

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)
