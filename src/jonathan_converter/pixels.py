"""Decoded image representation shared by the decoders and the PNG encoder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from PIL import Image

RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class PixelBuffer:
    """Row-major RGBA pixels, top row first.

    ``data`` holds exactly ``width * height * 4`` bytes. The legacy formats
    carry no transparency, so decoders always write an alpha of 255.
    """

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid pixel buffer size: {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"Pixel data has {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    def __len__(self) -> int:
        return self.width * self.height

    def pixel(self, x: int, y: int) -> RGBA:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside {self.width}x{self.height}")
        offset = (y * self.width + x) * 4
        r, g, b, a = self.data[offset : offset + 4]
        return r, g, b, a

    def rows(self) -> Iterator[bytes]:
        stride = self.width * 4
        for y in range(self.height):
            yield self.data[y * stride : (y + 1) * stride]

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.data)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        rgba = image.convert("RGBA")
        width, height = rgba.size
        return cls(width, height, rgba.tobytes())
