"""PNG writer for decoded pixel buffers."""

from __future__ import annotations

import binascii
import io
import struct
import zlib
from typing import Dict, List, Optional, Sequence

from PIL import Image

from .errors import ConversionError
from .palette import PALETTE_ENTRIES, Color, palette_bytes
from .pixels import PixelBuffer

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
COLOR_TYPE_INDEXED = 3
COLOR_TYPE_RGBA = 6
BIT_DEPTH = 8
DEFAULT_IDAT_SIZE = 0x10000

FILTER_NONE = 0
FILTER_SUB = 1
FILTER_UP = 2
FILTER_AVERAGE = 3
FILTER_PAETH = 4
FILTER_MODES = ("none", "adaptive")


def make_chunk(chunk_type: bytes, data: bytes) -> bytes:
    """Frame ``data`` as a PNG chunk: length, type, payload, CRC-32."""
    return (
        struct.pack(">I", len(data))
        + chunk_type
        + data
        + struct.pack(">I", binascii.crc32(chunk_type + data) & 0xFFFFFFFF)
    )


def _paeth(a: int, b: int, c: int) -> int:
    p = a + b - c
    pa = abs(p - a)
    pb = abs(p - b)
    pc = abs(p - c)
    if pa <= pb and pa <= pc:
        return a
    if pb <= pc:
        return b
    return c


def filter_scanline(filter_type: int, row: bytes, prior: bytes, bpp: int) -> bytes:
    """Apply one of the five PNG filters to ``row``.

    ``prior`` is the unfiltered previous row (all zeros for the first row) and
    ``bpp`` the number of bytes per complete pixel.
    """
    if filter_type == FILTER_NONE:
        return bytes(row)
    out = bytearray(len(row))
    for i, value in enumerate(row):
        left = row[i - bpp] if i >= bpp else 0
        up = prior[i]
        if filter_type == FILTER_SUB:
            predictor = left
        elif filter_type == FILTER_UP:
            predictor = up
        elif filter_type == FILTER_AVERAGE:
            predictor = (left + up) >> 1
        elif filter_type == FILTER_PAETH:
            upper_left = prior[i - bpp] if i >= bpp else 0
            predictor = _paeth(left, up, upper_left)
        else:
            raise ValueError(f"Unknown PNG filter type: {filter_type}")
        out[i] = (value - predictor) & 0xFF
    return bytes(out)


def _filter_cost(filtered: bytes) -> int:
    # Minimum sum of absolute differences, treating bytes as signed.
    return sum(value if value < 128 else 256 - value for value in filtered)


def filter_scanlines(rows: Sequence[bytes], bpp: int, mode: str = "none") -> bytes:
    """Prefix every row with its filter type byte and concatenate them."""
    if mode not in FILTER_MODES:
        raise ValueError(f"Unknown filter mode: {mode}")
    out = bytearray()
    prior = bytes(len(rows[0])) if rows else b""
    for row in rows:
        if mode == "none":
            best_type, best = FILTER_NONE, bytes(row)
        else:
            candidates = [
                (ftype, filter_scanline(ftype, row, prior, bpp))
                for ftype in (FILTER_NONE, FILTER_SUB, FILTER_UP, FILTER_AVERAGE, FILTER_PAETH)
            ]
            best_type, best = min(candidates, key=lambda item: _filter_cost(item[1]))
        out.append(best_type)
        out += best
        prior = row
    return bytes(out)


def _index_rows(pixels: PixelBuffer, palette: Sequence[Color]) -> List[bytes]:
    lookup: Dict[bytes, int] = {}
    for idx, (r, g, b) in enumerate(palette):
        lookup.setdefault(bytes((r, g, b, 255)), idx)

    rows: List[bytes] = []
    for y, row in enumerate(pixels.rows()):
        indices = bytearray(pixels.width)
        for x in range(pixels.width):
            rgba = row[x * 4 : x * 4 + 4]
            try:
                indices[x] = lookup[rgba]
            except KeyError as exc:
                raise ConversionError(
                    f"Pixel ({x}, {y}) color {tuple(rgba)} is not in the palette"
                ) from exc
        rows.append(bytes(indices))
    return rows


def encode_png(
    pixels: PixelBuffer,
    palette: Optional[Sequence[Color]] = None,
    compression_level: int = 9,
    filter_mode: str = "none",
    idat_size: int = DEFAULT_IDAT_SIZE,
) -> bytes:
    """Serialize ``pixels`` as an 8-bit PNG.

    With ``palette`` the image is written as indexed color and every pixel
    must match a palette entry; otherwise it is written as RGBA.
    """
    if not 0 <= compression_level <= 9:
        raise ValueError(f"Compression level must be between 0 and 9: {compression_level}")
    if idat_size <= 0:
        raise ValueError(f"IDAT chunk size must be positive: {idat_size}")

    if palette is not None:
        if not 0 < len(palette) <= PALETTE_ENTRIES:
            raise ConversionError(f"Palette must have 1-256 entries, got {len(palette)}")
        color_type = COLOR_TYPE_INDEXED
        rows = _index_rows(pixels, palette)
        bpp = 1
    else:
        color_type = COLOR_TYPE_RGBA
        rows = list(pixels.rows())
        bpp = 4

    ihdr = struct.pack(
        ">IIBBBBB", pixels.width, pixels.height, BIT_DEPTH, color_type, 0, 0, 0
    )
    compressed = zlib.compress(filter_scanlines(rows, bpp, filter_mode), compression_level)

    parts = [PNG_SIGNATURE, make_chunk(b"IHDR", ihdr)]
    if palette is not None:
        parts.append(make_chunk(b"PLTE", palette_bytes(palette)))
    for start in range(0, len(compressed), idat_size):
        parts.append(make_chunk(b"IDAT", compressed[start : start + idat_size]))
    parts.append(make_chunk(b"IEND", b""))
    return b"".join(parts)


def decode_png(data: bytes) -> PixelBuffer:
    """Read a PNG back into RGBA pixels with Pillow."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return PixelBuffer.from_image(img)
    except OSError as exc:
        raise ConversionError("Failed to read PNG data") from exc
