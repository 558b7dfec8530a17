"""Palette lookup for PCX resources.

A PCX file can carry its colors in two places:

* a 256-color VGA table appended after the image data, introduced by the
  marker byte ``0x0C`` (769 bytes in total), and
* a 16-color table inside the 128-byte header, used by lower bit depths and
  as the fallback when the trailer is missing.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

Color = Tuple[int, int, int]
Palette = Tuple[Color, ...]

PALETTE_MARKER = 0x0C
PALETTE_ENTRIES = 256
PALETTE_SIZE = PALETTE_ENTRIES * 3
TRAILER_SIZE = PALETTE_SIZE + 1
HEADER_PALETTE_ENTRIES = 16


def _triples(raw: bytes) -> Palette:
    return tuple((raw[i], raw[i + 1], raw[i + 2]) for i in range(0, len(raw) - 2, 3))


def resolve_trailing_palette(data: bytes) -> Optional[Palette]:
    """Return the 256 trailer colors, or ``None`` when there is no trailer.

    A missing marker or a buffer too short to hold the trailer is not an
    error: the caller falls back to the header palette.
    """
    if len(data) < TRAILER_SIZE:
        return None
    if data[-TRAILER_SIZE] != PALETTE_MARKER:
        return None
    return _triples(bytes(data[-PALETTE_SIZE:]))


def header_palette(raw: bytes) -> Palette:
    """Decode the 48-byte inline color map of a PCX header."""
    if len(raw) != HEADER_PALETTE_ENTRIES * 3:
        raise ValueError(f"Header palette must be 48 bytes, got {len(raw)}")
    return _triples(bytes(raw))


def extend_palette(base: Sequence[Color], size: int = PALETTE_ENTRIES) -> Palette:
    """Pad ``base`` to ``size`` entries with a grey ramp keyed by index."""
    colors: List[Color] = list(base[:size])
    for idx in range(len(colors), size):
        colors.append((idx, idx, idx))
    return tuple(colors)


def palette_bytes(palette: Sequence[Color]) -> bytes:
    out = bytearray()
    for r, g, b in palette:
        out.extend((r, g, b))
    return bytes(out)
