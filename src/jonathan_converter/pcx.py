"""ZSoft PCX decoder used for the game's GRAFIK resources."""

# Reference: PCX header (128 bytes, little-endian)
# Offset | Size | Field
# -------|------|---------------------------------------------------------
#   0    |  1   | Manufacturer, always 0Ah
#   1    |  1   | Version (0, 2, 3, 4, 5)
#   2    |  1   | Encoding, 1 = RLE
#   3    |  1   | Bits per pixel per plane (1, 2, 4, 8)
#   4    |  8   | Window xmin, ymin, xmax, ymax
#  12    |  4   | Horizontal / vertical DPI
#  16    | 48   | 16-color header palette
#  64    |  1   | Reserved
#  65    |  1   | Number of color planes
#  66    |  2   | Bytes per scanline plane
#  68    |  2   | Palette info
#  70    |  4   | Screen width / height
#  74    | 54   | Filler
#
# The game stores its pictures with the first four bytes scrambled. They are
# always the same on a real file (0A 05 01 08), so they can be rewritten.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .cursor import ByteCursor
from .errors import (
    InvalidDimensionsError,
    TruncatedInputError,
    UnsupportedEncodingError,
    UnsupportedFormatError,
)
from .palette import (
    TRAILER_SIZE,
    Palette,
    extend_palette,
    header_palette,
    resolve_trailing_palette,
)
from .pixels import PixelBuffer

HEADER_SIZE = 128
MANUFACTURER_ZSOFT = 0x0A
KNOWN_VERSIONS = (0, 2, 3, 4, 5)
ENCODING_RLE = 1
RLE_RUN_FLAG = 0xC0
RLE_COUNT_MASK = 0x3F
GAME_HEADER_PREFIX = bytes([MANUFACTURER_ZSOFT, 0x05, ENCODING_RLE, 0x08])

# (bits per pixel, planes) pairs we know how to turn into pixels.
SUPPORTED_LAYOUTS = {
    (1, 1),
    (2, 1),
    (4, 1),
    (8, 1),
    (1, 3),
    (1, 4),
    (8, 3),
    (8, 4),
}

MONOCHROME: Palette = ((0, 0, 0), (255, 255, 255))


@dataclass(frozen=True)
class BitmapHeader:
    manufacturer: int
    version: int
    encoding: int
    bits_per_pixel: int
    xmin: int
    ymin: int
    xmax: int
    ymax: int
    hdpi: int
    vdpi: int
    colormap: bytes
    planes: int
    bytes_per_line: int
    palette_info: int
    hscreen_size: int
    vscreen_size: int

    @property
    def width(self) -> int:
        return self.xmax - self.xmin + 1

    @property
    def height(self) -> int:
        return self.ymax - self.ymin + 1

    @property
    def scanline_size(self) -> int:
        return self.bytes_per_line * self.planes

    @property
    def image_size(self) -> int:
        return self.scanline_size * self.height


@dataclass(frozen=True)
class DecodedBitmap:
    """Result of :func:`decode_pcx`.

    ``palette`` is only set when the file carried a 256-color trailer; it is
    what an indexed PNG should be written with.
    """

    pixels: PixelBuffer
    bits_per_pixel: int
    header: BitmapHeader
    palette: Optional[Palette] = None


def restore_game_header(data: bytes) -> bytes:
    """Overwrite the scrambled leading bytes of a game picture."""
    if len(data) < len(GAME_HEADER_PREFIX):
        raise TruncatedInputError(
            f"{len(data)} bytes is too small to be a PCX file"
        )
    return GAME_HEADER_PREFIX + bytes(data[len(GAME_HEADER_PREFIX) :])


def parse_header(data: bytes) -> BitmapHeader:
    cursor = ByteCursor(data)
    manufacturer = cursor.read_u8()
    version = cursor.read_u8()
    encoding = cursor.read_u8()
    bits_per_pixel = cursor.read_u8()
    xmin = cursor.read_u16_le()
    ymin = cursor.read_u16_le()
    xmax = cursor.read_u16_le()
    ymax = cursor.read_u16_le()
    hdpi = cursor.read_u16_le()
    vdpi = cursor.read_u16_le()
    colormap = cursor.read_bytes(48)
    cursor.skip(1)  # reserved
    planes = cursor.read_u8()
    bytes_per_line = cursor.read_u16_le()
    palette_info = cursor.read_u16_le()
    hscreen_size = cursor.read_u16_le()
    vscreen_size = cursor.read_u16_le()
    cursor.skip(54)

    header = BitmapHeader(
        manufacturer=manufacturer,
        version=version,
        encoding=encoding,
        bits_per_pixel=bits_per_pixel,
        xmin=xmin,
        ymin=ymin,
        xmax=xmax,
        ymax=ymax,
        hdpi=hdpi,
        vdpi=vdpi,
        colormap=colormap,
        planes=planes,
        bytes_per_line=bytes_per_line,
        palette_info=palette_info,
        hscreen_size=hscreen_size,
        vscreen_size=vscreen_size,
    )
    validate_header(header)
    return header


def validate_header(header: BitmapHeader) -> None:
    if header.manufacturer != MANUFACTURER_ZSOFT:
        raise UnsupportedFormatError(
            f"Not a PCX file (manufacturer byte {header.manufacturer:#04x})"
        )
    if header.version not in KNOWN_VERSIONS:
        raise UnsupportedFormatError(f"Unknown PCX version {header.version}")
    if header.encoding != ENCODING_RLE:
        raise UnsupportedEncodingError(f"Unsupported PCX encoding {header.encoding}")
    if (header.bits_per_pixel, header.planes) not in SUPPORTED_LAYOUTS:
        raise UnsupportedEncodingError(
            f"Unsupported PCX layout: {header.bits_per_pixel} bpp, {header.planes} planes"
        )
    if header.width <= 0 or header.height <= 0:
        raise InvalidDimensionsError(
            f"Invalid PCX dimensions {header.width}x{header.height}"
        )
    if header.bytes_per_line * 8 < header.width * header.bits_per_pixel:
        raise InvalidDimensionsError(
            f"{header.bytes_per_line} bytes per line cannot hold "
            f"{header.width} pixels at {header.bits_per_pixel} bpp"
        )


def decode_rle(stream: bytes, expected: int) -> bytes:
    """Expand PCX run-length data until ``expected`` bytes are produced.

    A byte with both top bits set holds a repeat count in its low six bits and
    is followed by the value to repeat; anything else is a single literal.
    Bytes produced past ``expected`` are dropped.
    """
    out = bytearray()
    pos = 0
    size = len(stream)
    while len(out) < expected:
        if pos >= size:
            raise TruncatedInputError(
                f"RLE data ended after {len(out)} of {expected} bytes"
            )
        value = stream[pos]
        pos += 1
        if value & RLE_RUN_FLAG == RLE_RUN_FLAG:
            if pos >= size:
                raise TruncatedInputError("RLE run is missing its value byte")
            out += bytes((stream[pos],)) * (value & RLE_COUNT_MASK)
            pos += 1
        else:
            out.append(value)
    return bytes(out[:expected])


def unpack_indices(row: bytes, bits_per_pixel: int, width: int) -> List[int]:
    """Split a packed scanline into ``width`` values, most significant bits first."""
    if bits_per_pixel == 8:
        return list(row[:width])
    mask = (1 << bits_per_pixel) - 1
    shifts = range(8 - bits_per_pixel, -1, -bits_per_pixel)
    values: List[int] = []
    for byte in row:
        for shift in shifts:
            values.append((byte >> shift) & mask)
        if len(values) >= width:
            break
    return values[:width]


def _color_table(palette: Palette) -> List[bytes]:
    return [bytes((r, g, b, 255)) for r, g, b in palette]


def _fallback_palette(header: BitmapHeader) -> Palette:
    inline = header_palette(header.colormap)
    if header.bits_per_pixel == 1 and header.planes == 1 and inline[0] == inline[1]:
        # Many writers leave the inline map zeroed for black and white art.
        return MONOCHROME
    return inline


def _indexed_rows(image: bytes, header: BitmapHeader) -> List[List[int]]:
    rows: List[List[int]] = []
    stride = header.scanline_size
    bpl = header.bytes_per_line
    width = header.width
    for y in range(header.height):
        line = image[y * stride : (y + 1) * stride]
        if header.planes == 1:
            rows.append(unpack_indices(line, header.bits_per_pixel, width))
            continue
        # Planar EGA style: plane n supplies bit n of every pixel index.
        indices = [0] * width
        for plane in range(header.planes):
            bits = unpack_indices(line[plane * bpl : (plane + 1) * bpl], 1, width)
            for x, bit in enumerate(bits):
                indices[x] |= bit << plane
        rows.append(indices)
    return rows


def _truecolor_pixels(image: bytes, header: BitmapHeader) -> bytes:
    out = bytearray()
    stride = header.scanline_size
    bpl = header.bytes_per_line
    width = header.width
    for y in range(header.height):
        line = image[y * stride : (y + 1) * stride]
        red = line[0:width]
        green = line[bpl : bpl + width]
        blue = line[2 * bpl : 2 * bpl + width]
        for x in range(width):
            out += bytes((red[x], green[x], blue[x], 255))
    return bytes(out)


def decode_pcx(data: bytes, restore_header: bool = False) -> DecodedBitmap:
    """Decode a PCX resource into RGBA pixels."""
    if restore_header:
        data = restore_game_header(data)
    header = parse_header(data)

    trailer: Optional[Palette] = None
    stream_end = len(data)
    if header.bits_per_pixel == 8 and header.planes == 1:
        trailer = resolve_trailing_palette(data)
        if trailer is not None and len(data) - TRAILER_SIZE >= HEADER_SIZE:
            stream_end = len(data) - TRAILER_SIZE
        else:
            trailer = None

    image = decode_rle(data[HEADER_SIZE:stream_end], header.image_size)
    used_bits = header.bits_per_pixel * header.planes

    if header.bits_per_pixel == 8 and header.planes > 1:
        rgba = _truecolor_pixels(image, header)
    else:
        if trailer is not None:
            palette = trailer
        elif header.bits_per_pixel == 8:
            palette = extend_palette(header_palette(header.colormap))
        else:
            palette = _fallback_palette(header)
        table = _color_table(palette)
        rgba = b"".join(
            b"".join(table[idx] for idx in row) for row in _indexed_rows(image, header)
        )

    return DecodedBitmap(
        pixels=PixelBuffer(header.width, header.height, rgba),
        bits_per_pixel=used_bits,
        header=header,
        palette=trailer,
    )
