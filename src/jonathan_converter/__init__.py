"""Converter for the resources of the 'Jonathan' adventure game.

PCX pictures become PNG files and packed ``.TCT`` texts become UTF-8 text.
The core works on in-memory buffers only; the CLI (``python -m
jonathan_converter``) walks a game installation and writes the results.
"""

__version__ = "1.0.0"

from .converter import (
    ConversionResult,
    ConvertOptions,
    RawResource,
    ResourceKind,
    convert,
    convert_all,
    render_text,
)
from .cursor import ByteCursor
from .errors import (
    ConversionError,
    InvalidDimensionsError,
    OutOfRangeError,
    TruncatedInputError,
    UnsupportedEncodingError,
    UnsupportedFormatError,
)
from .palette import resolve_trailing_palette
from .pcx import BitmapHeader, DecodedBitmap, decode_pcx
from .pixels import PixelBuffer
from .png_encoder import decode_png, encode_png
from .text import GAME_CODEPAGE, CodepageTable, TextRecord, decode_text, decode_text_records

__all__ = [
    "__version__",
    "BitmapHeader",
    "ByteCursor",
    "CodepageTable",
    "ConversionError",
    "ConversionResult",
    "ConvertOptions",
    "DecodedBitmap",
    "GAME_CODEPAGE",
    "InvalidDimensionsError",
    "OutOfRangeError",
    "PixelBuffer",
    "RawResource",
    "ResourceKind",
    "TextRecord",
    "TruncatedInputError",
    "UnsupportedEncodingError",
    "UnsupportedFormatError",
    "convert",
    "convert_all",
    "decode_pcx",
    "decode_png",
    "decode_text",
    "decode_text_records",
    "encode_png",
    "render_text",
    "resolve_trailing_palette",
]
