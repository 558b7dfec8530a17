from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from jonathan_converter.palette import (
    extend_palette,
    header_palette,
    palette_bytes,
    resolve_trailing_palette,
)


def _trailer_bytes() -> bytes:
    return bytes(i % 256 for i in range(768))


def test_trailing_palette_keeps_source_order() -> None:
    raw = _trailer_bytes()
    data = b"\x00" * 200 + b"\x0c" + raw

    palette = resolve_trailing_palette(data)

    assert palette is not None
    assert len(palette) == 256
    assert palette[0] == (0, 1, 2)
    assert palette[1] == (3, 4, 5)
    assert palette[255] == tuple(raw[765:768])
    assert palette_bytes(palette) == raw


def test_trailer_that_fills_the_whole_buffer_is_accepted() -> None:
    palette = resolve_trailing_palette(b"\x0c" + _trailer_bytes())

    assert palette is not None
    assert len(palette) == 256


def test_missing_marker_means_no_trailer() -> None:
    data = b"\x00" * 200 + b"\x0b" + _trailer_bytes()

    assert resolve_trailing_palette(data) is None


def test_short_buffer_means_no_trailer() -> None:
    assert resolve_trailing_palette(b"") is None
    assert resolve_trailing_palette(b"\x0c" + b"\x00" * 767) is None


def test_header_palette_has_sixteen_entries() -> None:
    raw = bytes(range(48))

    palette = header_palette(raw)

    assert len(palette) == 16
    assert palette[0] == (0, 1, 2)
    assert palette[15] == (45, 46, 47)
    with pytest.raises(ValueError):
        header_palette(raw[:47])


def test_extend_palette_pads_with_grey_ramp() -> None:
    palette = extend_palette([(1, 2, 3), (4, 5, 6)])

    assert len(palette) == 256
    assert palette[1] == (4, 5, 6)
    assert palette[2] == (2, 2, 2)
    assert palette[255] == (255, 255, 255)
