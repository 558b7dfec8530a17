from pathlib import Path
import io
import sys

import pytest
from PIL import Image

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from jonathan_converter.converter import (
    ConvertOptions,
    RawResource,
    ResourceKind,
    convert,
    convert_all,
    render_text,
)
from jonathan_converter.errors import ConversionError, TruncatedInputError, UnsupportedFormatError
from jonathan_converter.text import CodepageTable, TextRecord

from pcx_samples import make_pcx, red_pixel_pcx


def _bitmap(data: bytes, name: str = "PIC.PCX") -> RawResource:
    return RawResource(identifier=name, kind=ResourceKind.BITMAP, data=data)


def _text(data: bytes, name: str = "TXT.TCT") -> RawResource:
    return RawResource(identifier=name, kind=ResourceKind.TEXT, data=data)


def test_red_pixel_converts_to_indexed_png() -> None:
    result = convert(_bitmap(red_pixel_pcx()))

    assert result.ok
    assert result.extension == ".png"
    with Image.open(io.BytesIO(result.data)) as img:
        assert img.mode == "P"
        assert img.size == (1, 1)
        assert img.convert("RGBA").getpixel((0, 0)) == (255, 0, 0, 255)


def test_rgba_output_when_indexed_is_disabled() -> None:
    result = convert(_bitmap(red_pixel_pcx()), ConvertOptions(indexed=False))

    with Image.open(io.BytesIO(result.data)) as img:
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0)) == (255, 0, 0, 255)


def test_image_without_trailer_is_written_as_rgba() -> None:
    truecolor = make_pcx(1, 1, bytes([10, 20, 30]), planes=3)

    result = convert(_bitmap(truecolor), ConvertOptions(verify=True, filter_mode="adaptive"))

    assert result.ok
    with Image.open(io.BytesIO(result.data)) as img:
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0)) == (10, 20, 30, 255)


def test_verify_accepts_round_trip() -> None:
    result = convert(_bitmap(red_pixel_pcx()), ConvertOptions(verify=True))

    assert result.ok


def test_decoder_errors_are_returned_with_identifier() -> None:
    result = convert(_bitmap(red_pixel_pcx()[:50], name="BROKEN.PCX"))

    assert not result.ok
    assert result.identifier == "BROKEN.PCX"
    assert isinstance(result.error, TruncatedInputError)
    assert result.data is None


def test_scrambled_header_needs_restore_option() -> None:
    data = b"\xff\xff\xff\xff" + red_pixel_pcx()[4:]

    assert isinstance(convert(_bitmap(data)).error, UnsupportedFormatError)
    assert convert(_bitmap(data), ConvertOptions(restore_header=True)).ok


def test_text_conversion_joins_records() -> None:
    options = ConvertOptions(codepage=CodepageTable.ascii())

    result = convert(_text(b"A\x00\x00B\x00"), options)

    assert result.ok
    assert result.extension == ".txt"
    assert result.data == "\ufeffA\n\nB".encode("utf-8")
    assert [record.text for record in result.records] == ["A", "", "B"]


def test_text_conversion_line_endings_and_bom() -> None:
    options = ConvertOptions(codepage=CodepageTable.ascii(), line_ending="\r\n", include_bom=False)

    result = convert(_text(b"one\ntwo\x00three"), options)

    assert result.data == b"one\r\ntwo\r\nthree"


def test_text_conversion_reports_replaced_bytes() -> None:
    result = convert(_text(bytes([11 + 55, 250])))

    assert result.ok
    assert result.replaced_bytes == 1
    assert result.data.decode("utf-8") == "\ufeff8\ufffd"


def test_empty_text_is_fine_unless_records_are_required() -> None:
    assert convert(_text(b"")).data == "\ufeff".encode("utf-8")

    result = convert(_text(b""), ConvertOptions(require_text_records=True))
    assert isinstance(result.error, TruncatedInputError)


def test_render_text_without_records() -> None:
    assert render_text([], include_bom=False) == b""
    assert render_text([TextRecord("x", 0, 1)], line_ending="\r\n") == "\ufeffx".encode("utf-8")


def test_convert_all_keeps_input_order() -> None:
    resources = [
        _bitmap(red_pixel_pcx(), name="0.PCX"),
        _bitmap(b"", name="1.PCX"),
        _text(b"\x3b", name="2.TCT"),
        _bitmap(red_pixel_pcx(), name="3.PCX"),
    ]

    for jobs in (1, 4):
        results = convert_all(resources, jobs=jobs)
        assert [r.identifier for r in results] == ["0.PCX", "1.PCX", "2.TCT", "3.PCX"]
        assert [r.ok for r in results] == [True, False, True, True]


def test_resource_kind_from_extension() -> None:
    assert ResourceKind.from_extension(".PCX") is ResourceKind.BITMAP
    assert ResourceKind.from_extension("tct") is ResourceKind.TEXT
    assert ResourceKind.from_extension(".png") is None


def test_invalid_options_raise() -> None:
    with pytest.raises(ConversionError):
        convert(_text(b"x"), ConvertOptions(filter_mode="sub"))
    with pytest.raises(ConversionError):
        convert(_text(b"x"), ConvertOptions(line_ending="\r"))
    with pytest.raises(ConversionError):
        convert(_text(b"x"), ConvertOptions(compression_level=-1))
