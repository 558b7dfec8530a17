from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from jonathan_converter.cursor import ByteCursor
from jonathan_converter.errors import OutOfRangeError, TruncatedInputError


def test_reads_little_endian_values_in_sequence() -> None:
    cursor = ByteCursor(b"\x0a\x34\x12ABC\xff")

    assert cursor.read_u8() == 0x0A
    assert cursor.read_u16_le() == 0x1234
    assert cursor.read_bytes(3) == b"ABC"
    assert cursor.tell() == 6
    assert cursor.remaining() == 1


def test_skip_and_seek_move_the_position() -> None:
    cursor = ByteCursor(bytes(range(10)))

    cursor.skip(4)
    assert cursor.read_u8() == 4
    cursor.seek(9)
    assert cursor.read_u8() == 9
    cursor.seek(10)
    assert cursor.remaining() == 0


def test_reading_past_the_end_raises() -> None:
    cursor = ByteCursor(b"\x01")

    with pytest.raises(TruncatedInputError):
        cursor.read_u16_le()
    # a failed read must not move the cursor
    assert cursor.tell() == 0
    assert cursor.read_u8() == 1
    with pytest.raises(TruncatedInputError):
        cursor.read_u8()


def test_skip_and_read_bytes_are_bounds_checked() -> None:
    cursor = ByteCursor(b"abc")

    with pytest.raises(TruncatedInputError):
        cursor.skip(4)
    with pytest.raises(TruncatedInputError):
        cursor.read_bytes(4)
    assert cursor.read_bytes(0) == b""


def test_seek_outside_the_buffer_raises() -> None:
    cursor = ByteCursor(b"abc")

    with pytest.raises(OutOfRangeError):
        cursor.seek(4)
    with pytest.raises(OutOfRangeError):
        cursor.seek(-1)
    with pytest.raises(OutOfRangeError):
        ByteCursor(b"", offset=1)
