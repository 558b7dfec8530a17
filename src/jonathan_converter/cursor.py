"""Sequential little-endian reader over an in-memory buffer."""

from __future__ import annotations

from .errors import OutOfRangeError, TruncatedInputError


class ByteCursor:
    """Bounds-checked reader. Every out-of-range access raises."""

    def __init__(self, data: bytes | bytearray, offset: int = 0):
        self.data = bytes(data)
        self.pos = 0
        self.seek(offset)

    def tell(self) -> int:
        return self.pos

    def remaining(self) -> int:
        return len(self.data) - self.pos

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > len(self.data):
            raise OutOfRangeError(
                f"Cannot seek to offset {offset} in a buffer of {len(self.data)} bytes"
            )
        self.pos = offset

    def _take(self, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"Read length must not be negative: {count}")
        end = self.pos + count
        if end > len(self.data):
            raise TruncatedInputError(
                f"Need {count} bytes at offset {self.pos}, only {self.remaining()} left"
            )
        chunk = self.data[self.pos : end]
        self.pos = end
        return chunk

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u16_le(self) -> int:
        return int.from_bytes(self._take(2), "little")

    def read_bytes(self, count: int) -> bytes:
        return self._take(count)

    def skip(self, count: int) -> None:
        self._take(count)
