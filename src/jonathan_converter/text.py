"""Decoder for the game's packed ``.TCT`` text resources.

A resource is a run of records separated by single ``0x00`` bytes. Each byte
of a record is mapped through a :class:`CodepageTable`; the game shifts ASCII
up by ten and places a handful of German letters at fixed slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import TruncatedInputError

RECORD_TERMINATOR = 0x00
REPLACEMENT_CHARACTER = "\ufffd"


class CodepageTable:
    """Immutable byte -> character table with 256 slots."""

    __slots__ = ("_chars",)

    def __init__(self, mapping: Mapping[int, str]):
        chars: List[Optional[str]] = [None] * 256
        for byte, char in mapping.items():
            if not 0 <= byte <= 255:
                raise ValueError(f"Code page byte out of range: {byte}")
            if len(char) != 1:
                raise ValueError(f"Code page entry {byte} must be a single character")
            chars[byte] = char
        self._chars: Tuple[Optional[str], ...] = tuple(chars)

    @classmethod
    def ascii(cls) -> "CodepageTable":
        """Identity table for printable and control ASCII, excluding NUL."""
        return cls({byte: chr(byte) for byte in range(1, 128)})

    def __getitem__(self, byte: int) -> Optional[str]:
        return self._chars[byte]

    def __contains__(self, byte: object) -> bool:
        return isinstance(byte, int) and 0 <= byte <= 255 and self._chars[byte] is not None

    def __iter__(self) -> Iterator[Optional[str]]:
        return iter(self._chars)

    def __len__(self) -> int:
        return len(self._chars)

    def decode(self, data: bytes) -> Tuple[str, int]:
        """Return the decoded text and how many bytes had no entry."""
        replaced = 0
        parts: List[str] = []
        for byte in data:
            char = self._chars[byte]
            if char is None:
                char = REPLACEMENT_CHARACTER
                replaced += 1
            parts.append(char)
        return "".join(parts), replaced


def _game_mapping() -> Dict[int, str]:
    mapping = {10: "\n"}
    for byte in range(11, 137):
        mapping[byte] = chr(byte - 10)
    mapping.update(
        {
            139: "ü",
            164: "Ü",
            142: "ä",
            152: "Ä",
            158: "ö",
            163: "Ö",
            183: "ô",
            235: "ß",
        }
    )
    return mapping


GAME_CODEPAGE = CodepageTable(_game_mapping())


@dataclass(frozen=True)
class TextRecord:
    text: str
    offset: int
    length: int
    replaced: int = 0


def split_records(data: bytes) -> List[Tuple[int, bytes]]:
    """Split ``data`` at every terminator, returning ``(offset, raw)`` pairs.

    Consecutive terminators yield empty records. A buffer that ends with a
    terminator has no trailing empty record.
    """
    records: List[Tuple[int, bytes]] = []
    start = 0
    size = len(data)
    while start < size:
        end = data.find(RECORD_TERMINATOR, start)
        if end < 0:
            end = size
        records.append((start, bytes(data[start:end])))
        start = end + 1
    return records


def decode_text_records(
    data: bytes,
    table: CodepageTable = GAME_CODEPAGE,
    require_records: bool = False,
) -> List[TextRecord]:
    if not data and require_records:
        raise TruncatedInputError("Text resource is empty")
    records = []
    for offset, raw in split_records(data):
        text, replaced = table.decode(raw)
        records.append(TextRecord(text=text, offset=offset, length=len(raw), replaced=replaced))
    return records


def decode_text(
    data: bytes,
    table: CodepageTable = GAME_CODEPAGE,
    require_records: bool = False,
) -> List[str]:
    return [record.text for record in decode_text_records(data, table, require_records)]
