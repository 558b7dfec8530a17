"""Turn one in-memory game resource into the bytes of an open-format file."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import ConversionError
from .pcx import decode_pcx
from .png_encoder import FILTER_MODES, decode_png, encode_png
from .text import GAME_CODEPAGE, CodepageTable, TextRecord, decode_text_records

UTF8_BOM = "\ufeff"


class ResourceKind(Enum):
    BITMAP = "bitmap"
    TEXT = "text"

    @property
    def source_extension(self) -> str:
        return ".pcx" if self is ResourceKind.BITMAP else ".tct"

    @property
    def output_extension(self) -> str:
        return ".png" if self is ResourceKind.BITMAP else ".txt"

    @classmethod
    def from_extension(cls, extension: str) -> Optional["ResourceKind"]:
        ext = extension.lower()
        if not ext.startswith("."):
            ext = "." + ext
        for kind in cls:
            if kind.source_extension == ext:
                return kind
        return None


@dataclass
class ConvertOptions:
    """Options shared by every conversion in a batch."""

    restore_header: bool = False
    indexed: bool = True  # indexed PNG when a 256-color trailer exists
    filter_mode: str = "none"  # none, adaptive
    compression_level: int = 9
    verify: bool = False
    line_ending: str = "\n"
    include_bom: bool = True
    require_text_records: bool = False
    codepage: CodepageTable = field(default=GAME_CODEPAGE, repr=False)

    def validate(self) -> None:
        if self.filter_mode not in FILTER_MODES:
            raise ConversionError(f"Unknown filter mode: {self.filter_mode}")
        if not 0 <= self.compression_level <= 9:
            raise ConversionError("Compression level must be between 0 and 9")
        if self.line_ending not in ("\n", "\r\n"):
            raise ConversionError(f"Unsupported line ending: {self.line_ending!r}")


@dataclass(frozen=True)
class RawResource:
    identifier: str
    kind: ResourceKind
    data: bytes


@dataclass(frozen=True)
class ConversionResult:
    """Either output bytes with their extension, or the error that stopped us."""

    identifier: str
    kind: ResourceKind
    data: Optional[bytes] = None
    extension: Optional[str] = None
    error: Optional[ConversionError] = None
    records: Tuple[TextRecord, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def replaced_bytes(self) -> int:
        return sum(record.replaced for record in self.records)


def render_text(records: Sequence[TextRecord], line_ending: str = "\n", include_bom: bool = True) -> bytes:
    """Join decoded records into a UTF-8 document, one record per line."""
    lines = [record.text.replace("\n", line_ending) for record in records]
    body = line_ending.join(lines)
    if include_bom:
        body = UTF8_BOM + body
    return body.encode("utf-8")


def _convert_bitmap(resource: RawResource, options: ConvertOptions) -> ConversionResult:
    decoded = decode_pcx(resource.data, restore_header=options.restore_header)
    palette = decoded.palette if options.indexed else None
    data = encode_png(
        decoded.pixels,
        palette=palette,
        compression_level=options.compression_level,
        filter_mode=options.filter_mode,
    )
    if options.verify and decode_png(data) != decoded.pixels:
        raise ConversionError("PNG output does not match the decoded pixels")
    return ConversionResult(
        identifier=resource.identifier,
        kind=resource.kind,
        data=data,
        extension=resource.kind.output_extension,
    )


def _convert_text(resource: RawResource, options: ConvertOptions) -> ConversionResult:
    records = decode_text_records(
        resource.data,
        table=options.codepage,
        require_records=options.require_text_records,
    )
    return ConversionResult(
        identifier=resource.identifier,
        kind=resource.kind,
        data=render_text(records, options.line_ending, options.include_bom),
        extension=resource.kind.output_extension,
        records=tuple(records),
    )


def convert(resource: RawResource, options: ConvertOptions | None = None) -> ConversionResult:
    """Convert ``resource``; decoder failures are returned, not raised."""

    options = options or ConvertOptions()
    options.validate()
    try:
        if resource.kind is ResourceKind.BITMAP:
            return _convert_bitmap(resource, options)
        if resource.kind is ResourceKind.TEXT:
            return _convert_text(resource, options)
        raise ConversionError(f"Unknown resource kind: {resource.kind}")
    except ConversionError as exc:
        return ConversionResult(identifier=resource.identifier, kind=resource.kind, error=exc)


def convert_all(
    resources: Iterable[RawResource],
    options: ConvertOptions | None = None,
    jobs: int = 1,
) -> List[ConversionResult]:
    """Convert independent resources, optionally on a thread pool.

    Results come back in input order whatever ``jobs`` is.
    """
    options = options or ConvertOptions()
    items = list(resources)
    if jobs <= 1 or len(items) <= 1:
        return [convert(resource, options) for resource in items]
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(lambda resource: convert(resource, options), items))
