"""Command line interface that converts a whole game installation."""

from __future__ import annotations

import argparse
import sys
import warnings
from pathlib import Path
from typing import List, Tuple

from . import __version__
from .converter import ConvertOptions, RawResource, ResourceKind, convert_all
from .errors import ConversionError

PROG_NAME = "jonathan-converter"

GFX_INPUT_DIR = "GRAFIK"
GFX_OUTPUT_DIR = "GRAFIK_PNG"
TEXT_INPUT_DIR = "TEXT"
TEXT_OUTPUT_DIR = "TEXT_TXT"


def iter_resources(input_dir: Path, kind: ResourceKind) -> List[Path]:
    if not input_dir.is_dir():
        raise ConversionError(
            f"Unable to read directory '{input_dir}'. Is the provided path correct?"
        )
    return [
        entry
        for entry in sorted(input_dir.iterdir())
        if entry.is_file() and ResourceKind.from_extension(entry.suffix) is kind
    ]


def output_path_for(input_path: Path, output_dir: Path, kind: ResourceKind) -> Path:
    return output_dir / f"{input_path.stem}{kind.output_extension}"


def convert_directory(
    input_dir: Path,
    output_dir: Path,
    kind: ResourceKind,
    options: ConvertOptions,
    jobs: int = 1,
) -> Tuple[int, int]:
    """Convert every matching file of ``input_dir``; returns (converted, failed)."""

    inputs = iter_resources(input_dir, kind)
    output_dir.mkdir(parents=True, exist_ok=True)

    failed = 0
    resources: List[RawResource] = []
    targets = {}
    for path in inputs:
        target = output_path_for(path, output_dir, kind)
        print(f"Converting '{path}' to '{target}' ...")
        try:
            data = path.read_bytes()
        except OSError as exc:
            print(f"Unable to read input file '{path}': {exc}", file=sys.stderr)
            failed += 1
            continue
        resources.append(RawResource(identifier=str(path), kind=kind, data=data))
        targets[str(path)] = target

    converted = 0
    for result in convert_all(resources, options, jobs=jobs):
        target = targets[result.identifier]
        if not result.ok:
            print(
                f"Unable to convert '{result.identifier}' to '{target}': {result.error}",
                file=sys.stderr,
            )
            failed += 1
            continue
        if result.replaced_bytes:
            warnings.warn(
                f"{result.identifier}: {result.replaced_bytes} bytes had no code page entry",
                RuntimeWarning,
                stacklevel=1,
            )
        try:
            target.write_bytes(result.data)
        except OSError as exc:
            print(f"Unable to write to '{target}': {exc}", file=sys.stderr)
            failed += 1
            continue
        converted += 1
    return converted, failed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Convert the resources of the 'Jonathan' adventure game into open formats.",
        epilog=(
            f"The PCX files in the {GFX_INPUT_DIR} directory are converted to PNG files and "
            f"written to the new directory {GFX_OUTPUT_DIR}.\n"
            f"The TCT files in the {TEXT_INPUT_DIR} directory are converted to UTF-8 text files "
            f"and written to the new directory {TEXT_OUTPUT_DIR}."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="The root directory of the game (default: current directory)",
    )
    parser.add_argument("--version", action="version", version=f"{PROG_NAME} {__version__}")
    parser.add_argument(
        "--keep-header",
        action="store_true",
        help="Do not rewrite the scrambled first bytes of the game's PCX files",
    )
    parser.add_argument(
        "--rgba",
        action="store_true",
        help="Always write RGBA PNGs instead of indexed color",
    )
    parser.add_argument(
        "--adaptive-filter",
        action="store_true",
        help="Pick a PNG filter per scanline for smaller files",
    )
    parser.add_argument(
        "--compression-level",
        type=int,
        default=9,
        choices=range(0, 10),
        metavar="0-9",
        help="zlib compression level for PNG output (default: 9)",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Read every PNG back and compare it with the decoded pixels",
    )
    parser.add_argument("--crlf", action="store_true", help="Write text with CRLF line endings")
    parser.add_argument("--no-bom", action="store_true", help="Omit the UTF-8 byte order mark")
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="Number of files converted in parallel",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> ConvertOptions:
    options = ConvertOptions()
    options.restore_header = not args.keep_header
    options.indexed = not args.rgba
    options.filter_mode = "adaptive" if args.adaptive_filter else "none"
    options.compression_level = args.compression_level
    options.verify = args.verify
    options.line_ending = "\r\n" if args.crlf else "\n"
    options.include_bom = not args.no_bom
    options.validate()
    return options


def run(root: Path, options: ConvertOptions, jobs: int = 1) -> int:
    failed = 0
    print("Converting graphics ...")
    _, gfx_failed = convert_directory(
        root / GFX_INPUT_DIR, root / GFX_OUTPUT_DIR, ResourceKind.BITMAP, options, jobs
    )
    failed += gfx_failed
    print()
    print("Converting texts ...")
    _, text_failed = convert_directory(
        root / TEXT_INPUT_DIR, root / TEXT_OUTPUT_DIR, ResourceKind.TEXT, options, jobs
    )
    failed += text_failed
    return failed


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    print(f"{PROG_NAME} {__version__}")
    print()

    try:
        options = options_from_args(args)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            failed = run(Path(args.directory), options, jobs=max(1, args.jobs))
            for warning in caught:
                print(f"Warning: {warning.message}")
    except ConversionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if failed:
        print(f"{failed} file(s) could not be converted.", file=sys.stderr)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
