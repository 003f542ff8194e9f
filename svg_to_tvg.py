#!/usr/bin/env python3
"""
Convert an SVG file into a TinyVG document.

By default the binary ``.tvg`` form is written next to the input; ``--text``
writes the textual ``.tvgt`` form instead. Elements and attributes TinyVG
cannot express are skipped and reported; ``--strict`` turns those reports
into a non-zero exit status.
"""

from __future__ import annotations

import argparse
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Sequence

from tinyvg import ColorEncoding, ConversionLog, EncoderOptions, TinyVGError, encode_svg, report

COLOR_ENCODINGS = {
    "rgba8888": ColorEncoding.RGBA8888,
    "rgb565": ColorEncoding.RGB565,
    "f32": ColorEncoding.F32,
}


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert SVG to TinyVG (binary or text form).")
    parser.add_argument("input", type=Path, help="Source .svg file")
    parser.add_argument("-o", "--output", type=Path, help="Destination file (default: input with .tvg/.tvgt suffix)")
    parser.add_argument("--text", action="store_true", help="Write the textual .tvgt form instead of binary")
    parser.add_argument(
        "--color-encoding",
        choices=sorted(COLOR_ENCODINGS),
        default="rgba8888",
        help="Color table encoding for binary output (default rgba8888)",
    )
    parser.add_argument("--scale-bits", type=int, help="Starting precision in bits (default: derived from the image size)")
    parser.add_argument("--strict", action="store_true", help="Exit with status 1 when parts of the SVG were dropped")
    parser.add_argument("--verbose", action="store_true", help="Echo conversion diagnostics to stderr")
    parser.add_argument("--log", type=Path, help="Write conversion diagnostics to this file")
    return parser.parse_args(argv)


def default_output(source: Path, text: bool) -> Path:
    return source.with_suffix(".tvgt" if text else ".tvg")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    log = ConversionLog(destination=args.log, echo=sys.stderr if args.verbose else None)
    output = args.output or default_output(args.input, args.text)
    try:
        options = EncoderOptions(
            color_encoding=COLOR_ENCODINGS[args.color_encoding],
            output="text" if args.text else "binary",
            scale_bits=args.scale_bits,
        )
        result = encode_svg(args.input, options, log)
    except (TinyVGError, ValueError, ET.ParseError, OSError) as exc:
        report("!", f"{args.input}: {exc}")
        log.flush()
        return 1

    if isinstance(result.data, str):
        output.write_text(result.data, encoding="utf-8")
    else:
        output.write_bytes(result.data)
    log.flush()

    retries = len(result.attempts) - 1
    report("+", f"Wrote {output} ({len(result.data)} {'chars' if args.text else 'bytes'}, scale {result.scale_bits})")
    if retries:
        report("i", f"Precision reduced {retries} time(s) to fit the coordinate range")
    if len(log):
        report("i", f"{len(log)} diagnostic line(s) recorded" + (f" in {args.log}" if args.log else ""))
    if not result.fully_supported:
        report("!", f"{args.input} uses SVG features TinyVG cannot represent")
        if args.strict:
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
