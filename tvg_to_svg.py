#!/usr/bin/env python3
"""
Render a binary TinyVG document as SVG markup.

The whole document is decoded before anything is written, so a truncated or
corrupt file produces an error and no output file.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from tinyvg import TinyVGError, render_svg, report


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a TinyVG (.tvg) file to SVG.")
    parser.add_argument("input", type=Path, help="Source .tvg file")
    parser.add_argument("-o", "--output", type=Path, help="Destination .svg (default: input with .svg suffix)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    output = args.output or args.input.with_suffix(".svg")
    try:
        markup = render_svg(args.input.read_bytes())
    except (TinyVGError, OSError) as exc:
        report("!", f"{args.input}: {exc}")
        return 1
    output.write_text(markup + "\n", encoding="utf-8")
    report("+", f"SVG written to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
