#!/usr/bin/env python3
"""
Minimal dumper for TinyVG documents.

Prints the header, the color table and one line per command so a file can be
eyeballed without rendering it. ``--text`` prints the full textual (.tvgt)
form instead.
"""

from __future__ import annotations

import argparse
import itertools
from pathlib import Path
from typing import Sequence

from tinyvg import Color, FlatStyle, TinyVGError, TvgDocument, decode, report, write_text_document
from tinyvg.entities import Style
from tinyvg.writer import COLOR_ENCODING_NAMES, COMMAND_NAMES, COORDINATE_RANGE_NAMES


def describe_color(index: int, color: Color) -> str:
    r, g, b, a = color.to_rgba8()
    return f"  [{index:3d}] #{r:02X}{g:02X}{b:02X}{a:02X}  ({color.r:.4f} {color.g:.4f} {color.b:.4f} {color.a:.4f})"


def describe_style(style: Style) -> str:
    if isinstance(style, FlatStyle):
        return f"flat {style.color_index}"
    name = style.kind.name.lower()
    (x0, y0), (x1, y1) = style.point0, style.point1
    return f"{name} ({x0:g},{y0:g})->({x1:g},{y1:g}) {style.color_index0}..{style.color_index1}"


def describe_command(index: int, command) -> str:
    parts = [f"#{index:04d}", COMMAND_NAMES[type(command)], f"count={command.count}"]
    fill = getattr(command, "fill", None)
    line = getattr(command, "line", None)
    if fill is not None:
        parts.append(f"fill={describe_style(fill)}")
    if line is not None:
        parts.append(f"line={describe_style(line)}")
        parts.append(f"width={command.line_width:g}")
    return " | ".join(parts)


def describe_document(document: TvgDocument, *, limit: int | None = None) -> list[str]:
    header = document.header
    lines = [
        f"size={header.width}x{header.height} scale=1/{1 << header.scale} "
        f"colors={COLOR_ENCODING_NAMES.get(header.color_encoding, 'custom')} "
        f"range={COORDINATE_RANGE_NAMES[header.coordinate_range]}",
        f"color table ({len(document.colors)}):",
    ]
    lines.extend(describe_color(idx, color) for idx, color in enumerate(document.colors))
    commands = document.drawing_commands
    lines.append(f"commands ({len(commands)}):")
    for idx, command in enumerate(itertools.islice(commands, limit)):
        lines.append("  " + describe_command(idx, command))
    return lines


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump the header, colors and commands of a TinyVG file.")
    parser.add_argument("input", type=Path, help="Path to the .tvg file")
    parser.add_argument("--text", action="store_true", help="Print the full textual (.tvgt) form")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of commands to print (default: no limit)",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        document = decode(args.input.read_bytes())
    except (TinyVGError, OSError) as exc:
        report("!", f"{args.input}: {exc}")
        return 1
    if args.text:
        print(write_text_document(document), end="")
        return 0
    for line in describe_document(document, limit=args.limit):
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
