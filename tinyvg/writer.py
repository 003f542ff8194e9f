"""
TinyVG serializers.

``TvgWriter`` is the byte-for-byte mirror of :mod:`tinyvg.decoder`.
``TextWriter`` emits the parenthesized text form (``.tvgt``) used by the
reference tool chain. Both quantize every unit against the document scale
and raise :class:`~tinyvg.errors.UnitRangeError` on the first value that
does not fit, which is what drives the encoder's precision-fit loop.
"""

from __future__ import annotations

import struct
from typing import Iterable, List, Sequence, Tuple

from .decoder import MAGIC, VERSION
from .entities import (
    ArcTo,
    Close,
    Color,
    ColorEncoding,
    Command,
    CoordinateRange,
    CubicTo,
    DrawLineLoop,
    DrawLinePath,
    DrawLines,
    DrawLineStrip,
    EndDocument,
    FillPath,
    FillPolygon,
    FillRectangles,
    FlatStyle,
    GradientStyle,
    Header,
    HorizontalTo,
    LineTo,
    OutlineFillPath,
    OutlineFillPolygon,
    OutlineFillRectangles,
    Path,
    Point,
    QuadTo,
    Rect,
    Segment,
    Style,
    TvgDocument,
    VerticalTo,
)
from .errors import (
    ColorIndexOutOfRangeError,
    EncodeError,
    UnknownStyleKindError,
    UnsupportedColorFormatError,
)
from .svg_path import format_number
from .units import (
    coordinate_max,
    dequantize,
    pack_coordinates,
    quantize,
    quantize_array,
    raw_bounds,
)

MAX_OUTLINE_COUNT = 64

_FILL_COMMANDS = (FillPolygon, FillRectangles, FillPath)
_LINE_COMMANDS = (DrawLines, DrawLineLoop, DrawLineStrip, DrawLinePath)
_OUTLINE_COMMANDS = (OutlineFillPolygon, OutlineFillRectangles, OutlineFillPath)


def encode_varuint(value: int) -> bytes:
    if value < 0:
        raise EncodeError(f"cannot encode negative integer {value} as varuint")
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def encode_color(color: Color, encoding: ColorEncoding) -> bytes:
    if encoding == ColorEncoding.RGBA8888:
        return bytes(color.to_rgba8())
    if encoding == ColorEncoding.RGB565:
        r = max(0, min(31, int(round(color.r * 31.0))))
        g = max(0, min(63, int(round(color.g * 63.0))))
        b = max(0, min(31, int(round(color.b * 31.0))))
        return struct.pack("<H", r | (g << 5) | (b << 11))
    if encoding == ColorEncoding.F32:
        return struct.pack("<4f", color.r, color.g, color.b, color.a)
    raise UnsupportedColorFormatError(int(encoding))


def _check_style(style: Style, color_count: int) -> None:
    if isinstance(style, FlatStyle):
        indices: Tuple[int, ...] = (style.color_index,)
    elif isinstance(style, GradientStyle):
        indices = (style.color_index0, style.color_index1)
    else:
        raise UnknownStyleKindError(int(getattr(style, "kind", -1)))
    for index in indices:
        if not 0 <= index < color_count:
            raise ColorIndexOutOfRangeError(index, color_count)


def _check_count(command: Command) -> int:
    count = command.count
    if count < 1:
        raise EncodeError(f"{type(command).__name__} needs at least one item")
    if isinstance(command, _OUTLINE_COMMANDS) and count > MAX_OUTLINE_COUNT:
        raise EncodeError(f"{type(command).__name__} holds at most {MAX_OUTLINE_COUNT} items, got {count}")
    if isinstance(command, (FillPath, DrawLinePath, OutlineFillPath)):
        for subpath in command.path:
            if not subpath.segments:
                raise EncodeError("cannot encode a subpath without segments")
    return count


class TvgWriter:
    """
    Binary serializer. Units are buffered and quantized in runs with numpy,
    flushed whenever a non-unit byte is written, so the first out-of-range
    value is still reported in document order.
    """

    def __init__(
        self,
        header: Header,
        *,
        unit_bounds: Tuple[int, int] | None = None,
    ) -> None:
        self.header = header
        self.unit_bounds = unit_bounds if unit_bounds is not None else raw_bounds(header.coordinate_range)
        self._out = bytearray()
        self._pending: List[float] = []
        self._color_count = 0

    # -- primitives ---------------------------------------------------------

    def _flush_units(self) -> None:
        if not self._pending:
            return
        lower, upper = self.unit_bounds
        raw = quantize_array(self._pending, self.header.scale, lower=lower, upper=upper)
        self._out += pack_coordinates(raw, self.header.coordinate_range)
        self._pending = []

    def write_bytes(self, data: bytes) -> None:
        self._flush_units()
        self._out += data

    def write_u8(self, value: int) -> None:
        self.write_bytes(bytes((value & 0xFF,)))

    def write_varuint(self, value: int) -> None:
        self.write_bytes(encode_varuint(value))

    def write_unit(self, value: float) -> None:
        self._pending.append(float(value))

    def write_point(self, point: Point) -> None:
        self._pending.append(float(point[0]))
        self._pending.append(float(point[1]))

    def write_points(self, points: Iterable[Point]) -> None:
        for point in points:
            self.write_point(point)

    def write_rect(self, rect: Rect) -> None:
        self._pending.extend((float(rect.x), float(rect.y), float(rect.width), float(rect.height)))

    def getvalue(self) -> bytes:
        self._flush_units()
        return bytes(self._out)

    # -- document parts -----------------------------------------------------

    def write_header(self) -> None:
        header = self.header
        if not 0 <= header.scale <= 15:
            raise EncodeError(f"scale must be within 0..15, got {header.scale}")
        flags = header.scale | (int(header.color_encoding) << 4) | (int(header.coordinate_range) << 6)
        self.write_bytes(MAGIC + bytes((VERSION, flags)))
        limit = coordinate_max(header.coordinate_range)
        for value in (header.width, header.height):
            if not 1 <= value <= limit:
                raise EncodeError(f"image size {value} does not fit the {header.coordinate_range.name.lower()} range")
        self.write_bytes(pack_coordinates([header.width, header.height], header.coordinate_range))

    def write_color_table(self, colors: Sequence[Color]) -> None:
        if not colors:
            raise EncodeError("color table must contain at least one color")
        if self.header.color_encoding == ColorEncoding.CUSTOM:
            raise UnsupportedColorFormatError(int(self.header.color_encoding))
        self._color_count = len(colors)
        self.write_varuint(len(colors))
        for color in colors:
            self.write_bytes(encode_color(color, self.header.color_encoding))

    def write_style(self, style: Style) -> None:
        _check_style(style, self._color_count)
        if isinstance(style, FlatStyle):
            self.write_varuint(style.color_index)
            return
        self.write_point(style.point0)
        self.write_point(style.point1)
        self.write_varuint(style.color_index0)
        self.write_varuint(style.color_index1)

    def _write_segment(self, segment: Segment) -> None:
        self.write_u8(int(segment.segment_kind))
        if isinstance(segment, LineTo):
            self.write_point(segment.point)
        elif isinstance(segment, HorizontalTo):
            self.write_unit(segment.x)
        elif isinstance(segment, VerticalTo):
            self.write_unit(segment.y)
        elif isinstance(segment, CubicTo):
            self.write_points((segment.control1, segment.control2, segment.end))
        elif isinstance(segment, QuadTo):
            self.write_points((segment.control, segment.end))
        elif isinstance(segment, ArcTo):
            self.write_u8(int(segment.large_arc) | (int(segment.sweep) << 1))
            if segment.is_circle:
                self.write_unit(segment.radius_x)
            else:
                self.write_unit(segment.radius_x)
                self.write_unit(segment.radius_y)
                self.write_unit(segment.rotation)
            self.write_point(segment.end)
        elif not isinstance(segment, Close):
            raise TypeError(f"not a path segment: {segment!r}")

    def write_path(self, path: Path) -> None:
        for subpath in path:
            self.write_varuint(len(subpath.segments) - 1)
        for subpath in path:
            self.write_point(subpath.start)
            for segment in subpath.segments:
                self._write_segment(segment)

    def write_command(self, command: Command) -> None:
        if isinstance(command, EndDocument):
            self.write_u8(0)
            return
        count = _check_count(command)
        command_id = int(command.command_id)
        if isinstance(command, _FILL_COMMANDS):
            self.write_u8(command_id | (int(command.fill.kind) << 6))
            self.write_varuint(count - 1)
            self.write_style(command.fill)
        elif isinstance(command, _LINE_COMMANDS):
            self.write_u8(command_id | (int(command.line.kind) << 6))
            self.write_varuint(count - 1)
            self.write_style(command.line)
            self.write_unit(command.line_width)
        elif isinstance(command, _OUTLINE_COMMANDS):
            self.write_u8(command_id | (int(command.fill.kind) << 6))
            self.write_u8((count - 1) | (int(command.line.kind) << 6))
            self.write_style(command.fill)
            self.write_style(command.line)
            self.write_unit(command.line_width)
        else:
            raise TypeError(f"not a TinyVG command: {command!r}")

        if isinstance(command, (FillPolygon, DrawLineLoop, DrawLineStrip, OutlineFillPolygon)):
            self.write_points(command.points)
        elif isinstance(command, (FillRectangles, OutlineFillRectangles)):
            for rect in command.rects:
                self.write_rect(rect)
        elif isinstance(command, DrawLines):
            for line in command.lines:
                self.write_points((line.start, line.end))
        else:
            self.write_path(command.path)


def write_document(document: TvgDocument, *, unit_bounds: Tuple[int, int] | None = None) -> bytes:
    """Serialize ``document``; a trailing EndDocument is added when missing."""

    writer = TvgWriter(document.header, unit_bounds=unit_bounds)
    writer.write_header()
    writer.write_color_table(document.colors)
    for command in document.drawing_commands:
        writer.write_command(command)
    writer.write_command(EndDocument())
    return writer.getvalue()


# -- text format ------------------------------------------------------------------

COLOR_ENCODING_NAMES = {
    ColorEncoding.RGBA8888: "u8888",
    ColorEncoding.RGB565: "u565",
    ColorEncoding.F32: "r32g32b32a32",
}
COORDINATE_RANGE_NAMES = {
    CoordinateRange.DEFAULT: "default",
    CoordinateRange.REDUCED: "reduced",
    CoordinateRange.EXTENDED: "extended",
}
COMMAND_NAMES = {
    FillPolygon: "fill_polygon",
    FillRectangles: "fill_rectangles",
    FillPath: "fill_path",
    DrawLines: "draw_lines",
    DrawLineLoop: "draw_line_loop",
    DrawLineStrip: "draw_line_strip",
    DrawLinePath: "draw_line_path",
    OutlineFillPolygon: "outline_fill_polygon",
    OutlineFillRectangles: "outline_fill_rectangles",
    OutlineFillPath: "outline_fill_path",
}


class TextWriter:
    def __init__(self, header: Header, *, unit_bounds: Tuple[int, int] | None = None) -> None:
        self.header = header
        self.unit_bounds = unit_bounds if unit_bounds is not None else raw_bounds(header.coordinate_range)
        self._lines: List[str] = []
        self._color_count = 0

    def unit(self, value: float) -> str:
        lower, upper = self.unit_bounds
        raw = quantize(value, self.header.scale, lower=lower, upper=upper)
        # a scale of 2**-s needs s decimals to print exactly
        return format_number(dequantize(raw, self.header.scale), max(6, self.header.scale))

    def point(self, point: Point) -> str:
        return f"{self.unit(point[0])} {self.unit(point[1])}"

    def style(self, style: Style) -> str:
        _check_style(style, self._color_count)
        if isinstance(style, FlatStyle):
            return f"(flat {style.color_index})"
        # gradient kind travels in the command opcode
        return (
            f"(({self.point(style.point0)}) ({self.point(style.point1)}) "
            f"{style.color_index0} {style.color_index1})"
        )

    def segment(self, segment: Segment) -> str:
        if isinstance(segment, LineTo):
            return f"(line - {self.point(segment.point)})"
        if isinstance(segment, HorizontalTo):
            return f"(horiz - {self.unit(segment.x)})"
        if isinstance(segment, VerticalTo):
            return f"(vert - {self.unit(segment.y)})"
        if isinstance(segment, CubicTo):
            return "(bezier - ({}) ({}) ({}))".format(
                self.point(segment.control1), self.point(segment.control2), self.point(segment.end)
            )
        if isinstance(segment, QuadTo):
            return f"(quadratic_bezier - ({self.point(segment.control)}) ({self.point(segment.end)}))"
        if isinstance(segment, ArcTo):
            large = "true" if segment.large_arc else "false"
            sweep = "true" if segment.sweep else "false"
            if segment.is_circle:
                return f"(arc_circle - {self.unit(segment.radius_x)} {large} {sweep} ({self.point(segment.end)}))"
            return "(arc_ellipse - {} {} {} {} {} ({}))".format(
                self.unit(segment.radius_x),
                self.unit(segment.radius_y),
                self.unit(segment.rotation),
                large,
                sweep,
                self.point(segment.end),
            )
        if isinstance(segment, Close):
            return "(close -)"
        raise TypeError(f"not a path segment: {segment!r}")

    def _emit(self, depth: int, text: str) -> None:
        self._lines.append("  " * depth + text)

    def _geometry(self, command: Command) -> None:
        depth = 4
        if isinstance(command, (FillPolygon, DrawLineLoop, DrawLineStrip, OutlineFillPolygon)):
            for point in command.points:
                self._emit(depth, f"({self.point(point)})")
        elif isinstance(command, (FillRectangles, OutlineFillRectangles)):
            for rect in command.rects:
                self._emit(
                    depth,
                    f"({self.unit(rect.x)} {self.unit(rect.y)} {self.unit(rect.width)} {self.unit(rect.height)})",
                )
        elif isinstance(command, DrawLines):
            for line in command.lines:
                self._emit(depth, f"(({self.point(line.start)}) ({self.point(line.end)}))")
        else:
            for subpath in command.path:
                self._emit(depth, f"({self.point(subpath.start)})")
                self._emit(depth, "(")
                for segment in subpath.segments:
                    self._emit(depth + 1, self.segment(segment))
                self._emit(depth, ")")

    def write_document(self, colors: Sequence[Color], commands: Iterable[Command]) -> str:
        header = self.header
        encoding = COLOR_ENCODING_NAMES.get(header.color_encoding)
        if encoding is None:
            raise UnsupportedColorFormatError(int(header.color_encoding))
        if not colors:
            raise EncodeError("color table must contain at least one color")
        self._color_count = len(colors)
        self._lines = ["(tvg 1"]
        self._emit(
            1,
            f"({header.width} {header.height} 1/{1 << header.scale} {encoding} "
            f"{COORDINATE_RANGE_NAMES[header.coordinate_range]})",
        )
        self._emit(1, "(")
        for color in colors:
            channels = (color.r, color.g, color.b) if color.a == 1.0 else (color.r, color.g, color.b, color.a)
            self._emit(2, "(" + " ".join(format_number(ch) for ch in channels) + ")")
        self._emit(1, ")")
        self._emit(1, "(")
        for command in commands:
            if isinstance(command, EndDocument):
                continue
            _check_count(command)
            self._emit(2, "(")
            self._emit(3, COMMAND_NAMES[type(command)])
            if isinstance(command, _FILL_COMMANDS):
                self._emit(3, self.style(command.fill))
            elif isinstance(command, _LINE_COMMANDS):
                self._emit(3, self.style(command.line))
                self._emit(3, self.unit(command.line_width))
            else:
                self._emit(3, self.style(command.fill))
                self._emit(3, self.style(command.line))
                self._emit(3, self.unit(command.line_width))
            self._emit(3, "(")
            self._geometry(command)
            self._emit(3, ")")
            self._emit(2, ")")
        self._emit(1, ")")
        self._lines.append(")")
        return "\n".join(self._lines) + "\n"


def write_text_document(document: TvgDocument, *, unit_bounds: Tuple[int, int] | None = None) -> str:
    return TextWriter(document.header, unit_bounds=unit_bounds).write_document(document.colors, document.commands)
