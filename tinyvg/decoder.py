"""
TinyVG binary decoder.

Document layout (little endian):

    u8[2]   magic 0x72 0x56
    u8      version (1)
    u8      flags: scale[0:4) color_encoding[4:6) coordinate_range[6:8)
    coord   width, height (0 means "maximum for the range")
    varuint color count, then the color table
    command stream terminated by opcode 0

Every command opcode carries the command id in its low six bits and, for
fill/line headers, the style kind in the upper two bits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Sequence, Tuple

from .entities import (
    ArcTo,
    Close,
    Color,
    ColorEncoding,
    Command,
    CommandId,
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
    Line,
    LinearGradientStyle,
    LineTo,
    OutlineFillPath,
    OutlineFillPolygon,
    OutlineFillRectangles,
    Path,
    Point,
    QuadTo,
    RadialGradientStyle,
    Rect,
    Segment,
    SegmentKind,
    Style,
    StyleKind,
    Subpath,
    TvgDocument,
    VerticalTo,
)
from .errors import (
    ColorIndexOutOfRangeError,
    EmptyColorTableError,
    InvalidMagicOrVersionError,
    UnknownStyleKindError,
    UnsupportedColorFormatError,
    UnsupportedCommandError,
    UnsupportedPathSegmentError,
)
from .reader import ByteCursor
from .sink import DrawingSink, Paint, ResolvedGradient
from .units import coordinate_width, map_zero_to_max

MAGIC = b"\x72\x56"
VERSION = 1


def parse_header(cursor: ByteCursor) -> Header:
    start = cursor.offset
    preamble = cursor.read_bytes(3)
    if preamble[:2] != MAGIC or preamble[2] != VERSION:
        raise InvalidMagicOrVersionError("Not a valid TinyVG file", offset=start)
    flags = cursor.read_u8()
    scale = flags & 0x0F
    color_encoding = ColorEncoding((flags >> 4) & 0x03)
    range_bits = (flags >> 6) & 0x03
    if range_bits == 3:
        raise InvalidMagicOrVersionError("Reserved coordinate range 3 in header flags", offset=start + 3)
    coordinate_range = CoordinateRange(range_bits)
    width = map_zero_to_max(coordinate_range, cursor.read_coordinate(coordinate_range))
    height = map_zero_to_max(coordinate_range, cursor.read_coordinate(coordinate_range))
    return Header(
        scale=scale,
        color_encoding=color_encoding,
        coordinate_range=coordinate_range,
        width=width,
        height=height,
    )


def read_dimensions(data: bytes) -> Tuple[int, int] | None:
    """Peek at ``(width, height)`` without decoding the rest of the document."""

    if len(data) <= 5 or data[:2] != MAGIC or data[2] != VERSION:
        return None
    coordinate_range = (data[3] >> 6) & 0x03
    if coordinate_range == 3:
        return None
    if len(data) < 4 + 2 * coordinate_width(CoordinateRange(coordinate_range)):
        return None
    header = parse_header(ByteCursor(data))
    return header.width, header.height


def parse_color_table(cursor: ByteCursor, header: Header) -> Tuple[Color, ...]:
    count_offset = cursor.offset
    count = cursor.read_varuint()
    if count == 0:
        raise EmptyColorTableError(offset=count_offset)
    if header.color_encoding == ColorEncoding.CUSTOM:
        raise UnsupportedColorFormatError(int(header.color_encoding), offset=cursor.offset)
    return tuple(cursor.read_color(header.color_encoding) for _ in range(count))


@dataclass(frozen=True)
class FillHeader:
    count: int
    style: Style


@dataclass(frozen=True)
class LineHeader:
    count: int
    style: Style
    line_width: float


@dataclass(frozen=True)
class LineFillHeader:
    count: int
    fill_style: Style
    line_style: Style
    line_width: float


class CommandDecoder:
    """
    Lazy command stream. Iterating yields one command per opcode and stops
    after :class:`EndDocument`; running out of bytes first raises
    ``UnexpectedEndOfStreamError``.
    """

    def __init__(self, cursor: ByteCursor, header: Header, colors: Sequence[Color]) -> None:
        self.cursor = cursor
        self.header = header
        self.colors = tuple(colors)
        self.finished = False
        self._handlers: Dict[int, Callable[[int], Command]] = {
            CommandId.FILL_POLYGON: self._fill_polygon,
            CommandId.FILL_RECTANGLES: self._fill_rectangles,
            CommandId.FILL_PATH: self._fill_path,
            CommandId.DRAW_LINES: self._draw_lines,
            CommandId.DRAW_LINE_LOOP: self._draw_line_loop,
            CommandId.DRAW_LINE_STRIP: self._draw_line_strip,
            CommandId.DRAW_LINE_PATH: self._draw_line_path,
            CommandId.OUTLINE_FILL_POLYGON: self._outline_fill_polygon,
            CommandId.OUTLINE_FILL_RECTANGLES: self._outline_fill_rectangles,
            CommandId.OUTLINE_FILL_PATH: self._outline_fill_path,
        }

    def __iter__(self) -> Iterator[Command]:
        return self

    def __next__(self) -> Command:
        if self.finished:
            raise StopIteration
        opcode_offset = self.cursor.offset
        opcode = self.cursor.read_u8()
        command_id = opcode & 0x3F
        style_kind = (opcode >> 6) & 0x03
        if command_id == CommandId.END_DOCUMENT:
            self.finished = True
            return EndDocument()
        handler = self._handlers.get(command_id)
        if handler is None:
            raise UnsupportedCommandError(command_id, offset=opcode_offset)
        return handler(style_kind)

    # -- primitives ---------------------------------------------------------

    def _unit(self) -> float:
        return self.cursor.read_unit(self.header.coordinate_range, self.header.scale)

    def _point(self) -> Point:
        return self.cursor.read_point(self.header.coordinate_range, self.header.scale)

    def _rect(self) -> Rect:
        x, y = self._point()
        width = self._unit()
        height = self._unit()
        return Rect(x=x, y=y, width=width, height=height)

    def _color_index(self) -> int:
        offset = self.cursor.offset
        index = self.cursor.read_varuint()
        if index >= len(self.colors):
            raise ColorIndexOutOfRangeError(index, len(self.colors), offset=offset)
        return index

    # -- styles and headers -------------------------------------------------

    def _style(self, kind: int) -> Style:
        if kind == StyleKind.FLAT:
            return FlatStyle(color_index=self._color_index())
        if kind in (StyleKind.LINEAR, StyleKind.RADIAL):
            point0 = self._point()
            point1 = self._point()
            color0 = self._color_index()
            color1 = self._color_index()
            cls = LinearGradientStyle if kind == StyleKind.LINEAR else RadialGradientStyle
            return cls(point0=point0, point1=point1, color_index0=color0, color_index1=color1)
        raise UnknownStyleKindError(kind, offset=self.cursor.offset)

    def _fill_header(self, kind: int) -> FillHeader:
        count = self.cursor.read_varuint() + 1
        return FillHeader(count=count, style=self._style(kind))

    def _line_header(self, kind: int) -> LineHeader:
        count = self.cursor.read_varuint() + 1
        style = self._style(kind)
        return LineHeader(count=count, style=style, line_width=self._unit())

    def _line_fill_header(self, kind: int) -> LineFillHeader:
        packed = self.cursor.read_u8()
        count = (packed & 0x3F) + 1
        fill_style = self._style(kind)
        line_style = self._style((packed >> 6) & 0x03)
        return LineFillHeader(
            count=count,
            fill_style=fill_style,
            line_style=line_style,
            line_width=self._unit(),
        )

    # -- paths --------------------------------------------------------------

    def _path(self, count: int) -> Path:
        sizes = [self.cursor.read_varuint() + 1 for _ in range(count)]
        return tuple(self._subpath(size) for size in sizes)

    def _subpath(self, size: int) -> Subpath:
        start = self._point()
        current = start
        segments: List[Segment] = []
        for _ in range(size):
            tag_offset = self.cursor.offset
            tag = self.cursor.read_u8()
            if (tag >> 4) & 1:
                self._unit()  # per-segment line width, reserved for future use
            kind = tag & 0x07
            if kind == SegmentKind.LINE:
                current = self._point()
                segment: Segment = LineTo(current)
            elif kind == SegmentKind.HORIZONTAL:
                current = (self._unit(), current[1])
                segment = HorizontalTo(current[0])
            elif kind == SegmentKind.VERTICAL:
                current = (current[0], self._unit())
                segment = VerticalTo(current[1])
            elif kind == SegmentKind.CUBIC:
                control1 = self._point()
                control2 = self._point()
                current = self._point()
                segment = CubicTo(control1, control2, current)
            elif kind == SegmentKind.ARC_CIRCLE:
                flags = self.cursor.read_u8()
                radius = self._unit()
                current = self._point()
                segment = ArcTo(radius, radius, 0.0, bool(flags & 1), bool((flags >> 1) & 1), current)
            elif kind == SegmentKind.ARC_ELLIPSE:
                flags = self.cursor.read_u8()
                radius_x = self._unit()
                radius_y = self._unit()
                rotation = self._unit()
                current = self._point()
                segment = ArcTo(radius_x, radius_y, rotation, bool(flags & 1), bool((flags >> 1) & 1), current)
            elif kind == SegmentKind.CLOSE:
                current = start
                segment = Close()
            elif kind == SegmentKind.QUAD:
                control = self._point()
                current = self._point()
                segment = QuadTo(control, current)
            else:
                raise UnsupportedPathSegmentError(kind, offset=tag_offset)
            segments.append(segment)
        return Subpath(start=start, segments=tuple(segments))

    # -- commands -----------------------------------------------------------

    def _fill_polygon(self, kind: int) -> FillPolygon:
        header = self._fill_header(kind)
        return FillPolygon(fill=header.style, points=tuple(self._point() for _ in range(header.count)))

    def _fill_rectangles(self, kind: int) -> FillRectangles:
        header = self._fill_header(kind)
        return FillRectangles(fill=header.style, rects=tuple(self._rect() for _ in range(header.count)))

    def _fill_path(self, kind: int) -> FillPath:
        header = self._fill_header(kind)
        return FillPath(fill=header.style, path=self._path(header.count))

    def _draw_lines(self, kind: int) -> DrawLines:
        header = self._line_header(kind)
        lines = []
        for _ in range(header.count):
            start = self._point()
            end = self._point()
            lines.append(Line(start=start, end=end))
        return DrawLines(line=header.style, line_width=header.line_width, lines=tuple(lines))

    def _draw_line_loop(self, kind: int) -> DrawLineLoop:
        header = self._line_header(kind)
        points = tuple(self._point() for _ in range(header.count))
        return DrawLineLoop(line=header.style, line_width=header.line_width, points=points)

    def _draw_line_strip(self, kind: int) -> DrawLineStrip:
        header = self._line_header(kind)
        points = tuple(self._point() for _ in range(header.count))
        return DrawLineStrip(line=header.style, line_width=header.line_width, points=points)

    def _draw_line_path(self, kind: int) -> DrawLinePath:
        header = self._line_header(kind)
        return DrawLinePath(line=header.style, line_width=header.line_width, path=self._path(header.count))

    def _outline_fill_polygon(self, kind: int) -> OutlineFillPolygon:
        header = self._line_fill_header(kind)
        points = tuple(self._point() for _ in range(header.count))
        return OutlineFillPolygon(
            fill=header.fill_style,
            line=header.line_style,
            line_width=header.line_width,
            points=points,
        )

    def _outline_fill_rectangles(self, kind: int) -> OutlineFillRectangles:
        header = self._line_fill_header(kind)
        rects = tuple(self._rect() for _ in range(header.count))
        return OutlineFillRectangles(
            fill=header.fill_style,
            line=header.line_style,
            line_width=header.line_width,
            rects=rects,
        )

    def _outline_fill_path(self, kind: int) -> OutlineFillPath:
        header = self._line_fill_header(kind)
        return OutlineFillPath(
            fill=header.fill_style,
            line=header.line_style,
            line_width=header.line_width,
            path=self._path(header.count),
        )


def open_document(data: bytes) -> CommandDecoder:
    """Parse header and color table, returning the lazy command stream."""

    cursor = ByteCursor(data)
    header = parse_header(cursor)
    colors = parse_color_table(cursor, header)
    return CommandDecoder(cursor, header, colors)


def decode(data: bytes) -> TvgDocument:
    stream = open_document(data)
    commands = tuple(stream)
    return TvgDocument(header=stream.header, colors=stream.colors, commands=commands)


# -- style resolution / rendering -------------------------------------------


def _color_at(colors: Sequence[Color], index: int) -> Color:
    if not 0 <= index < len(colors):
        raise ColorIndexOutOfRangeError(index, len(colors))
    return colors[index]


def resolve_style(style: Style, colors: Sequence[Color], sink: DrawingSink) -> Paint:
    if isinstance(style, FlatStyle):
        return _color_at(colors, style.color_index)
    if isinstance(style, GradientStyle) and style.kind in (StyleKind.LINEAR, StyleKind.RADIAL):
        gradient = ResolvedGradient(
            kind=style.kind,
            point0=style.point0,
            point1=style.point1,
            color0=_color_at(colors, style.color_index0),
            color1=_color_at(colors, style.color_index1),
        )
        return sink.create_gradient(gradient)
    raise UnknownStyleKindError(int(getattr(style, "kind", -1)))


def draw_command(command: Command, colors: Sequence[Color], sink: DrawingSink) -> None:
    """Resolve the command's styles (fill before line) and issue its draw call."""

    if isinstance(command, EndDocument):
        return
    if isinstance(command, FillPolygon):
        sink.fill_polygon(command.points, resolve_style(command.fill, colors, sink))
    elif isinstance(command, FillRectangles):
        # one resolution shared by every rectangle of the command
        sink.fill_rectangles(command.rects, resolve_style(command.fill, colors, sink))
    elif isinstance(command, FillPath):
        sink.fill_path(command.path, resolve_style(command.fill, colors, sink))
    elif isinstance(command, DrawLines):
        sink.draw_lines(command.lines, resolve_style(command.line, colors, sink), command.line_width)
    elif isinstance(command, DrawLineLoop):
        sink.draw_line_loop(command.points, resolve_style(command.line, colors, sink), command.line_width)
    elif isinstance(command, DrawLineStrip):
        sink.draw_line_strip(command.points, resolve_style(command.line, colors, sink), command.line_width)
    elif isinstance(command, DrawLinePath):
        sink.draw_line_path(command.path, resolve_style(command.line, colors, sink), command.line_width)
    elif isinstance(command, OutlineFillPolygon):
        fill = resolve_style(command.fill, colors, sink)
        line = resolve_style(command.line, colors, sink)
        sink.outline_fill_polygon(command.points, fill, line, command.line_width)
    elif isinstance(command, OutlineFillRectangles):
        fill = resolve_style(command.fill, colors, sink)
        line = resolve_style(command.line, colors, sink)
        sink.outline_fill_rectangles(command.rects, fill, line, command.line_width)
    elif isinstance(command, OutlineFillPath):
        fill = resolve_style(command.fill, colors, sink)
        line = resolve_style(command.line, colors, sink)
        sink.outline_fill_path(command.path, fill, line, command.line_width)
    else:
        raise TypeError(f"not a TinyVG command: {command!r}")


def render_document(document: TvgDocument, sink: DrawingSink) -> None:
    sink.begin_document(document.header.width, document.header.height)
    for command in document.commands:
        draw_command(command, document.colors, sink)
    sink.end_document()


def render(data: bytes, sink: DrawingSink) -> TvgDocument:
    """
    Decode ``data`` completely, then replay it into ``sink``. Decoding
    finishes before the first draw call so a corrupt document never produces
    partial output.
    """

    document = decode(data)
    render_document(document, sink)
    return document
