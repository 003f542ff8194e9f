from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Tuple, Union

Point = Tuple[float, float]


class ColorEncoding(IntEnum):
    RGBA8888 = 0
    RGB565 = 1
    F32 = 2
    CUSTOM = 3


class CoordinateRange(IntEnum):
    DEFAULT = 0  # u16
    REDUCED = 1  # u8
    EXTENDED = 2  # u32


class StyleKind(IntEnum):
    FLAT = 0
    LINEAR = 1
    RADIAL = 2


class CommandId(IntEnum):
    END_DOCUMENT = 0
    FILL_POLYGON = 1
    FILL_RECTANGLES = 2
    FILL_PATH = 3
    DRAW_LINES = 4
    DRAW_LINE_LOOP = 5
    DRAW_LINE_STRIP = 6
    DRAW_LINE_PATH = 7
    OUTLINE_FILL_POLYGON = 8
    OUTLINE_FILL_RECTANGLES = 9
    OUTLINE_FILL_PATH = 10


class SegmentKind(IntEnum):
    LINE = 0
    HORIZONTAL = 1
    VERTICAL = 2
    CUBIC = 3
    ARC_CIRCLE = 4
    ARC_ELLIPSE = 5
    CLOSE = 6
    QUAD = 7


@dataclass(frozen=True)
class Header:
    scale: int
    color_encoding: ColorEncoding
    coordinate_range: CoordinateRange
    width: int
    height: int


@dataclass(frozen=True)
class Color:
    """Normalized RGBA color, every channel in [0, 1]."""

    r: float
    g: float
    b: float
    a: float = 1.0

    @classmethod
    def from_rgba8(cls, r: int, g: int, b: int, a: int = 255) -> "Color":
        return cls(r / 255.0, g / 255.0, b / 255.0, a / 255.0)

    def to_rgba8(self) -> Tuple[int, int, int, int]:
        return tuple(max(0, min(255, int(round(ch * 255.0)))) for ch in (self.r, self.g, self.b, self.a))

    def with_alpha(self, alpha: float) -> "Color":
        return Color(self.r, self.g, self.b, alpha)


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Line:
    start: Point
    end: Point


# -- styles -----------------------------------------------------------------


@dataclass(frozen=True)
class FlatStyle:
    kind: ClassVar[StyleKind] = StyleKind.FLAT

    color_index: int


@dataclass(frozen=True)
class GradientStyle:
    kind: ClassVar[StyleKind]

    point0: Point
    point1: Point
    color_index0: int
    color_index1: int


@dataclass(frozen=True)
class LinearGradientStyle(GradientStyle):
    kind: ClassVar[StyleKind] = StyleKind.LINEAR


@dataclass(frozen=True)
class RadialGradientStyle(GradientStyle):
    kind: ClassVar[StyleKind] = StyleKind.RADIAL


Style = Union[FlatStyle, LinearGradientStyle, RadialGradientStyle]


# -- path primitives --------------------------------------------------------
#
# All coordinates are absolute. ArcTo.sweep holds the TinyVG sweep bit, which
# is the inverse of the SVG sweep-flag for the same arc.


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class LineTo:
    segment_kind: ClassVar[SegmentKind] = SegmentKind.LINE

    point: Point


@dataclass(frozen=True)
class HorizontalTo:
    segment_kind: ClassVar[SegmentKind] = SegmentKind.HORIZONTAL

    x: float


@dataclass(frozen=True)
class VerticalTo:
    segment_kind: ClassVar[SegmentKind] = SegmentKind.VERTICAL

    y: float


@dataclass(frozen=True)
class CubicTo:
    segment_kind: ClassVar[SegmentKind] = SegmentKind.CUBIC

    control1: Point
    control2: Point
    end: Point


@dataclass(frozen=True)
class QuadTo:
    segment_kind: ClassVar[SegmentKind] = SegmentKind.QUAD

    control: Point
    end: Point


@dataclass(frozen=True)
class ArcTo:
    radius_x: float
    radius_y: float
    rotation: float
    large_arc: bool
    sweep: bool
    end: Point

    @property
    def is_circle(self) -> bool:
        return self.radius_x == self.radius_y and self.rotation == 0.0

    @property
    def segment_kind(self) -> SegmentKind:
        return SegmentKind.ARC_CIRCLE if self.is_circle else SegmentKind.ARC_ELLIPSE


@dataclass(frozen=True)
class Close:
    segment_kind: ClassVar[SegmentKind] = SegmentKind.CLOSE


Segment = Union[LineTo, HorizontalTo, VerticalTo, CubicTo, QuadTo, ArcTo, Close]
PathPrimitive = Union[MoveTo, LineTo, HorizontalTo, VerticalTo, CubicTo, QuadTo, ArcTo, Close]


@dataclass(frozen=True)
class Subpath:
    start: Point
    segments: Tuple[Segment, ...]

    def primitives(self) -> Tuple[PathPrimitive, ...]:
        return (MoveTo(self.start),) + self.segments


Path = Tuple[Subpath, ...]


# -- commands ---------------------------------------------------------------


@dataclass(frozen=True)
class EndDocument:
    command_id: ClassVar[CommandId] = CommandId.END_DOCUMENT

    @property
    def count(self) -> int:
        return 0


@dataclass(frozen=True)
class FillPolygon:
    command_id: ClassVar[CommandId] = CommandId.FILL_POLYGON

    fill: Style
    points: Tuple[Point, ...]

    @property
    def count(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class FillRectangles:
    command_id: ClassVar[CommandId] = CommandId.FILL_RECTANGLES

    fill: Style
    rects: Tuple[Rect, ...]

    @property
    def count(self) -> int:
        return len(self.rects)


@dataclass(frozen=True)
class FillPath:
    command_id: ClassVar[CommandId] = CommandId.FILL_PATH

    fill: Style
    path: Path

    @property
    def count(self) -> int:
        return len(self.path)


@dataclass(frozen=True)
class DrawLines:
    command_id: ClassVar[CommandId] = CommandId.DRAW_LINES

    line: Style
    line_width: float
    lines: Tuple[Line, ...]

    @property
    def count(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class DrawLineLoop:
    command_id: ClassVar[CommandId] = CommandId.DRAW_LINE_LOOP

    line: Style
    line_width: float
    points: Tuple[Point, ...]

    @property
    def count(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class DrawLineStrip:
    command_id: ClassVar[CommandId] = CommandId.DRAW_LINE_STRIP

    line: Style
    line_width: float
    points: Tuple[Point, ...]

    @property
    def count(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class DrawLinePath:
    command_id: ClassVar[CommandId] = CommandId.DRAW_LINE_PATH

    line: Style
    line_width: float
    path: Path

    @property
    def count(self) -> int:
        return len(self.path)


@dataclass(frozen=True)
class OutlineFillPolygon:
    command_id: ClassVar[CommandId] = CommandId.OUTLINE_FILL_POLYGON

    fill: Style
    line: Style
    line_width: float
    points: Tuple[Point, ...]

    @property
    def count(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class OutlineFillRectangles:
    command_id: ClassVar[CommandId] = CommandId.OUTLINE_FILL_RECTANGLES

    fill: Style
    line: Style
    line_width: float
    rects: Tuple[Rect, ...]

    @property
    def count(self) -> int:
        return len(self.rects)


@dataclass(frozen=True)
class OutlineFillPath:
    command_id: ClassVar[CommandId] = CommandId.OUTLINE_FILL_PATH

    fill: Style
    line: Style
    line_width: float
    path: Path

    @property
    def count(self) -> int:
        return len(self.path)


Command = Union[
    EndDocument,
    FillPolygon,
    FillRectangles,
    FillPath,
    DrawLines,
    DrawLineLoop,
    DrawLineStrip,
    DrawLinePath,
    OutlineFillPolygon,
    OutlineFillRectangles,
    OutlineFillPath,
]


@dataclass(frozen=True)
class TvgDocument:
    header: Header
    colors: Tuple[Color, ...]
    commands: Tuple[Command, ...]

    @property
    def drawing_commands(self) -> Tuple[Command, ...]:
        return tuple(cmd for cmd in self.commands if not isinstance(cmd, EndDocument))
