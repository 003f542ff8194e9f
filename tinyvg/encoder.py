"""
SVG to TinyVG encoding.

Pipeline: :func:`tinyvg.svg_reader.read_svg` -> :func:`tinyvg.normalize.normalize`
-> :class:`CommandBuilder` (shapes to TinyVG commands, mapped from the SVG
viewport onto the image) -> :func:`fit_document`.

``fit_document`` is the precision-fit loop. Every attempt serializes the
whole command list from scratch at one scale; an attempt that hits a unit
outside the signed 16-bit range is returned as a failed
:class:`EncodeAttempt`, the scale drops by one bit, and the next attempt
starts over. Scale 0 failing is fatal.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path as FilePath
from typing import List, Optional, Sequence, Tuple, Union

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
    FillPath,
    FillPolygon,
    FillRectangles,
    GradientStyle,
    Header,
    HorizontalTo,
    Line,
    LineTo,
    MoveTo,
    OutlineFillPath,
    OutlineFillPolygon,
    OutlineFillRectangles,
    Path,
    PathPrimitive,
    Point,
    QuadTo,
    Rect,
    Style,
    Subpath,
    TvgDocument,
    VerticalTo,
)
from .errors import EncodeError, UnitRangeError, UnsupportedColorFormatError
from .geometry import rectangle_corners, split_subpaths
from .logging import ConversionLog
from .normalize import (
    CircleShape,
    EllipseShape,
    LineShape,
    NormalizedDocument,
    NormalizedNode,
    PathShape,
    PolygonShape,
    RectShape,
    Viewport,
    normalize,
)
from .svg_path import format_number, parse_svg_path
from .svg_reader import read_svg
from .units import MAX_SCALE_BITS, SIGNED16_MAX, SIGNED16_MIN
from .writer import MAX_OUTLINE_COUNT, write_document, write_text_document

MAX_FIT_ATTEMPTS = 16
# cubic handle length for a quarter circle
KAPPA = 0.5522847498

OUTPUT_FORMATS = ("binary", "text")


@dataclass(frozen=True)
class EncoderOptions:
    color_encoding: ColorEncoding = ColorEncoding.RGBA8888
    output: str = "binary"
    max_attempts: int = MAX_FIT_ATTEMPTS
    scale_bits: Optional[int] = None

    def __post_init__(self) -> None:
        if self.color_encoding == ColorEncoding.CUSTOM:
            raise UnsupportedColorFormatError(int(self.color_encoding))
        if self.output not in OUTPUT_FORMATS:
            raise ValueError(f"output must be one of {OUTPUT_FORMATS}, got {self.output!r}")
        if not 1 <= self.max_attempts <= MAX_FIT_ATTEMPTS:
            raise ValueError(f"max_attempts must be within 1..{MAX_FIT_ATTEMPTS}")
        if self.scale_bits is not None and not 0 <= self.scale_bits <= MAX_SCALE_BITS:
            raise ValueError(f"scale_bits must be within 0..{MAX_SCALE_BITS}")


@dataclass(frozen=True)
class EncodeAttempt:
    scale_bits: int
    data: Union[bytes, str, None] = None
    error: Optional[UnitRangeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class EncodeResult:
    data: Union[bytes, str]
    document: TvgDocument
    attempts: Tuple[EncodeAttempt, ...]
    fully_supported: bool = True

    @property
    def scale_bits(self) -> int:
        return self.document.header.scale


# -- viewport mapping ---------------------------------------------------------------


@dataclass(frozen=True)
class ViewportMapper:
    """SVG user space -> image space."""

    image_width: int
    image_height: int
    viewport: Viewport

    @property
    def scale_x(self) -> float:
        return self.image_width / self.viewport.width

    @property
    def scale_y(self) -> float:
        return self.image_height / self.viewport.height

    def size_x(self, value: float) -> float:
        return value * self.scale_x

    def size_y(self, value: float) -> float:
        return value * self.scale_y

    def coord_x(self, x: float) -> float:
        return self.size_x(x - self.viewport.x)

    def coord_y(self, y: float) -> float:
        return self.size_y(y - self.viewport.y)

    def point(self, point: Point) -> Point:
        return (self.coord_x(point[0]), self.coord_y(point[1]))

    def line_width(self, width: float) -> float:
        return abs(width) * (abs(self.scale_x) + abs(self.scale_y)) / 2.0

    def style(self, style: Optional[Style]) -> Optional[Style]:
        if isinstance(style, GradientStyle):
            return dataclasses.replace(style, point0=self.point(style.point0), point1=self.point(style.point1))
        return style

    def primitive(self, primitive: PathPrimitive) -> PathPrimitive:
        if isinstance(primitive, MoveTo):
            return MoveTo(self.point(primitive.point))
        if isinstance(primitive, LineTo):
            return LineTo(self.point(primitive.point))
        if isinstance(primitive, HorizontalTo):
            return HorizontalTo(self.coord_x(primitive.x))
        if isinstance(primitive, VerticalTo):
            return VerticalTo(self.coord_y(primitive.y))
        if isinstance(primitive, CubicTo):
            return CubicTo(self.point(primitive.control1), self.point(primitive.control2), self.point(primitive.end))
        if isinstance(primitive, QuadTo):
            return QuadTo(self.point(primitive.control), self.point(primitive.end))
        if isinstance(primitive, ArcTo):
            if primitive.radius_x == 0 or primitive.radius_y == 0:
                return LineTo(self.point(primitive.end))
            return ArcTo(
                abs(self.size_x(primitive.radius_x)),
                abs(self.size_y(primitive.radius_y)),
                primitive.rotation,
                primitive.large_arc,
                primitive.sweep,
                self.point(primitive.end),
            )
        return primitive


# -- shape conversion ---------------------------------------------------------------


def rounded_rect_primitives(shape: RectShape) -> List[PathPrimitive]:
    x, y = shape.x, shape.y
    rx, ry = abs(shape.rx), abs(shape.ry)
    right, bottom = x + shape.width, y + shape.height
    kx, ky = rx * KAPPA, ry * KAPPA
    return [
        MoveTo((x + rx, y)),
        HorizontalTo(right - rx),
        CubicTo((right - rx + kx, y), (right, y + ry - ky), (right, y + ry)),
        VerticalTo(bottom - ry),
        CubicTo((right, bottom - ry + ky), (right - rx + kx, bottom), (right - rx, bottom)),
        HorizontalTo(x + rx),
        CubicTo((x + rx - kx, bottom), (x, bottom - ry + ky), (x, bottom - ry)),
        VerticalTo(y + ry),
        CubicTo((x, y + ry - ky), (x + rx - kx, y), (x + rx, y)),
        Close(),
    ]


def ellipse_primitives(cx: float, cy: float, rx: float, ry: float) -> List[PathPrimitive]:
    # two half arcs, top to bottom and back
    return [
        MoveTo((cx, cy - ry)),
        ArcTo(rx, ry, 0.0, False, False, (cx, cy + ry)),
        ArcTo(rx, ry, 0.0, False, False, (cx, cy - ry)),
    ]


def _chunks(items: Sequence, size: int) -> List[Tuple]:
    return [tuple(items[idx : idx + size]) for idx in range(0, len(items), size)]


class CommandBuilder:
    """Turns normalized shapes into image-space TinyVG commands, in document order."""

    def __init__(self, document: NormalizedDocument, log: Optional[ConversionLog] = None) -> None:
        self.document = document
        self.log = log if log is not None else ConversionLog()
        self.mapper = ViewportMapper(document.width, document.height, document.viewport)
        self.commands: List[Command] = []

    def build(self) -> Tuple[Command, ...]:
        for node in self.document.nodes:
            self._node(node)
        return tuple(self.commands)

    def _node(self, node: NormalizedNode) -> None:
        fill = self.mapper.style(node.fill)
        line = self.mapper.style(node.line)
        width = self.mapper.line_width(node.line_width)
        shape = node.shape

        if isinstance(shape, PathShape):
            self._path(parse_svg_path(shape.data), fill, line, width)
        elif isinstance(shape, PolygonShape):
            self._polygon(shape, fill, line, width)
        elif isinstance(shape, LineShape):
            if line is not None:
                segment = Line(self.mapper.point(shape.start), self.mapper.point(shape.end))
                self.commands.append(DrawLines(line=line, line_width=width, lines=(segment,)))
        elif isinstance(shape, RectShape):
            self._rect(shape, fill, line, width)
        elif isinstance(shape, CircleShape):
            r = abs(shape.r)
            if r > 0:
                self._path(ellipse_primitives(shape.cx, shape.cy, r, r), fill, line, width)
        elif isinstance(shape, EllipseShape):
            rx, ry = abs(shape.rx), abs(shape.ry)
            if rx > 0 and ry > 0:
                self._path(ellipse_primitives(shape.cx, shape.cy, rx, ry), fill, line, width)
        else:
            raise TypeError(f"not a shape: {shape!r}")

    def _path(
        self,
        primitives: Sequence[PathPrimitive],
        fill: Optional[Style],
        line: Optional[Style],
        width: float,
    ) -> None:
        path = split_subpaths(self.mapper.primitive(primitive) for primitive in primitives)
        if not path:
            return
        if fill is not None and line is not None:
            for chunk in _chunks(path, MAX_OUTLINE_COUNT):
                self.commands.append(OutlineFillPath(fill=fill, line=line, line_width=width, path=chunk))
        elif fill is not None:
            self.commands.append(FillPath(fill=fill, path=path))
        elif line is not None:
            self.commands.append(DrawLinePath(line=line, line_width=width, path=path))

    def _polygon(self, shape: PolygonShape, fill: Optional[Style], line: Optional[Style], width: float) -> None:
        points = tuple(self.mapper.point(point) for point in shape.points)
        if len(points) < 2:
            return
        if not shape.closed:
            if fill is not None:
                self.commands.append(FillPolygon(fill=fill, points=points))
            if line is not None:
                self.commands.append(DrawLineStrip(line=line, line_width=width, points=points))
            return
        if fill is not None and line is not None:
            if len(points) <= MAX_OUTLINE_COUNT:
                self.commands.append(OutlineFillPolygon(fill=fill, line=line, line_width=width, points=points))
            else:
                segments = tuple(LineTo(point) for point in points[1:]) + (Close(),)
                path = (Subpath(start=points[0], segments=segments),)
                self.commands.append(OutlineFillPath(fill=fill, line=line, line_width=width, path=path))
        elif fill is not None:
            self.commands.append(FillPolygon(fill=fill, points=points))
        elif line is not None:
            self.commands.append(DrawLineLoop(line=line, line_width=width, points=points))

    def _rect(self, shape: RectShape, fill: Optional[Style], line: Optional[Style], width: float) -> None:
        if shape.width <= 0 or shape.height <= 0:
            return
        if shape.rx != 0 or shape.ry != 0:
            if shape.width >= 2 * abs(shape.rx) and shape.height >= 2 * abs(shape.ry):
                self._path(rounded_rect_primitives(shape), fill, line, width)
                return
            self.log.record(
                "Found invalid rounded rectangles: width=\"{}\" height=\"{}\" rx=\"{}\" ry=\"{}\"".format(
                    format_number(shape.width),
                    format_number(shape.height),
                    format_number(shape.rx),
                    format_number(shape.ry),
                )
            )
        if fill is None and line is not None:
            corners = tuple(self.mapper.point(p) for p in rectangle_corners(shape.x, shape.y, shape.width, shape.height))
            self.commands.append(DrawLineLoop(line=line, line_width=width, points=corners))
            return
        x, y = self.mapper.point((shape.x, shape.y))
        rect = Rect(x, y, self.mapper.size_x(shape.width), self.mapper.size_y(shape.height))
        if line is not None:
            self.commands.append(OutlineFillRectangles(fill=fill, line=line, line_width=width, rects=(rect,)))
        else:
            self.commands.append(FillRectangles(fill=fill, rects=(rect,)))


def build_commands(document: NormalizedDocument, log: Optional[ConversionLog] = None) -> Tuple[Command, ...]:
    return CommandBuilder(document, log).build()


def split_outline_rectangles(command: OutlineFillRectangles) -> List[OutlineFillRectangles]:
    """Break an outline-fill rectangle list into commands of at most 64 rectangles."""

    return [dataclasses.replace(command, rects=chunk) for chunk in _chunks(command.rects, MAX_OUTLINE_COUNT)]


def split_oversized(commands: Sequence[Command]) -> Tuple[Command, ...]:
    """Split outline-fill commands whose item count does not fit the packed header byte."""

    result: List[Command] = []
    for command in commands:
        if isinstance(command, OutlineFillRectangles) and command.count > MAX_OUTLINE_COUNT:
            result.extend(split_outline_rectangles(command))
        elif isinstance(command, OutlineFillPath) and command.count > MAX_OUTLINE_COUNT:
            result.extend(dataclasses.replace(command, path=chunk) for chunk in _chunks(command.path, MAX_OUTLINE_COUNT))
        elif isinstance(command, OutlineFillPolygon) and command.count > MAX_OUTLINE_COUNT:
            points = command.points
            segments = tuple(LineTo(point) for point in points[1:]) + (Close(),)
            result.append(
                OutlineFillPath(
                    fill=command.fill,
                    line=command.line,
                    line_width=command.line_width,
                    path=(Subpath(start=points[0], segments=segments),),
                )
            )
        else:
            result.append(command)
    return tuple(result)


# -- precision-fit loop -------------------------------------------------------------


def try_encode(
    document: TvgDocument,
    output: str = "binary",
    unit_bounds: Optional[Tuple[int, int]] = None,
) -> EncodeAttempt:
    """Serialize ``document`` once; a unit overflow comes back as a failed attempt."""

    try:
        if output == "text":
            data: Union[bytes, str] = write_text_document(document, unit_bounds=unit_bounds)
        else:
            data = write_document(document, unit_bounds=unit_bounds)
    except UnitRangeError as exc:
        return EncodeAttempt(scale_bits=document.header.scale, error=exc)
    return EncodeAttempt(scale_bits=document.header.scale, data=data)


def fit_document(
    width: int,
    height: int,
    colors: Sequence[Color],
    commands: Sequence[Command],
    scale_bits: int,
    options: EncoderOptions = EncoderOptions(),
    log: Optional[ConversionLog] = None,
    *,
    fully_supported: bool = True,
) -> EncodeResult:
    log = log if log is not None else ConversionLog()
    colors = tuple(colors)
    commands = tuple(commands)
    attempts: List[EncodeAttempt] = []
    for _ in range(options.max_attempts):
        header = Header(
            scale=scale_bits,
            color_encoding=options.color_encoding,
            coordinate_range=CoordinateRange.DEFAULT,
            width=width,
            height=height,
        )
        document = TvgDocument(header=header, colors=colors, commands=commands)
        attempt = try_encode(document, options.output, (SIGNED16_MIN, SIGNED16_MAX))
        attempts.append(attempt)
        if attempt.ok:
            return EncodeResult(
                data=attempt.data,
                document=document,
                attempts=tuple(attempts),
                fully_supported=fully_supported,
            )
        if scale_bits == 0:
            raise attempt.error
        log.record(f"Reducing bit range trying to fit {attempt.error.value}")
        scale_bits -= 1
    raise EncodeError(f"document does not fit after {len(attempts)} attempts")


def encode_normalized(
    document: NormalizedDocument,
    options: EncoderOptions = EncoderOptions(),
    log: Optional[ConversionLog] = None,
) -> EncodeResult:
    log = log if log is not None else ConversionLog()
    commands = build_commands(document, log)
    scale_bits = options.scale_bits if options.scale_bits is not None else document.scale_bits
    return fit_document(
        document.width,
        document.height,
        document.colors,
        commands,
        scale_bits,
        options,
        log,
        fully_supported=document.fully_supported,
    )


def encode_svg(
    source: Union[str, bytes, FilePath],
    options: EncoderOptions = EncoderOptions(),
    log: Optional[ConversionLog] = None,
) -> EncodeResult:
    """Convert SVG markup (text, bytes or a file path) to TinyVG."""

    log = log if log is not None else ConversionLog()
    tree = read_svg(source, log)
    normalized = normalize(tree, log, scale_bits=options.scale_bits)
    return encode_normalized(normalized, options, log)


def encode_document(
    document: TvgDocument,
    scale_bits: Optional[int] = None,
    *,
    coordinate_range: Optional[CoordinateRange] = None,
    color_encoding: Optional[ColorEncoding] = None,
    output: str = "binary",
) -> Union[bytes, str]:
    """
    Re-serialize an already built (e.g. decoded) document, optionally at a
    different scale, coordinate range or color encoding. Units are checked
    against the full raw range of the target coordinate width.
    """

    header = dataclasses.replace(
        document.header,
        scale=document.header.scale if scale_bits is None else scale_bits,
        coordinate_range=document.header.coordinate_range if coordinate_range is None else coordinate_range,
        color_encoding=document.header.color_encoding if color_encoding is None else color_encoding,
    )
    target = TvgDocument(header=header, colors=document.colors, commands=split_oversized(document.commands))
    if output == "text":
        return write_text_document(target)
    return write_document(target)
