"""
SVG path data (``d`` attribute) parser.

Recursive descent over the SVG 2 path grammar
(https://www.w3.org/TR/SVG2/paths.html#PathDataBNF) with local backtracking:
every repeated argument run tries one more group and rewinds to the saved
offset when that group does not parse. Each parsed command is reported as an
absolute :mod:`tinyvg.entities` path primitive.

TinyVG and SVG disagree on the meaning of the arc sweep flag; the parser
emits ``ArcTo.sweep`` in TinyVG terms (``not sweep-flag``) and
:func:`format_svg_path` flips it back.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Sequence, Tuple

from .entities import (
    ArcTo,
    Close,
    CubicTo,
    HorizontalTo,
    LineTo,
    MoveTo,
    Path,
    PathPrimitive,
    Point,
    QuadTo,
    VerticalTo,
)
from .errors import PathSyntaxError

WHITESPACE = "\x09\x20\x0a\x0c\x0d"
DIGITS = "0123456789"

PrimitiveSink = Callable[[PathPrimitive], None]


class SvgPathParser:
    def __init__(self, text: str, emit: PrimitiveSink) -> None:
        self.text = text
        self.emit = emit
        self.offset = 0
        self.current: Point = (0.0, 0.0)
        self.subpath_start: Point | None = None
        self._control: Point | None = None
        self._control_kind: str | None = None

    # -- character level ----------------------------------------------------

    @property
    def at_end(self) -> bool:
        return self.offset >= len(self.text)

    def _error(self, message: str, offset: int | None = None) -> PathSyntaxError:
        return PathSyntaxError(message, self.text, self.offset if offset is None else offset)

    def _peek(self) -> str | None:
        if self.at_end:
            return None
        return self.text[self.offset]

    def _next(self) -> str:
        if self.at_end:
            raise self._error("Unexpected end of path data")
        char = self.text[self.offset]
        self.offset += 1
        return char

    def _accept(self, allowed: str) -> str:
        start = self.offset
        char = self._next()
        if char not in allowed:
            self.offset = start
            raise self._error(f"Unexpected char {char!r}, expected one of {', '.join(allowed)}")
        return char

    def _scan_one(self, allowed: str) -> bool:
        if not self.at_end and self.text[self.offset] in allowed:
            self.offset += 1
            return True
        return False

    def _scan_digits(self) -> None:
        while not self.at_end and self.text[self.offset] in DIGITS:
            self.offset += 1

    def _skip_whitespace(self) -> None:
        while not self.at_end and self.text[self.offset] in WHITESPACE + ",":
            self.offset += 1

    def _skip_comma_whitespace(self, allow_empty: bool = True) -> None:
        # comma_wsp ::= (wsp+ ","? wsp*) | ("," wsp*)
        first = True
        while True:
            char = self._peek()
            if char is None or char not in WHITESPACE + ",":
                if not allow_empty and first:
                    raise self._error("Expected whitespace or comma")
                return
            first = False
            self.offset += 1
            if char == ",":
                break
        self._skip_whitespace()

    # -- numbers ------------------------------------------------------------

    def _number(self, allow_sign: bool = True) -> float:
        begin = self.offset
        first = self._accept(DIGITS + "." + ("+-" if allow_sign else ""))
        self._scan_digits()
        if first != "." and self._scan_one("."):
            self._scan_digits()
        if self._scan_one("eE"):
            self._scan_one("+-")
            self._scan_digits()
        token = self.text[begin : self.offset]
        try:
            return float(token)
        except ValueError:
            self.offset = begin
            raise self._error(f"Invalid number {token!r}", begin) from None

    def _flag(self) -> bool:
        return self._accept("01") == "1"

    def _coordinate_pair(self) -> Point:
        start = self.offset
        try:
            x = self._number()
            self._skip_comma_whitespace()
            y = self._number()
        except PathSyntaxError:
            self.offset = start
            raise
        return (x, y)

    def _repeat(self, parse_one: Callable[[], object], separator: Callable[[], None]) -> Iterable:
        yield parse_one()
        while True:
            saved = self.offset
            try:
                separator()
                item = parse_one()
            except PathSyntaxError:
                self.offset = saved
                return
            yield item

    def _pair_tuple(self, size: int) -> Tuple[Point, ...]:
        start = self.offset
        pairs = [self._coordinate_pair()]
        try:
            for _ in range(size - 1):
                self._skip_comma_whitespace()
                pairs.append(self._coordinate_pair())
        except PathSyntaxError:
            self.offset = start
            raise
        return tuple(pairs)

    def _arc_argument(self) -> Tuple[float, float, float, bool, bool, Point]:
        start = self.offset
        try:
            radius_x = self._number()
            self._skip_comma_whitespace()
            radius_y = self._number()
            self._skip_comma_whitespace()
            angle = self._number()
            self._skip_comma_whitespace(allow_empty=False)
            large_arc = self._flag()
            self._skip_comma_whitespace()
            sweep = self._flag()
            self._skip_comma_whitespace()
            target = self._coordinate_pair()
        except PathSyntaxError:
            self.offset = start
            raise
        return radius_x, radius_y, angle, large_arc, sweep, target

    # -- cursor -------------------------------------------------------------

    def _absolute(self, point: Point, relative: bool) -> Point:
        if relative:
            return (self.current[0] + point[0], self.current[1] + point[1])
        return point

    def _move_cursor(self, point: Point, relative: bool) -> Point:
        self.current = self._absolute(point, relative)
        return self.current

    def _remember_control(self, control: Point, kind: str) -> None:
        # reflection of ``control`` through the pen position
        self._control = (2.0 * self.current[0] - control[0], 2.0 * self.current[1] - control[1])
        self._control_kind = kind

    def _reset_control(self) -> None:
        self._control = None
        self._control_kind = None

    def _mirrored_control(self, kind: str) -> Point:
        if self._control is not None and self._control_kind == kind:
            return self._control
        return self.current

    # -- grammar ------------------------------------------------------------

    def parse(self) -> None:
        # svg_path ::= wsp* moveto? (moveto drawto_command*)?
        self._skip_whitespace()
        if self.at_end:
            return
        if self._peek() not in "Mm":
            raise self._error("Path data must begin with a moveto")
        self._moveto()
        while True:
            self._skip_whitespace()
            if self.at_end:
                break
            self._drawto_command()

    def _drawto_command(self) -> None:
        command = self._peek()
        handler = {
            "Z": self._closepath,
            "M": self._moveto,
            "L": self._lineto,
            "H": self._horizontal_lineto,
            "V": self._vertical_lineto,
            "C": self._curveto,
            "S": self._smooth_curveto,
            "Q": self._quadratic_curveto,
            "T": self._smooth_quadratic_curveto,
            "A": self._elliptical_arc,
        }.get(command.upper() if command else "")
        if handler is None:
            raise self._error(f"Unexpected character {command!r}")
        if command not in "CcSsQqTt":
            self._reset_control()
        handler()

    def _closepath(self) -> None:
        self._accept("Zz")
        if self.subpath_start is None:
            raise self._error("closepath without a moveto")
        self.current = self.subpath_start
        self.emit(Close())
        self._skip_whitespace()

    def _moveto(self) -> None:
        relative = self._accept("Mm") == "m"
        self._skip_whitespace()
        for index, pair in enumerate(self._repeat(self._coordinate_pair, self._skip_whitespace)):
            point = self._move_cursor(pair, relative)
            if index == 0:
                self.subpath_start = point
                self.emit(MoveTo(point))
            else:
                # implicit lineto
                self.emit(LineTo(point))

    def _lineto(self) -> None:
        relative = self._accept("Ll") == "l"
        self._skip_whitespace()
        for pair in self._repeat(self._coordinate_pair, self._skip_whitespace):
            self.emit(LineTo(self._move_cursor(pair, relative)))

    def _horizontal_lineto(self) -> None:
        relative = self._accept("Hh") == "h"
        self._skip_whitespace()
        for x in self._repeat(self._number, self._skip_whitespace):
            target = (x, 0.0) if relative else (x, self.current[1])
            self.emit(HorizontalTo(self._move_cursor(target, relative)[0]))

    def _vertical_lineto(self) -> None:
        relative = self._accept("Vv") == "v"
        self._skip_whitespace()
        for y in self._repeat(self._number, self._skip_whitespace):
            target = (0.0, y) if relative else (self.current[0], y)
            self.emit(VerticalTo(self._move_cursor(target, relative)[1]))

    def _curveto(self) -> None:
        relative = self._accept("Cc") == "c"
        self._skip_whitespace()
        for control1, control2, end in self._repeat(lambda: self._pair_tuple(3), self._skip_comma_whitespace):
            control1 = self._absolute(control1, relative)
            control2 = self._absolute(control2, relative)
            end = self._move_cursor(end, relative)
            self.emit(CubicTo(control1, control2, end))
            self._remember_control(control2, "cubic")

    def _smooth_curveto(self) -> None:
        relative = self._accept("Ss") == "s"
        self._skip_whitespace()
        for control2, end in self._repeat(lambda: self._pair_tuple(2), self._skip_comma_whitespace):
            control1 = self._mirrored_control("cubic")
            control2 = self._absolute(control2, relative)
            end = self._move_cursor(end, relative)
            self.emit(CubicTo(control1, control2, end))
            self._remember_control(control2, "cubic")

    def _quadratic_curveto(self) -> None:
        relative = self._accept("Qq") == "q"
        self._skip_whitespace()
        for control, end in self._repeat(lambda: self._pair_tuple(2), self._skip_comma_whitespace):
            control = self._absolute(control, relative)
            end = self._move_cursor(end, relative)
            self.emit(QuadTo(control, end))
            self._remember_control(control, "quad")

    def _smooth_quadratic_curveto(self) -> None:
        relative = self._accept("Tt") == "t"
        self._skip_whitespace()
        for end in self._repeat(self._coordinate_pair, self._skip_whitespace):
            control = self._mirrored_control("quad")
            end = self._move_cursor(end, relative)
            self.emit(QuadTo(control, end))
            self._remember_control(control, "quad")

    def _elliptical_arc(self) -> None:
        relative = self._accept("Aa") == "a"
        self._skip_whitespace()
        for radius_x, radius_y, angle, large_arc, sweep, target in self._repeat(
            self._arc_argument, self._skip_comma_whitespace
        ):
            end = self._move_cursor(target, relative)
            self.emit(ArcTo(radius_x, radius_y, angle, large_arc, not sweep, end))


def parse_svg_path(text: str, emit: PrimitiveSink | None = None) -> List[PathPrimitive]:
    """
    Parse SVG path data into absolute primitives.

    When ``emit`` is given every primitive is also passed to it as soon as it
    is parsed. Raises :class:`~tinyvg.errors.PathSyntaxError` on malformed
    input.
    """

    primitives: List[PathPrimitive] = []

    def _collect(primitive: PathPrimitive) -> None:
        primitives.append(primitive)
        if emit is not None:
            emit(primitive)

    SvgPathParser(text, _collect).parse()
    return primitives


def format_number(value: float, places: int = 6) -> str:
    text = f"{value:.{places}f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def _pair(point: Point) -> str:
    return f"{format_number(point[0])} {format_number(point[1])}"


def format_primitive(primitive: PathPrimitive) -> str:
    if isinstance(primitive, MoveTo):
        return f"M {_pair(primitive.point)}"
    if isinstance(primitive, LineTo):
        return f"L {_pair(primitive.point)}"
    if isinstance(primitive, HorizontalTo):
        return f"H {format_number(primitive.x)}"
    if isinstance(primitive, VerticalTo):
        return f"V {format_number(primitive.y)}"
    if isinstance(primitive, CubicTo):
        return f"C {_pair(primitive.control1)} {_pair(primitive.control2)} {_pair(primitive.end)}"
    if isinstance(primitive, QuadTo):
        return f"Q {_pair(primitive.control)} {_pair(primitive.end)}"
    if isinstance(primitive, ArcTo):
        return "A {} {} {} {} {} {}".format(
            format_number(primitive.radius_x),
            format_number(primitive.radius_y),
            format_number(primitive.rotation),
            int(primitive.large_arc),
            int(not primitive.sweep),
            _pair(primitive.end),
        )
    if isinstance(primitive, Close):
        return "Z"
    raise TypeError(f"not a path primitive: {primitive!r}")


def format_svg_path(path: Path | Sequence[PathPrimitive]) -> str:
    """Inverse of :func:`parse_svg_path`; accepts a decoded path or a primitive list."""

    parts: List[str] = []
    for item in path:
        primitives = item.primitives() if hasattr(item, "primitives") else (item,)
        parts.extend(format_primitive(primitive) for primitive in primitives)
    return " ".join(parts)
