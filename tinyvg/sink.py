"""
Decoder-side drawing capability.

``decoder.render`` resolves styles and calls exactly one draw method per
command, in document order. Flat styles arrive as a :class:`Color`; gradient
styles arrive as whatever :meth:`DrawingSink.create_gradient` returned for
them, so sinks that register gradient resources (SVG ``<defs>``, GPU
textures, ...) see the registrations in the order commands need them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Sequence, Tuple, Union

from .entities import Color, Line, Path, Point, Rect, StyleKind
from .geometry import distance

Paint = Union[Color, Any]


@dataclass(frozen=True)
class ResolvedGradient:
    kind: StyleKind
    point0: Point
    point1: Point
    color0: Color
    color1: Color

    @property
    def radius(self) -> float:
        return distance(self.point0, self.point1)


class DrawingSink:
    def begin_document(self, width: int, height: int) -> None:
        pass

    def end_document(self) -> None:
        pass

    def create_gradient(self, gradient: ResolvedGradient) -> Any:
        return gradient

    def fill_polygon(self, points: Sequence[Point], fill: Paint) -> None:
        raise NotImplementedError

    def fill_rectangles(self, rects: Sequence[Rect], fill: Paint) -> None:
        raise NotImplementedError

    def fill_path(self, path: Path, fill: Paint) -> None:
        raise NotImplementedError

    def draw_lines(self, lines: Sequence[Line], line: Paint, line_width: float) -> None:
        raise NotImplementedError

    def draw_line_loop(self, points: Sequence[Point], line: Paint, line_width: float) -> None:
        raise NotImplementedError

    def draw_line_strip(self, points: Sequence[Point], line: Paint, line_width: float) -> None:
        raise NotImplementedError

    def draw_line_path(self, path: Path, line: Paint, line_width: float) -> None:
        raise NotImplementedError

    def outline_fill_polygon(
        self, points: Sequence[Point], fill: Paint, line: Paint, line_width: float
    ) -> None:
        raise NotImplementedError

    def outline_fill_rectangles(
        self, rects: Sequence[Rect], fill: Paint, line: Paint, line_width: float
    ) -> None:
        raise NotImplementedError

    def outline_fill_path(self, path: Path, fill: Paint, line: Paint, line_width: float) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class DrawCall:
    name: str
    args: Tuple[Any, ...]


@dataclass
class RecordingSink(DrawingSink):
    """Keeps every call in order, for tests and inspection."""

    calls: List[DrawCall] = field(default_factory=list)
    gradients: List[ResolvedGradient] = field(default_factory=list)
    size: Tuple[int, int] | None = None
    finished: bool = False

    def begin_document(self, width: int, height: int) -> None:
        self.size = (width, height)

    def end_document(self) -> None:
        self.finished = True

    def create_gradient(self, gradient: ResolvedGradient) -> str:
        self.gradients.append(gradient)
        return f"gradient{len(self.gradients)}"

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append(DrawCall(name=name, args=args))

    def fill_polygon(self, points, fill):
        self._record("fill_polygon", tuple(points), fill)

    def fill_rectangles(self, rects, fill):
        self._record("fill_rectangles", tuple(rects), fill)

    def fill_path(self, path, fill):
        self._record("fill_path", path, fill)

    def draw_lines(self, lines, line, line_width):
        self._record("draw_lines", tuple(lines), line, line_width)

    def draw_line_loop(self, points, line, line_width):
        self._record("draw_line_loop", tuple(points), line, line_width)

    def draw_line_strip(self, points, line, line_width):
        self._record("draw_line_strip", tuple(points), line, line_width)

    def draw_line_path(self, path, line, line_width):
        self._record("draw_line_path", path, line, line_width)

    def outline_fill_polygon(self, points, fill, line, line_width):
        self._record("outline_fill_polygon", tuple(points), fill, line, line_width)

    def outline_fill_rectangles(self, rects, fill, line, line_width):
        self._record("outline_fill_rectangles", tuple(rects), fill, line, line_width)

    def outline_fill_path(self, path, fill, line, line_width):
        self._record("outline_fill_path", path, fill, line, line_width)
