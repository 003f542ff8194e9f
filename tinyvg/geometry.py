from __future__ import annotations

import math
import re
from typing import Iterable, List, Sequence, Tuple

from .entities import (
    ArcTo,
    Close,
    Color,
    CubicTo,
    HorizontalTo,
    LineTo,
    MoveTo,
    Path,
    PathPrimitive,
    Point,
    QuadTo,
    Segment,
    Subpath,
    VerticalTo,
)

COLOR_TOLERANCE = 1.0 / 4096.0  # 12 bit color depth

_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def colors_match(c1: Color, c2: Color, tol: float = COLOR_TOLERANCE) -> bool:
    return (
        abs(c1.r - c2.r) < tol
        and abs(c1.g - c2.g) < tol
        and abs(c1.b - c2.b) < tol
        and abs(c1.a - c2.a) < tol
    )


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def segment_end(segment: Segment, current: Point, start: Point) -> Point:
    """Return the pen position after ``segment`` is drawn from ``current``."""

    if isinstance(segment, LineTo):
        return segment.point
    if isinstance(segment, HorizontalTo):
        return (segment.x, current[1])
    if isinstance(segment, VerticalTo):
        return (current[0], segment.y)
    if isinstance(segment, (CubicTo, QuadTo, ArcTo)):
        return segment.end
    if isinstance(segment, Close):
        return start
    raise TypeError(f"not a path segment: {segment!r}")


def split_subpaths(primitives: Iterable[PathPrimitive]) -> Path:
    """
    Group a flat primitive stream into subpaths. A subpath starts at a MoveTo
    and ends at Close or at the next MoveTo; drawing after a Close without a
    new MoveTo opens a fresh subpath at the closed subpath's start point.
    A Close with nothing drawn before it is ignored, and subpaths without any
    segment are dropped.
    """

    subpaths: List[Subpath] = []
    start: Point | None = None
    current: Point | None = None
    segments: List[Segment] = []

    def _flush() -> None:
        if start is not None and segments:
            subpaths.append(Subpath(start=start, segments=tuple(segments)))

    for primitive in primitives:
        if isinstance(primitive, MoveTo):
            _flush()
            start = current = primitive.point
            segments = []
            continue
        if start is None or current is None:
            raise ValueError("path segment emitted before any MoveTo")
        if isinstance(primitive, Close) and not segments:
            current = start
            continue
        segments.append(primitive)
        current = segment_end(primitive, current, start)
        if isinstance(primitive, Close):
            _flush()
            segments = []
    _flush()
    return tuple(subpaths)


def iter_path_points(path: Path) -> Iterable[Point]:
    """Yield every point a path touches, control points included."""

    for subpath in path:
        current = subpath.start
        yield current
        for segment in subpath.segments:
            if isinstance(segment, CubicTo):
                yield segment.control1
                yield segment.control2
            elif isinstance(segment, QuadTo):
                yield segment.control
            elif isinstance(segment, ArcTo):
                rx, ry = abs(segment.radius_x), abs(segment.radius_y)
                r = max(rx, ry)
                # arcs may bulge up to one radius beyond their end points
                yield (segment.end[0] - r, segment.end[1] - r)
                yield (segment.end[0] + r, segment.end[1] + r)
            current = segment_end(segment, current, subpath.start)
            yield current


def bounding_box(points: Iterable[Point]) -> Tuple[float, float, float, float] | None:
    xs: List[float] = []
    ys: List[float] = []
    for x, y in points:
        xs.append(x)
        ys.append(y)
    if not xs:
        return None
    return min(xs), min(ys), max(xs), max(ys)


def polygon_points(text: str) -> List[Point]:
    """Parse an SVG ``points`` attribute; a dangling odd coordinate is dropped."""

    values = [float(tok) for tok in _NUMBER.findall(text)]
    return [(values[idx], values[idx + 1]) for idx in range(0, len(values) - 1, 2)]


def rectangle_corners(x: float, y: float, width: float, height: float) -> Sequence[Point]:
    return ((x, y), (x + width, y), (x + width, y + height), (x, y + height))
