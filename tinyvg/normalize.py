"""
Geometry/style normalization between the SVG reader and the encoder.

A single top-down pass resolves every inheritable presentation property, so
each shape leaves here with its final fill and line style (or ``None``), the
color table is deduplicated to 12-bit color depth, and the image size,
viewport and starting scale bits are fixed before any command is encoded.
Coordinates stay in SVG user space; the encoder maps them to the image.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from .colors import translate_color
from .entities import (
    Color,
    FlatStyle,
    LinearGradientStyle,
    Point,
    RadialGradientStyle,
    Style,
)
from .errors import EncodeError
from .geometry import (
    bounding_box,
    colors_match,
    iter_path_points,
    polygon_points,
    split_subpaths,
)
from .logging import ConversionLog
from .svg_path import parse_svg_path
from .svg_reader import SvgDocumentTree, SvgGradient, SvgNode, parse_length
from .units import select_scale_bits

INHERITED_PROPERTIES = (
    "fill",
    "stroke",
    "stroke-width",
    "fill-opacity",
    "stroke-opacity",
    "color",
    "fill-rule",
)
DEFAULT_FILL = "#000"
DEFAULT_LINE_WIDTH = 1.0

_URL = re.compile(r"^url\(\s*['\"]?#([^)'\"]+)['\"]?\s*\)\s*(.*)$")


# -- shapes -------------------------------------------------------------------


@dataclass(frozen=True)
class PathShape:
    data: str


@dataclass(frozen=True)
class PolygonShape:
    points: Tuple[Point, ...]
    closed: bool


@dataclass(frozen=True)
class LineShape:
    start: Point
    end: Point


@dataclass(frozen=True)
class RectShape:
    x: float
    y: float
    width: float
    height: float
    rx: float = 0.0
    ry: float = 0.0


@dataclass(frozen=True)
class CircleShape:
    cx: float
    cy: float
    r: float


@dataclass(frozen=True)
class EllipseShape:
    cx: float
    cy: float
    rx: float
    ry: float


Shape = Union[PathShape, PolygonShape, LineShape, RectShape, CircleShape, EllipseShape]


def shape_bounds(shape: Shape) -> Optional[Tuple[float, float, float, float]]:
    """``(min_x, min_y, max_x, max_y)`` in user space, or ``None`` for empty shapes."""

    if isinstance(shape, PathShape):
        return bounding_box(iter_path_points(split_subpaths(parse_svg_path(shape.data))))
    if isinstance(shape, PolygonShape):
        return bounding_box(shape.points)
    if isinstance(shape, LineShape):
        return bounding_box((shape.start, shape.end))
    if isinstance(shape, RectShape):
        return (shape.x, shape.y, shape.x + shape.width, shape.y + shape.height)
    if isinstance(shape, CircleShape):
        r = abs(shape.r)
        return (shape.cx - r, shape.cy - r, shape.cx + r, shape.cy + r)
    if isinstance(shape, EllipseShape):
        rx, ry = abs(shape.rx), abs(shape.ry)
        return (shape.cx - rx, shape.cy - ry, shape.cx + rx, shape.cy + ry)
    raise TypeError(f"not a shape: {shape!r}")


def _number(node: SvgNode, name: str, default: float = 0.0) -> float:
    return parse_length(node.get(name), default)


def build_shape(node: SvgNode) -> Optional[Shape]:
    kind = node.kind
    if kind == "path":
        return PathShape(node.get("d", "") or "")
    if kind in ("polygon", "polyline"):
        return PolygonShape(tuple(polygon_points(node.get("points", "") or "")), closed=kind == "polygon")
    if kind == "line":
        return LineShape(
            (_number(node, "x1"), _number(node, "y1")),
            (_number(node, "x2"), _number(node, "y2")),
        )
    if kind == "rect":
        rx_text, ry_text = node.get("rx"), node.get("ry")
        rx = parse_length(rx_text if rx_text is not None else ry_text, 0.0)
        ry = parse_length(ry_text if ry_text is not None else rx_text, 0.0)
        return RectShape(
            _number(node, "x"),
            _number(node, "y"),
            _number(node, "width"),
            _number(node, "height"),
            rx,
            ry,
        )
    if kind == "circle":
        return CircleShape(_number(node, "cx"), _number(node, "cy"), _number(node, "r"))
    if kind == "ellipse":
        rx_text, ry_text = node.get("rx"), node.get("ry")
        rx = parse_length(rx_text if rx_text is not None else ry_text, 0.0)
        ry = parse_length(ry_text if ry_text is not None else rx_text, 0.0)
        return EllipseShape(_number(node, "cx"), _number(node, "cy"), rx, ry)
    return None


# -- document model -------------------------------------------------------------


@dataclass(frozen=True)
class Viewport:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class NormalizedNode:
    shape: Shape
    fill: Optional[Style]
    line: Optional[Style]
    line_width: float
    element_id: Optional[str] = None


@dataclass(frozen=True)
class NormalizedDocument:
    width: int
    height: int
    viewport: Viewport
    scale_bits: int
    colors: Tuple[Color, ...]
    nodes: Tuple[NormalizedNode, ...]
    fully_supported: bool = True


class ColorTable:
    """Insertion-ordered colors; near-equal colors share one slot."""

    def __init__(self) -> None:
        self._colors: List[Color] = []

    def __len__(self) -> int:
        return len(self._colors)

    def insert(self, color: Color) -> int:
        for index, existing in enumerate(self._colors):
            if colors_match(existing, color):
                return index
        self._colors.append(color)
        return len(self._colors) - 1

    def freeze(self) -> Tuple[Color, ...]:
        return tuple(self._colors)


# -- size resolution ------------------------------------------------------------


def parse_svg_size(text: Optional[str]) -> int:
    """Width/height attribute to whole pixels; empty and ``auto`` give 0."""

    if text is None or not text.strip() or text.strip().lower() == "auto":
        return 0
    match = re.match(r"\s*([0-9.]*)", text)
    digits = match.group(1) if match else ""
    try:
        return int(float(digits) + 0.5)
    except ValueError:
        return 0


def parse_view_box(text: str) -> Tuple[float, float, float, float]:
    parts = [part for part in re.split(r"[\s,]+", text.strip()) if part]
    if len(parts) != 4:
        raise EncodeError(f"viewBox needs four numbers, got {text!r}")
    try:
        x, y, width, height = (float(part) for part in parts)
    except ValueError:
        raise EncodeError(f"viewBox needs four numbers, got {text!r}") from None
    return x, y, width, height


def resolve_size(
    width_text: Optional[str], height_text: Optional[str], view_box_text: Optional[str]
) -> Tuple[int, int, Viewport]:
    width = parse_svg_size(width_text)
    height = parse_svg_size(height_text)
    view_box = parse_view_box(view_box_text) if view_box_text and view_box_text.strip() else None

    if width == 0 and height == 0:
        if view_box is not None:
            width = int(view_box[2] + 0.5)
            height = int(view_box[3] + 0.5)
    elif width == 0:
        width = height
    elif height == 0:
        height = width

    if view_box is None:
        view_box = (0.0, 0.0, float(width), float(height))
    if width <= 0 or height <= 0 or view_box[2] <= 0 or view_box[3] <= 0:
        raise EncodeError("SVG document has no usable width/height or viewBox")
    return width, height, Viewport(*view_box)


# -- normalizer -----------------------------------------------------------------


class Normalizer:
    def __init__(self, tree: SvgDocumentTree, log: Optional[ConversionLog] = None) -> None:
        self.tree = tree
        self.log = log if log is not None else ConversionLog()
        self.colors = ColorTable()
        self.nodes: List[NormalizedNode] = []
        self.fully_supported = tree.fully_supported
        self.viewport = Viewport(0.0, 0.0, 0.0, 0.0)

    def _issue(self, message: str) -> None:
        self.log.record(message)
        self.fully_supported = False

    def run(self, scale_bits: Optional[int] = None) -> NormalizedDocument:
        width, height, self.viewport = resolve_size(self.tree.width, self.tree.height, self.tree.view_box)
        self._visit(self.tree.root, {}, 1.0)
        if len(self.colors) == 0:
            self.colors.insert(Color(0.0, 0.0, 0.0, 1.0))
        if scale_bits is None:
            scale_bits = select_scale_bits(width, height)
        return NormalizedDocument(
            width=width,
            height=height,
            viewport=self.viewport,
            scale_bits=scale_bits,
            colors=self.colors.freeze(),
            nodes=tuple(self.nodes),
            fully_supported=self.fully_supported,
        )

    def _visit(self, node: SvgNode, inherited: Dict[str, str], opacity: float) -> None:
        properties = dict(inherited)
        for name in INHERITED_PROPERTIES:
            value = node.get(name)
            if value is not None and value.strip() != "inherit":
                properties[name] = value.strip()
        opacity *= max(0.0, min(1.0, parse_length(node.get("opacity"), 1.0)))

        if node.is_group:
            for child in node.children:
                self._visit(child, properties, opacity)
            return

        shape = build_shape(node)
        if shape is None:
            return

        fill: Optional[Style] = None
        if node.kind != "line":
            fill_spec = properties.get("fill", DEFAULT_FILL)
            fill_opacity = parse_length(properties.get("fill-opacity"), 1.0)
            fill = self._paint(fill_spec, opacity * fill_opacity, shape, properties)

        line: Optional[Style] = None
        stroke_spec = properties.get("stroke") or properties.get("color")
        if stroke_spec is not None:
            stroke_opacity = parse_length(properties.get("stroke-opacity"), 1.0)
            line = self._paint(stroke_spec, opacity * stroke_opacity, shape, properties)

        if fill is None and line is None:
            return
        self.nodes.append(
            NormalizedNode(
                shape=shape,
                fill=fill,
                line=line,
                line_width=parse_length(properties.get("stroke-width"), DEFAULT_LINE_WIDTH),
                element_id=node.element_id,
            )
        )

    def _flat(self, spec: str, alpha: float) -> FlatStyle:
        color, ok = translate_color(spec, alpha)
        if not ok:
            self._issue(f"Failed to translate color spec '{spec}'")
        return FlatStyle(self.colors.insert(color))

    def _paint(self, spec: str, alpha: float, shape: Shape, properties: Dict[str, str]) -> Optional[Style]:
        spec = spec.strip()
        if spec == "none":
            return None
        if spec == "currentColor":
            spec = properties.get("color", "black")
        match = _URL.match(spec)
        if match is None:
            return self._flat(spec, alpha)
        gradient = self.tree.gradients.get(match.group(1))
        fallback = match.group(2).strip()
        if gradient is None:
            self._issue(f"Unknown paint server url(#{match.group(1)})")
            if fallback and fallback != "none":
                return self._flat(fallback, alpha)
            return None
        return self._gradient(gradient, alpha, shape)

    def _gradient(self, gradient: SvgGradient, alpha: float, shape: Shape) -> Optional[Style]:
        if not gradient.stops:
            self._issue(f"Gradient {gradient.element_id} has no stops")
            return None
        first, last = gradient.stops[0].color, gradient.stops[-1].color
        if len(gradient.stops) == 1:
            return FlatStyle(self.colors.insert(first.with_alpha(first.a * alpha)))
        index0 = self.colors.insert(first.with_alpha(first.a * alpha))
        index1 = self.colors.insert(last.with_alpha(last.a * alpha))

        if gradient.kind == "linear":
            raw0 = (self._gradient_x(gradient, "x1", 0.0), self._gradient_y(gradient, "y1", 0.0))
            raw1 = (self._gradient_x(gradient, "x2", 1.0), self._gradient_y(gradient, "y2", 0.0))
        else:
            cx = self._gradient_x(gradient, "cx", 0.5)
            cy = self._gradient_y(gradient, "cy", 0.5)
            r = self._gradient_radius(gradient)
            raw0 = (cx, cy)
            raw1 = (cx, cy + r)

        if gradient.units == "objectBoundingBox":
            bounds = shape_bounds(shape)
            if bounds is None or bounds[2] - bounds[0] <= 0 or bounds[3] - bounds[1] <= 0:
                self._issue("Gradient on zero-sized shapes is not allowed")
                return None
            bx, by = bounds[0], bounds[1]
            bw, bh = bounds[2] - bounds[0], bounds[3] - bounds[1]
            raw0 = (bx + raw0[0] * bw, by + raw0[1] * bh)
            raw1 = (bx + raw1[0] * bw, by + raw1[1] * bh)

        cls = LinearGradientStyle if gradient.kind == "linear" else RadialGradientStyle
        return cls(point0=raw0, point1=raw1, color_index0=index0, color_index1=index1)

    def _user_space_value(self, gradient: SvgGradient, name: str, default: float, origin: float, extent: float) -> float:
        text = gradient.attributes.get(name)
        value = gradient.number(name, default)
        if gradient.units == "objectBoundingBox":
            return value
        if text is None or text.strip().endswith("%"):
            return origin + value * extent
        return value

    def _gradient_x(self, gradient: SvgGradient, name: str, default: float) -> float:
        return self._user_space_value(gradient, name, default, self.viewport.x, self.viewport.width)

    def _gradient_y(self, gradient: SvgGradient, name: str, default: float) -> float:
        return self._user_space_value(gradient, name, default, self.viewport.y, self.viewport.height)

    def _gradient_radius(self, gradient: SvgGradient) -> float:
        diagonal = math.sqrt((self.viewport.width**2 + self.viewport.height**2) / 2.0)
        return self._user_space_value(gradient, "r", 0.5, 0.0, diagonal)


def normalize(
    tree: SvgDocumentTree,
    log: Optional[ConversionLog] = None,
    *,
    scale_bits: Optional[int] = None,
) -> NormalizedDocument:
    """Resolve styles, colors and image size for ``tree``."""

    return Normalizer(tree, log).run(scale_bits)
