"""
Materializes decoded TinyVG commands as SVG markup.

Every command becomes one SVG element (rectangle and line lists become a
``<g>`` holding one child per item, the paint attributes sit on the group).
Gradients are registered in ``<defs>`` as ``TvgGradient1``, ``TvgGradient2``,
... in the order the commands request them.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, Optional, Sequence

from .decoder import render
from .entities import Color, Line, Path, Point, Rect, StyleKind
from .sink import DrawingSink, Paint, ResolvedGradient
from .svg_path import format_number, format_svg_path

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
# SVG has no hairline stroke; zero would hide the line entirely
MIN_LINE_WIDTH = 0.001


def color_hex(color: Color) -> str:
    r, g, b, _ = color.to_rgba8()
    return f"#{r:02x}{g:02x}{b:02x}"


def _points_text(points: Sequence[Point]) -> str:
    return " ".join(f"{format_number(x)},{format_number(y)}" for x, y in points)


class SvgRenderSink(DrawingSink):
    def __init__(self) -> None:
        self.root: Optional[ET.Element] = None
        self.defs: Optional[ET.Element] = None
        self.gradient_count = 0

    def begin_document(self, width: int, height: int) -> None:
        self.root = ET.Element(
            "svg",
            {
                "xmlns": SVG_NAMESPACE,
                "width": str(width),
                "height": str(height),
                "viewBox": f"0 0 {width} {height}",
            },
        )
        self.defs = None
        self.gradient_count = 0

    def _document(self) -> ET.Element:
        if self.root is None:
            raise RuntimeError("begin_document() was not called")
        return self.root

    def _defs(self) -> ET.Element:
        if self.defs is None:
            self.defs = ET.Element("defs")
            self._document().insert(0, self.defs)
        return self.defs

    def create_gradient(self, gradient: ResolvedGradient) -> str:
        self.gradient_count += 1
        gradient_id = f"TvgGradient{self.gradient_count}"
        (x0, y0), (x1, y1) = gradient.point0, gradient.point1
        if gradient.kind == StyleKind.LINEAR:
            node = ET.SubElement(
                self._defs(),
                "linearGradient",
                {
                    "id": gradient_id,
                    "x1": format_number(x0),
                    "y1": format_number(y0),
                    "x2": format_number(x1),
                    "y2": format_number(y1),
                },
            )
        else:
            node = ET.SubElement(
                self._defs(),
                "radialGradient",
                {
                    "id": gradient_id,
                    "cx": format_number(x0),
                    "cy": format_number(y0),
                    "fx": format_number(x0),
                    "fy": format_number(y0),
                    "r": format_number(gradient.radius),
                },
            )
        node.set("gradientUnits", "userSpaceOnUse")
        node.set("spreadMethod", "pad")
        for offset, color in (("0%", gradient.color0), ("100%", gradient.color1)):
            ET.SubElement(
                node,
                "stop",
                {"offset": offset, "stop-color": color_hex(color), "stop-opacity": format_number(color.a)},
            )
        return f"url(#{gradient_id})"

    # -- attribute helpers -------------------------------------------------------

    @staticmethod
    def _paint(target: str, paint: Paint) -> Dict[str, str]:
        if isinstance(paint, Color):
            return {target: color_hex(paint), f"{target}-opacity": format_number(paint.a)}
        return {target: str(paint)}

    def _fill(self, paint: Paint) -> Dict[str, str]:
        attributes = self._paint("fill", paint)
        attributes["fill-rule"] = "evenodd"
        attributes["stroke"] = "none"
        return attributes

    def _line(self, paint: Paint, line_width: float) -> Dict[str, str]:
        attributes = self._paint("stroke", paint)
        attributes["stroke-width"] = format_number(line_width if line_width > 0 else MIN_LINE_WIDTH)
        attributes["stroke-linecap"] = "round"
        attributes["stroke-linejoin"] = "round"
        attributes["fill"] = "none"
        return attributes

    def _outline(self, fill: Paint, line: Paint, line_width: float) -> Dict[str, str]:
        attributes = self._line(line, line_width)
        attributes.update(self._paint("fill", fill))
        attributes["fill-rule"] = "evenodd"
        return attributes

    def _add(self, tag: str, attributes: Dict[str, str]) -> ET.Element:
        return ET.SubElement(self._document(), tag, attributes)

    def _rects(self, rects: Sequence[Rect], attributes: Dict[str, str]) -> None:
        group = self._add("g", attributes)
        for rect in rects:
            ET.SubElement(
                group,
                "rect",
                {
                    "x": format_number(rect.x),
                    "y": format_number(rect.y),
                    "width": format_number(rect.width),
                    "height": format_number(rect.height),
                },
            )

    # -- draw calls ---------------------------------------------------------------

    def fill_polygon(self, points: Sequence[Point], fill: Paint) -> None:
        self._add("polygon", {"points": _points_text(points), **self._fill(fill)})

    def fill_rectangles(self, rects: Sequence[Rect], fill: Paint) -> None:
        self._rects(rects, self._fill(fill))

    def fill_path(self, path: Path, fill: Paint) -> None:
        self._add("path", {"d": format_svg_path(path), **self._fill(fill)})

    def draw_lines(self, lines: Sequence[Line], line: Paint, line_width: float) -> None:
        group = self._add("g", self._line(line, line_width))
        for segment in lines:
            (x1, y1), (x2, y2) = segment.start, segment.end
            ET.SubElement(
                group,
                "line",
                {"x1": format_number(x1), "y1": format_number(y1), "x2": format_number(x2), "y2": format_number(y2)},
            )

    def draw_line_loop(self, points: Sequence[Point], line: Paint, line_width: float) -> None:
        self._add("polygon", {"points": _points_text(points), **self._line(line, line_width)})

    def draw_line_strip(self, points: Sequence[Point], line: Paint, line_width: float) -> None:
        self._add("polyline", {"points": _points_text(points), **self._line(line, line_width)})

    def draw_line_path(self, path: Path, line: Paint, line_width: float) -> None:
        self._add("path", {"d": format_svg_path(path), **self._line(line, line_width)})

    def outline_fill_polygon(self, points: Sequence[Point], fill: Paint, line: Paint, line_width: float) -> None:
        self._add("polygon", {"points": _points_text(points), **self._outline(fill, line, line_width)})

    def outline_fill_rectangles(self, rects: Sequence[Rect], fill: Paint, line: Paint, line_width: float) -> None:
        self._rects(rects, self._outline(fill, line, line_width))

    def outline_fill_path(self, path: Path, fill: Paint, line: Paint, line_width: float) -> None:
        self._add("path", {"d": format_svg_path(path), **self._outline(fill, line, line_width)})

    def tostring(self) -> str:
        return ET.tostring(self._document(), encoding="unicode")


def render_svg(data: bytes) -> str:
    """Decode a binary TinyVG document and return equivalent SVG markup."""

    sink = SvgRenderSink()
    render(data, sink)
    return sink.tostring()
