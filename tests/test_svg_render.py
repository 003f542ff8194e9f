"""Tests for tinyvg.svg_render: decoded documents replayed as SVG markup."""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from tinyvg.entities import (
    ArcTo,
    Color,
    ColorEncoding,
    CoordinateRange,
    DrawLineStrip,
    FillPath,
    FlatStyle,
    Header,
    LinearGradientStyle,
    OutlineFillRectangles,
    RadialGradientStyle,
    Rect,
    Subpath,
    TvgDocument,
)
from tinyvg.errors import DecodeError
from tinyvg.svg_render import SVG_NAMESPACE, SvgRenderSink, color_hex, render_svg
from tinyvg.writer import write_document
from tests.builders import document, fill_rectangles_body

NS = {"svg": SVG_NAMESPACE}
RED = Color(1.0, 0.0, 0.0, 1.0)
BLUE = Color(0.0, 0.0, 1.0, 0.5)


def encoded(*commands, colors=(RED, BLUE)) -> bytes:
    header = Header(
        scale=0,
        color_encoding=ColorEncoding.RGBA8888,
        coordinate_range=CoordinateRange.DEFAULT,
        width=20,
        height=10,
    )
    return write_document(TvgDocument(header=header, colors=tuple(colors), commands=tuple(commands)))


def parse(markup: str) -> ET.Element:
    return ET.fromstring(markup)


def gradient_document() -> bytes:
    fill = LinearGradientStyle((0, 0), (10, 0), 0, 1)
    line = RadialGradientStyle((5, 5), (8, 9), 1, 0)
    return encoded(OutlineFillRectangles(fill, line, 2, (Rect(0, 0, 10, 10),)))


# ---------------------------------------------------------------------------
# TestDocument
# ---------------------------------------------------------------------------

class TestDocument:
    def test_root_attributes(self):
        root = parse(render_svg(encoded(DrawLineStrip(FlatStyle(0), 1, ((0, 0), (5, 5))))))
        assert root.tag == f"{{{SVG_NAMESPACE}}}svg"
        assert root.get("width") == "20"
        assert root.get("height") == "10"
        assert root.get("viewBox") == "0 0 20 10"

    def test_scenario_a(self):
        root = parse(render_svg(document(fill_rectangles_body([(0, 0, 5, 5)]))))
        group = root.find("svg:g", NS)
        assert group.get("fill") == "#ff0000"
        assert group.get("fill-opacity") == "1"
        assert group.get("fill-rule") == "evenodd"
        rect = group.find("svg:rect", NS)
        assert (rect.get("x"), rect.get("y"), rect.get("width"), rect.get("height")) == ("0", "0", "5", "5")

    def test_corrupt_input_raises(self):
        with pytest.raises(DecodeError):
            render_svg(b"\x72\x56\x02")

    def test_sink_needs_begin_document(self):
        with pytest.raises(RuntimeError):
            SvgRenderSink().tostring()


# ---------------------------------------------------------------------------
# TestPaint
# ---------------------------------------------------------------------------

class TestPaint:
    def test_color_hex(self):
        assert color_hex(Color(1.0, 0.5, 0.0, 0.2)) == "#ff8000"

    def test_translucent_stroke(self):
        root = parse(render_svg(encoded(DrawLineStrip(FlatStyle(1), 3, ((0, 0), (5, 5))))))
        polyline = root.find("svg:polyline", NS)
        assert polyline.get("stroke") == "#0000ff"
        assert polyline.get("stroke-opacity") == "0.501961"
        assert polyline.get("stroke-width") == "3"
        assert polyline.get("fill") == "none"
        assert polyline.get("points") == "0,0 5,5"

    def test_zero_line_width_stays_visible(self):
        root = parse(render_svg(encoded(DrawLineStrip(FlatStyle(0), 0, ((0, 0), (5, 5))))))
        assert root.find("svg:polyline", NS).get("stroke-width") == "0.001"

    def test_path_arc_uses_svg_sweep_flag(self):
        path = (Subpath((0, 0), (ArcTo(5, 5, 0, False, False, (10, 10)),)),)
        root = parse(render_svg(encoded(FillPath(FlatStyle(0), path))))
        assert root.find("svg:path", NS).get("d") == "M 0 0 A 5 5 0 0 1 10 10"


# ---------------------------------------------------------------------------
# TestGradients
# ---------------------------------------------------------------------------

class TestGradients:
    def test_ids_follow_request_order(self):
        root = parse(render_svg(gradient_document()))
        defs = root[0]
        assert defs.tag == f"{{{SVG_NAMESPACE}}}defs"
        linear, radial = list(defs)
        assert linear.tag.endswith("linearGradient")
        assert linear.get("id") == "TvgGradient1"
        assert radial.tag.endswith("radialGradient")
        assert radial.get("id") == "TvgGradient2"
        group = root.find("svg:g", NS)
        assert group.get("fill") == "url(#TvgGradient1)"
        assert group.get("stroke") == "url(#TvgGradient2)"

    def test_radial_geometry(self):
        radial = parse(render_svg(gradient_document())).find("svg:defs/svg:radialGradient", NS)
        assert (radial.get("cx"), radial.get("cy"), radial.get("fx"), radial.get("fy")) == ("5", "5", "5", "5")
        assert radial.get("r") == "5"
        assert radial.get("gradientUnits") == "userSpaceOnUse"

    def test_stops(self):
        linear = parse(render_svg(gradient_document())).find("svg:defs/svg:linearGradient", NS)
        stops = linear.findall("svg:stop", NS)
        assert [stop.get("offset") for stop in stops] == ["0%", "100%"]
        assert [stop.get("stop-color") for stop in stops] == ["#ff0000", "#0000ff"]

    def test_numbering_restarts_per_document(self):
        first = render_svg(gradient_document())
        second = render_svg(gradient_document())
        assert first == second
        assert "TvgGradient3" not in second

    def test_flat_document_has_no_defs(self):
        root = parse(render_svg(document(fill_rectangles_body([(0, 0, 5, 5)]))))
        assert root.find("svg:defs", NS) is None
