"""Tests for tinyvg.normalize: style inheritance, colors and image size."""

from __future__ import annotations

import pytest

from tinyvg.entities import Color, FlatStyle, LinearGradientStyle, RadialGradientStyle
from tinyvg.errors import EncodeError
from tinyvg.logging import ConversionLog
from tinyvg.normalize import (
    CircleShape,
    ColorTable,
    LineShape,
    PolygonShape,
    RectShape,
    Viewport,
    normalize,
    parse_svg_size,
    resolve_size,
    shape_bounds,
)
from tinyvg.svg_reader import read_svg


def normalized(body: str, *, size: str = 'width="100" height="100"', log: ConversionLog | None = None):
    markup = f'<svg xmlns="http://www.w3.org/2000/svg" {size}>{body}</svg>'
    return normalize(read_svg(markup, log), log)


# ---------------------------------------------------------------------------
# TestStyles
# ---------------------------------------------------------------------------

class TestStyles:
    def test_default_fill_is_black(self):
        doc = normalized('<rect width="10" height="10"/>')
        node = doc.nodes[0]
        assert doc.colors == (Color(0.0, 0.0, 0.0, 1.0),)
        assert node.fill == FlatStyle(0)
        assert node.line is None
        assert node.shape == RectShape(0.0, 0.0, 10.0, 10.0)

    def test_group_fill_is_inherited(self):
        doc = normalized('<g fill="red"><rect width="1" height="1"/></g>')
        assert doc.colors == (Color(1.0, 0.0, 0.0, 1.0),)

    def test_child_overrides_group(self):
        doc = normalized('<g fill="red"><rect fill="blue" width="1" height="1"/></g>')
        assert doc.colors == (Color(0.0, 0.0, 1.0, 1.0),)

    def test_opacity_multiplies_down_the_tree(self):
        doc = normalized('<g opacity="0.5"><rect opacity="0.5" fill="red" width="1" height="1"/></g>')
        assert doc.colors[0].a == 0.25

    def test_fill_opacity(self):
        doc = normalized('<rect fill="red" fill-opacity="0.5" width="1" height="1"/>')
        assert doc.colors[0] == Color(1.0, 0.0, 0.0, 0.5)

    def test_line_elements_are_never_filled(self):
        doc = normalized('<line x2="10" y2="10" stroke="red" stroke-width="3"/>')
        node = doc.nodes[0]
        assert node.fill is None
        assert node.line == FlatStyle(0)
        assert node.line_width == 3.0
        assert node.shape == LineShape((0.0, 0.0), (10.0, 10.0))

    def test_unstroked_line_is_dropped(self):
        doc = normalized('<line x2="10" y2="10"/>')
        assert doc.nodes == ()

    def test_fill_none_with_stroke(self):
        doc = normalized('<circle r="4" fill="none" stroke="blue"/>')
        node = doc.nodes[0]
        assert node.fill is None
        assert node.line == FlatStyle(0)
        assert node.line_width == 1.0
        assert node.shape == CircleShape(0.0, 0.0, 4.0)

    def test_invisible_shape_is_dropped(self):
        doc = normalized('<rect fill="none" width="1" height="1"/>')
        assert doc.nodes == ()
        assert doc.colors == (Color(0.0, 0.0, 0.0, 1.0),)

    def test_current_color(self):
        doc = normalized('<g color="lime"><rect fill="currentColor" width="1" height="1"/></g>')
        assert doc.colors[doc.nodes[0].fill.color_index] == Color(0.0, 1.0, 0.0, 1.0)

    def test_polyline_points(self):
        doc = normalized('<polyline points="0,0 5,5 10,0" fill="none" stroke="red"/>')
        assert doc.nodes[0].shape == PolygonShape(((0.0, 0.0), (5.0, 5.0), (10.0, 0.0)), closed=False)

    def test_element_id_is_kept(self):
        doc = normalized('<rect id="box" width="1" height="1"/>')
        assert doc.nodes[0].element_id == "box"


# ---------------------------------------------------------------------------
# TestColorTable
# ---------------------------------------------------------------------------

class TestColorTable:
    def test_equal_colors_share_an_index(self):
        doc = normalized(
            '<rect fill="red" width="1" height="1"/>'
            '<rect fill="#ff0000" width="1" height="1"/>'
            '<rect fill="blue" width="1" height="1"/>'
        )
        assert len(doc.colors) == 2
        assert [node.fill.color_index for node in doc.nodes] == [0, 0, 1]

    def test_near_equal_colors_collapse(self):
        table = ColorTable()
        assert table.insert(Color(0.5, 0.5, 0.5, 1.0)) == 0
        assert table.insert(Color(0.5 + 0.5 / 4096, 0.5, 0.5, 1.0)) == 0
        assert table.insert(Color(0.5 + 2 / 4096, 0.5, 0.5, 1.0)) == 1
        assert table.freeze() == (Color(0.5, 0.5, 0.5, 1.0), Color(0.5 + 2 / 4096, 0.5, 0.5, 1.0))

    def test_near_equal_colors_share_an_index_in_documents(self):
        doc = normalized(
            '<rect fill="rgb(128,128,128)" width="1" height="1"/>'
            '<rect fill="rgb(128,128,128)" fill-opacity="0.99999" width="1" height="1"/>'
        )
        assert len(doc.colors) == 1

    def test_bad_color_uses_placeholder(self):
        log = ConversionLog()
        doc = normalized('<rect fill="notacolor" width="1" height="1"/>', log=log)
        assert doc.colors == (Color(1.0, 0.0, 1.0, 1.0),)
        assert "Failed to translate color spec 'notacolor'" in log.lines
        assert not doc.fully_supported


# ---------------------------------------------------------------------------
# TestGradients
# ---------------------------------------------------------------------------

GRADIENT_STOPS = '<stop offset="0" stop-color="red"/><stop offset="1" stop-color="blue"/>'


class TestGradients:
    def test_bounding_box_units(self):
        doc = normalized(
            f'<defs><linearGradient id="g">{GRADIENT_STOPS}</linearGradient></defs>'
            '<rect x="10" y="20" width="100" height="50" fill="url(#g)"/>'
        )
        style = doc.nodes[0].fill
        assert isinstance(style, LinearGradientStyle)
        assert style.point0 == (10.0, 20.0)
        assert style.point1 == (110.0, 20.0)
        assert doc.colors[style.color_index0] == Color(1.0, 0.0, 0.0, 1.0)
        assert doc.colors[style.color_index1] == Color(0.0, 0.0, 1.0, 1.0)

    def test_user_space_units(self):
        doc = normalized(
            '<defs><linearGradient id="g" gradientUnits="userSpaceOnUse" x1="5" y1="6" x2="50" y2="60">'
            f"{GRADIENT_STOPS}</linearGradient></defs>"
            '<rect width="100" height="100" fill="url(#g)"/>'
        )
        style = doc.nodes[0].fill
        assert (style.point0, style.point1) == ((5.0, 6.0), (50.0, 60.0))

    def test_radial_gradient(self):
        doc = normalized(
            f'<defs><radialGradient id="r">{GRADIENT_STOPS}</radialGradient></defs>'
            '<rect width="20" height="40" fill="url(#r)"/>'
        )
        style = doc.nodes[0].fill
        assert isinstance(style, RadialGradientStyle)
        assert style.point0 == (10.0, 20.0)
        assert style.point1 == (10.0, 40.0)

    def test_single_stop_is_flat(self):
        doc = normalized(
            '<defs><linearGradient id="g"><stop stop-color="lime"/></linearGradient></defs>'
            '<rect width="1" height="1" fill="url(#g)"/>'
        )
        assert doc.nodes[0].fill == FlatStyle(0)
        assert doc.colors == (Color(0.0, 1.0, 0.0, 1.0),)

    def test_unknown_paint_server(self):
        log = ConversionLog()
        doc = normalized('<rect width="1" height="1" fill="url(#missing)"/>', log=log)
        assert "Unknown paint server url(#missing)" in log.lines
        assert doc.nodes == ()
        assert not doc.fully_supported

    def test_unknown_paint_server_fallback(self):
        doc = normalized('<rect width="1" height="1" fill="url(#missing) red"/>')
        assert doc.nodes[0].fill == FlatStyle(0)
        assert doc.colors == (Color(1.0, 0.0, 0.0, 1.0),)

    def test_zero_sized_shape(self):
        log = ConversionLog()
        normalized(
            f'<defs><linearGradient id="g">{GRADIENT_STOPS}</linearGradient></defs>'
            '<line x2="10" stroke="url(#g)"/>',
            log=log,
        )
        assert "Gradient on zero-sized shapes is not allowed" in log.lines


# ---------------------------------------------------------------------------
# TestSize
# ---------------------------------------------------------------------------

class TestSize:
    def test_parse_svg_size(self):
        assert parse_svg_size("10.6px") == 11
        assert parse_svg_size("auto") == 0
        assert parse_svg_size("") == 0
        assert parse_svg_size(None) == 0

    def test_explicit_size(self):
        assert resolve_size("10", "20", None) == (10, 20, Viewport(0.0, 0.0, 10.0, 20.0))

    def test_view_box_only(self):
        assert resolve_size(None, None, "0 0 30 40") == (30, 40, Viewport(0.0, 0.0, 30.0, 40.0))

    def test_missing_side_copies_the_other(self):
        assert resolve_size("50", None, None)[:2] == (50, 50)
        assert resolve_size(None, "8", "0 0 4 4")[:2] == (8, 8)

    def test_size_and_view_box(self):
        width, height, viewport = resolve_size("200", "100", "-5 5,100 50")
        assert (width, height) == (200, 100)
        assert viewport == Viewport(-5.0, 5.0, 100.0, 50.0)

    def test_no_usable_size(self):
        with pytest.raises(EncodeError):
            resolve_size(None, None, None)

    def test_bad_view_box(self):
        with pytest.raises(EncodeError):
            resolve_size("10", "10", "0 0 10")

    def test_scale_bits_follow_size(self):
        assert normalized("").scale_bits == 7

    def test_explicit_scale_bits(self):
        tree = read_svg('<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"/>')
        assert normalize(tree, scale_bits=3).scale_bits == 3


def test_shape_bounds():
    assert shape_bounds(RectShape(1.0, 2.0, 3.0, 4.0)) == (1.0, 2.0, 4.0, 6.0)
    assert shape_bounds(CircleShape(0.0, 0.0, -2.0)) == (-2.0, -2.0, 2.0, 2.0)
