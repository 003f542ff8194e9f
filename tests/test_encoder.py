"""Tests for tinyvg.encoder: shape conversion, viewport mapping and the precision-fit loop."""

from __future__ import annotations

import pytest

from tinyvg.decoder import decode
from tinyvg.encoder import (
    EncoderOptions,
    ViewportMapper,
    build_commands,
    encode_document,
    encode_svg,
    fit_document,
    split_oversized,
)
from tinyvg.entities import (
    ArcTo,
    Close,
    Color,
    ColorEncoding,
    DrawLineLoop,
    DrawLinePath,
    DrawLines,
    DrawLineStrip,
    EndDocument,
    FillPath,
    FillPolygon,
    FillRectangles,
    FlatStyle,
    Line,
    LineTo,
    MoveTo,
    OutlineFillPath,
    OutlineFillPolygon,
    OutlineFillRectangles,
    Rect,
)
from tinyvg.errors import EncodeError, UnitRangeError, UnsupportedColorFormatError
from tinyvg.logging import ConversionLog
from tinyvg.normalize import Viewport, normalize
from tinyvg.svg_reader import read_svg
from tests.builders import document, fill_rectangles_body

RED = Color(1.0, 0.0, 0.0, 1.0)


def svg(body: str, size: str = 'width="10" height="10"') -> str:
    return f'<svg xmlns="http://www.w3.org/2000/svg" {size}>{body}</svg>'


def commands_for(body: str, size: str = 'width="10" height="10"', log: ConversionLog | None = None):
    return build_commands(normalize(read_svg(svg(body, size), log), log), log)


def far_rect(x: float) -> FillRectangles:
    return FillRectangles(FlatStyle(0), (Rect(x, 0, 1, 1),))


# ---------------------------------------------------------------------------
# TestEncodeSvg
# ---------------------------------------------------------------------------

class TestEncodeSvg:
    def test_simple_rect(self):
        result = encode_svg(svg('<rect x="1" y="2" width="3" height="4" fill="red"/>'))
        assert result.scale_bits == 10
        assert len(result.attempts) == 1
        assert result.fully_supported
        decoded = decode(result.data)
        assert decoded.colors == (RED,)
        assert decoded.commands == (FillRectangles(FlatStyle(0), (Rect(1.0, 2.0, 3.0, 4.0),)), EndDocument())

    def test_text_output(self):
        result = encode_svg(svg('<rect width="5" height="5" fill="red"/>'), EncoderOptions(output="text"))
        assert isinstance(result.data, str)
        assert result.data.startswith("(tvg 1\n  (10 10 1/1024 u8888 default)")

    def test_explicit_scale_bits(self):
        result = encode_svg(svg('<rect width="5" height="5"/>'), EncoderOptions(scale_bits=0))
        assert result.data == document(fill_rectangles_body([(0, 0, 5, 5)]), colors=((0, 0, 0, 255),))

    def test_rgb565_header(self):
        result = encode_svg(svg('<rect width="5" height="5"/>'), EncoderOptions(color_encoding=ColorEncoding.RGB565))
        assert (result.data[3] >> 4) & 0x03 == int(ColorEncoding.RGB565)

    def test_unsupported_content_is_flagged(self):
        log = ConversionLog()
        result = encode_svg(svg('<rect class="a" width="5" height="5"/>'), log=log)
        assert not result.fully_supported
        assert "Unsupported attribute class" in log.lines

    def test_round_trip_through_decoder(self):
        markup = svg(
            '<defs><linearGradient id="g"><stop stop-color="red"/><stop offset="1" stop-color="blue"/>'
            "</linearGradient></defs>"
            '<path d="M1 1 L9 1 Q9 9 5 9 Z" fill="url(#g)" stroke="lime"/>'
            '<circle cx="5" cy="5" r="3" fill="none" stroke="red" stroke-width="0.5"/>'
        )
        data = encode_svg(markup).data
        assert encode_document(decode(data)) == data

    def test_re_encode_at_other_scale(self):
        data = document(fill_rectangles_body([(0, 0, 5, 5)]))
        rescaled = decode(encode_document(decode(data), 2))
        assert rescaled.header.scale == 2
        assert rescaled.commands[0] == FillRectangles(FlatStyle(0), (Rect(0.0, 0.0, 5.0, 5.0),))


# ---------------------------------------------------------------------------
# TestPrecisionFit
# ---------------------------------------------------------------------------

class TestPrecisionFit:
    def test_reduces_until_it_fits(self):
        log = ConversionLog()
        result = fit_document(10, 10, (RED,), (far_rect(1000),), 8, log=log)
        assert [attempt.scale_bits for attempt in result.attempts] == [8, 7, 6, 5]
        assert [attempt.ok for attempt in result.attempts] == [False, False, False, True]
        assert result.scale_bits == 5
        assert log.lines == ["Reducing bit range trying to fit 1000.0"] * 3

    def test_failed_attempts_carry_the_error(self):
        result = fit_document(10, 10, (RED,), (far_rect(1000),), 6)
        first = result.attempts[0]
        assert first.data is None
        assert first.error.value == 1000.0
        assert first.error.raw == 64000

    def test_first_attempt_fits(self):
        result = fit_document(10, 10, (RED,), (far_rect(3),), 4)
        assert len(result.attempts) == 1
        assert decode(result.data).header.scale == 4

    def test_scale_zero_overflow_is_fatal(self):
        with pytest.raises(UnitRangeError) as excinfo:
            fit_document(10, 10, (RED,), (far_rect(40000),), 2)
        assert excinfo.value.scale_bits == 0

    def test_attempt_budget(self):
        with pytest.raises(EncodeError) as excinfo:
            fit_document(10, 10, (RED,), (far_rect(1000),), 8, EncoderOptions(max_attempts=2))
        assert not isinstance(excinfo.value, UnitRangeError)

    def test_negative_coordinates_use_signed_range(self):
        result = fit_document(10, 10, (RED,), (far_rect(-20000),), 1)
        assert result.scale_bits == 0


# ---------------------------------------------------------------------------
# TestShapes
# ---------------------------------------------------------------------------

class TestShapes:
    def test_empty_path_is_omitted(self):
        assert commands_for('<path d=""/><path d="M1 1"/>') == ()

    def test_close_only_path_is_omitted(self):
        assert commands_for('<path d="M1 1 Z"/><path d="M2 2 z z"/>') == ()

    def test_fill_path(self):
        (command,) = commands_for('<path d="M0 0 L5 0 L5 5 Z"/>')
        assert isinstance(command, FillPath)
        assert command.path[0].segments == (LineTo((5.0, 0.0)), LineTo((5.0, 5.0)), Close())

    def test_stroke_only_path(self):
        (command,) = commands_for('<path d="M0 0 L5 0" fill="none" stroke="red" stroke-width="2"/>')
        assert isinstance(command, DrawLinePath)
        assert command.line_width == 2.0

    def test_outline_path_is_split_at_64(self):
        data = " ".join(f"M{i % 10} 0 L{i % 10} 5" for i in range(65))
        commands = commands_for(f'<path d="{data}" fill="red" stroke="blue"/>')
        assert [type(command) for command in commands] == [OutlineFillPath, OutlineFillPath]
        assert [command.count for command in commands] == [64, 1]

    def test_large_outline_polygon_becomes_path(self):
        pts = " ".join(f"{i % 10},{i // 10}" for i in range(65))
        (command,) = commands_for(f'<polygon points="{pts}" fill="red" stroke="blue"/>')
        assert isinstance(command, OutlineFillPath)
        (subpath,) = command.path
        assert subpath.start == (0.0, 0.0)
        assert len(subpath.segments) == 65
        assert subpath.segments[-1] == Close()

    def test_small_outline_polygon(self):
        (command,) = commands_for('<polygon points="0,0 5,0 5,5" fill="red" stroke="blue"/>')
        assert isinstance(command, OutlineFillPolygon)

    def test_polygon_stroke_only(self):
        (command,) = commands_for('<polygon points="0,0 5,0 5,5" fill="none" stroke="blue"/>')
        assert isinstance(command, DrawLineLoop)

    def test_polyline_fill_and_stroke(self):
        commands = commands_for('<polyline points="0,0 5,0 5,5" fill="red" stroke="blue"/>')
        assert [type(command) for command in commands] == [FillPolygon, DrawLineStrip]

    def test_degenerate_polygon_is_skipped(self):
        assert commands_for('<polygon points="1,1"/>') == ()

    def test_line(self):
        (command,) = commands_for('<line x1="1" y1="2" x2="3" y2="4" stroke="red"/>')
        assert command == DrawLines(FlatStyle(0), 1.0, (Line((1.0, 2.0), (3.0, 4.0)),))

    def test_rect_variants(self):
        fill_only, both, stroke_only = commands_for(
            '<rect width="2" height="3" fill="red"/>'
            '<rect width="2" height="3" fill="red" stroke="blue"/>'
            '<rect x="1" y="1" width="2" height="3" fill="none" stroke="blue"/>'
        )
        assert isinstance(fill_only, FillRectangles)
        assert isinstance(both, OutlineFillRectangles)
        assert isinstance(stroke_only, DrawLineLoop)
        assert stroke_only.points == ((1.0, 1.0), (3.0, 1.0), (3.0, 4.0), (1.0, 4.0))

    def test_empty_rect_is_skipped(self):
        assert commands_for('<rect width="0" height="3"/>') == ()

    def test_rounded_rect(self):
        (command,) = commands_for('<rect x="1" y="1" width="8" height="6" rx="2"/>')
        assert isinstance(command, FillPath)
        (subpath,) = command.path
        assert subpath.start == (3.0, 1.0)
        assert subpath.segments[-1] == Close()

    def test_invalid_rounded_rect(self):
        log = ConversionLog()
        (command,) = commands_for('<rect width="4" height="4" rx="3"/>', log=log)
        assert isinstance(command, FillRectangles)
        assert 'Found invalid rounded rectangles: width="4" height="4" rx="3" ry="3"' in log.lines

    def test_circle_is_two_arcs(self):
        (command,) = commands_for('<circle cx="5" cy="5" r="2"/>')
        (subpath,) = command.path
        assert subpath.start == (5.0, 3.0)
        assert subpath.segments == (
            ArcTo(2.0, 2.0, 0.0, False, False, (5.0, 7.0)),
            ArcTo(2.0, 2.0, 0.0, False, False, (5.0, 3.0)),
        )

    def test_zero_radius_circle_is_skipped(self):
        assert commands_for('<circle cx="5" cy="5" r="0"/><ellipse rx="3" ry="0"/>') == ()


# ---------------------------------------------------------------------------
# TestViewport
# ---------------------------------------------------------------------------

class TestViewport:
    def test_view_box_scales_geometry_and_line_width(self):
        (command,) = commands_for(
            '<rect x="10" y="10" width="20" height="10" fill="red" stroke="blue" stroke-width="2"/>',
            size='width="200" height="100" viewBox="0 0 100 50"',
        )
        assert command.rects == (Rect(20.0, 20.0, 40.0, 20.0),)
        assert command.line_width == 4.0

    def test_view_box_origin(self):
        mapper = ViewportMapper(10, 10, Viewport(-5.0, 5.0, 10.0, 10.0))
        assert mapper.point((0.0, 5.0)) == (5.0, 0.0)

    def test_zero_radius_arc_becomes_line(self):
        mapper = ViewportMapper(10, 10, Viewport(0.0, 0.0, 10.0, 10.0))
        assert mapper.primitive(ArcTo(0.0, 5.0, 0.0, False, False, (3.0, 4.0))) == LineTo((3.0, 4.0))

    def test_arc_radii_are_positive(self):
        mapper = ViewportMapper(10, 10, Viewport(0.0, 0.0, 10.0, 10.0))
        arc = mapper.primitive(ArcTo(-2.0, 3.0, 0.0, True, False, (1.0, 1.0)))
        assert (arc.radius_x, arc.radius_y) == (2.0, 3.0)

    def test_move_is_mapped(self):
        mapper = ViewportMapper(20, 20, Viewport(0.0, 0.0, 10.0, 10.0))
        assert mapper.primitive(MoveTo((1.0, 2.0))) == MoveTo((2.0, 4.0))

    def test_gradient_points_follow_viewport(self):
        (command,) = commands_for(
            '<defs><linearGradient id="g"><stop stop-color="red"/><stop offset="1" stop-color="blue"/>'
            '</linearGradient></defs><rect width="10" height="10" fill="url(#g)"/>',
            size='width="20" height="20" viewBox="0 0 10 10"',
        )
        assert (command.fill.point0, command.fill.point1) == ((0.0, 0.0), (20.0, 0.0))


# ---------------------------------------------------------------------------
# TestOptions
# ---------------------------------------------------------------------------

class TestOptions:
    def test_custom_color_encoding(self):
        with pytest.raises(UnsupportedColorFormatError):
            EncoderOptions(color_encoding=ColorEncoding.CUSTOM)

    @pytest.mark.parametrize(
        "kwargs",
        [{"output": "svg"}, {"max_attempts": 0}, {"max_attempts": 17}, {"scale_bits": 16}, {"scale_bits": -1}],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(ValueError):
            EncoderOptions(**kwargs)

    def test_split_oversized_rectangles(self):
        rects = tuple(Rect(i, 0, 1, 1) for i in range(130))
        split = split_oversized((OutlineFillRectangles(FlatStyle(0), FlatStyle(0), 1, rects),))
        assert [command.count for command in split] == [64, 64, 2]
        assert split[2].rects == rects[128:]
