"""Tests for tinyvg.reader and tinyvg.units."""

from __future__ import annotations

import struct

import numpy as np
import pytest

from tinyvg.entities import Color, ColorEncoding, CoordinateRange
from tinyvg.errors import UnexpectedEndOfStreamError, UnitRangeError, UnsupportedColorFormatError
from tinyvg.reader import ByteCursor
from tinyvg.units import (
    coordinate_max,
    map_zero_to_max,
    pack_coordinates,
    quantize,
    quantize_array,
    raw_bounds,
    select_scale_bits,
)


# ---------------------------------------------------------------------------
# TestVarUint
# ---------------------------------------------------------------------------

class TestVarUint:
    def test_single_byte(self):
        assert ByteCursor(b"\x05").read_varuint() == 5

    def test_two_bytes(self):
        cursor = ByteCursor(b"\x80\x01")
        assert cursor.read_varuint() == 128
        assert cursor.at_end()

    def test_groups_are_little_endian(self):
        assert ByteCursor(b"\xac\x02").read_varuint() == 300

    def test_full_32_bits(self):
        assert ByteCursor(b"\xff\xff\xff\xff\x0f").read_varuint() == 0xFFFFFFFF

    def test_bits_past_32_are_dropped(self):
        # 42 significant bits, only the low 32 survive
        assert ByteCursor(b"\xff\xff\xff\xff\xff\x7f").read_varuint() == 0xFFFFFFFF

    def test_stops_at_clear_high_bit(self):
        cursor = ByteCursor(b"\x81\x00\x07")
        assert cursor.read_varuint() == 1
        assert cursor.read_u8() == 7

    def test_truncated_varint(self):
        with pytest.raises(UnexpectedEndOfStreamError):
            ByteCursor(b"\x80\x80").read_varuint()


# ---------------------------------------------------------------------------
# TestCoordinates
# ---------------------------------------------------------------------------

class TestCoordinates:
    def test_widths_follow_range(self):
        data = struct.pack("<HBI", 0x1234, 0x56, 0x789ABCDE)
        cursor = ByteCursor(data)
        assert cursor.read_coordinate(CoordinateRange.DEFAULT) == 0x1234
        assert cursor.read_coordinate(CoordinateRange.REDUCED) == 0x56
        assert cursor.read_coordinate(CoordinateRange.EXTENDED) == 0x789ABCDE
        assert cursor.at_end()

    def test_unit_divides_by_scale(self):
        cursor = ByteCursor(struct.pack("<H", 10))
        assert cursor.read_unit(CoordinateRange.DEFAULT, 2) == 2.5

    def test_coordinates_are_unsigned(self):
        cursor = ByteCursor(struct.pack("<h", -1))
        assert cursor.read_unit(CoordinateRange.DEFAULT, 0) == 65535.0

    def test_point(self):
        cursor = ByteCursor(struct.pack("<BB", 3, 4))
        assert cursor.read_point(CoordinateRange.REDUCED, 1) == (1.5, 2.0)

    @pytest.mark.parametrize(
        "coordinate_range, expected",
        [
            (CoordinateRange.DEFAULT, 0xFFFF),
            (CoordinateRange.REDUCED, 0xFF),
            (CoordinateRange.EXTENDED, 0xFFFFFFFF),
        ],
    )
    def test_zero_maps_to_max(self, coordinate_range, expected):
        assert map_zero_to_max(coordinate_range, 0) == expected
        assert coordinate_max(coordinate_range) == expected

    def test_nonzero_is_kept(self):
        assert map_zero_to_max(CoordinateRange.DEFAULT, 640) == 640

    def test_end_of_stream_reports_offset(self):
        cursor = ByteCursor(b"\x01\x02\x03")
        cursor.read_u8()
        with pytest.raises(UnexpectedEndOfStreamError) as excinfo:
            cursor.read_u32()
        assert excinfo.value.offset == 1
        assert excinfo.value.needed == 4
        assert excinfo.value.available == 2


# ---------------------------------------------------------------------------
# TestColors
# ---------------------------------------------------------------------------

class TestColors:
    def test_rgba8888(self):
        color = ByteCursor(bytes((255, 0, 51, 255))).read_color(ColorEncoding.RGBA8888)
        assert color == Color(1.0, 0.0, 0.2, 1.0)

    def test_rgb565_channels(self):
        def read(packed):
            return ByteCursor(struct.pack("<H", packed)).read_color(ColorEncoding.RGB565)

        assert read(0x001F) == Color(1.0, 0.0, 0.0, 1.0)
        assert read(0x07E0) == Color(0.0, 1.0, 0.0, 1.0)
        assert read(0xF800) == Color(0.0, 0.0, 1.0, 1.0)

    def test_f32(self):
        data = struct.pack("<4f", 0.25, 0.5, 0.75, 1.0)
        assert ByteCursor(data).read_color(ColorEncoding.F32) == Color(0.25, 0.5, 0.75, 1.0)

    def test_custom_is_rejected(self):
        with pytest.raises(UnsupportedColorFormatError):
            ByteCursor(b"\x00" * 16).read_color(ColorEncoding.CUSTOM)


# ---------------------------------------------------------------------------
# TestQuantize
# ---------------------------------------------------------------------------

class TestQuantize:
    def test_rounds_to_nearest(self):
        assert quantize(1.3, 2) == 5
        assert quantize(-0.5, 0) == 0

    def test_out_of_signed16(self):
        with pytest.raises(UnitRangeError) as excinfo:
            quantize(1000.0, 6)
        assert excinfo.value.value == 1000.0
        assert excinfo.value.raw == 64000
        assert excinfo.value.scale_bits == 6

    def test_non_finite(self):
        with pytest.raises(UnitRangeError) as excinfo:
            quantize(float("inf"), 0)
        assert excinfo.value.raw is None

    def test_array_reports_first_offender(self):
        with pytest.raises(UnitRangeError) as excinfo:
            quantize_array([1.0, 5000.0, 9000.0], 3)
        assert excinfo.value.value == 5000.0

    def test_array_values(self):
        raw = quantize_array([0.5, 1.25, 3.0], 2)
        assert raw.tolist() == [2, 5, 12]

    def test_pack_wraps_negatives(self):
        data = pack_coordinates(np.array([-1, 2]), CoordinateRange.DEFAULT)
        assert data == b"\xff\xff\x02\x00"

    @pytest.mark.parametrize("coordinate_range", list(CoordinateRange))
    def test_unit_survives_every_range(self, coordinate_range):
        scale = 3
        value = 12.375
        lower, upper = raw_bounds(coordinate_range)
        if coordinate_range == CoordinateRange.REDUCED:
            value = 3.125
        raw = quantize_array([value], scale, lower=lower, upper=upper)
        cursor = ByteCursor(pack_coordinates(raw, coordinate_range))
        assert abs(cursor.read_unit(coordinate_range, scale) - value) <= 1 / (1 << scale)


class TestScaleBits:
    def test_small_images_get_fine_precision(self):
        assert select_scale_bits(1, 1) == 13

    def test_hundred_pixels(self):
        assert select_scale_bits(100, 100) == 7

    def test_uses_larger_side(self):
        assert select_scale_bits(10, 100) == select_scale_bits(100, 10)

    def test_huge_images_get_none(self):
        assert select_scale_bits(40000, 10) == 0
