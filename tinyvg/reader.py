from __future__ import annotations

import struct

from .entities import Color, ColorEncoding, CoordinateRange, Point
from .errors import UnexpectedEndOfStreamError, UnsupportedColorFormatError
from .units import coordinate_width, dequantize

_COORD_FORMATS = {1: "<B", 2: "<H", 4: "<I"}


class ByteCursor:
    """Forward-only reader over an in-memory TinyVG buffer."""

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = bytes(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return max(0, len(self.data) - self.offset)

    def at_end(self) -> bool:
        return self.offset >= len(self.data)

    def _take(self, count: int) -> int:
        start = self.offset
        if start + count > len(self.data):
            raise UnexpectedEndOfStreamError(start, count, self.remaining)
        self.offset = start + count
        return start

    def read_bytes(self, count: int) -> bytes:
        start = self._take(count)
        return self.data[start : start + count]

    def read_u8(self) -> int:
        return self.data[self._take(1)]

    def read_u16(self) -> int:
        return struct.unpack_from("<H", self.data, self._take(2))[0]

    def read_u32(self) -> int:
        return struct.unpack_from("<I", self.data, self._take(4))[0]

    def read_f32(self) -> float:
        return struct.unpack_from("<f", self.data, self._take(4))[0]

    def read_varuint(self) -> int:
        """
        Little-endian base-128 integer. Each group's low 7 bits are OR'd in at
        ``7 * group_index``; the high bit continues. There is no overflow
        guard: anything past 32 bits is silently dropped.
        """

        result = 0
        shift = 0
        while True:
            byte = self.read_u8()
            result |= (byte & 0x7F) << shift
            if (byte & 0x80) == 0:
                break
            shift += 7
        return result & 0xFFFFFFFF

    def read_coordinate(self, coordinate_range: CoordinateRange) -> int:
        width = coordinate_width(coordinate_range)
        return struct.unpack_from(_COORD_FORMATS[width], self.data, self._take(width))[0]

    def read_unit(self, coordinate_range: CoordinateRange, scale: int) -> float:
        return dequantize(self.read_coordinate(coordinate_range), scale)

    def read_point(self, coordinate_range: CoordinateRange, scale: int) -> Point:
        x = self.read_unit(coordinate_range, scale)
        y = self.read_unit(coordinate_range, scale)
        return (x, y)

    def read_color(self, encoding: ColorEncoding) -> Color:
        if encoding == ColorEncoding.RGBA8888:
            r, g, b, a = self.read_bytes(4)
            return Color.from_rgba8(r, g, b, a)
        if encoding == ColorEncoding.RGB565:
            packed = self.read_u16()
            return Color(
                (packed & 0x1F) / 31.0,
                ((packed >> 5) & 0x3F) / 63.0,
                ((packed >> 11) & 0x1F) / 31.0,
                1.0,
            )
        if encoding == ColorEncoding.F32:
            r, g, b, a = struct.unpack_from("<4f", self.data, self._take(16))
            return Color(r, g, b, a)
        raise UnsupportedColorFormatError(int(encoding), offset=self.offset)
