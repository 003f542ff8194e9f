"""
Unit quantization shared by the reader, writer and encoder.

A unit is a raw integer divided by ``2**scale``. The byte width of a raw value
depends on the document's coordinate range.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from .entities import CoordinateRange
from .errors import UnitRangeError

MAX_SCALE_BITS = 15
SIGNED16_MIN = -0x8000
SIGNED16_MAX = 0x7FFF

COORDINATE_WIDTHS = {
    CoordinateRange.DEFAULT: 2,
    CoordinateRange.REDUCED: 1,
    CoordinateRange.EXTENDED: 4,
}
COORDINATE_DTYPES = {
    CoordinateRange.DEFAULT: np.dtype("<u2"),
    CoordinateRange.REDUCED: np.dtype("u1"),
    CoordinateRange.EXTENDED: np.dtype("<u4"),
}


def coordinate_width(coordinate_range: CoordinateRange) -> int:
    return COORDINATE_WIDTHS[CoordinateRange(coordinate_range)]


def coordinate_max(coordinate_range: CoordinateRange) -> int:
    return (1 << (8 * coordinate_width(coordinate_range))) - 1


def map_zero_to_max(coordinate_range: CoordinateRange, value: int) -> int:
    """Image width/height of 0 means "the largest value the range can hold"."""

    if value == 0:
        return coordinate_max(coordinate_range)
    return value


def raw_bounds(coordinate_range: CoordinateRange) -> Tuple[int, int]:
    """Raw values a coordinate field can carry under either sign interpretation."""

    bits = 8 * coordinate_width(coordinate_range)
    return -(1 << (bits - 1)), (1 << bits) - 1


def select_scale_bits(width: int, height: int) -> int:
    """
    Largest scale in 0..15 with ``max(width, height) << (scale + 1) < 32768``,
    leaving one bit of headroom for coordinates past the image edge.
    """

    coordinate_limit = max(int(width), int(height))
    scale_bits = 0
    while scale_bits < MAX_SCALE_BITS and (coordinate_limit << (scale_bits + 2)) < 32768:
        scale_bits += 1
    return scale_bits


def dequantize(raw: int, scale_bits: int) -> float:
    return raw / float(1 << scale_bits)


def quantize(
    value: float,
    scale_bits: int,
    *,
    lower: int = SIGNED16_MIN,
    upper: int = SIGNED16_MAX,
) -> int:
    scaled = float(value) * (1 << scale_bits)
    if not math.isfinite(scaled):
        raise UnitRangeError(float(value), None, scale_bits)
    raw = int(math.floor(scaled + 0.5))
    if raw < lower or raw > upper:
        raise UnitRangeError(float(value), raw, scale_bits)
    return raw


def quantize_array(
    values: Sequence[float] | np.ndarray,
    scale_bits: int,
    *,
    lower: int = SIGNED16_MIN,
    upper: int = SIGNED16_MAX,
) -> np.ndarray:
    """Vectorized :func:`quantize`; reports the first offending value in order."""

    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return np.zeros(arr.shape, dtype=np.int64)
    with np.errstate(invalid="ignore", over="ignore"):
        raw = np.floor(arr * float(1 << scale_bits) + 0.5)
        bad = ~np.isfinite(raw) | (raw < lower) | (raw > upper)
    if bad.any():
        idx = int(np.flatnonzero(bad.ravel())[0])
        value = float(arr.ravel()[idx])
        offending = raw.ravel()[idx]
        raise UnitRangeError(value, int(offending) if math.isfinite(offending) else None, scale_bits)
    return raw.astype(np.int64)


def pack_coordinates(raw: np.ndarray, coordinate_range: CoordinateRange) -> bytes:
    """Pack raw units little-endian at the range's width; negatives wrap."""

    dtype = COORDINATE_DTYPES[CoordinateRange(coordinate_range)]
    mask = coordinate_max(coordinate_range)
    return (np.asarray(raw, dtype=np.int64).ravel() & mask).astype(dtype).tobytes()
