"""Decoder for floats quantized into a fixed number of bits over a range.

All arithmetic is carried out with single precision rounding so that the
decoded values match the ones the game engine produces.
"""

from __future__ import annotations

import math
import struct
from typing import Protocol

QFE_ROUNDDOWN = 1 << 0
QFE_ROUNDUP = 1 << 1
QFE_ENCODE_ZERO_EXACTLY = 1 << 2
QFE_ENCODE_INTEGERS_EXACTLY = 1 << 3

_EQUAL_EPSILON = 0.001
_MULTIPLIERS = (0.9999, 0.99, 0.9, 0.8, 0.7)
_U32_MAX = 0xFFFFFFFF


class QuantizedFloatError(Exception):
    """Base class for errors raised while setting up a quantized float."""


class InvalidEncodeFlagsError(QuantizedFloatError):
    """Round-up and round-down flags were both left set."""

    def __init__(self) -> None:
        super().__init__(
            "encode flags are both round up and down, these flags are mutually exclusive"
        )


class InvalidRangeError(QuantizedFloatError):
    """The range cannot be represented with the given number of bits."""

    def __init__(self) -> None:
        super().__init__("invalid range")


class BitSource(Protocol):
    """What :meth:`QuantizedFloat.decode` needs from a bit reader."""

    def read_bool(self) -> bool: ...

    def read_ubit64(self, n: int) -> int: ...


def _f32(value: float) -> float:
    """Round ``value`` to the nearest single precision float."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _as_int(value: float, low: int, high: int) -> int:
    """Truncate ``value`` towards zero, saturating into ``[low, high]``."""
    if math.isnan(value):
        return 0
    if value <= low:
        return low
    if value >= high:
        return high
    return int(value)


def _as_i32(value: float) -> int:
    return _as_int(value, -(1 << 31), (1 << 31) - 1)


def _as_u32(value: float) -> int:
    return _as_int(value, 0, _U32_MAX)


def _wrap_i32(value: int) -> int:
    value &= _U32_MAX
    return value - (1 << 32) if value & (1 << 31) else value


def _compute_encode_flags(encode_flags: int, low_value: float, high_value: float) -> int:
    efs = encode_flags
    if efs == 0:
        return efs

    # Discard the zero flag when the rounded bound already is zero.
    if (low_value == 0.0 and efs & QFE_ROUNDDOWN) or (
        high_value == 0.0 and efs & QFE_ROUNDUP
    ):
        efs &= ~QFE_ENCODE_ZERO_EXACTLY

    # A bound at zero turns "encode zero" into rounding towards that bound.
    if low_value == 0.0 and efs & QFE_ENCODE_ZERO_EXACTLY:
        efs |= QFE_ROUNDDOWN
        efs &= ~QFE_ENCODE_ZERO_EXACTLY
    if high_value == 0.0 and efs & QFE_ENCODE_ZERO_EXACTLY:
        efs |= QFE_ROUNDUP
        efs &= ~QFE_ENCODE_ZERO_EXACTLY

    if not (low_value < 0.0 < high_value):
        efs &= ~QFE_ENCODE_ZERO_EXACTLY

    if efs & QFE_ENCODE_INTEGERS_EXACTLY:
        efs &= ~(QFE_ROUNDUP | QFE_ROUNDDOWN | QFE_ENCODE_ZERO_EXACTLY)

    if efs & (QFE_ROUNDDOWN | QFE_ROUNDUP) == (QFE_ROUNDDOWN | QFE_ROUNDUP):
        raise InvalidEncodeFlagsError()

    return efs


def _close_enough(a: float, b: float, epsilon: float) -> bool:
    return abs(_f32(a - b)) <= epsilon


def _exceeds(multiplier: float, value_range: float, high_value: int) -> bool:
    product = multiplier * value_range
    return _as_u32(product) > high_value or product > high_value


def _assign_range_multiplier(bit_count: int, value_range: float) -> float:
    high_value = 0xFFFFFFFE if bit_count == 32 else (1 << bit_count) - 1

    if _close_enough(_f32(value_range), 0.0, _f32(_EQUAL_EPSILON)):
        high_low_mul = _f32(high_value)
    else:
        high_low_mul = _f32(high_value / value_range)

    if _exceeds(high_low_mul, value_range, high_value):
        # Squeeze the multiplier until the highest value stays in range.
        for multiplier in _MULTIPLIERS:
            high_low_mul = _f32(_f32(high_value / value_range) * _f32(multiplier))
            if not _exceeds(high_low_mul, value_range, high_value):
                break
        else:
            raise InvalidRangeError()

    return high_low_mul


def _num_bits_for_count(max_elements: int) -> int:
    return max(max_elements, 0).bit_length()


class QuantizedFloat:
    """A float networked as ``bit_count`` bits spread over ``[low_value, high_value]``."""

    def __init__(
        self, bit_count: int, encode_flags: int, low_value: float, high_value: float
    ) -> None:
        if not 0 < bit_count < 32:
            raise ValueError(f"bit count must be in 1..31, got {bit_count}")

        self.bit_count = bit_count
        self.low_value = _f32(low_value)
        self.high_value = _f32(high_value)
        self.encode_flags = _compute_encode_flags(
            encode_flags, self.low_value, self.high_value
        )
        self.high_low_mul = 0.0
        self.decode_mul = 0.0

        steps = _wrap_i32(1 << self.bit_count)

        value_range = _f32(self.high_value - self.low_value)
        offset = _f32(value_range / _f32(steps))
        if self.encode_flags & QFE_ROUNDDOWN:
            self.high_value = _f32(self.high_value - offset)
        elif self.encode_flags & QFE_ROUNDUP:
            self.low_value = _f32(self.low_value + offset)

        if self.encode_flags & QFE_ENCODE_INTEGERS_EXACTLY:
            delta = max(_as_i32(self.low_value) - _as_i32(self.high_value), 1)
            int_range = _wrap_i32(1 << _num_bits_for_count(delta))

            bc = self.bit_count
            while _wrap_i32(1 << bc) < int_range:
                bc += 1
            if bc > self.bit_count:
                self.bit_count = bc
                steps = _wrap_i32(1 << bc)

            offset = _f32(_f32(int_range) / _f32(steps))
            self.high_value = _f32(_f32(self.low_value + _f32(int_range)) - offset)

        value_range = _f32(self.high_value - self.low_value)
        self.high_low_mul = _assign_range_multiplier(self.bit_count, value_range)
        self.decode_mul = _f32(1.0 / _f32(_wrap_i32(steps - 1)))

        # Drop flags that quantization already honours.
        if self.encode_flags & QFE_ROUNDDOWN and self.quantize(self.low_value) == self.low_value:
            self.encode_flags &= ~QFE_ROUNDDOWN
        if self.encode_flags & QFE_ROUNDUP and self.quantize(self.high_value) == self.high_value:
            self.encode_flags &= ~QFE_ROUNDUP
        if self.encode_flags & QFE_ENCODE_ZERO_EXACTLY and self.quantize(0.0) == 0.0:
            self.encode_flags &= ~QFE_ENCODE_ZERO_EXACTLY

    def __repr__(self) -> str:
        return (
            f"QuantizedFloat(bit_count={self.bit_count}, encode_flags={self.encode_flags}, "
            f"low_value={self.low_value}, high_value={self.high_value})"
        )

    def quantize(self, value: float) -> float:
        """Snap ``value`` to the nearest representable step, clamped to the range."""
        value = _f32(value)
        if value < self.low_value:
            return self.low_value
        if value > self.high_value:
            return self.high_value

        value_range = _f32(self.high_value - self.low_value)
        step = _as_i32(_f32(_f32(value - self.low_value) * self.high_low_mul))
        return _f32(
            self.low_value + _f32(value_range * _f32(_f32(step) * self.decode_mul))
        )

    def decode(self, reader: BitSource) -> float:
        """Read one value from ``reader``."""
        if self.encode_flags & QFE_ROUNDDOWN and reader.read_bool():
            return self.low_value
        if self.encode_flags & QFE_ROUNDUP and reader.read_bool():
            return self.high_value
        if self.encode_flags & QFE_ENCODE_ZERO_EXACTLY and reader.read_bool():
            return 0.0

        value_range = _f32(self.high_value - self.low_value)
        raw = reader.read_ubit64(self.bit_count)
        return _f32(
            self.low_value + _f32(value_range * _f32(_f32(raw) * self.decode_mul))
        )