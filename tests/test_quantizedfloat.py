import struct

import pytest

from haste.quantizedfloat import (
    QFE_ENCODE_INTEGERS_EXACTLY,
    QFE_ENCODE_ZERO_EXACTLY,
    QFE_ROUNDDOWN,
    QFE_ROUNDUP,
    InvalidEncodeFlagsError,
    QuantizedFloat,
    QuantizedFloatError,
)


class QueueReader:
    """Hands out queued values; records how many bits each read asked for."""

    def __init__(self, values):
        self._values = list(values)
        self.bit_requests = []

    def read_bool(self):
        return bool(self._values.pop(0))

    def read_ubit64(self, n):
        self.bit_requests.append(n)
        return self._values.pop(0)


def as_f32(value):
    return struct.unpack("<f", struct.pack("<f", value))[0]


def test_both_round_flags_are_rejected():
    with pytest.raises(InvalidEncodeFlagsError):
        QuantizedFloat(8, QFE_ROUNDDOWN | QFE_ROUNDUP, -1.0, 1.0)


def test_invalid_flags_error_is_a_quantized_float_error():
    with pytest.raises(QuantizedFloatError):
        QuantizedFloat(8, QFE_ROUNDDOWN | QFE_ROUNDUP, -5.0, 5.0)


@pytest.mark.parametrize("bit_count", [0, 32, -1])
def test_bit_count_out_of_range(bit_count):
    with pytest.raises(ValueError):
        QuantizedFloat(bit_count, 0, 0.0, 1.0)


def test_plain_decode_reads_bit_count_bits():
    qf = QuantizedFloat(10, 0, 0.0, 100.0)
    reader = QueueReader([0])
    assert qf.decode(reader) == 0.0
    assert reader.bit_requests == [10]


def test_plain_decode_extremes_hit_bounds():
    qf = QuantizedFloat(8, 0, -50.0, 50.0)
    assert qf.decode(QueueReader([0])) == qf.low_value
    top = qf.decode(QueueReader([(1 << 8) - 1]))
    assert top == pytest.approx(qf.high_value, abs=1e-4)


def test_decode_is_monotonic():
    qf = QuantizedFloat(6, 0, -10.0, 10.0)
    decoded = [qf.decode(QueueReader([raw])) for raw in range(1 << 6)]
    assert decoded == sorted(decoded)
    assert all(qf.low_value <= v <= qf.high_value + 1e-4 for v in decoded)


def test_encode_zero_exactly_is_kept_and_decoded():
    qf = QuantizedFloat(8, QFE_ENCODE_ZERO_EXACTLY, -1.0, 1.0)
    assert qf.encode_flags & QFE_ENCODE_ZERO_EXACTLY
    assert qf.decode(QueueReader([True])) == 0.0


def test_encode_zero_flag_read_false_falls_through():
    qf = QuantizedFloat(8, QFE_ENCODE_ZERO_EXACTLY, -1.0, 1.0)
    reader = QueueReader([False, 0])
    assert qf.decode(reader) == qf.low_value
    assert reader.bit_requests == [8]


def test_zero_flag_dropped_when_range_does_not_span_zero():
    qf = QuantizedFloat(8, QFE_ENCODE_ZERO_EXACTLY, 1.0, 2.0)
    assert qf.encode_flags & QFE_ENCODE_ZERO_EXACTLY == 0


def test_integers_exactly_clears_rounding_flags():
    qf = QuantizedFloat(4, QFE_ENCODE_INTEGERS_EXACTLY | QFE_ROUNDDOWN, 0.0, 10.0)
    assert qf.encode_flags == QFE_ENCODE_INTEGERS_EXACTLY
    assert qf.bit_count == 4
    assert qf.low_value == 0.0


def test_rounddown_lowers_high_value():
    qf = QuantizedFloat(8, QFE_ROUNDDOWN, 0.0, 1.0)
    assert qf.high_value < 1.0
    assert qf.low_value == 0.0


def test_roundup_raises_low_value():
    qf = QuantizedFloat(8, QFE_ROUNDUP, -1.0, 0.0)
    assert qf.low_value > -1.0
    assert qf.high_value == 0.0


def test_roundup_flag_read_true_returns_high_value():
    qf = QuantizedFloat(3, QFE_ROUNDUP, 1.0, 7.0)
    if qf.encode_flags & QFE_ROUNDUP:
        expected_reader = QueueReader([True])
    else:
        expected_reader = QueueReader([(1 << qf.bit_count) - 1])
    assert qf.decode(expected_reader) == pytest.approx(qf.high_value, abs=1e-5)


def test_quantize_clamps():
    qf = QuantizedFloat(8, 0, -5.0, 5.0)
    assert qf.quantize(-100.0) == qf.low_value
    assert qf.quantize(100.0) == qf.high_value


def test_quantize_stays_in_range_and_is_idempotent():
    qf = QuantizedFloat(7, 0, -3.0, 9.0)
    for value in (-2.5, 0.0, 1.25, 4.0, 8.99):
        snapped = qf.quantize(value)
        assert qf.low_value <= snapped <= qf.high_value
        assert snapped <= as_f32(value) + 1e-6


def test_values_are_single_precision():
    qf = QuantizedFloat(12, 0, -0.1, 0.3)
    for raw in (0, 1, 777, 4095):
        value = qf.decode(QueueReader([raw]))
        assert value == as_f32(value)