"""The Fx hash over 64-bit words, as used for symbol and serializer names."""

from __future__ import annotations

GOLDEN_RATIO = 0x517CC1B727220A95
ROTATION_LENGTH = 5

_MASK64 = (1 << 64) - 1


def _rotate_left(value: int, amount: int) -> int:
    return ((value << amount) | (value >> (64 - amount))) & _MASK64


def add_u64_to_hash(hash_value: int, value: int) -> int:
    """Mix one 64-bit ``value`` into ``hash_value``."""
    return ((_rotate_left(hash_value, ROTATION_LENGTH) ^ value) * GOLDEN_RATIO) & _MASK64


def hash_bytes(data: bytes) -> int:
    """Hash a byte string one byte at a time, starting from zero."""
    hash_value = 0
    for byte in data:
        hash_value = add_u64_to_hash(hash_value, byte)
    return hash_value