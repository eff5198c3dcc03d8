"""Size helpers for variable-length integers."""

from __future__ import annotations

_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1


def varint_bytes(value: int) -> int:
    """Return how many bytes ``value`` takes when encoded as a VarInt.

    Raises ValueError if ``value`` does not fit in a signed 32-bit integer.
    """
    if not _I32_MIN <= value <= _I32_MAX:
        raise ValueError(f"value out of range for a VarInt: {value}")
    bits = (value & 0xFFFFFFFF).bit_length()
    if bits == 0:
        return 1
    return -(-bits // 7)