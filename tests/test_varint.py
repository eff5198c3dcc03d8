import io

import pytest

from minecrevy.stream import McWriter
from minecrevy.varint import varint_bytes


def _encoded_len(value):
    buf = io.BytesIO()
    McWriter(buf).write_var_i32(value)
    return len(buf.getvalue())


def test_zero_takes_one_byte():
    assert varint_bytes(0) == 1


def test_negative_values_take_five_bytes():
    assert varint_bytes(-1) == 5
    assert varint_bytes(-(2**31)) == 5


@pytest.mark.parametrize(
    "value",
    [0, 1, 127, 128, 255, 16383, 16384, 25565, 2097151, 2097152,
     268435455, 268435456, 2**31 - 1, -1, -128, -(2**31)],
)
def test_matches_encoded_length(value):
    assert varint_bytes(value) == _encoded_len(value)


def test_length_is_monotonic_for_non_negative_values():
    values = [0, 1, 127, 128, 16383, 16384, 2097151, 2097152, 268435455, 268435456]
    sizes = [varint_bytes(v) for v in values]
    assert sizes == sorted(sizes)
    assert sizes[0] == 1


@pytest.mark.parametrize("value", [2**31, -(2**31) - 1])
def test_out_of_range_rejected(value):
    with pytest.raises(ValueError):
        varint_bytes(value)