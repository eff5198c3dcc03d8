import math
import uuid

import pytest

from minecrevy.args import (
    IntArgs,
    IVec3Args,
    ListArgs,
    ListLength,
    OptionArgs,
    OptionTag,
    StringArgs,
)
from minecrevy.codecs import (
    Array,
    Bool,
    Int32,
    Int64,
    IVec3,
    List,
    Mapping,
    Optional,
    Primitive,
    String,
    UuidCodec,
    Vector,
    compress_ivec3,
    uncompress_ivec3,
)
from minecrevy.stream import ProtocolError, UnexpectedEof
from minecrevy.varint import varint_bytes

VARINT = IntArgs(varint=True)


@pytest.mark.parametrize(
    "name, value, size",
    [
        ("u8", 255, 1),
        ("u16", 65535, 2),
        ("u32", 123456789, 4),
        ("u64", 2**63, 8),
        ("u128", 2**127 + 5, 16),
        ("i8", -128, 1),
        ("i16", -300, 2),
        ("i128", -(2**100), 16),
        ("f64", 1.5, 8),
        ("f32", -2.25, 4),
    ],
)
def test_primitive_round_trip(name, value, size):
    codec = Primitive(name)
    data = codec.encode(value)
    assert len(data) == size
    assert codec.decode(data) == value


def test_primitive_unknown_name():
    with pytest.raises(ValueError):
        Primitive("i32")


def test_primitive_nan_round_trip():
    codec = Primitive("f64")
    data = codec.encode(float("nan"))
    assert len(data) == 8
    result = codec.decode(data)
    assert math.isnan(result) is True
    assert codec.encode(result) == data


def test_bool_non_zero_is_true():
    assert Bool().decode(b"\x02") is True
    assert Bool().decode(Bool().encode(False)) is False


@pytest.mark.parametrize("value", [0, 1, 127, 128, 25565, -1, 2**31 - 1, -(2**31)])
def test_int32_varint_round_trip_and_size(value):
    codec = Int32(VARINT)
    data = codec.encode(value)
    assert len(data) == varint_bytes(value)
    assert codec.decode(data) == value


def test_int32_fixed_width():
    codec = Int32()
    data = codec.encode(-5)
    assert len(data) == 4
    assert codec.decode(data) == -5


@pytest.mark.parametrize("args", [IntArgs(), VARINT])
@pytest.mark.parametrize("value", [0, -1, 2**63 - 1, -(2**63), 300])
def test_int64_round_trip(args, value):
    codec = Int64(args)
    assert codec.decode(codec.encode(value)) == value


def test_string_wire_format():
    assert String().encode("hi") == b"\x02hi"


def test_string_round_trip_unicode():
    codec = String()
    assert codec.decode(codec.encode("héllo ✓")) == "héllo ✓"


def test_string_max_len_on_write():
    with pytest.raises(ProtocolError):
        String(StringArgs(max_len=3)).encode("abcd")


def test_string_max_len_counts_bytes():
    with pytest.raises(ProtocolError):
        String(StringArgs(max_len=2)).encode("éé")


def test_string_max_len_on_read():
    data = String().encode("abcdef")
    with pytest.raises(ProtocolError):
        String(StringArgs(max_len=5)).decode(data)
    assert String(StringArgs(max_len=6)).decode(data) == "abcdef"


def test_string_invalid_utf8():
    with pytest.raises(ProtocolError):
        String().decode(b"\x02\xff\xfe")


def test_string_truncated():
    with pytest.raises(UnexpectedEof):
        String().decode(b"\x05ab")


@pytest.mark.parametrize("length", [ListLength.VARINT, ListLength.BYTE, ListLength.REMAINING])
def test_list_round_trip(length):
    codec = List(String(), ListArgs(length=length))
    items = ["a", "bc", ""]
    assert codec.decode(codec.encode(items)) == items


def test_list_remaining_has_no_prefix():
    codec = List(Bool(), ListArgs(length=ListLength.REMAINING))
    assert codec.encode([True, False]) == Bool().encode(True) + Bool().encode(False)
    assert codec.decode(b"") == []


def test_list_byte_negative_length():
    with pytest.raises(ProtocolError):
        List(Bool(), ListArgs(length=ListLength.BYTE)).decode(b"\xff")


def test_list_byte_too_long():
    codec = List(Bool(), ListArgs(length=ListLength.BYTE))
    assert len(codec.encode([True] * 127)) == 128
    with pytest.raises(ProtocolError):
        codec.encode([True] * 128)


def test_list_factory_with_inner_args():
    codec = List(String, ListArgs(inner=StringArgs(max_len=2)))
    assert codec.decode(codec.encode(["ab"])) == ["ab"]
    with pytest.raises(ProtocolError):
        codec.encode(["abc"])


def test_list_inner_args_for_configured_codec():
    with pytest.raises(TypeError):
        List(Bool(), ListArgs(inner=StringArgs()))


def test_list_varint_elements():
    codec = List(Int32, ListArgs(inner=VARINT))
    assert codec.decode(codec.encode([1, -1, 300])) == [1, -1, 300]


def test_array_round_trip_and_errors():
    codec = Array(Primitive("u16"), 3)
    assert codec.decode(codec.encode([1, 2, 3])) == (1, 2, 3)
    assert len(codec.encode([1, 2, 3])) == 6
    with pytest.raises(ValueError):
        codec.encode([1, 2])
    with pytest.raises(UnexpectedEof):
        codec.decode(b"\x00\x01")


@pytest.mark.parametrize("value", [None, "text"])
def test_optional_bool_round_trip(value):
    codec = Optional(String())
    assert codec.decode(codec.encode(value)) == value


def test_optional_bool_prefix():
    codec = Optional(String())
    assert codec.encode(None) == Bool().encode(False)
    assert codec.encode("x") == Bool().encode(True) + String().encode("x")


def test_optional_remaining():
    codec = Optional(String(), OptionArgs(tag=OptionTag.REMAINING))
    assert codec.encode(None) == b""
    assert codec.decode(b"") is None
    assert codec.decode(codec.encode("x")) == "x"


def test_optional_with_inner_args():
    codec = Optional(String, OptionArgs(inner=StringArgs(max_len=1)))
    with pytest.raises(ProtocolError):
        codec.encode("ab")


@pytest.mark.parametrize("length", [ListLength.VARINT, ListLength.BYTE, ListLength.REMAINING])
def test_mapping_round_trip(length):
    codec = Mapping(String(), Int32(), ListArgs(length=length))
    value = {"a": 1, "b": -2, "c": 3}
    assert codec.decode(codec.encode(value)) == value


def test_mapping_inner_args_pair():
    codec = Mapping(String, Int32, ListArgs(inner=(StringArgs(max_len=1), VARINT)))
    assert codec.decode(codec.encode({"k": 300})) == {"k": 300}
    with pytest.raises(ProtocolError):
        codec.encode({"kk": 1})


def test_mapping_byte_negative_length():
    with pytest.raises(ProtocolError):
        Mapping(Bool(), Bool(), ListArgs(length=ListLength.BYTE)).decode(b"\x80")


def test_uuid_round_trip():
    value = uuid.UUID("12345678-1234-5678-1234-567812345678")
    codec = UuidCodec()
    data = codec.encode(value)
    assert data == value.bytes
    assert codec.decode(data) == value


def test_vector_round_trip():
    codec = Vector(Primitive("f64"), 3)
    assert codec.decode(codec.encode((1.0, -2.5, 3.25))) == (1.0, -2.5, 3.25)
    with pytest.raises(ValueError):
        codec.encode((1.0, 2.0))


def test_ivec3_uncompressed_round_trip():
    codec = IVec3()
    data = codec.encode((-1, 64, 100000))
    assert len(data) == 12
    assert codec.decode(data) == (-1, 64, 100000)


def test_ivec3_compressed_round_trip():
    codec = IVec3(IVec3Args(compressed=True))
    data = codec.encode((18357644, 831, 20882616))
    assert len(data) == 8
    assert codec.decode(data) == (18357644, 831, 20882616)


def test_compress_ivec3_field_layout():
    assert compress_ivec3((0, 0, 0)) == 0
    assert compress_ivec3((1, 0, 0)) == 1 << 38
    assert compress_ivec3((0, 0, 1)) == 1 << 12
    assert uncompress_ivec3(compress_ivec3((5, 7, 9))) == (5, 7, 9)


def test_compress_ivec3_masks_negative():
    packed = compress_ivec3((-1, -1, -1))
    assert packed == (1 << 64) - 1
    x, y, z = uncompress_ivec3(packed)
    assert x == (1 << 26) - 1
    assert y == (1 << 12) - 1
    assert z == (1 << 26) - 1