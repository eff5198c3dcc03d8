"""Codecs that read and write typed values in the protocol's wire format.

A codec knows how to turn one kind of value into bytes and back. Codecs for
containers wrap the codec of their elements.
"""

from __future__ import annotations

import abc
import io
import uuid
from typing import Any, Callable, Dict, Sequence, Tuple, Union

from minecrevy.args import (
    ArrayArgs,
    IntArgs,
    IVec3Args,
    ListArgs,
    ListLength,
    OptionArgs,
    OptionTag,
    StringArgs,
)
from minecrevy.stream import McReader, McWriter, ProtocolError, UnexpectedEof

_I8_MAX = 127
_XZ_MASK = 0x03FF_FFFF
_Y_MASK = 0xFFF


class Codec(abc.ABC):
    """Reads and writes one kind of value."""

    @abc.abstractmethod
    def read(self, reader: McReader) -> Any:
        """Read a value from ``reader``."""

    @abc.abstractmethod
    def write(self, writer: McWriter, value: Any) -> None:
        """Write ``value`` to ``writer``."""

    def decode(self, data: Union[bytes, bytearray, memoryview]) -> Any:
        """Read a value from the start of ``data``."""
        return self.read(McReader(data))

    def encode(self, value: Any) -> bytes:
        """Return the encoded bytes of ``value``."""
        buffer = io.BytesIO()
        self.write(McWriter(buffer), value)
        return buffer.getvalue()


CodecLike = Union[Codec, Callable[..., Codec]]


def _resolve(inner: CodecLike, inner_args: Any) -> Codec:
    """Turn a codec or a codec factory plus its arguments into a codec."""
    if isinstance(inner, Codec):
        if inner_args is not None:
            raise TypeError("inner arguments given for an already configured codec")
        return inner
    if inner_args is None:
        return inner()
    return inner(inner_args)


_PRIMITIVES: Dict[str, Tuple[Callable[[McReader], Any], Callable[[McWriter, Any], None]]] = {
    "u8": (McReader.read_u8, McWriter.write_u8),
    "u16": (McReader.read_u16, McWriter.write_u16),
    "u32": (McReader.read_u32, McWriter.write_u32),
    "u64": (McReader.read_u64, McWriter.write_u64),
    "u128": (McReader.read_u128, McWriter.write_u128),
    "i8": (McReader.read_i8, McWriter.write_i8),
    "i16": (McReader.read_i16, McWriter.write_i16),
    "i128": (McReader.read_i128, McWriter.write_i128),
    "f32": (McReader.read_f32, McWriter.write_f32),
    "f64": (McReader.read_f64, McWriter.write_f64),
}


class Primitive(Codec):
    """A fixed-width big-endian number, named like ``"u16"`` or ``"f64"``."""

    def __init__(self, name: str) -> None:
        try:
            self._read, self._write = _PRIMITIVES[name]
        except KeyError:
            raise ValueError(f"unknown primitive type: {name!r}") from None
        self.name = name

    def read(self, reader: McReader) -> Any:
        return self._read(reader)

    def write(self, writer: McWriter, value: Any) -> None:
        self._write(writer, value)

    def __repr__(self) -> str:
        return f"Primitive({self.name!r})"


class Bool(Codec):
    """A boolean stored as one byte; any non-zero byte reads as true."""

    def read(self, reader: McReader) -> bool:
        return reader.read_bool()

    def write(self, writer: McWriter, value: bool) -> None:
        writer.write_bool(value)


class Int32(Codec):
    """A signed 32-bit integer, fixed-width or VarInt."""

    def __init__(self, args: IntArgs | None = None) -> None:
        self.args = args if args is not None else IntArgs()

    def read(self, reader: McReader) -> int:
        return reader.read_var_i32() if self.args.varint else reader.read_i32()

    def write(self, writer: McWriter, value: int) -> None:
        if self.args.varint:
            writer.write_var_i32(value)
        else:
            writer.write_i32(value)


class Int64(Codec):
    """A signed 64-bit integer, fixed-width or VarLong."""

    def __init__(self, args: IntArgs | None = None) -> None:
        self.args = args if args is not None else IntArgs()

    def read(self, reader: McReader) -> int:
        return reader.read_var_i64() if self.args.varint else reader.read_i64()

    def write(self, writer: McWriter, value: int) -> None:
        if self.args.varint:
            writer.write_var_i64(value)
        else:
            writer.write_i64(value)


class String(Codec):
    """A UTF-8 string prefixed with its VarInt byte length."""

    def __init__(self, args: StringArgs | None = None) -> None:
        self.args = args if args is not None else StringArgs()

    def _check(self, length: int) -> None:
        max_len = self.args.max_len
        if max_len is not None and length > max_len:
            raise ProtocolError(
                f"exceeded max string length (max: {max_len}, actual: {length})"
            )

    def read(self, reader: McReader) -> str:
        length = reader.read_var_i32_len()
        self._check(length)
        data = reader.read_exact(length)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise ProtocolError("string has invalid UTF-8 characters") from None

    def write(self, writer: McWriter, value: str) -> None:
        data = value.encode("utf-8")
        self._check(len(data))
        writer.write_var_i32_len(len(data))
        writer.write_all(data)


def _read_length(reader: McReader, length: ListLength) -> int:
    if length is ListLength.VARINT:
        return reader.read_var_i32_len()
    count = reader.read_i8()
    if count < 0:
        raise ProtocolError(f"invalid list length: {count}")
    return count


def _write_length(writer: McWriter, length: ListLength, count: int) -> None:
    if length is ListLength.VARINT:
        writer.write_var_i32_len(count)
    elif length is ListLength.BYTE:
        if count > _I8_MAX:
            raise ProtocolError(f"exceeded maximum list length: {count}")
        writer.write_i8(count)


class List(Codec):
    """A sequence of elements, with its length carried as ``args.length`` says."""

    def __init__(self, inner: CodecLike, args: ListArgs | None = None) -> None:
        self.args = args if args is not None else ListArgs()
        self.inner = _resolve(inner, self.args.inner)

    def read(self, reader: McReader) -> list:
        if self.args.length is ListLength.REMAINING:
            items = []
            while True:
                try:
                    items.append(self.inner.read(reader))
                except UnexpectedEof:
                    return items
        count = _read_length(reader, self.args.length)
        return [self.inner.read(reader) for _ in range(count)]

    def write(self, writer: McWriter, value: Sequence[Any]) -> None:
        _write_length(writer, self.args.length, len(value))
        for item in value:
            self.inner.write(writer, item)


class Array(Codec):
    """A fixed number of elements with no length prefix."""

    def __init__(self, inner: CodecLike, size: int, args: ArrayArgs | None = None) -> None:
        if size < 0:
            raise ValueError(f"array size cannot be negative: {size}")
        self.args = args if args is not None else ArrayArgs()
        self.inner = _resolve(inner, self.args.inner)
        self.size = size

    def read(self, reader: McReader) -> tuple:
        return tuple(self.inner.read(reader) for _ in range(self.size))

    def write(self, writer: McWriter, value: Sequence[Any]) -> None:
        if len(value) != self.size:
            raise ValueError(f"expected {self.size} elements, got {len(value)}")
        for item in value:
            self.inner.write(writer, item)


class Optional(Codec):
    """A value that may be absent (``None``)."""

    def __init__(self, inner: CodecLike, args: OptionArgs | None = None) -> None:
        self.args = args if args is not None else OptionArgs()
        self.inner = _resolve(inner, self.args.inner)

    def read(self, reader: McReader) -> Any:
        if self.args.tag is OptionTag.BOOL:
            return self.inner.read(reader) if reader.read_bool() else None
        try:
            return self.inner.read(reader)
        except UnexpectedEof:
            return None

    def write(self, writer: McWriter, value: Any) -> None:
        if self.args.tag is OptionTag.BOOL:
            writer.write_bool(value is not None)
        if value is not None:
            self.inner.write(writer, value)


class Mapping(Codec):
    """Key/value pairs, with their count carried as ``args.length`` says.

    ``args.inner``, when given, is a ``(key_args, value_args)`` pair.
    """

    def __init__(self, key: CodecLike, value: CodecLike, args: ListArgs | None = None) -> None:
        self.args = args if args is not None else ListArgs()
        key_args, value_args = self.args.inner if self.args.inner is not None else (None, None)
        self.key = _resolve(key, key_args)
        self.value = _resolve(value, value_args)

    def read(self, reader: McReader) -> dict:
        if self.args.length is ListLength.REMAINING:
            result = {}
            while True:
                try:
                    k = self.key.read(reader)
                    v = self.value.read(reader)
                except UnexpectedEof:
                    return result
                result[k] = v
        count = _read_length(reader, self.args.length)
        result = {}
        for _ in range(count):
            k = self.key.read(reader)
            result[k] = self.value.read(reader)
        return result

    def write(self, writer: McWriter, value: Dict[Any, Any]) -> None:
        _write_length(writer, self.args.length, len(value))
        for k, v in value.items():
            self.key.write(writer, k)
            self.value.write(writer, v)


class UuidCodec(Codec):
    """A UUID stored as an unsigned 128-bit big-endian integer."""

    def read(self, reader: McReader) -> uuid.UUID:
        return reader.read_uuid()

    def write(self, writer: McWriter, value: uuid.UUID) -> None:
        writer.write_uuid(value)


class Vector(Codec):
    """A fixed-size tuple of numbers, such as a 2D or 3D coordinate."""

    def __init__(self, component: Codec, size: int) -> None:
        self._array = Array(component, size)
        self.component = component
        self.size = size

    def read(self, reader: McReader) -> tuple:
        return self._array.read(reader)

    def write(self, writer: McWriter, value: Sequence[Any]) -> None:
        self._array.write(writer, value)


def compress_ivec3(vec: Sequence[int]) -> int:
    """Pack ``(x, y, z)`` into a 64-bit position: 26 bits x, 26 bits z, 12 bits y."""
    x, y, z = vec
    return ((x & _XZ_MASK) << 38) | ((z & _XZ_MASK) << 12) | (y & _Y_MASK)


def uncompress_ivec3(value: int) -> Tuple[int, int, int]:
    """Unpack a 64-bit position into ``(x, y, z)``; fields are not sign-extended."""
    return (value >> 38, value & _Y_MASK, (value >> 12) & _XZ_MASK)


class IVec3(Codec):
    """A 3D integer vector, as three i32 values or a packed 64-bit position."""

    def __init__(self, args: IVec3Args | None = None) -> None:
        self.args = args if args is not None else IVec3Args()
        self._plain = Array(Int32(), 3)

    def read(self, reader: McReader) -> Tuple[int, int, int]:
        if self.args.compressed:
            return uncompress_ivec3(reader.read_u64())
        return self._plain.read(reader)

    def write(self, writer: McWriter, value: Sequence[int]) -> None:
        if self.args.compressed:
            writer.write_u64(compress_ivec3(value))
        else:
            self._plain.write(writer, value)