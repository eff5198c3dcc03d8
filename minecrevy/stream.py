"""Readers and writers for protocol data types.

All fixed-width values are big-endian.
"""

from __future__ import annotations

import io
import struct
import uuid
from typing import BinaryIO, Union

_SEGMENT = 0x7F
_CONTINUE = 0x80

_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")
_I8 = struct.Struct(">b")
_I16 = struct.Struct(">h")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

_I32_MAX = (1 << 31) - 1


class ProtocolError(Exception):
    """Data read or written does not follow the protocol."""


class UnexpectedEof(ProtocolError, EOFError):
    """The stream ended before a value was complete."""


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _check_range(value: int, bits: int, signed: bool) -> None:
    low, high = (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) if signed else (0, (1 << bits) - 1)
    if not low <= value <= high:
        kind = "i" if signed else "u"
        raise ValueError(f"value out of range for {kind}{bits}: {value}")


def _encode_varuint(value: int) -> bytes:
    out = bytearray()
    while value & ~_SEGMENT:
        out.append((value & _SEGMENT) | _CONTINUE)
        value >>= 7
    out.append(value)
    return bytes(out)


class McReader:
    """Reads protocol data types from a binary stream or a bytes object."""

    def __init__(self, stream: Union[BinaryIO, bytes, bytearray, memoryview]) -> None:
        if isinstance(stream, (bytes, bytearray, memoryview)):
            stream = io.BytesIO(bytes(stream))
        self.stream = stream

    def read_exact(self, n: int) -> bytes:
        """Read exactly ``n`` bytes, raising UnexpectedEof if the stream ends first."""
        if n < 0:
            raise ValueError(f"cannot read a negative number of bytes: {n}")
        chunks = []
        remaining = n
        while remaining:
            chunk = self.stream.read(remaining)
            if not chunk:
                raise UnexpectedEof(f"expected {n} bytes, stream ended after {n - remaining}")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _unpack(self, fmt: struct.Struct):
        return fmt.unpack(self.read_exact(fmt.size))[0]

    def read_bool(self) -> bool:
        return self.read_u8() != 0

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_u16(self) -> int:
        return self._unpack(_U16)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_u128(self) -> int:
        return int.from_bytes(self.read_exact(16), "big")

    def read_i8(self) -> int:
        return self._unpack(_I8)

    def read_i16(self) -> int:
        return self._unpack(_I16)

    def read_i32(self) -> int:
        return self._unpack(_I32)

    def read_i64(self) -> int:
        return self._unpack(_I64)

    def read_i128(self) -> int:
        return int.from_bytes(self.read_exact(16), "big", signed=True)

    def read_f32(self) -> float:
        return self._unpack(_F32)

    def read_f64(self) -> float:
        return self._unpack(_F64)

    def read_uuid(self) -> uuid.UUID:
        return uuid.UUID(int=self.read_u128())

    def _read_varint(self, bits: int, name: str) -> int:
        value = 0
        for shift in range(0, bits + 6, 7):
            byte = self.read_u8()
            value |= (byte & _SEGMENT) << shift
            if not byte & _CONTINUE:
                return _to_signed(value, bits)
        raise ProtocolError(f"{name} is too big")

    def read_var_i32(self) -> int:
        """Read a signed 32-bit VarInt."""
        return self._read_varint(32, "VarInt")

    def read_var_i32_len(self) -> int:
        """Read a VarInt that must be a valid, non-negative length."""
        value = self.read_var_i32()
        if value < 0:
            raise ProtocolError(f"invalid VarInt value as length: {value}")
        return value

    def read_var_i64(self) -> int:
        """Read a signed 64-bit VarLong."""
        return self._read_varint(64, "VarLong")

    def read_bytes_var_i32(self) -> bytes:
        """Read bytes prefixed with their VarInt length."""
        return self.read_exact(self.read_var_i32_len())

    def read_bytes_remaining(self) -> bytes:
        """Read everything left in the stream."""
        return self.stream.read()

    def read_string(self) -> str:
        """Read a UTF-8 string prefixed with its VarInt byte length."""
        data = self.read_bytes_var_i32()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise ProtocolError("string has invalid utf8 characters") from None


class McWriter:
    """Writes protocol data types to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream

    def write_all(self, data: bytes) -> None:
        """Write every byte of ``data``."""
        view = memoryview(bytes(data))
        while view:
            written = self.stream.write(view)
            if written is None:
                return
            if written == 0:
                raise OSError("stream accepted no bytes")
            view = view[written:]

    def _pack(self, fmt: struct.Struct, value) -> None:
        try:
            packed = fmt.pack(value)
        except struct.error as exc:
            raise ValueError(str(exc)) from None
        self.write_all(packed)

    def write_bool(self, v: bool) -> None:
        self.write_u8(1 if v else 0)

    def write_u8(self, v: int) -> None:
        self._pack(_U8, v)

    def write_u16(self, v: int) -> None:
        self._pack(_U16, v)

    def write_u32(self, v: int) -> None:
        self._pack(_U32, v)

    def write_u64(self, v: int) -> None:
        self._pack(_U64, v)

    def write_u128(self, v: int) -> None:
        _check_range(v, 128, signed=False)
        self.write_all(v.to_bytes(16, "big"))

    def write_i8(self, v: int) -> None:
        self._pack(_I8, v)

    def write_i16(self, v: int) -> None:
        self._pack(_I16, v)

    def write_i32(self, v: int) -> None:
        self._pack(_I32, v)

    def write_i64(self, v: int) -> None:
        self._pack(_I64, v)

    def write_i128(self, v: int) -> None:
        _check_range(v, 128, signed=True)
        self.write_all(v.to_bytes(16, "big", signed=True))

    def write_f32(self, v: float) -> None:
        self._pack(_F32, v)

    def write_f64(self, v: float) -> None:
        self._pack(_F64, v)

    def write_uuid(self, v: uuid.UUID) -> None:
        self.write_u128(v.int)

    def write_var_i32(self, v: int) -> None:
        """Write a signed 32-bit VarInt (one to five bytes)."""
        _check_range(v, 32, signed=True)
        self.write_all(_encode_varuint(v & 0xFFFFFFFF))

    def write_var_i32_len(self, v: int) -> None:
        """Write a length as a VarInt, rejecting values a VarInt cannot hold."""
        if not 0 <= v <= _I32_MAX:
            raise ProtocolError(f"invalid VarInt value as length: {v}")
        self.write_var_i32(v)

    def write_var_i64(self, v: int) -> None:
        """Write a signed 64-bit VarLong (one to ten bytes)."""
        _check_range(v, 64, signed=True)
        self.write_all(_encode_varuint(v & 0xFFFFFFFFFFFFFFFF))

    def write_bytes_var_i32(self, v: bytes) -> None:
        """Write bytes prefixed with their VarInt length."""
        self.write_var_i32_len(len(v))
        self.write_all(v)

    def write_bytes_remaining(self, v: bytes) -> None:
        """Write bytes with no length prefix."""
        self.write_all(v)

    def write_string(self, v: str) -> None:
        """Write a UTF-8 string prefixed with its VarInt byte length."""
        self.write_bytes_var_i32(v.encode("utf-8"))