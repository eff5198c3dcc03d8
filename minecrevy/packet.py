"""Untyped packets and the framing used to carry them on a stream.

Packet format:

| Field     | Type       | Notes                        |
|-----------|------------|------------------------------|
| Length    | VarInt     | Length of (Packet ID + Data) |
| Packet ID | VarInt     |                              |
| Data      | Byte Array | Contents depend on Packet ID |
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Optional, Union

from minecrevy.stream import McReader, McWriter, ProtocolError, UnexpectedEof
from minecrevy.varint import varint_bytes

_KEY_LEN = 16


class _BodyStream:
    """A writable stream over a bytearray that starts at offset zero.

    Writes overwrite existing bytes and extend the array past its end.
    """

    def __init__(self, body: bytearray) -> None:
        self._body = body
        self._pos = 0

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        data = bytes(data)
        end = self._pos + len(data)
        self._body[self._pos:end] = data
        self._pos = end
        return len(data)

    def tell(self) -> int:
        return self._pos


@dataclass(repr=False)
class RawPacket:
    """A single packet: its id and its undecoded body."""

    id: int
    body: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        self.body = bytearray(self.body)

    def __len__(self) -> int:
        """The value of the packet's Length field: id size plus body size."""
        return varint_bytes(self.id) + len(self.body)

    def __repr__(self) -> str:
        return f"RawPacket(0x{self.id & 0xFFFFFFFF:X}, {self.body.hex().upper()})"

    def reader(self) -> McReader:
        """Return a reader over the packet body."""
        return McReader(bytes(self.body))

    def writer(self) -> McWriter:
        """Return a writer into the packet body, starting at its beginning."""
        return McWriter(_BodyStream(self.body))


def read_packet(reader: McReader) -> RawPacket:
    """Read one length-prefixed packet.

    Raises UnexpectedEof if the stream ends before the whole packet is
    available, and ProtocolError if the frame is malformed.
    """
    length = reader.read_var_i32_len()
    frame = McReader(reader.read_exact(length))
    try:
        packet_id = frame.read_var_i32()
    except UnexpectedEof:
        raise ProtocolError(f"packet of length {length} is too short for its id") from None
    return RawPacket(packet_id, frame.read_bytes_remaining())


def write_packet(writer: McWriter, packet: RawPacket) -> None:
    """Write one packet with its length prefix."""
    writer.write_var_i32_len(len(packet))
    writer.write_var_i32(packet.id)
    writer.write_all(packet.body)


@dataclass(frozen=True)
class PacketCodecSettings:
    """Settings shared by the packet codecs of one server."""

    timeout: float = 30.0
    """Seconds of silence after which a connection is dropped."""
    compression_threshold: Optional[int] = None
    """Packet size from which packets are compressed."""
    encryption_key: Optional[bytes] = None
    """The 16-byte shared key used to encrypt packets."""

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive: {self.timeout}")
        if self.encryption_key is not None and len(self.encryption_key) != _KEY_LEN:
            raise ValueError(
                f"encryption key must be {_KEY_LEN} bytes, got {len(self.encryption_key)}"
            )


class PacketCodec:
    """Turns packets into framed bytes and framed bytes back into packets.

    The compression and encryption switches are recorded per connection;
    the framing itself is the same either way.
    """

    def __init__(self, settings: Optional[PacketCodecSettings] = None) -> None:
        self.settings = settings if settings is not None else PacketCodecSettings()
        self.compress = False
        self.encrypt = False

    def enable_compression(self) -> None:
        """Switch compression on for this connection."""
        self.compress = True

    def enable_encryption(self) -> None:
        """Switch encryption on for this connection."""
        self.encrypt = True

    def encode(self, packet: RawPacket) -> bytes:
        """Return the framed bytes of ``packet``."""
        buffer = io.BytesIO()
        write_packet(McWriter(buffer), packet)
        return buffer.getvalue()

    def decode(self, buffer: bytearray) -> Optional[RawPacket]:
        """Take one complete packet from the front of ``buffer``.

        The consumed bytes are removed from ``buffer``. Returns None, leaving
        ``buffer`` untouched, if it does not yet hold a whole packet.
        """
        stream = io.BytesIO(bytes(buffer))
        try:
            packet = read_packet(McReader(stream))
        except UnexpectedEof:
            return None
        del buffer[: stream.tell()]
        return packet