"""Packet definitions for the handshake, login and status states."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from minecrevy.args import IntArgs, StringArgs
from minecrevy.codecs import Int32, Int64, Optional as OptionalCodec, Primitive, String, UuidCodec
from minecrevy.registry import IncomingPacketHandlers, OutgoingPacketIds, ProtocolState
from minecrevy.stream import McReader, McWriter, ProtocolError
from minecrevy.text import Text, TextCodec

_VARINT = Int32(IntArgs(varint=True))
_PORT = Primitive("u16")
_ADDRESS = String(StringArgs(max_len=255))
_USERNAME = String(StringArgs(max_len=16))
_LONG_STRING = String(StringArgs(max_len=32767))
_OPTIONAL_LONG_STRING = OptionalCodec(_LONG_STRING)
_UUID = UuidCodec()
_I64 = Int64(IntArgs(varint=False))
_TEXT = TextCodec()


@dataclass
class Handshake:
    """Sent by the client to open a connection."""

    protocol_version: int
    server_address: str
    server_port: int
    next_state: int
    """``1`` for status, ``2`` for login."""

    @classmethod
    def read(cls, reader: McReader) -> Handshake:
        return cls(
            protocol_version=_VARINT.read(reader),
            server_address=_ADDRESS.read(reader),
            server_port=_PORT.read(reader),
            next_state=_VARINT.read(reader),
        )

    def write(self, writer: McWriter) -> None:
        _VARINT.write(writer, self.protocol_version)
        _ADDRESS.write(writer, self.server_address)
        _PORT.write(writer, self.server_port)
        _VARINT.write(writer, self.next_state)


@dataclass
class LoginStart:
    """Sent by the client to begin logging in."""

    username: str
    uuid: uuid.UUID

    @classmethod
    def read(cls, reader: McReader) -> LoginStart:
        return cls(username=_USERNAME.read(reader), uuid=_UUID.read(reader))


@dataclass
class LoginAcknowledged:
    """Sent by the client to finish logging in."""

    @classmethod
    def read(cls, reader: McReader) -> LoginAcknowledged:
        return cls()


@dataclass
class Property:
    """A player profile property, such as a skin."""

    name: str
    value: str
    signature: Optional[str] = None

    def write(self, writer: McWriter) -> None:
        _LONG_STRING.write(writer, self.name)
        _LONG_STRING.write(writer, self.value)
        _OPTIONAL_LONG_STRING.write(writer, self.signature)


@dataclass
class LoginSuccess:
    """Sent by the server when a login succeeds."""

    uuid: uuid.UUID
    username: str
    properties: List[Property] = field(default_factory=list)

    def write(self, writer: McWriter) -> None:
        _UUID.write(writer, self.uuid)
        _USERNAME.write(writer, self.username)
        writer.write_var_i32_len(len(self.properties))
        for prop in self.properties:
            prop.write(writer)


@dataclass
class Disconnect:
    """Sent by the server when a login fails."""

    reason: Text = field(default_factory=lambda: Text.string("Disconnected"))

    def write(self, writer: McWriter) -> None:
        _TEXT.write(writer, self.reason)


@dataclass
class Ping:
    """A latency probe; the server answers with the same payload."""

    payload: int

    @classmethod
    def read(cls, reader: McReader) -> Ping:
        return cls(_I64.read(reader))

    def write(self, writer: McWriter) -> None:
        _I64.write(writer, self.payload)


@dataclass
class Request:
    """Sent by the client to ask for the server list entry."""

    @classmethod
    def read(cls, reader: McReader) -> Request:
        return cls()


def _field(data: Any, key: str, kind: type, what: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object")
    if key not in data:
        raise ValueError(f"{what} is missing {key!r}")
    value = data[key]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"invalid type for {key!r} in {what}")
    return value


def _optional_field(data: Dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise ValueError(f"invalid type for {key!r}")
    return value


@dataclass
class ResponseVersion:
    """The server's version name and protocol number."""

    name: str
    protocol: int


@dataclass
class ResponseProfile:
    """A player shown in the server list sample."""

    name: str
    id: uuid.UUID


@dataclass
class ResponsePlayers:
    """Player counts and sample shown in the server list."""

    max: int
    online: int
    sample: List[ResponseProfile] = field(default_factory=list)


@dataclass
class Response:
    """Sent by the server in answer to a :class:`Request`."""

    version: ResponseVersion
    players: ResponsePlayers
    description: Text
    favicon: Optional[str] = None
    enforces_secure_chat: Optional[bool] = None
    previews_chat: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "version": {"name": self.version.name, "protocol": self.version.protocol},
            "players": {
                "max": self.players.max,
                "online": self.players.online,
                "sample": [{"name": p.name, "id": str(p.id)} for p in self.players.sample],
            },
            "description": self.description.to_dict(),
        }
        if self.favicon is not None:
            out["favicon"] = self.favicon
        if self.enforces_secure_chat is not None:
            out["enforcesSecureChat"] = self.enforces_secure_chat
        if self.previews_chat is not None:
            out["previewsChat"] = self.previews_chat
        return out

    @classmethod
    def from_dict(cls, data: Any) -> Response:
        """Build a response from its JSON object; raises ValueError if malformed."""
        version = _field(data, "version", dict, "response")
        players = _field(data, "players", dict, "response")
        sample = [
            ResponseProfile(
                name=_field(item, "name", str, "profile"),
                id=uuid.UUID(_field(item, "id", str, "profile")),
            )
            for item in _field(players, "sample", list, "players")
        ]
        return cls(
            version=ResponseVersion(
                name=_field(version, "name", str, "version"),
                protocol=_field(version, "protocol", int, "version"),
            ),
            players=ResponsePlayers(
                max=_field(players, "max", int, "players"),
                online=_field(players, "online", int, "players"),
                sample=sample,
            ),
            description=Text.from_dict(_field(data, "description", dict, "response")),
            favicon=_optional_field(data, "favicon", str),
            enforces_secure_chat=_optional_field(data, "enforcesSecureChat", bool),
            previews_chat=_optional_field(data, "previewsChat", bool),
        )

    @classmethod
    def read(cls, reader: McReader) -> Response:
        raw = _LONG_STRING.read(reader)
        try:
            return cls.from_dict(json.loads(raw))
        except ValueError as exc:
            raise ProtocolError(f"invalid status response: {exc}") from exc

    def write(self, writer: McWriter) -> None:
        raw = json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
        _LONG_STRING.write(writer, raw)


@dataclass(frozen=True)
class ProtocolOptions:
    """Which groups of packets to register for a server."""

    handshake: bool = True
    login: bool = True
    play: bool = True
    status: bool = True
    config: bool = True


def register_server_packets(
    incoming: IncomingPacketHandlers,
    outgoing: OutgoingPacketIds,
    options: Optional[ProtocolOptions] = None,
) -> None:
    """Register the server-side packets selected by ``options``."""
    options = options if options is not None else ProtocolOptions()
    if options.handshake:
        incoming.insert(Handshake, ProtocolState.HANDSHAKE, 0x00)
    if options.login:
        outgoing.insert(Disconnect, ProtocolState.LOGIN, 0x00)
    if options.status:
        incoming.insert(Request, ProtocolState.STATUS, 0x00)
        incoming.insert(Ping, ProtocolState.STATUS, 0x01)
        outgoing.insert(Response, ProtocolState.STATUS, 0x00)
        outgoing.insert(Ping, ProtocolState.STATUS, 0x01)