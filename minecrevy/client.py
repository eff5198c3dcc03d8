"""Clients connected to the server and the writers that send them packets."""

from __future__ import annotations

import enum
import io
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional

from minecrevy.packet import RawPacket
from minecrevy.registry import OutgoingPacketIds, ProtocolState
from minecrevy.stream import McWriter


class WriteOpKind(enum.Enum):
    """An operation to perform on a client's socket."""

    SEND = "send"
    """Write a packet to the client's outgoing buffer."""
    FLUSH = "flush"
    """Flush the client's outgoing buffer."""
    ENABLE_COMPRESSION = "enable_compression"
    ENABLE_ENCRYPTION = "enable_encryption"
    DISCONNECT = "disconnect"


@dataclass(frozen=True)
class WriteOp:
    """A socket operation; ``packet`` is set for SEND and only for SEND."""

    kind: WriteOpKind
    packet: Optional[RawPacket] = None

    def __post_init__(self) -> None:
        if (self.kind is WriteOpKind.SEND) != (self.packet is not None):
            raise ValueError(f"{self.kind.name} operation with packet={self.packet!r}")


class ClientAddressIndex:
    """Maps client addresses to client ids and back."""

    def __init__(self) -> None:
        self._by_addr: Dict[Any, Hashable] = {}
        self._by_client: Dict[Hashable, Any] = {}

    def address(self, client_id: Hashable) -> Optional[Any]:
        """Return the address of ``client_id``, if known."""
        return self._by_client.get(client_id)

    def client(self, addr: Any) -> Optional[Hashable]:
        """Return the client id at ``addr``, if known."""
        return self._by_addr.get(addr)

    def insert(self, addr: Any, client_id: Hashable) -> None:
        self._by_addr[addr] = client_id
        self._by_client[client_id] = addr

    def remove(self, addr: Any, client_id: Hashable) -> None:
        self._by_addr.pop(addr, None)
        self._by_client.pop(client_id, None)


class Client:
    """A client connected to the server.

    ``outgoing`` is called with each :class:`WriteOp` for the connection.
    """

    def __init__(self, addr: Any, outgoing: Callable[[WriteOp], Any]) -> None:
        self.addr = addr
        self.state = ProtocolState.HANDSHAKE
        self._outgoing = outgoing

    def __repr__(self) -> str:
        return f"Client({self.addr!r}, state={self.state.name})"

    def send_raw(self, packet_id: int, packet: Any) -> None:
        """Encode ``packet`` and queue it under ``packet_id``.

        Prefer :class:`ClientPacketWriter`, which looks the id up.
        """
        buffer = io.BytesIO()
        packet.write(McWriter(buffer))
        self._outgoing(WriteOp(WriteOpKind.SEND, RawPacket(packet_id, buffer.getvalue())))

    def disconnect(self) -> None:
        """Ask the connection to close."""
        self._outgoing(WriteOp(WriteOpKind.DISCONNECT))


class UnregisteredPacketError(LookupError):
    """A packet type has no id registered for the client's current state."""


class ClientPacketWriter:
    """Sends typed packets to one client; flushes when used as a context manager."""

    def __init__(self, client: Client, outgoing_ids: OutgoingPacketIds) -> None:
        self.client = client
        self.outgoing_ids = outgoing_ids

    def send(self, packet: Any) -> ClientPacketWriter:
        """Send ``packet`` with the id registered for the client's state."""
        state = self.client.state
        packet_id = self.outgoing_ids.get(type(packet), state)
        if packet_id is None:
            raise UnregisteredPacketError(
                f"Packet {type(packet).__name__} is not registered for state {state.name}"
            )
        self.client.send_raw(packet_id, packet)
        return self

    def flush(self) -> None:
        """Ask the connection to flush what has been sent."""
        self.client._outgoing(WriteOp(WriteOpKind.FLUSH))

    def __enter__(self) -> ClientPacketWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.flush()