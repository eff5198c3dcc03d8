"""Registries that map packet ids to packet types, per protocol state."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

from minecrevy.packet import RawPacket
from minecrevy.stream import ProtocolError

_log = logging.getLogger(__name__)

T = TypeVar("T")


class ProtocolState(enum.Enum):
    """The state a connection is in, which decides how packet ids are read."""

    HANDSHAKE = "handshake"
    """The first state, where the client sends its initial handshake."""
    STATUS = "status"
    """The client requests server list information."""
    LOGIN = "login"
    """The client goes through the login process."""
    PLAY = "play"
    """The client plays the game."""
    CONFIG = "config"
    """The client sends or requests new network configuration."""


@dataclass
class Recv(Generic[T]):
    """An incoming packet, decoded into its typed form."""

    packet: T


class IncomingPacketHandlers:
    """Maps a protocol state and packet id to the type that decodes the packet.

    A packet type is any class with a ``read(reader)`` classmethod.
    """

    def __init__(self) -> None:
        self._types: Dict[Tuple[ProtocolState, int], Any] = {}

    def get(self, state: ProtocolState, packet_id: int) -> Optional[Any]:
        """Return the packet type registered for ``state`` and ``packet_id``, if any."""
        return self._types.get((state, packet_id))

    def insert(self, packet_type: Any, state: ProtocolState, packet_id: int) -> None:
        """Register ``packet_type`` to decode packets with ``packet_id`` in ``state``."""
        self._types[(state, packet_id)] = packet_type

    def decode(self, state: ProtocolState, packet: RawPacket) -> Optional[Recv]:
        """Decode ``packet`` into a :class:`Recv` event.

        Returns None, after logging a warning, when no type is registered for
        the packet or its body cannot be read.
        """
        packet_type = self.get(state, packet.id)
        if packet_type is None:
            _log.warning("No handler for packet %d in state %s", packet.id, state.name)
            return None
        try:
            value = packet_type.read(packet.reader())
        except (ProtocolError, ValueError) as exc:
            _log.warning("Failed to read packet %s: %s", packet_type.__name__, exc)
            return None
        return Recv(value)


class OutgoingPacketIds:
    """Maps a packet type and protocol state to the id it is sent with."""

    def __init__(self) -> None:
        self._ids: Dict[Tuple[ProtocolState, Any], int] = {}

    def get(self, packet_type: Any, state: ProtocolState) -> Optional[int]:
        """Return the id of ``packet_type`` in ``state``, if registered."""
        return self._ids.get((state, packet_type))

    def insert(self, packet_type: Any, state: ProtocolState, packet_id: int) -> None:
        """Register ``packet_id`` for ``packet_type`` in ``state``."""
        self._ids[(state, packet_type)] = packet_id