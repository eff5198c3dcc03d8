"""Handling of the handshake that opens every connection."""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import Optional

from minecrevy.client import Client
from minecrevy.protocol import Disconnect, Handshake
from minecrevy.registry import ProtocolState
from minecrevy.server import Server
from minecrevy.text import Text

_NEXT_STATES = {1: ProtocolState.STATUS, 2: ProtocolState.LOGIN}


@dataclass(frozen=True)
class ClientInfo:
    """What a client said about itself in its handshake."""

    protocol_version: int
    server_address: str
    server_port: int


@dataclass(frozen=True)
class AllowLogin:
    """Whether clients may log in; ``reason`` is shown to refused clients."""

    allowed: bool = True
    reason: Optional[Text] = None


class HandshakeHandler:
    """Moves clients to the state their handshake asks for.

    Clients that ask to log in while logins are refused are sent a
    disconnect message and dropped. The handshake details of accepted
    clients are kept in ``client_info`` for as long as the client exists.
    """

    def __init__(self, server: Server, allow_login: Optional[AllowLogin] = None) -> None:
        self.server = server
        self.allow_login = allow_login if allow_login is not None else AllowLogin()
        self.client_info: "weakref.WeakKeyDictionary[Client, ClientInfo]" = (
            weakref.WeakKeyDictionary()
        )
        server.add_observer(Handshake, self.on_handshake)

    def on_handshake(self, client: Client, packet: Handshake) -> None:
        with self.server.writer(client) as writer:
            state = _NEXT_STATES.get(packet.next_state)
            if state is None:
                return
            client.state = state

            if state is ProtocolState.LOGIN and not self.allow_login.allowed:
                reason = self.allow_login.reason
                if reason is None:
                    reason = Text.string("Logins are disabled.")
                writer.send(Disconnect(reason))
                refused = True
            else:
                refused = False
                self.client_info[client] = ClientInfo(
                    protocol_version=packet.protocol_version,
                    server_address=packet.server_address,
                    server_port=packet.server_port,
                )
        if refused:
            client.disconnect()