import gc
import io

from minecrevy.client import Client, WriteOp, WriteOpKind
from minecrevy.handshake_handler import AllowLogin, ClientInfo, HandshakeHandler
from minecrevy.packet import RawPacket
from minecrevy.protocol import Handshake, ProtocolOptions, register_server_packets
from minecrevy.registry import ProtocolState
from minecrevy.server import Server
from minecrevy.stream import McWriter
from minecrevy.text import Text, TextCodec


def _setup(allow_login=None):
    server = Server()
    register_server_packets(
        server.incoming, server.outgoing_ids, ProtocolOptions(play=False, config=False)
    )
    return server, HandshakeHandler(server, allow_login)


def _client():
    ops = []
    return Client(("127.0.0.1", 1), ops.append), ops


def test_allow_login_defaults_to_allowed():
    assert AllowLogin() == AllowLogin(allowed=True, reason=None)


def test_status_handshake_switches_state_and_records_info():
    _, handler = _setup()
    client, ops = _client()
    handler.on_handshake(client, Handshake(765, "localhost", 25565, 1))
    assert client.state is ProtocolState.STATUS
    assert handler.client_info[client] == ClientInfo(765, "localhost", 25565)
    assert ops == [WriteOp(WriteOpKind.FLUSH)]


def test_login_allowed_switches_to_login():
    _, handler = _setup()
    client, ops = _client()
    handler.on_handshake(client, Handshake(765, "localhost", 25565, 2))
    assert client.state is ProtocolState.LOGIN
    assert client in handler.client_info
    assert WriteOpKind.DISCONNECT not in [op.kind for op in ops]


def test_login_refused_sends_reason_and_disconnects():
    reason = Text.string("Go away").bold()
    _, handler = _setup(AllowLogin(allowed=False, reason=reason))
    client, ops = _client()
    handler.on_handshake(client, Handshake(765, "localhost", 25565, 2))
    assert [op.kind for op in ops] == [
        WriteOpKind.SEND,
        WriteOpKind.FLUSH,
        WriteOpKind.DISCONNECT,
    ]
    assert ops[0].packet.id == 0x00
    assert TextCodec().decode(ops[0].packet.body) == reason
    assert client not in handler.client_info


def test_login_refused_without_reason_uses_default_message():
    _, handler = _setup(AllowLogin(allowed=False))
    client, ops = _client()
    handler.on_handshake(client, Handshake(765, "localhost", 25565, 2))
    assert TextCodec().decode(ops[0].packet.body) == Text.string("Logins are disabled.")


def test_refused_logins_do_not_affect_status():
    _, handler = _setup(AllowLogin(allowed=False))
    client, ops = _client()
    handler.on_handshake(client, Handshake(765, "localhost", 25565, 1))
    assert client.state is ProtocolState.STATUS
    assert WriteOpKind.DISCONNECT not in [op.kind for op in ops]


def test_unknown_next_state_is_ignored():
    _, handler = _setup()
    client, _ = _client()
    handler.on_handshake(client, Handshake(765, "localhost", 25565, 9))
    assert client.state is ProtocolState.HANDSHAKE
    assert client not in handler.client_info


def test_handshake_through_server_dispatch():
    server, handler = _setup()
    client, _ = _client()
    buf = io.BytesIO()
    Handshake(765, "example.com", 25565, 1).write(McWriter(buf))
    result = server.dispatch(client, RawPacket(0x00, buf.getvalue()))
    assert result == Handshake(765, "example.com", 25565, 1)
    assert client.state is ProtocolState.STATUS
    assert handler.client_info[client].server_address == "example.com"


def test_client_info_released_with_client():
    _, handler = _setup()
    client, _ = _client()
    handler.on_handshake(client, Handshake(765, "localhost", 25565, 1))
    assert len(handler.client_info) == 1
    del client
    gc.collect()
    assert len(handler.client_info) == 0