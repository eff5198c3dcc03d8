import io
from pathlib import Path

import pytest
from PIL import Image

from minecrevy.app import build_server, parse_args
from minecrevy.client import Client, WriteOpKind
from minecrevy.packet import RawPacket
from minecrevy.protocol import Handshake, Response
from minecrevy.registry import ProtocolState
from minecrevy.stream import McWriter
from minecrevy.text import Text, TextCodec


def _encode(packet):
    buffer = io.BytesIO()
    packet.write(McWriter(buffer))
    return buffer.getvalue()


def _client():
    ops = []
    return Client(("127.0.0.1", 5000), ops.append), ops


def _sent(ops):
    return [op.packet for op in ops if op.kind is WriteOpKind.SEND]


def _handshake(version, next_state):
    return RawPacket(0x00, _encode(Handshake(version, "localhost", 25565, next_state)))


def test_defaults():
    args = parse_args([])
    assert str(args.address) == "0.0.0.0"
    assert args.port == 25565
    assert args.motd == Text.string("A Minecraft Server")
    assert args.online_players == 0
    assert args.max_players == 20
    assert args.sample_players == []
    assert args.favicon == Path("server-icon.png")
    assert args.deny_login == Text.string("Logins are not enabled.")
    assert args.protocol_version is None
    assert args.protocol_name == "Ping Server"


def test_sample_is_repeatable():
    args = parse_args(["--sample", "alice", "--sample", "bob"])
    assert args.sample_players == ["alice", "bob"]


@pytest.mark.parametrize("argv", [["--address", "nowhere"], ["--port", "70000"], ["--tick-rate", "0"]])
def test_invalid_arguments(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


def test_status_flow_with_echo(tmp_path):
    args = parse_args([
        "--favicon", str(tmp_path / "missing.png"),
        "--motd", "Hello",
        "--online", "3",
        "--max", "9",
        "--sample", "alice",
    ])
    server = build_server(args)
    client, ops = _client()
    server.dispatch(client, _handshake(765, 1))
    assert client.state is ProtocolState.STATUS
    server.dispatch(client, RawPacket(0x00, b""))
    sent = _sent(ops)
    assert len(sent) == 1
    response = Response.read(sent[0].reader())
    assert response.version.protocol == 765
    assert response.description == Text.string("Hello")
    assert response.players.online == 3
    assert response.players.max == 9
    assert [p.name for p in response.players.sample] == ["alice"]
    assert response.favicon is None


def test_fixed_protocol_version(tmp_path):
    args = parse_args(["--favicon", str(tmp_path / "missing.png"), "--protocol-version", "47"])
    server = build_server(args)
    client, ops = _client()
    server.dispatch(client, _handshake(765, 1))
    server.dispatch(client, RawPacket(0x00, b""))
    assert Response.read(_sent(ops)[0].reader()).version.protocol == 47


def test_login_is_refused(tmp_path):
    args = parse_args(["--favicon", str(tmp_path / "missing.png"), "--deny-login", "Go away"])
    server = build_server(args)
    client, ops = _client()
    server.dispatch(client, _handshake(765, 2))
    sent = _sent(ops)
    assert len(sent) == 1
    assert sent[0].id == 0x00
    assert TextCodec().read(sent[0].reader()) == Text.string("Go away")
    assert ops[-1].kind is WriteOpKind.DISCONNECT


def test_favicon_is_loaded(tmp_path):
    path = tmp_path / "icon.png"
    Image.new("RGB", (64, 64), (1, 2, 3)).save(path, format="PNG")
    server = build_server(parse_args(["--favicon", str(path)]))
    client, ops = _client()
    server.dispatch(client, _handshake(765, 1))
    server.dispatch(client, RawPacket(0x00, b""))
    response = Response.read(_sent(ops)[0].reader())
    assert response.favicon.startswith("data:image/png;base64,")