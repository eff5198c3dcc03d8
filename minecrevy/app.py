"""A server list advertiser; it does not let players join."""

from __future__ import annotations

import argparse
import asyncio
import ipaddress
import logging
from pathlib import Path
from typing import List, Optional

from minecrevy.core import PlayerCount
from minecrevy.handshake_handler import AllowLogin, HandshakeHandler
from minecrevy.protocol import ProtocolOptions, register_server_packets
from minecrevy.server import Server
from minecrevy.status_handler import (
    FaviconError,
    ServerProtocol,
    StatusConfig,
    StatusHandler,
    load_favicon,
)
from minecrevy.text import Text

_log = logging.getLogger(__name__)


def _ip(value: str):
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid IP address: {value!r}") from None


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port


def _positive_float(value: str) -> float:
    try:
        rate = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if rate <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {rate}")
    return rate


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the command line."""
    parser = argparse.ArgumentParser(
        description="A Minecraft server list advertiser. Does not support joining the server."
    )
    parser.add_argument("-a", "--address", type=_ip, default=_ip("0.0.0.0"),
                        help="The address to bind the server to.")
    parser.add_argument("-p", "--port", type=_port, default=25565,
                        help="The port to bind the server to.")
    parser.add_argument("-t", "--tick-rate", type=_positive_float, default=20.0,
                        help="How many ticks per second to run the server at.")
    parser.add_argument("-m", "--motd", type=Text.string,
                        default=Text.string("A Minecraft Server"),
                        help="The message of the day displayed in the server list.")
    parser.add_argument("--online", dest="online_players", type=int, default=0,
                        help="The number of players to display in the server list.")
    parser.add_argument("--max", dest="max_players", type=int, default=20,
                        help="The maximum number of players to display in the server list.")
    parser.add_argument("--sample", dest="sample_players", action="append", default=[],
                        help="A sample player name to display in the server list.")
    parser.add_argument("--favicon", type=Path, default=Path("server-icon.png"),
                        help="The favicon file; it is resized to 64x64 pixels.")
    parser.add_argument("--deny-login", type=Text.string,
                        default=Text.string("Logins are not enabled."),
                        help="The message to display when a client tries to log in.")
    parser.add_argument("--protocol-version", type=int, default=None,
                        help="The protocol version to advertise; echoes the client's if unset.")
    parser.add_argument("--protocol-name", default="Ping Server",
                        help="The name of the protocol version to advertise.")
    return parser.parse_args(argv)


def build_server(args: argparse.Namespace) -> Server:
    """Return a server that answers status queries and refuses logins."""
    server = Server()
    register_server_packets(
        server.incoming, server.outgoing_ids, ProtocolOptions(play=False, config=False)
    )
    handshake = HandshakeHandler(server, AllowLogin(allowed=False, reason=args.deny_login))

    try:
        favicon = load_favicon(args.favicon)
    except FaviconError as exc:
        _log.error("Failed to load favicon %s: %s", args.favicon, exc)
        favicon = None

    config = StatusConfig(
        protocol=ServerProtocol(version=args.protocol_version),
        protocol_name=args.protocol_name,
        motd=args.motd,
        sample=list(args.sample_players),
        players=PlayerCount(online=args.online_players, max=args.max_players),
        favicon=favicon,
    )
    StatusHandler(server, config, handshake.client_info)
    return server


def main(argv: Optional[List[str]] = None) -> int:
    """Run the server until interrupted."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG)
    server = build_server(args)
    try:
        asyncio.run(server.serve_forever(str(args.address), args.port))
    except KeyboardInterrupt:
        pass
    return 0