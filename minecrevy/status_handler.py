"""Answers server list queries: status requests and pings."""

from __future__ import annotations

import io
import uuid
from base64 import b64encode
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from PIL import Image

from minecrevy.client import Client
from minecrevy.core import PlayerCount
from minecrevy.protocol import (
    Ping,
    Request,
    Response,
    ResponsePlayers,
    ResponseProfile,
    ResponseVersion,
)
from minecrevy.server import Server
from minecrevy.text import Text

_FORMATS = {"png": "PNG", "jpg": "JPEG", "webp": "WEBP"}
_FAVICON_SIZE = 64
_DATA_URL_PREFIX = "data:image/png;base64,"
_PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}


@dataclass(frozen=True)
class ServerProtocol:
    """The protocol version advertised to clients.

    With ``version`` left as None, each client's own version is echoed back.
    """

    version: Optional[int] = None


@dataclass
class Favicon:
    """A server list icon and its PNG data URL."""

    image: Image.Image
    base64: str


class FaviconError(Exception):
    """A favicon could not be loaded or decoded."""


def _fit(width: int, height: int) -> tuple:
    ratio = min(_FAVICON_SIZE / width, _FAVICON_SIZE / height)
    return (max(round(width * ratio), 1), max(round(height * ratio), 1))


def favicon_from_bytes(data: bytes, extension: str) -> Favicon:
    """Decode an image of the format named by ``extension`` into a favicon.

    The image is scaled, keeping its aspect ratio, to fit 64x64 pixels and
    re-encoded as a base64 PNG data URL.
    """
    image_format = _FORMATS.get(extension.lstrip("."))
    if image_format is None:
        raise FaviconError(f"Unsupported image format: {extension}")
    try:
        image = Image.open(io.BytesIO(data), formats=[image_format])
        image.load()
    except (OSError, SyntaxError, ValueError) as exc:
        raise FaviconError(f"Could not parse image: {exc}") from exc

    if image.size != (_FAVICON_SIZE, _FAVICON_SIZE):
        image = image.resize(_fit(*image.size), Image.Resampling.NEAREST)
    if image.mode not in _PNG_MODES:
        image = image.convert("RGBA")

    out = io.BytesIO()
    try:
        image.save(out, format="PNG")
    except (OSError, ValueError) as exc:
        raise FaviconError(f"Could not parse image: {exc}") from exc
    encoded = b64encode(out.getvalue()).decode("ascii")
    return Favicon(image=image, base64=_DATA_URL_PREFIX + encoded)


def load_favicon(path: Union[str, Path]) -> Favicon:
    """Load a favicon from a ``.png``, ``.jpg`` or ``.webp`` file."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FaviconError(f"Could not load image: {exc}") from exc
    return favicon_from_bytes(data, path.suffix)


@dataclass
class StatusConfig:
    """What the server shows in the server list."""

    protocol: ServerProtocol = field(default_factory=ServerProtocol)
    protocol_name: str = "Ping Server"
    motd: Text = field(default_factory=lambda: Text.string("A Minecraft Server"))
    sample: List[str] = field(default_factory=list)
    players: PlayerCount = field(default_factory=PlayerCount)
    favicon: Optional[Favicon] = None


class StatusHandler:
    """Replies to status requests with the server list entry and echoes pings.

    ``client_info`` maps clients to what their handshake said; it supplies
    the echoed protocol version.
    """

    def __init__(
        self,
        server: Server,
        config: Optional[StatusConfig] = None,
        client_info: Optional[Mapping[Client, Any]] = None,
    ) -> None:
        self.server = server
        self.config = config if config is not None else StatusConfig()
        self.client_info = client_info if client_info is not None else {}
        server.add_observer(Request, self.on_status_request)
        server.add_observer(Ping, self.on_status_ping)

    def build_response(self, client: Client) -> Response:
        """Return the status response for ``client``."""
        config = self.config
        version = config.protocol.version
        if version is None:
            info = self.client_info.get(client)
            version = info.protocol_version if info is not None else 0
        return Response(
            version=ResponseVersion(name=config.protocol_name, protocol=version),
            players=ResponsePlayers(
                max=config.players.max,
                online=config.players.online,
                sample=[ResponseProfile(name=name, id=uuid.UUID(int=0)) for name in config.sample],
            ),
            description=config.motd,
            favicon=config.favicon.base64 if config.favicon is not None else None,
        )

    def on_status_request(self, client: Client, packet: Request) -> None:
        with self.server.writer(client) as writer:
            writer.send(self.build_response(client))

    def on_status_ping(self, client: Client, packet: Ping) -> None:
        with self.server.writer(client) as writer:
            writer.send(packet)