"""A TCP server that reads packets from clients and hands them to observers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from minecrevy.client import (
    Client,
    ClientAddressIndex,
    ClientPacketWriter,
    WriteOp,
    WriteOpKind,
)
from minecrevy.packet import PacketCodec, PacketCodecSettings, RawPacket
from minecrevy.registry import IncomingPacketHandlers, OutgoingPacketIds, ProtocolState
from minecrevy.stream import ProtocolError

_log = logging.getLogger(__name__)

_READ_SIZE = 4096

Observer = Callable[[Client, Any], Any]


class ClientError(Exception):
    """A client connection ended: it timed out, disconnected or misbehaved."""


class Server:
    """Accepts connections, decodes their packets and notifies observers.

    Packet types are registered per protocol state; an observer registered for
    a packet type is called with the client and the decoded packet.
    """

    def __init__(self, settings: Optional[PacketCodecSettings] = None) -> None:
        self.settings = settings if settings is not None else PacketCodecSettings()
        self.incoming = IncomingPacketHandlers()
        self.outgoing_ids = OutgoingPacketIds()
        self.index = ClientAddressIndex()
        self._observers: Dict[Any, List[Observer]] = {}
        self._listener: Optional[asyncio.AbstractServer] = None

    def add_incoming_packet(self, packet_type: Any, state: ProtocolState, packet_id: int) -> Server:
        """Register a packet type the server receives with ``packet_id`` in ``state``."""
        self.incoming.insert(packet_type, state, packet_id)
        return self

    def add_outgoing_packet(self, packet_type: Any, state: ProtocolState, packet_id: int) -> Server:
        """Register the id a packet type is sent with in ``state``."""
        self.outgoing_ids.insert(packet_type, state, packet_id)
        return self

    def add_observer(self, packet_type: Any, callback: Observer) -> Server:
        """Call ``callback(client, packet)`` for every received ``packet_type``."""
        self._observers.setdefault(packet_type, []).append(callback)
        return self

    def writer(self, client: Client) -> ClientPacketWriter:
        """Return a writer that sends typed packets to ``client``."""
        return ClientPacketWriter(client, self.outgoing_ids)

    def dispatch(self, client: Client, packet: RawPacket) -> Optional[Any]:
        """Decode ``packet`` in the client's current state and notify observers.

        Returns the decoded packet, or None if it has no registered type or
        could not be read.
        """
        event = self.incoming.decode(client.state, packet)
        if event is None:
            return None
        for callback in list(self._observers.get(type(event.packet), ())):
            callback(client, event.packet)
        return event.packet

    async def start(self, host: str, port: int) -> Any:
        """Start listening on ``host``/``port``, stopping any earlier listener.

        Returns the address the server is bound to.
        """
        await self.stop()
        _log.info("Starting network server on %s:%s", host, port)
        self._listener = await asyncio.start_server(self.handle_connection, host, port)
        return self._listener.sockets[0].getsockname()

    async def stop(self) -> None:
        """Stop accepting new connections."""
        listener, self._listener = self._listener, None
        if listener is None:
            return
        _log.info("Stopping network server")
        listener.close()
        await listener.wait_closed()

    async def serve_forever(self, host: str, port: int) -> None:
        """Listen on ``host``/``port`` until cancelled."""
        await self.start(host, port)
        assert self._listener is not None
        try:
            await self._listener.serve_forever()
        finally:
            await self.stop()

    async def _apply(self, op: WriteOp, codec: PacketCodec, writer: asyncio.StreamWriter) -> None:
        if op.kind is WriteOpKind.SEND:
            writer.write(codec.encode(op.packet))
        elif op.kind is WriteOpKind.FLUSH:
            await writer.drain()
        elif op.kind is WriteOpKind.ENABLE_COMPRESSION:
            codec.enable_compression()
        elif op.kind is WriteOpKind.ENABLE_ENCRYPTION:
            codec.enable_encryption()
        else:
            raise ClientError("Client disconnected")

    async def handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> Exception:
        """Serve one client until it errors, times out or disconnects.

        Returns the error that ended the connection.
        """
        addr = writer.get_extra_info("peername")
        queue: asyncio.Queue[WriteOp] = asyncio.Queue()
        client = Client(addr, queue.put_nowait)
        codec = PacketCodec(self.settings)
        self.index.insert(addr, client)
        _log.debug("Client %s connected", addr)

        buffer = bytearray()
        read_task: Optional[asyncio.Future] = None
        op_task: Optional[asyncio.Future] = None
        error: Exception
        try:
            while True:
                if read_task is None:
                    read_task = asyncio.ensure_future(reader.read(_READ_SIZE))
                if op_task is None:
                    op_task = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait(
                    {read_task, op_task},
                    timeout=self.settings.timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if not done:
                    await writer.drain()
                    raise ClientError("Client timed out")
                if read_task in done:
                    data = read_task.result()
                    read_task = None
                    if not data:
                        raise ClientError("Client disconnected")
                    buffer += data
                    while (packet := codec.decode(buffer)) is not None:
                        self.dispatch(client, packet)
                if op_task in done:
                    op = op_task.result()
                    op_task = None
                    await self._apply(op, codec, writer)
        except (ClientError, ProtocolError, OSError) as exc:
            error = exc
            _log.error("Client %s errored: %s", addr, exc)
        finally:
            for task in (read_task, op_task):
                if task is not None:
                    task.cancel()
            self.index.remove(addr, client)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
        return error