# minecrevy

Tools for speaking the Minecraft Java Edition network protocol from Python:

- reading and writing the protocol's data types (VarInt, VarLong, big-endian
  integers and floats, length-prefixed strings, UUIDs, lists, arrays,
  optionals, maps, vectors and packed block positions);
- framing raw packets (`length | id | body`);
- JSON chat text components;
- the handshake, status and login packets;
- a small asyncio server that answers server-list pings, with a
  command-line program built on top of it.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## The server-list advertiser

`minecrevy-server-list` starts a server that shows up in a Minecraft client's
multiplayer list with the MOTD, player counts, sample names and favicon you
choose. It does not let anyone join: clients that try to log in are sent a
disconnect message and dropped.

```
minecrevy-server-list --port 25565 --motd "Hello from Python" --online 3 --max 50 --sample Alice --sample Bob
```

Options:

| Option | Default | Meaning |
|---|---|---|
| `-a`, `--address` | `0.0.0.0` | IP address to bind to |
| `-p`, `--port` | `25565` | Port to bind to (0–65535) |
| `-t`, `--tick-rate` | `20` | Must be a positive number; the server is event-driven and does not use it |
| `-m`, `--motd` | `A Minecraft Server` | Message shown in the server list |
| `--online` | `0` | Online player count shown |
| `--max` | `20` | Maximum player count shown |
| `--sample` | none | Sample player name; repeat for more |
| `--favicon` | `server-icon.png` | PNG (`.png`), JPEG (`.jpg`) or WebP (`.webp`) icon, scaled to fit 64x64 |
| `--deny-login` | `Logins are not enabled.` | Message sent to clients that try to log in |
| `--protocol-version` | echo the client's | Protocol version to advertise |
| `--protocol-name` | `Ping Server` | Version name to advertise |

If the favicon cannot be read or decoded, an error is logged and the server
runs without one. The server logs at DEBUG level and runs until interrupted.

## Using the library

### Data types

Codecs in `minecrevy.codecs` turn Python values into protocol bytes and back:
`Primitive` (`"u8"`, `"u16"`, `"u32"`, `"u64"`, `"u128"`, `"i8"`, `"i16"`,
`"i128"`, `"f32"`, `"f64"`), `Bool`, `Int32`, `Int64`, `String`, `List`,
`Array`, `Optional`, `Mapping`, `UuidCodec`, `Vector` and `IVec3`. Every codec
has `read(reader)`, `write(writer, value)`, `decode(data)` and
`encode(value)`. Options such as VarInt encoding, a maximum string length or
how a list length is carried come from the argument classes in
`minecrevy.args` (`IntArgs`, `StringArgs`, `ListArgs`/`ListLength`,
`ArrayArgs`, `OptionArgs`/`OptionTag`, `IVec3Args`).

```python
from minecrevy.args import IntArgs, StringArgs
from minecrevy.codecs import Int32, String

varint = Int32(IntArgs(varint=True))
assert varint.encode(300) == b"\xac\x02"
assert varint.decode(b"\xac\x02") == 300

name = String(StringArgs(max_len=16))
assert name.decode(name.encode("Steve")) == "Steve"
```

`compress_ivec3` and `uncompress_ivec3` pack and unpack `(x, y, z)` block
positions in the 64-bit layout (26 bits x, 26 bits z, 12 bits y); unpacked
fields are not sign-extended.

Lower-level access is available through `minecrevy.stream.McReader` (which
wraps a binary stream or a bytes object) and `minecrevy.stream.McWriter`
(which wraps a binary stream). Malformed data raises
`minecrevy.stream.ProtocolError`; running out of bytes raises
`minecrevy.stream.UnexpectedEof`. Values out of range for their type raise
`ValueError` when written.

```python
import io
from minecrevy.stream import McReader, McWriter

buffer = io.BytesIO()
McWriter(buffer).write_string("hello")
assert McReader(buffer.getvalue()).read_string() == "hello"
```

`minecrevy.varint.varint_bytes(value)` tells how many bytes a signed 32-bit
value takes as a VarInt.

### Packets

`minecrevy.packet.RawPacket` holds a packet id and its body; `len()` gives the
value of the packet's length field, `reader()` reads the body and `writer()`
writes into it. `read_packet` and `write_packet` frame packets on a stream.
`PacketCodec` encodes packets to bytes and decodes them from the front of a
growing `bytearray`, returning `None` until a whole packet has arrived.

### Text components

`minecrevy.text.Text` builds chat components (string, translatable and
keybind content, styles, click and hover events, child components) and
converts them to and from JSON. `TextCodec` carries them on the wire as a
length-prefixed JSON string, by default at most 262144 bytes.

```python
from minecrevy.text import ClickEvent, Text

motd = Text.string("Welcome").bold().click(ClickEvent.run_command("/help"))
assert Text.from_json(motd.to_json()) == motd
```

### Protocol packets

`minecrevy.protocol` defines `Handshake`, `LoginStart`, `LoginAcknowledged`,
`LoginSuccess` (with `Property`), `Disconnect`, `Request`, `Ping` and
`Response` (with `ResponseVersion`, `ResponsePlayers` and `ResponseProfile`).
`register_server_packets` registers the handshake, login and status packets
in the registries of `minecrevy.registry` (`IncomingPacketHandlers`,
`OutgoingPacketIds`), as selected by `ProtocolOptions`.

### The server

`minecrevy.server.Server` accepts TCP connections with asyncio
(`start`, `stop`, `serve_forever`), decodes incoming packets for each
client's current `ProtocolState` and passes them to the callbacks registered
with `add_observer(packet_type, callback)`. `writer(client)` returns a
`ClientPacketWriter` whose `send` looks up the packet id for the client's
state (raising `UnregisteredPacketError` if there is none) and which flushes
when used as a context manager. A connection that stays silent for the
codec settings' timeout (30 seconds by default) is closed.

`minecrevy.handshake_handler.HandshakeHandler` moves clients to the status or
login state their handshake asks for and refuses logins according to
`AllowLogin`. `minecrevy.status_handler.StatusHandler` answers status
requests from a `StatusConfig` and echoes pings; `load_favicon` and
`favicon_from_bytes` prepare the icon. `minecrevy.app.build_server` wires
these up the same way the command-line program does.

## What it does not do

- Nobody can join: there is no login beyond refusing it, and no play or
  configuration state packets.
- `PacketCodec.enable_compression` and `enable_encryption` only record the
  switch; packets are neither compressed nor encrypted.
- NBT data is not read or written.