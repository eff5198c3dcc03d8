"""Arguments that tune how values are encoded and decoded.

- Want a VarInt? Set ``varint`` in :class:`IntArgs`.
- Want to bound string sizes? Set ``max_len`` in :class:`StringArgs`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class IntArgs:
    """Arguments for 32-bit and 64-bit integers."""

    varint: bool = False
    """Encode and decode the integer in the variable-length format."""


@dataclass(frozen=True)
class StringArgs:
    """Arguments for strings."""

    max_len: Optional[int] = None
    """Maximum encoded length in bytes; ``None`` disables the check."""


class ListLength(enum.Enum):
    """How the length of a collection is carried on the wire."""

    VARINT = "varint"
    """Prefixed with a VarInt length."""
    BYTE = "byte"
    """Prefixed with a signed byte length."""
    REMAINING = "remaining"
    """No prefix; elements run until the stream ends."""


@dataclass(frozen=True)
class ListArgs:
    """Arguments for lists and maps."""

    length: ListLength = ListLength.VARINT
    inner: Any = None
    """Arguments for the element codec, or ``None`` for its defaults."""


@dataclass(frozen=True)
class ArrayArgs:
    """Arguments for fixed-size arrays."""

    inner: Any = None
    """Arguments for the element codec, or ``None`` for its defaults."""


class OptionTag(enum.Enum):
    """How the presence of an optional value is signalled."""

    BOOL = "bool"
    """A boolean prefix tells whether a value follows."""
    REMAINING = "remaining"
    """A value is present if the stream has bytes left."""


@dataclass(frozen=True)
class OptionArgs:
    """Arguments for optional values."""

    tag: OptionTag = OptionTag.BOOL
    inner: Any = None
    """Arguments for the inner codec, or ``None`` for its defaults."""


class Compression(enum.Enum):
    """Compression algorithm for NBT blobs."""

    NONE = "none"
    GZIP = "gzip"
    ZLIB = "zlib"


@dataclass(frozen=True)
class NbtArgs:
    """Arguments for NBT blobs."""

    compression: Compression = Compression.NONE
    max_len: Optional[int] = None
    header: Optional[str] = None


@dataclass(frozen=True)
class IVec3Args:
    """Arguments for three-dimensional integer vectors."""

    compressed: bool = False
    """Pack the coordinates into a single 64-bit position value."""