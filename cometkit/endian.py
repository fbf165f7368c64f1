"""Big-endian signed integer encoding into byte buffers."""

from __future__ import annotations

import struct


def int8(b) -> int:
    """Read a signed byte from ``b[0]``."""
    return struct.unpack_from(">b", b)[0]


def put_int8(b, v: int) -> None:
    """Store ``v`` as a signed byte into ``b[0]``."""
    struct.pack_into(">B", b, 0, v & 0xFF)


def int16(b) -> int:
    """Read a big-endian signed 16-bit integer from ``b``."""
    return struct.unpack_from(">h", b)[0]


def put_int16(b, v: int) -> None:
    """Store ``v`` as a big-endian 16-bit integer into ``b``."""
    struct.pack_into(">H", b, 0, v & 0xFFFF)


def int32(b) -> int:
    """Read a big-endian signed 32-bit integer from ``b``."""
    return struct.unpack_from(">i", b)[0]


def put_int32(b, v: int) -> None:
    """Store ``v`` as a big-endian 32-bit integer into ``b``."""
    struct.pack_into(">I", b, 0, v & 0xFFFFFFFF)