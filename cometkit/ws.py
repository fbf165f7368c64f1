"""A minimal WebSocket server side: handshake parsing, upgrade and framing."""

from __future__ import annotations

import base64
import hashlib
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from cometkit.bufio import Reader, Writer

FIN_BIT = 1 << 7
RSV1_BIT = 1 << 6
RSV2_BIT = 1 << 5
RSV3_BIT = 1 << 4
OP_BITS = 0x0F

MASK_BIT = 1 << 7
LEN_BITS = 0x7F

CONTINUATION_FRAME = 0
CONTINUATION_FRAME_MAX_READ = 100

TEXT_MESSAGE = 1
BINARY_MESSAGE = 2
CLOSE_MESSAGE = 8
PING_MESSAGE = 9
PONG_MESSAGE = 10

KEY_GUID = b"258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


class WebSocketError(Exception):
    """Base class for WebSocket protocol errors."""


class MessageCloseError(WebSocketError):
    """The peer sent a close control message."""

    def __init__(self) -> None:
        super().__init__("close control message")


class MessageMaxReadError(WebSocketError):
    """Too many frames were read without completing a message."""

    def __init__(self) -> None:
        super().__init__("continuation frame max read")


class BadRequestMethodError(WebSocketError):
    """The handshake request did not use GET."""

    def __init__(self) -> None:
        super().__init__("bad method")


class NotWebSocketError(WebSocketError):
    """The handshake request did not ask for a WebSocket upgrade."""

    def __init__(self) -> None:
        super().__init__("not websocket protocol")


class BadWebSocketVersionError(WebSocketError):
    """The handshake request carried a missing or unsupported version."""

    def __init__(self) -> None:
        super().__init__("missing or bad WebSocket Version")


class ChallengeResponseError(WebSocketError):
    """The handshake request carried no challenge key."""

    def __init__(self) -> None:
        super().__init__("mismatch challenge/response")


def _canonical_key(key: str) -> str:
    """Canonical MIME header form: ``content-type`` becomes ``Content-Type``."""
    if not key or any(ch not in _TOKEN_CHARS for ch in key):
        return key
    return "-".join(part[:1].upper() + part[1:].lower() for part in key.split("-"))


def _header_get(header: Dict[str, List[str]], name: str) -> str:
    values = header.get(_canonical_key(name))
    return values[0] if values else ""


@dataclass
class Request:
    """A parsed HTTP handshake request; header keys are canonicalised."""

    method: str = ""
    request_uri: str = ""
    proto: str = ""
    host: str = ""
    header: Dict[str, List[str]] = field(default_factory=dict)


def _read_line(reader: Reader) -> bytes:
    parts = []
    while True:
        line, more = reader.read_line()
        parts.append(line)
        if not more:
            return b"".join(parts)


def _parse_request_line(line: str) -> Tuple[str, str, str]:
    s1 = line.find(" ")
    if s1 < 0:
        raise WebSocketError(f"malformed HTTP request {line}")
    s2 = line.find(" ", s1 + 1)
    if s2 < 0:
        raise WebSocketError(f"malformed HTTP request {line}")
    return line[:s1], line[s1 + 1 : s2], line[s2 + 1 :]


def _read_mime_header(reader: Reader) -> Dict[str, List[str]]:
    header: Dict[str, List[str]] = {}
    while True:
        line = _read_line(reader).strip(b" \t")
        if not line:
            return header
        i = line.find(b":")
        if i <= 0:
            raise WebSocketError(
                "malformed MIME header line: " + line.decode("latin-1")
            )
        key = _canonical_key(line[:i].decode("latin-1"))
        value = line[i + 1 :].lstrip(b" \t").decode("latin-1")
        header.setdefault(key, []).append(value)


def read_request(reader: Reader) -> Request:
    """Read and parse an HTTP request from a buffered reader."""
    method, uri, proto = _parse_request_line(_read_line(reader).decode("latin-1"))
    header = _read_mime_header(reader)
    return Request(
        method=method,
        request_uri=uri,
        proto=proto,
        host=_header_get(header, "Host"),
        header=header,
    )


def compute_accept_key(challenge_key: str) -> str:
    """The ``Sec-WebSocket-Accept`` value for a challenge key."""
    digest = hashlib.sha1(challenge_key.encode("latin-1") + KEY_GUID).digest()
    return base64.b64encode(digest).decode("ascii")


def _mask_bytes(key: bytes, pos: int, data: bytearray) -> int:
    for i, byte in enumerate(data):
        data[i] = byte ^ key[(pos + i) & 3]
    return (pos + len(data)) & 3


class Conn:
    """A WebSocket connection over buffered reader and writer."""

    def __init__(self, rwc, reader: Reader, writer: Writer) -> None:
        self._rwc = rwc
        self._r = reader
        self._w = writer

    def write_message(self, msg_type: int, msg) -> None:
        """Write a whole unfragmented message of the given type."""
        data = bytes(msg)
        self.write_header(msg_type, len(data))
        self.write_body(data)

    def write_header(self, msg_type: int, length: int) -> None:
        """Write a final-frame header for a payload of ``length`` bytes."""
        h = self._w.peek(2)
        h[0] = (FIN_BIT | msg_type) & 0xFF
        if length <= 125:
            h[1] = length & 0xFF
        elif length < 65536:
            h[1] = 126
            struct.pack_into(">H", self._w.peek(2), 0, length)
        else:
            h[1] = 127
            struct.pack_into(">Q", self._w.peek(8), 0, length & 0xFFFFFFFFFFFFFFFF)

    def write_body(self, b) -> None:
        """Write payload bytes."""
        if len(b) > 0:
            self._w.write(b)

    def peek(self, n: int) -> memoryview:
        """Reserve ``n`` bytes in the write buffer for the caller to fill."""
        return self._w.peek(n)

    def flush(self) -> None:
        """Flush the write buffer."""
        self._w.flush()

    def _read_frame(self) -> Tuple[bool, int, bytes]:
        b = self._r.read_byte()
        fin = (b & FIN_BIT) != 0
        if b & (RSV1_BIT | RSV2_BIT | RSV3_BIT):
            raise WebSocketError(
                f"unexpected reserved bits rsv1={b & RSV1_BIT}, "
                f"rsv2={b & RSV2_BIT}, rsv3={b & RSV3_BIT}"
            )
        op = b & OP_BITS
        b = self._r.read_byte()
        mask = (b & MASK_BIT) != 0
        length_code = b & LEN_BITS
        if length_code == 126:
            (payload_len,) = struct.unpack(">H", self._r.pop(2))
        elif length_code == 127:
            (payload_len,) = struct.unpack(">q", self._r.pop(8))
        else:
            payload_len = length_code
        mask_key = self._r.pop(4) if mask else b""
        payload = b""
        if payload_len > 0:
            data = bytearray(self._r.pop(payload_len))
            if mask:
                _mask_bytes(mask_key, 0, data)
            payload = bytes(data)
        return fin, op, payload

    def read_message(self) -> Tuple[int, bytes]:
        """Read one data message, answering pings on the way.

        Returns ``(op, payload)``. Raises ``MessageCloseError`` on a close
        frame and ``MessageMaxReadError`` when a message spans too many frames.
        """
        payload = b""
        fin_op = 0
        n = 0
        while True:
            fin, op, part = self._read_frame()
            if op in (BINARY_MESSAGE, TEXT_MESSAGE, CONTINUATION_FRAME):
                if fin and not payload:
                    return op, part
                payload += part
                if op != CONTINUATION_FRAME:
                    fin_op = op
                if fin:
                    return fin_op, payload
            elif op == PING_MESSAGE:
                self.write_message(PONG_MESSAGE, part)
            elif op == PONG_MESSAGE:
                pass
            elif op == CLOSE_MESSAGE:
                raise MessageCloseError()
            else:
                raise WebSocketError(
                    f"unknown control message, fin={'true' if fin else 'false'}, op={op}"
                )
            if n > CONTINUATION_FRAME_MAX_READ:
                raise MessageMaxReadError()
            n += 1

    def close(self) -> None:
        """Close the underlying connection."""
        self._rwc.close()


def upgrade(rwc, rr: Reader, wr: Writer, req: Request) -> Conn:
    """Validate a handshake request, send the 101 response and return a Conn."""
    if req.method != "GET":
        raise BadRequestMethodError()
    if _header_get(req.header, "Sec-Websocket-Version") != "13":
        raise BadWebSocketVersionError()
    if _header_get(req.header, "Upgrade").lower() != "websocket":
        raise NotWebSocketError()
    if "upgrade" not in _header_get(req.header, "Connection").lower():
        raise NotWebSocketError()
    challenge_key = _header_get(req.header, "Sec-Websocket-Key")
    if not challenge_key:
        raise ChallengeResponseError()
    wr.write_string(
        "HTTP/1.1 101 Switching Protocols\r\nUpgrade: websocket\r\nConnection: Upgrade\r\n"
    )
    wr.write_string(
        "Sec-WebSocket-Accept: " + compute_accept_key(challenge_key) + "\r\n\r\n"
    )
    wr.flush()
    return Conn(rwc, rr, wr)