# cometkit

Small building blocks for servers that keep many long-lived connections
open: buffered stream I/O, buffer pools, a timer heap and the server side
of the WebSocket protocol.

## Modules

| Module | Contents |
| --- | --- |
| `cometkit.bufio` | `Reader` and `Writer`, buffered wrappers over any object with `read(n)` / `write(data)`. Built with `new_reader`, `new_reader_size`, `new_writer`, `new_writer_size`. |
| `cometkit.buffers` | `Pool` of fixed-size `Buffer`s that grows a block at a time, and `ByteWriter`, a growable append-only byte buffer. |
| `cometkit.ints` | `join_int32s`, `split_int32s`, `join_int64s`, `split_int64s`. |
| `cometkit.endian` | Big-endian signed codecs: `int8`, `put_int8`, `int16`, `put_int16`, `int32`, `put_int32`. |
| `cometkit.ip` | `internal_ip()` returns the first non-loopback IPv4 address of the host, or `""`. |
| `cometkit.duration` | `parse_duration("1m30s")` returns a `datetime.timedelta`. |
| `cometkit.timer` | `Timer`, a min-heap of `TimerData` entries whose callbacks run on a background thread. |
| `cometkit.ws` | `read_request`, `upgrade`, `compute_accept_key` and the frame-level `Conn`. |

## Installation

```
pip install cometkit
```

## Buffered I/O

```python
import io
from cometkit.bufio import new_reader

reader = new_reader(io.BytesIO(b"hello\r\nworld\n"))
line, is_prefix = reader.read_line()
assert line == b"hello" and not is_prefix
```

`Reader` offers `peek`, `pop`, `discard`, `read`, `read_byte`,
`read_slice`, `read_line` and `buffered`. `read` returns `b""` at end of
stream; `read_byte` raises `EOFError`. Asking for more than the buffer holds
raises `BufferFullError`, a negative count raises `NegativeCountError`, and
a raw reader that keeps returning `None` leads to `NoProgressError`.

`Writer` offers `write`, `write_string`, `write_raw`, `flush`, `available`,
`buffered`, `reset` and `peek`, which reserves bytes in the buffer and
returns a writable `memoryview` for filling in place. Write errors are
sticky: once the raw writer fails or accepts too little (`ShortWriteError`),
every later call raises that error until `reset`.

## Buffers

```python
from cometkit.buffers import Pool, ByteWriter

pool = Pool(1024, 4096)
buf = pool.get()          # buf.bytes() is a writable memoryview
pool.put(buf)

w = ByteWriter(64)
w.write(b"hello")
assert w.buffer() == b"hello" and len(w) == 5
```

## Integers and durations

```python
from cometkit.ints import join_int64s, split_int64s
from cometkit.duration import parse_duration

assert join_int64s([1, 2, 3], ",") == "1,2,3"
assert split_int64s("1,2,3", ",") == [1, 2, 3]
assert parse_duration("10s").total_seconds() == 10
```

The split functions and `parse_duration` raise `ValueError` on malformed
or out-of-range input. Duration units are `ns`, `us` (or `µs`), `ms`, `s`,
`m` and `h`.

## Timer

```python
from datetime import timedelta
from cometkit.timer import Timer

timer = Timer(64)
td = timer.add(timedelta(seconds=5), lambda: print("expired"))
timer.set(td, timedelta(seconds=10))   # push it back
timer.delete(td)                       # or cancel it
timer.close()
```

Delays may be seconds or a `timedelta`. `len(timer)` is the number of
pending entries. `Timer` is also a context manager that closes on exit;
entries still pending at close never fire.

## WebSocket

```python
from cometkit.bufio import new_reader, new_writer
from cometkit.ws import read_request, upgrade, BINARY_MESSAGE

stream = sock.makefile("rwb", buffering=0)
rd, wr = new_reader(stream), new_writer(stream)
req = read_request(rd)
conn = upgrade(stream, rd, wr, req)
conn.write_message(BINARY_MESSAGE, b"\x00\x01\x02")
conn.flush()
op, payload = conn.read_message()
```

`read_message` joins fragmented messages, answers pings with pongs and
ignores pongs. Problems raise subclasses of `WebSocketError`:
`BadRequestMethodError`, `BadWebSocketVersionError`, `NotWebSocketError`,
`ChallengeResponseError`, `MessageCloseError` and `MessageMaxReadError`.

## What it does not do

cometkit is a library only. It has no command-line program, no ready-made
push server or client, no wire protocol for push messages, and no service
registration or discovery; those are left to the application built on it.
The WebSocket support covers the server side of the handshake and framing,
without extensions, compression or sending fragmented messages.

## Running the tests

```
pip install -e .[test]
pytest
```