"""Buffered reading and writing over byte streams.

The underlying reader is any object with ``read(n)`` that returns at most
``n`` bytes, ``b""`` at end of stream, or ``None`` when no data was
available yet. The underlying writer is any object with ``write(data)``
that returns the number of bytes written (``None`` means all of them).
"""

from __future__ import annotations

from typing import Optional, Protocol, Tuple, Union

DEFAULT_BUF_SIZE = 4096
MIN_READ_BUFFER_SIZE = 16
MAX_CONSECUTIVE_EMPTY_READS = 100


class BufioError(Exception):
    """Base class for buffered I/O errors."""


class BufferFullError(BufioError):
    """The buffer filled up before the request could be satisfied."""

    def __init__(self, data: bytes = b"") -> None:
        super().__init__("bufio: buffer full")
        self.data = bytes(data)


class NegativeCountError(BufioError):
    """A negative byte count was requested."""

    def __init__(self) -> None:
        super().__init__("bufio: negative count")


class NoProgressError(BufioError):
    """The underlying reader repeatedly returned no data and no error."""

    def __init__(self) -> None:
        super().__init__("multiple Read calls return no data or error")


class ShortWriteError(BufioError):
    """The underlying writer accepted fewer bytes than it was given."""

    def __init__(self) -> None:
        super().__init__("short write")


class RawReader(Protocol):
    def read(self, n: int) -> Optional[bytes]: ...


class RawWriter(Protocol):
    def write(self, data: bytes) -> Optional[int]: ...


def _delim_byte(delim: Union[int, bytes]) -> int:
    if isinstance(delim, int):
        return delim
    if len(delim) != 1:
        raise ValueError("delimiter must be a single byte")
    return delim[0]


class Reader:
    """Buffered reader over a raw byte source."""

    def __init__(self, rd: RawReader, size: int = DEFAULT_BUF_SIZE) -> None:
        self._init(bytearray(max(size, MIN_READ_BUFFER_SIZE)), rd)

    def _init(self, buf: bytearray, rd: RawReader) -> None:
        self._buf = buf
        self._rd = rd
        self._r = 0
        self._w = 0
        self._err: Optional[BaseException] = None

    def reset(self, rd: RawReader) -> None:
        """Discard buffered data and read from ``rd`` from now on."""
        self._init(self._buf, rd)

    def reset_buffer(self, rd: RawReader, buf) -> None:
        """Discard buffered data, switch to ``rd`` and use ``buf`` as storage."""
        self._init(buf if isinstance(buf, bytearray) else bytearray(buf), rd)

    def _take_err(self) -> Optional[BaseException]:
        err, self._err = self._err, None
        return err

    def _pull(self, n: int) -> bytes:
        for _ in range(MAX_CONSECUTIVE_EMPTY_READS):
            data = self._rd.read(n)
            if data is not None:
                return data
        raise NoProgressError()

    @staticmethod
    def _check(data: bytes, n: int) -> None:
        if len(data) > n:
            raise ValueError("bufio: reader returned more bytes than requested")

    def _fill(self) -> None:
        if self._r > 0:
            self._buf[: self._w - self._r] = self._buf[self._r : self._w]
            self._w -= self._r
            self._r = 0
        space = len(self._buf) - self._w
        if space <= 0:
            raise RuntimeError("bufio: tried to fill full buffer")
        try:
            data = self._pull(space)
        except Exception as exc:
            self._err = exc
            return
        self._check(data, space)
        if not data:
            self._err = EOFError("EOF")
            return
        self._buf[self._w : self._w + len(data)] = data
        self._w += len(data)

    def _eof_or_raise(self) -> bytes:
        err = self._take_err()
        if err is None or isinstance(err, EOFError):
            return b""
        raise err

    def peek(self, n: int) -> bytes:
        """Return the next ``n`` bytes without consuming them."""
        if n < 0:
            raise NegativeCountError()
        if n > len(self._buf):
            raise BufferFullError()
        while self._w - self._r < n and self._err is None:
            self._fill()
        if self._w - self._r < n:
            err = self._take_err()
            raise err if err is not None else BufferFullError(self._buf[self._r : self._w])
        return bytes(self._buf[self._r : self._r + n])

    def pop(self, n: int) -> bytes:
        """Return the next ``n`` bytes and consume them."""
        data = self.peek(n)
        self._r += n
        return data

    def discard(self, n: int) -> int:
        """Skip ``n`` bytes and return how many were skipped.

        A count below ``n`` means the stream ended; other errors are raised.
        """
        if n < 0:
            raise NegativeCountError()
        remain = n
        while remain:
            skip = self.buffered()
            if skip == 0:
                self._fill()
                skip = self.buffered()
            skip = min(skip, remain)
            self._r += skip
            remain -= skip
            if remain == 0:
                break
            if self._err is not None:
                err = self._take_err()
                if isinstance(err, EOFError):
                    return n - remain
                raise err
        return n

    def read(self, n: int) -> bytes:
        """Read up to ``n`` bytes with at most one call to the raw reader.

        Returns ``b""`` at end of stream.
        """
        if n < 0:
            raise NegativeCountError()
        if n == 0:
            return self._eof_or_raise()
        if self._r == self._w:
            if self._err is not None:
                return self._eof_or_raise()
            if n >= len(self._buf):
                data = self._pull(n)
                self._check(data, n)
                return bytes(data)
            self._fill()
            if self._r == self._w:
                return self._eof_or_raise()
        k = min(n, self._w - self._r)
        data = bytes(self._buf[self._r : self._r + k])
        self._r += k
        return data

    def read_byte(self) -> int:
        """Read one byte; raises ``EOFError`` at end of stream."""
        while self._r == self._w:
            if self._err is not None:
                raise self._take_err()
            self._fill()
        c = self._buf[self._r]
        self._r += 1
        return c

    def _scan(self, delim: int) -> Tuple[bytes, Optional[BaseException]]:
        while True:
            i = self._buf.find(delim, self._r, self._w)
            if i >= 0:
                line = bytes(self._buf[self._r : i + 1])
                self._r = i + 1
                return line, None
            if self._err is not None:
                line = bytes(self._buf[self._r : self._w])
                self._r = self._w
                return line, self._take_err()
            if self.buffered() >= len(self._buf):
                self._r = self._w
                line = bytes(self._buf)
                return line, BufferFullError(line)
            self._fill()

    def read_slice(self, delim: Union[int, bytes]) -> bytes:
        """Read through the first ``delim`` byte.

        If the stream ends or fails first, the remaining data is returned
        and the error is raised by the next call. Raises ``BufferFullError``
        (carrying the buffer in ``data``) when no delimiter fits.
        """
        line, err = self._scan(_delim_byte(delim))
        if err is None:
            return line
        if isinstance(err, BufferFullError) or not line:
            raise err
        self._err = err
        return line

    def read_line(self) -> Tuple[bytes, bool]:
        """Return ``(line, is_prefix)`` without the line ending.

        ``is_prefix`` is true when the line did not fit in the buffer and
        the rest follows in later calls.
        """
        line, err = self._scan(ord("\n"))
        if isinstance(err, BufferFullError):
            if line.endswith(b"\r"):
                if self._r == 0:
                    raise RuntimeError("bufio: tried to rewind past start of buffer")
                self._r -= 1
                line = line[:-1]
            return line, True
        if not line:
            if err is not None:
                raise err
            return line, False
        if err is not None:
            self._err = err
        if line.endswith(b"\r\n"):
            line = line[:-2]
        elif line.endswith(b"\n"):
            line = line[:-1]
        return line, False

    def buffered(self) -> int:
        """Number of bytes that can be read from the buffer."""
        return self._w - self._r


def new_reader_size(rd, size: int) -> Reader:
    """Return a reader with a buffer of at least ``size`` bytes."""
    if isinstance(rd, Reader) and len(rd._buf) >= size:
        return rd
    return Reader(rd, max(size, MIN_READ_BUFFER_SIZE))


def new_reader(rd) -> Reader:
    """Return a reader with the default buffer size."""
    return new_reader_size(rd, DEFAULT_BUF_SIZE)


class Writer:
    """Buffered writer over a raw byte sink. Errors are sticky."""

    def __init__(self, wr: RawWriter, size: int = DEFAULT_BUF_SIZE) -> None:
        if size <= 0:
            size = DEFAULT_BUF_SIZE
        self._buf = bytearray(size)
        self._n = 0
        self._wr = wr
        self._err: Optional[BaseException] = None

    def reset(self, w: RawWriter) -> None:
        """Drop unflushed data, clear any error and write to ``w``."""
        self._err = None
        self._n = 0
        self._wr = w

    def reset_buffer(self, w: RawWriter, buf) -> None:
        """Like ``reset`` but also replace the buffer."""
        self._buf = buf if isinstance(buf, bytearray) else bytearray(buf)
        self.reset(w)

    def _write_through(self, data: bytes) -> Tuple[int, Optional[BaseException]]:
        try:
            written = self._wr.write(data)
        except Exception as exc:
            return 0, exc
        return (len(data) if written is None else written), None

    def _flush(self) -> Optional[BaseException]:
        if self._err is not None:
            return self._err
        if self._n == 0:
            return None
        written, err = self._write_through(bytes(self._buf[: self._n]))
        if err is None and written < self._n:
            err = ShortWriteError()
        if err is not None:
            if 0 < written < self._n:
                self._buf[: self._n - written] = self._buf[written : self._n]
            self._n -= written
            self._err = err
            return err
        self._n = 0
        return None

    def flush(self) -> None:
        """Write buffered data to the underlying writer."""
        err = self._flush()
        if err is not None:
            raise err

    def available(self) -> int:
        """Number of unused bytes in the buffer."""
        return len(self._buf) - self._n

    def buffered(self) -> int:
        """Number of bytes waiting in the buffer."""
        return self._n

    def _copy_in(self, data: bytes) -> int:
        k = min(len(data), self.available())
        self._buf[self._n : self._n + k] = data[:k]
        self._n += k
        return k

    def write(self, p) -> int:
        """Buffer ``p``, flushing as needed; returns the byte count."""
        data = bytes(p)
        total = 0
        while len(data) > self.available() and self._err is None:
            if self._n == 0:
                k, self._err = self._write_through(data)
            else:
                k = self._copy_in(data)
                self._flush()
            total += k
            data = data[k:]
        if self._err is not None:
            raise self._err
        return total + self._copy_in(data)

    def write_raw(self, p) -> int:
        """Write ``p`` straight through when nothing is buffered."""
        if self._err is not None:
            raise self._err
        if self._n == 0:
            written, self._err = self._write_through(bytes(p))
            if self._err is not None:
                raise self._err
            return written
        return self.write(p)

    def peek(self, n: int) -> memoryview:
        """Reserve ``n`` bytes in the buffer and return them for filling."""
        if n < 0:
            raise NegativeCountError()
        if n > len(self._buf):
            raise BufferFullError()
        while self.available() < n and self._err is None:
            self._flush()
        if self._err is not None:
            raise self._err
        view = memoryview(self._buf)[self._n : self._n + n]
        self._n += n
        return view

    def write_string(self, s: str) -> int:
        """Buffer the UTF-8 encoding of ``s``; returns the byte count."""
        data = s.encode("utf-8")
        total = 0
        while len(data) > self.available() and self._err is None:
            k = self._copy_in(data)
            total += k
            data = data[k:]
            self._flush()
        if self._err is not None:
            raise self._err
        return total + self._copy_in(data)


def new_writer_size(w, size: int) -> Writer:
    """Return a writer with a buffer of at least ``size`` bytes."""
    if isinstance(w, Writer) and len(w._buf) >= size:
        return w
    return Writer(w, size)


def new_writer(w) -> Writer:
    """Return a writer with the default buffer size."""
    return new_writer_size(w, DEFAULT_BUF_SIZE)