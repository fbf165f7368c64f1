"""Fixed-size buffer pools and a growable byte writer."""

from __future__ import annotations

import threading
from typing import List


class Buffer:
    """A fixed-size slice of memory handed out by a ``Pool``."""

    __slots__ = ("_view",)

    def __init__(self, view: memoryview) -> None:
        self._view = view

    def bytes(self) -> memoryview:
        """Writable view of the buffer's memory."""
        return self._view


class Pool:
    """Thread-safe free list of equally sized buffers.

    Buffers are allocated ``num`` at a time from one shared block; when the
    free list runs dry another block is allocated.
    """

    def __init__(self, num: int, size: int) -> None:
        if num <= 0 or size <= 0:
            raise ValueError("pool needs a positive buffer count and size")
        self._num = num
        self._size = size
        self._lock = threading.Lock()
        self._free: List[Buffer] = []
        self._grow()

    def _grow(self) -> None:
        block = memoryview(bytearray(self._num * self._size))
        buffers = [
            Buffer(block[start : start + self._size])
            for start in range(0, self._num * self._size, self._size)
        ]
        # The free list is a stack: the first buffer of the block comes out first.
        self._free.extend(reversed(buffers))

    def get(self) -> Buffer:
        """Take a free buffer, allocating a new block if none is left."""
        with self._lock:
            if not self._free:
                self._grow()
            return self._free.pop()

    def put(self, buffer: Buffer) -> None:
        """Return a buffer to the pool; it is the next one handed out."""
        with self._lock:
            self._free.append(buffer)


class ByteWriter:
    """Append-only byte buffer that grows on demand."""

    def __init__(self, size: int) -> None:
        self._buf = bytearray(size)
        self._n = 0

    def __len__(self) -> int:
        return self._n

    def size(self) -> int:
        """Capacity of the underlying storage."""
        return len(self._buf)

    def reset(self) -> None:
        """Forget everything written so far, keeping the storage."""
        self._n = 0

    def buffer(self) -> bytes:
        """The bytes written so far."""
        return bytes(self._buf[: self._n])

    def _grow(self, n: int) -> None:
        if self._n + n < len(self._buf):
            return
        grown = bytearray(2 * len(self._buf) + n)
        grown[: self._n] = self._buf[: self._n]
        self._buf = grown

    def peek(self, n: int) -> memoryview:
        """Reserve ``n`` bytes at the end and return them for filling."""
        if n < 0:
            raise ValueError("negative count")
        self._grow(n)
        view = memoryview(self._buf)[self._n : self._n + n]
        self._n += n
        return view

    def write(self, p) -> None:
        """Append ``p``."""
        data = bytes(p)
        self._grow(len(data))
        self._buf[self._n : self._n + len(data)] = data
        self._n += len(data)