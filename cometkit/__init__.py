"""Buffered I/O, buffer pools, a timer heap and server-side WebSocket framing."""

__version__ = "0.1.0"
__all__ = ["bufio", "buffers", "ints", "endian", "ip", "duration", "timer", "ws"]