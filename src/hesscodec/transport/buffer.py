"""In-memory sink and source."""

from __future__ import annotations

from .driver import ByteSink, ByteSource


class BufferSink(ByteSink):
    """Collects written bytes in memory.

    Example:
        >>> sink = BufferSink()
        >>> sink.write(b"T")
        >>> sink.getvalue()
        b'T'
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write(self, data: bytes) -> None:
        self._buffer += data

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)


class BufferSource(ByteSource):
    """Serves bytes from memory.

    Args:
        data: Bytes to serve
        read_size: If set, no read returns more than this many bytes. Handy
            for exercising partial-read handling.
    """

    def __init__(self, data: bytes | bytearray | memoryview, read_size: int | None = None) -> None:
        if read_size is not None and read_size < 1:
            raise ValueError(f"read_size must be >= 1, got {read_size}")
        self._data = bytes(data)
        self._position = 0
        self._read_size = read_size

    def read(self, n: int) -> bytes:
        if self._read_size is not None:
            n = min(n, self._read_size)
        chunk = self._data[self._position : self._position + n]
        self._position += len(chunk)
        return chunk

    def remaining(self) -> int:
        """Return the number of unread bytes."""
        return len(self._data) - self._position

    def position(self) -> int:
        """Return the current read position in bytes."""
        return self._position
