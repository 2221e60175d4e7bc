"""Adapters for binary file-like objects (files, BytesIO, socket makefile)."""

from __future__ import annotations

from typing import BinaryIO

from .driver import ByteSink, ByteSource


class StreamSink(ByteSink):
    """Writes to a binary file-like object.

    Args:
        stream: Object with ``write(bytes)`` (and optionally ``flush()``)
        close_stream: Close the stream when the sink is closed
    """

    def __init__(self, stream: BinaryIO, close_stream: bool = False) -> None:
        self.stream = stream
        self.close_stream = close_stream

    def write(self, data: bytes) -> None:
        if getattr(self.stream, "closed", False):
            raise OSError("write to closed stream")
        view = memoryview(data)
        while view:
            written = self.stream.write(view)
            # Raw (unbuffered) streams may write only part of the data
            if written is None or written >= len(view):
                break
            view = view[written:]

    def flush(self) -> None:
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()

    def close(self) -> None:
        if self.close_stream:
            self.stream.close()


class StreamSource(ByteSource):
    """Reads from a binary file-like object.

    Args:
        stream: Object with ``read(n)``
        close_stream: Close the stream when the source is closed
    """

    def __init__(self, stream: BinaryIO, close_stream: bool = False) -> None:
        self.stream = stream
        self.close_stream = close_stream

    def read(self, n: int) -> bytes:
        if getattr(self.stream, "closed", False):
            raise OSError("read from closed stream")
        data = self.stream.read(n)
        # Non-blocking raw streams return None when no data is ready
        return data if data is not None else b""

    def close(self) -> None:
        if self.close_stream:
            self.stream.close()
