"""Byte sink and source abstractions.

The codec reads and writes through these interfaces and never owns the
transport behind them.

## Available adapters

- **BufferSink / BufferSource**: in-memory bytes (BufferSource can cap each
  read to simulate a slow transport)
- **StreamSink / StreamSource**: binary file-like objects (files, BytesIO,
  ``socket.makefile("rb")``)

Custom transports subclass ``ByteSink`` or ``ByteSource`` and implement
``write`` or ``read``.
"""

from .buffer import BufferSink, BufferSource
from .driver import ByteSink, ByteSource
from .stream import StreamSink, StreamSource

__all__ = [
    "ByteSink",
    "ByteSource",
    "BufferSink",
    "BufferSource",
    "StreamSink",
    "StreamSource",
]
