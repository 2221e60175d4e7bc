"""Abstract byte sink and byte source.

The codec never owns a transport. It writes finished values to a ByteSink and
pulls raw bytes from a ByteSource; sockets, files, pipes and test doubles
plug in behind these two interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ByteSink(ABC):
    """Destination for encoded bytes.

    Implementations should raise OSError (or a subclass) on failure; the
    encoder reports it as IOFailure.

    Examples:
        ```python
        class SocketSink(ByteSink):
            def __init__(self, sock):
                self.sock = sock

            def write(self, data: bytes) -> None:
                self.sock.sendall(data)
        ```
    """

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write all of data, blocking until done."""
        pass

    def flush(self) -> None:
        """Push buffered bytes to the underlying transport, if any."""
        pass

    def close(self) -> None:
        """Release the underlying transport, if owned."""
        pass


class ByteSource(ABC):
    """Origin of bytes to decode.

    ``read(n)`` may return fewer than n bytes (a partial read); the decoder
    keeps reading until it has what it needs. An empty result means end of
    input.

    Examples:
        ```python
        class SocketSource(ByteSource):
            def __init__(self, sock):
                self.sock = sock

            def read(self, n: int) -> bytes:
                return self.sock.recv(n)
        ```
    """

    @abstractmethod
    def read(self, n: int) -> bytes:
        """Read up to n bytes; return b"" at end of input."""
        pass

    def close(self) -> None:
        """Release the underlying transport, if owned."""
        pass
