"""Codec configuration.

This module provides the configuration dataclass shared by the encoder and
decoder. Both sides of a connection should agree on ``max_chunk_size``: a
decoder rejects chunks longer than its own limit.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHUNK_SIZE = 0x8000
MAX_CHUNK_LENGTH = 0xFFFF


@dataclass(frozen=True)
class CodecConfig:
    """Configuration for encoding and decoding.

    Attributes:
        max_chunk_size: Largest text/binary chunk in units (code points for
            text, octets for binary). The encoder splits longer values into
            chunks of exactly this size; the decoder rejects longer chunks
            with ChunkLengthOverflow. Must fit the 16-bit length prefix
            (1-65535). Default 32768.

        max_depth: Deepest nesting of lists, maps and objects accepted in
            either direction (default 256). Guards against stack exhaustion
            on hostile input.

    Examples:
        ```python
        from hesscodec import CodecConfig, encode

        # Small chunks, e.g. to exercise chunk reassembly in tests
        config = CodecConfig(max_chunk_size=16)
        data = encode("x" * 100, config=config)
        ```
    """

    max_chunk_size: int = DEFAULT_CHUNK_SIZE
    max_depth: int = 256

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not 1 <= self.max_chunk_size <= MAX_CHUNK_LENGTH:
            raise ValueError(
                f"max_chunk_size must be 1-{MAX_CHUNK_LENGTH}, got {self.max_chunk_size}"
            )

        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")


DEFAULT_CONFIG = CodecConfig()
