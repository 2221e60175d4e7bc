"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from hesscodec import BufferSink, CodecConfig, Encoder


@pytest.fixture
def sink() -> BufferSink:
    """Empty in-memory sink."""
    return BufferSink()


@pytest.fixture
def encoder(sink: BufferSink) -> Encoder:
    """Encoder writing to the ``sink`` fixture."""
    return Encoder(sink)


@pytest.fixture
def small_chunks() -> CodecConfig:
    """Config with a tiny chunk size so short values are split into chunks."""
    return CodecConfig(max_chunk_size=4)


@pytest.fixture
def sample_values() -> list:
    """Mixed values covering every scalar and composite kind."""
    return [
        None,
        True,
        False,
        0,
        -17,
        262144,
        2.5,
        "hello",
        "naïve ☃",
        b"\x00\x01\x02",
        [1, 2, 3],
        {"a": 1, "b": [True, None]},
    ]
