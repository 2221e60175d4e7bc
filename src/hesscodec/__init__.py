"""hesscodec: Hessian Binary Codec

A Python library for the Hessian 2 binary serialization format: compact,
self-describing encoding of scalars, text, binary, lists, maps and object
graphs with shared and cyclic references.

Key Features:
- Tiered compact encodings for integers, text, binary and collections
- Back-references that preserve shared and cyclic object graphs
- Class definitions sent once per stream and reused by index
- Pydantic-based object modeling with unknown classes decoded generically
- Pluggable byte sinks and sources (memory, files, sockets)

Quick Start:
    >>> from hesscodec import HessianObject, encode, decode
    >>>
    >>> class Point(HessianObject):
    ...     x: int
    ...     y: int
    >>>
    >>> data = encode([Point(x=1, y=2), Point(x=3, y=4)])
    >>> points = decode(data, models=[Point])
    >>> points[1].x
    3
"""

from __future__ import annotations

from .codec import ClassDefinition, Decoder, Encoder, decode, decode_all, dump, encode, load
from .config import DEFAULT_CONFIG, CodecConfig
from .exceptions import (
    ChunkLengthOverflow,
    DecodeError,
    DepthLimitExceeded,
    EncodeError,
    FieldArityMismatch,
    HessianError,
    InvalidValue,
    IOFailure,
    RefIndexOutOfRange,
    SchemaError,
    TruncatedStream,
    TypeIndexOutOfRange,
    UnexpectedTag,
    UnsupportedType,
    ValueOutOfRange,
)
from .models import GenericObject, HessianObject, Long, ModelRegistry, TypedList, TypedMap
from .transport import BufferSink, BufferSource, ByteSink, ByteSource, StreamSink, StreamSource
from .utils import encoded_size, int32_size, int64_size

__version__ = "0.1.0"

__all__ = [
    # Core API
    "encode",
    "decode",
    "decode_all",
    "dump",
    "load",
    "Encoder",
    "Decoder",
    "CodecConfig",
    "DEFAULT_CONFIG",
    # Models
    "HessianObject",
    "ModelRegistry",
    "ClassDefinition",
    "GenericObject",
    "Long",
    "TypedList",
    "TypedMap",
    # Transport
    "ByteSink",
    "ByteSource",
    "BufferSink",
    "BufferSource",
    "StreamSink",
    "StreamSource",
    # Exceptions
    "HessianError",
    "SchemaError",
    "EncodeError",
    "FieldArityMismatch",
    "UnsupportedType",
    "ValueOutOfRange",
    "DecodeError",
    "UnexpectedTag",
    "TruncatedStream",
    "RefIndexOutOfRange",
    "TypeIndexOutOfRange",
    "ChunkLengthOverflow",
    "InvalidValue",
    "DepthLimitExceeded",
    "IOFailure",
    # Sizing
    "encoded_size",
    "int32_size",
    "int64_size",
    # Version
    "__version__",
]
