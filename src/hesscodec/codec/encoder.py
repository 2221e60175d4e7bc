"""Hessian encoder.

This module provides the Encoder, which turns Python values into tagged
bytes, and the encode() / dump() helpers for one-shot use.

Each top-level write is staged in an internal buffer and handed to the sink
only once the whole value has been encoded, so a value that fails to encode
never leaves partial bytes on the wire.
"""

from __future__ import annotations

import logging
import math
import struct
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, BinaryIO, Iterator, Sequence

from pydantic import BaseModel

from ..config import DEFAULT_CONFIG, CodecConfig
from ..exceptions import (
    DepthLimitExceeded,
    EncodeError,
    FieldArityMismatch,
    IOFailure,
    UnsupportedType,
    ValueOutOfRange,
)
from ..models.values import GenericObject, Long, TypedList, TypedMap
from ..transport.buffer import BufferSink
from ..transport.driver import ByteSink
from ..transport.stream import StreamSink
from .constants import (
    BC_BINARY,
    BC_BINARY_CHUNK,
    BC_CLASS_DEF,
    BC_DATE,
    BC_DOUBLE,
    BC_DOUBLE_ONE,
    BC_DOUBLE_ZERO,
    BC_END,
    BC_FALSE,
    BC_INT,
    BC_LIST_FIXED,
    BC_LIST_FIXED_UNTYPED,
    BC_LIST_VARIABLE,
    BC_LIST_VARIABLE_UNTYPED,
    BC_LONG,
    BC_LONG_INT,
    BC_MAP,
    BC_MAP_UNTYPED,
    BC_NULL,
    BC_OBJECT,
    BC_REF,
    BC_STRING,
    BC_STRING_CHUNK,
    BC_TRUE,
    BINARY_DIRECT,
    BINARY_DIRECT_MAX,
    BINARY_SHORT,
    BINARY_SHORT_MAX,
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    INT_BYTE_MAX,
    INT_BYTE_MIN,
    INT_BYTE_ZERO,
    INT_DIRECT_MAX,
    INT_DIRECT_MIN,
    INT_SHORT_MAX,
    INT_SHORT_MIN,
    INT_SHORT_ZERO,
    INT_ZERO,
    LIST_DIRECT,
    LIST_DIRECT_MAX,
    LIST_DIRECT_UNTYPED,
    LONG_BYTE_MAX,
    LONG_BYTE_MIN,
    LONG_BYTE_ZERO,
    LONG_DIRECT_MAX,
    LONG_DIRECT_MIN,
    LONG_SHORT_MAX,
    LONG_SHORT_MIN,
    LONG_SHORT_ZERO,
    LONG_ZERO,
    OBJECT_DIRECT,
    OBJECT_DIRECT_MAX,
    STRING_DIRECT,
    STRING_DIRECT_MAX,
    STRING_SHORT,
    STRING_SHORT_MAX,
)
from .schema import ClassDefinition, definition_for
from .tables import ClassRegistry, ReferenceTable, TypeTable

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)
_MISSING = object()
# Keys that decode back to a hashable value
_KEY_TYPES = (type(None), bool, int, float, str, bytes, datetime)


@dataclass
class _Frame:
    """An open list or map.

    Attributes:
        kind: "list" or "map"
        length: Declared item count of a fixed-length list, else None
        depth: Encoder depth of the frame's direct children
        count: Direct children written so far
    """

    kind: str
    length: int | None
    depth: int
    count: int = 0


class Encoder:
    """Writes values to a ByteSink.

    The encoder owns its reference table, class registry and type table.
    Outside a session every ``write()`` starts from empty tables, so each
    top-level value decodes on its own. Inside ``session()`` the tables carry
    over from one value to the next and the decoder must use a session too.

    Lower-level ``write_*`` methods append to the staging buffer without
    touching the sink; call ``flush()`` when using them directly.

    Example:
        >>> encoder = Encoder()
        >>> encoder.write([1, 2, 3])
        >>> encoder.sink.getvalue().hex()
        '7b919293'
    """

    def __init__(self, sink: ByteSink | None = None, config: CodecConfig | None = None) -> None:
        """Initialize an encoder.

        Args:
            sink: Where encoded bytes go. Defaults to a new BufferSink.
            config: Codec configuration. Defaults to CodecConfig().
        """
        self.sink = sink if sink is not None else BufferSink()
        self.config = config if config is not None else DEFAULT_CONFIG
        self._buffer = bytearray()
        self._refs = ReferenceTable()
        self._classes = ClassRegistry()
        self._types = TypeTable()
        self._open: list[_Frame] = []
        self._depth = 0
        self._in_session = False

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def write(self, value: Any) -> None:
        """Encode one top-level value and send it to the sink.

        Raises:
            EncodeError: If the value cannot be encoded (nothing is sent)
            DepthLimitExceeded: If the value nests deeper than max_depth
            IOFailure: If the sink fails
        """
        if not self._in_session:
            self.reset()

        mark = len(self._buffer)
        sizes = (len(self._refs), len(self._classes), len(self._types))
        try:
            self.write_value(value)
        except Exception:
            del self._buffer[mark:]
            self._refs.truncate(sizes[0])
            self._classes.truncate(sizes[1])
            self._types.truncate(sizes[2])
            self._open.clear()
            self._depth = 0
            raise

        self.flush()

        if not self._in_session:
            self.reset()

    def flush(self) -> None:
        """Send staged bytes to the sink.

        Raises:
            IOFailure: If the sink fails
        """
        if not self._buffer:
            return
        data = bytes(self._buffer)
        self._buffer.clear()
        try:
            self.sink.write(data)
            self.sink.flush()
        except OSError as e:
            raise IOFailure(f"Sink write failed: {e}") from e

    def reset(self) -> None:
        """Forget every table entry; the next value starts a new pass."""
        self._refs.clear()
        self._classes.clear()
        self._types.clear()
        self._open.clear()
        self._depth = 0

    @contextmanager
    def session(self) -> Iterator[Encoder]:
        """Keep tables across ``write()`` calls until the block exits.

        Example:
            >>> encoder = Encoder()
            >>> with encoder.session():
            ...     encoder.write(point)
            ...     encoder.write(point)  # second write is a ref
        """
        if self._in_session:
            raise EncodeError("Encoder session already open")
        self.reset()
        self._in_session = True
        logger.debug("encoder session started")
        try:
            yield self
        finally:
            self._in_session = False
            self.reset()
            logger.debug("encoder session ended")

    @property
    def ref_count(self) -> int:
        return len(self._refs)

    @property
    def class_count(self) -> int:
        return len(self._classes)

    @property
    def type_count(self) -> int:
        return len(self._types)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def write_value(self, value: Any) -> None:
        """Write any supported value, choosing the wire type from its Python type.

        Raises:
            UnsupportedType: If the value has no wire representation
        """
        if value is None:
            self.write_null()
        elif isinstance(value, bool):
            self.write_bool(value)
        elif isinstance(value, Long):
            self.write_int64(value)
        elif isinstance(value, int):
            if INT32_MIN <= value <= INT32_MAX:
                self.write_int32(value)
            else:
                self.write_int64(value)
        elif isinstance(value, float):
            self.write_float64(value)
        elif isinstance(value, str):
            self.write_text(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            self.write_bytes(value)
        elif isinstance(value, datetime):
            self.write_datetime(value)
        else:
            self._write_composite(value)

    def _write_composite(self, value: Any) -> None:
        index = self._refs.index_of(value)
        if index is not None:
            self.write_ref(index)
            return

        if isinstance(value, (list, tuple)):
            type_name = value.type_name if isinstance(value, TypedList) else None
            self.write_list_start(len(value), type_name, value=value)
            for item in value:
                self.write_value(item)
            self.write_list_end()
        elif isinstance(value, dict):
            type_name = value.type_name if isinstance(value, TypedMap) else None
            self.write_map_start(type_name, value=value)
            for key, item in value.items():
                if not isinstance(key, _KEY_TYPES):
                    raise UnsupportedType(
                        f"Map keys must be scalars, got {type(key).__name__} "
                        "(it would not decode as a hashable key)"
                    )
                self.write_value(key)
                self.write_value(item)
            self.write_map_end()
        elif isinstance(value, GenericObject):
            self.write_object(value.definition, value.values, value=value)
        elif isinstance(value, BaseModel):
            self._write_model(value)
        else:
            raise UnsupportedType(f"Cannot encode values of type {type(value).__name__}")

    def _write_model(self, model: BaseModel) -> None:
        definition = definition_for(type(model))
        values = [getattr(model, field, _MISSING) for field in definition.fields]
        present = sum(1 for item in values if item is not _MISSING)
        if present != definition.arity:
            raise FieldArityMismatch(definition.name, definition.arity, present)
        self.write_object(definition, values, value=model)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def write_null(self) -> None:
        self._item()
        self._buffer.append(BC_NULL)

    def write_bool(self, value: bool) -> None:
        self._item()
        self._buffer.append(BC_TRUE if value else BC_FALSE)

    def write_int32(self, value: int) -> None:
        """Write a 32-bit integer in the narrowest tier that holds it.

        Tiers: direct (one byte, -16..47), byte (two bytes, -2048..2047),
        short (three bytes, -262144..262143), full ('I' + 4 bytes).

        Raises:
            ValueOutOfRange: If value is outside the int32 range
        """
        self._item()
        self._put_int32(value)

    def _put_int32(self, value: int) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise UnsupportedType(f"write_int32 expects int, got {type(value).__name__}")
        if not INT32_MIN <= value <= INT32_MAX:
            raise ValueOutOfRange(f"Value {value} does not fit in 32 bits")

        buffer = self._buffer
        if INT_DIRECT_MIN <= value <= INT_DIRECT_MAX:
            buffer.append(INT_ZERO + value)
        elif INT_BYTE_MIN <= value <= INT_BYTE_MAX:
            buffer.append(INT_BYTE_ZERO + (value >> 8))
            buffer.append(value & 0xFF)
        elif INT_SHORT_MIN <= value <= INT_SHORT_MAX:
            buffer.append(INT_SHORT_ZERO + (value >> 16))
            buffer += struct.pack(">H", value & 0xFFFF)
        else:
            buffer.append(BC_INT)
            buffer += struct.pack(">i", value)

    def write_int64(self, value: int) -> None:
        """Write a 64-bit integer in the narrowest tier that holds it.

        Tiers: direct (-8..15), byte (-2048..2047), short (-262144..262143),
        32-bit ('Y' + 4 bytes), full ('L' + 8 bytes).

        Raises:
            ValueOutOfRange: If value is outside the int64 range
        """
        if not isinstance(value, int) or isinstance(value, bool):
            raise UnsupportedType(f"write_int64 expects int, got {type(value).__name__}")
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueOutOfRange(f"Value {value} does not fit in 64 bits")

        self._item()
        value = int(value)
        buffer = self._buffer
        if LONG_DIRECT_MIN <= value <= LONG_DIRECT_MAX:
            buffer.append(LONG_ZERO + value)
        elif LONG_BYTE_MIN <= value <= LONG_BYTE_MAX:
            buffer.append(LONG_BYTE_ZERO + (value >> 8))
            buffer.append(value & 0xFF)
        elif LONG_SHORT_MIN <= value <= LONG_SHORT_MAX:
            buffer.append(LONG_SHORT_ZERO + (value >> 16))
            buffer += struct.pack(">H", value & 0xFFFF)
        elif INT32_MIN <= value <= INT32_MAX:
            buffer.append(BC_LONG_INT)
            buffer += struct.pack(">i", value)
        else:
            buffer.append(BC_LONG)
            buffer += struct.pack(">q", value)

    def write_float64(self, value: float) -> None:
        """Write a double; exactly +0.0 and 1.0 take a single byte."""
        value = float(value)
        self._item()
        if value == 0.0 and math.copysign(1.0, value) > 0:
            self._buffer.append(BC_DOUBLE_ZERO)
        elif value == 1.0:
            self._buffer.append(BC_DOUBLE_ONE)
        else:
            self._buffer.append(BC_DOUBLE)
            self._buffer += struct.pack(">d", value)

    def write_date_millis(self, millis: int) -> None:
        """Write a date as milliseconds since the Unix epoch.

        Raises:
            UnsupportedType: If millis is not an int
            ValueOutOfRange: If millis is outside the int64 range
        """
        if not isinstance(millis, int) or isinstance(millis, bool):
            raise UnsupportedType(f"write_date_millis expects int, got {type(millis).__name__}")
        if not INT64_MIN <= millis <= INT64_MAX:
            raise ValueOutOfRange(f"Date {millis} ms does not fit in 64 bits")
        self._item()
        self._buffer.append(BC_DATE)
        self._buffer += struct.pack(">q", millis)

    def write_datetime(self, value: datetime) -> None:
        """Write a datetime; naive values are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        self.write_date_millis((value - EPOCH) // _ONE_MILLISECOND)

    # ------------------------------------------------------------------
    # Chunked text and binary
    # ------------------------------------------------------------------

    def write_text(self, value: str) -> None:
        """Write a string, chunked when longer than max_chunk_size code points."""
        if not isinstance(value, str):
            raise UnsupportedType(f"write_text expects str, got {type(value).__name__}")

        self._item()
        limit = self.config.max_chunk_size
        buffer = self._buffer
        start = 0
        while len(value) - start > limit:
            buffer.append(BC_STRING_CHUNK)
            buffer += struct.pack(">H", limit)
            buffer += self._utf8(value[start : start + limit])
            start += limit

        tail = value[start:]
        length = len(tail)
        if length <= STRING_DIRECT_MAX:
            buffer.append(STRING_DIRECT + length)
        elif length <= STRING_SHORT_MAX:
            buffer.append(STRING_SHORT + (length >> 8))
            buffer.append(length & 0xFF)
        else:
            buffer.append(BC_STRING)
            buffer += struct.pack(">H", length)
        buffer += self._utf8(tail)

    @staticmethod
    def _utf8(text: str) -> bytes:
        try:
            return text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodeError(f"Text is not encodable as UTF-8: {e}") from e

    def write_bytes(self, value: bytes | bytearray | memoryview) -> None:
        """Write binary data, chunked when longer than max_chunk_size octets."""
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise UnsupportedType(f"write_bytes expects bytes, got {type(value).__name__}")

        self._item()
        data = bytes(value)
        limit = self.config.max_chunk_size
        buffer = self._buffer
        start = 0
        while len(data) - start > limit:
            buffer.append(BC_BINARY_CHUNK)
            buffer += struct.pack(">H", limit)
            buffer += data[start : start + limit]
            start += limit

        length = len(data) - start
        if length <= BINARY_DIRECT_MAX:
            buffer.append(BINARY_DIRECT + length)
        elif length <= BINARY_SHORT_MAX:
            buffer.append(BINARY_SHORT + (length >> 8))
            buffer.append(length & 0xFF)
        else:
            buffer.append(BC_BINARY)
            buffer += struct.pack(">H", length)
        buffer += data[start:]

    # ------------------------------------------------------------------
    # Composites
    # ------------------------------------------------------------------

    def write_list_start(
        self, length: int | None = None, type_name: str | None = None, *, value: Any = None
    ) -> bool:
        """Begin a list and reserve its reference index.

        With a length the list is fixed-length and exactly ``length`` values
        must follow. Without one it is variable-length and the end marker is
        written by ``write_list_end()``.

        Args:
            length: Number of items, or None for a variable-length list
            type_name: Optional element type name
            value: The list object, so later writes of it become refs

        Returns:
            True if the list is variable-length
        """
        if length is not None and length < 0:
            raise ValueOutOfRange(f"List length must be >= 0, got {length}")

        self._item()
        self._descend()
        self._refs.add(value)
        buffer = self._buffer

        if length is None:
            if type_name is None:
                buffer.append(BC_LIST_VARIABLE_UNTYPED)
            else:
                buffer.append(BC_LIST_VARIABLE)
                self._write_type(type_name)
            self._open.append(_Frame("list", None, self._depth))
            return True

        if type_name is None:
            if length <= LIST_DIRECT_MAX:
                buffer.append(LIST_DIRECT_UNTYPED + length)
            else:
                buffer.append(BC_LIST_FIXED_UNTYPED)
                self._put_int32(length)
        elif length <= LIST_DIRECT_MAX:
            buffer.append(LIST_DIRECT + length)
            self._write_type(type_name)
        else:
            buffer.append(BC_LIST_FIXED)
            self._write_type(type_name)
            self._put_int32(length)

        self._open.append(_Frame("list", length, self._depth))
        return False

    def write_list_end(self) -> None:
        """Close the innermost list.

        Raises:
            EncodeError: If a fixed-length list got fewer items than declared
        """
        frame = self._close("list")
        if frame.length is None:
            self._buffer.append(BC_END)
        elif frame.count != frame.length:
            raise EncodeError(f"List declared {frame.length} items but {frame.count} were written")

    def write_map_start(self, type_name: str | None = None, *, value: Any = None) -> None:
        """Begin a map and reserve its reference index.

        Keys and values follow as alternating ``write_value`` calls.
        """
        self._item()
        self._descend()
        self._refs.add(value)
        if type_name is None:
            self._buffer.append(BC_MAP_UNTYPED)
        else:
            self._buffer.append(BC_MAP)
            self._write_type(type_name)
        self._open.append(_Frame("map", None, self._depth))

    def write_map_end(self) -> None:
        """Close the innermost map.

        Raises:
            EncodeError: If the last key has no value
        """
        frame = self._close("map")
        if frame.count % 2:
            raise EncodeError(f"Map key {frame.count // 2} has no value")
        self._buffer.append(BC_END)

    def write_object(
        self, definition: ClassDefinition, values: Sequence[Any], *, value: Any = None
    ) -> None:
        """Write a typed object.

        The class definition record is written the first time the definition
        is used in this pass; afterwards only its index is sent.

        Args:
            definition: Class definition of the object
            values: Field values in definition order
            value: The object itself, so later writes of it become refs

        Raises:
            FieldArityMismatch: If len(values) differs from the definition
        """
        if len(values) != definition.arity:
            raise FieldArityMismatch(definition.name, definition.arity, len(values))

        self._item()
        self._descend()
        try:
            index, is_new = self._classes.register(definition)
            if is_new:
                self._write_class_definition(definition)

            self._refs.add(value)
            if index <= OBJECT_DIRECT_MAX:
                self._buffer.append(OBJECT_DIRECT + index)
            else:
                self._buffer.append(BC_OBJECT)
                self._put_int32(index)

            for item in values:
                self.write_value(item)
        finally:
            self._depth -= 1

    def write_ref(self, index: int) -> None:
        """Write a reference to an already-written composite."""
        if not 0 <= index < len(self._refs):
            raise EncodeError(f"Ref index {index} not assigned (table holds {len(self._refs)})")
        self._item()
        self._buffer.append(BC_REF)
        self._put_int32(index)

    def _write_class_definition(self, definition: ClassDefinition) -> None:
        self._buffer.append(BC_CLASS_DEF)
        self.write_text(definition.name)
        self._put_int32(definition.arity)
        for field in definition.fields:
            self.write_text(field)

    def _write_type(self, type_name: str) -> None:
        index = self._types.index_of(type_name)
        if index is None:
            self._types.register(type_name)
            self.write_text(type_name)
        else:
            self._put_int32(index)

    def _item(self) -> None:
        # Only direct children of the innermost list or map count
        if not self._open:
            return
        frame = self._open[-1]
        if frame.depth != self._depth:
            return
        if frame.length is not None and frame.count >= frame.length:
            raise EncodeError(f"List declared {frame.length} items; got more")
        frame.count += 1

    def _descend(self) -> None:
        self._depth += 1
        if self._depth > self.config.max_depth:
            self._depth -= 1
            raise DepthLimitExceeded(f"Value nests deeper than max_depth={self.config.max_depth}")

    def _close(self, kind: str) -> _Frame:
        if not self._open or self._open[-1].kind != kind:
            raise EncodeError(f"No open {kind} to close")
        frame = self._open.pop()
        self._depth -= 1
        return frame


def encode(value: Any, config: CodecConfig | None = None) -> bytes:
    """Encode one value to bytes.

    Args:
        value: Value to encode (see the package docs for the type mapping)
        config: Optional codec configuration

    Returns:
        Encoded bytes

    Raises:
        EncodeError: If the value cannot be encoded

    Examples:
        ```python
        from hesscodec import encode

        encode(True)        # b'T'
        encode(0)           # b'\\x90'
        encode([1, "a"])    # b'z\\x91\\x01a'
        ```
    """
    sink = BufferSink()
    Encoder(sink, config).write(value)
    return sink.getvalue()


def dump(value: Any, fp: BinaryIO, config: CodecConfig | None = None) -> None:
    """Encode one value into a binary file-like object."""
    Encoder(StreamSink(fp), config).write(value)
