"""Hessian decoder.

This module provides the Decoder, which reads tagged bytes from a ByteSource
and rebuilds Python values, and the decode() / decode_all() / load() helpers.

Composites are registered in the reference table as soon as their start tag
is read, before any child, so refs to a composite that is still being filled
(cycles) resolve to the same object.
"""

from __future__ import annotations

import logging
import struct
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Callable, Iterable, Iterator, Type, Union

from pydantic import BaseModel

from ..config import DEFAULT_CONFIG, CodecConfig
from ..exceptions import (
    ChunkLengthOverflow,
    DecodeError,
    DepthLimitExceeded,
    InvalidValue,
    IOFailure,
    SchemaError,
    TruncatedStream,
    UnexpectedTag,
)
from ..models.base import ModelRegistry
from ..models.values import GenericObject, Long, TypedList, TypedMap
from ..transport.buffer import BufferSource
from ..transport.driver import ByteSource
from ..transport.stream import StreamSource
from .constants import (
    BC_END,
    BINARY_DIRECT,
    BINARY_KINDS,
    BINARY_SHORT,
    INT_BYTE_ZERO,
    INT_KINDS,
    INT_SHORT_ZERO,
    INT_ZERO,
    LIST_DIRECT,
    LIST_DIRECT_UNTYPED,
    LONG_BYTE_ZERO,
    LONG_SHORT_ZERO,
    LONG_ZERO,
    OBJECT_DIRECT,
    STRING_DIRECT,
    STRING_KINDS,
    STRING_SHORT,
    WireKind,
    classify,
)
from .encoder import EPOCH
from .schema import ClassDefinition
from .tables import ClassRegistry, ReferenceTable, TypeTable

logger = logging.getLogger(__name__)

Models = Union[ModelRegistry, Iterable[Type[BaseModel]], None]
Handler = Callable[[int, int], Any]


class Decoder:
    """Reads values from a ByteSource.

    Mirrors the Encoder: the decoder owns its own reference table, class
    registry and type table, resets them for every top-level ``read()``
    unless a ``session()`` is open, and assigns indices in the same
    depth-first order the encoder did.

    Objects whose class name is bound in ``models`` are rebuilt as that
    Pydantic model (without validation); all other objects become
    GenericObject.

    Example:
        >>> decoder = Decoder(b"\\x7b\\x91\\x92\\x93")
        >>> decoder.read()
        [1, 2, 3]
    """

    def __init__(
        self,
        source: ByteSource | bytes | bytearray | memoryview | BinaryIO,
        config: CodecConfig | None = None,
        models: Models = None,
    ) -> None:
        """Initialize a decoder.

        Args:
            source: A ByteSource, raw bytes, or a binary file-like object
            config: Codec configuration. Defaults to CodecConfig().
            models: ModelRegistry or iterable of model classes to bind
        """
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = BufferSource(source)
        elif not isinstance(source, ByteSource):
            source = StreamSource(source)
        self.source = source
        self.config = config if config is not None else DEFAULT_CONFIG
        self.models = models if isinstance(models, ModelRegistry) else ModelRegistry(models or ())

        self._refs = ReferenceTable()
        self._classes = ClassRegistry()
        self._types = TypeTable()
        self._offset = 0
        self._peeked: int | None = None
        self._depth = 0
        self._in_session = False

        # Every WireKind except CLASS_DEF and END starts a value
        self._handlers: dict[WireKind, Handler] = {
            WireKind.NULL: lambda tag, offset: None,
            WireKind.TRUE: lambda tag, offset: True,
            WireKind.FALSE: lambda tag, offset: False,
            WireKind.INT_DIRECT: self._read_int_direct,
            WireKind.INT_BYTE: self._read_int_byte,
            WireKind.INT_SHORT: self._read_int_short,
            WireKind.INT: self._read_int_full,
            WireKind.LONG_DIRECT: self._read_long_direct,
            WireKind.LONG_BYTE: self._read_long_byte,
            WireKind.LONG_SHORT: self._read_long_short,
            WireKind.LONG_INT: self._read_long_int,
            WireKind.LONG: self._read_long_full,
            WireKind.DOUBLE_ZERO: lambda tag, offset: 0.0,
            WireKind.DOUBLE_ONE: lambda tag, offset: 1.0,
            WireKind.DOUBLE_BYTE: self._read_double_byte,
            WireKind.DOUBLE_SHORT: self._read_double_short,
            WireKind.DOUBLE_MILL: self._read_double_mill,
            WireKind.DOUBLE: self._read_double,
            WireKind.DATE: self._read_date,
            WireKind.DATE_MINUTE: self._read_date_minute,
            WireKind.STRING_DIRECT: self._read_text,
            WireKind.STRING_SHORT: self._read_text,
            WireKind.STRING: self._read_text,
            WireKind.STRING_CHUNK: self._read_text,
            WireKind.BINARY_DIRECT: self._read_binary,
            WireKind.BINARY_SHORT: self._read_binary,
            WireKind.BINARY: self._read_binary,
            WireKind.BINARY_CHUNK: self._read_binary,
            WireKind.LIST_VARIABLE: self._read_list_variable,
            WireKind.LIST_FIXED: self._read_list_fixed,
            WireKind.LIST_VARIABLE_UNTYPED: self._read_list_variable_untyped,
            WireKind.LIST_FIXED_UNTYPED: self._read_list_fixed_untyped,
            WireKind.LIST_DIRECT: self._read_list_direct,
            WireKind.LIST_DIRECT_UNTYPED: self._read_list_direct_untyped,
            WireKind.MAP: self._read_map,
            WireKind.MAP_UNTYPED: self._read_map_untyped,
            WireKind.OBJECT: self._read_object,
            WireKind.OBJECT_DIRECT: self._read_object_direct,
            WireKind.REF: self._read_ref,
        }

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def read(self) -> Any:
        """Decode one top-level value.

        Raises:
            DecodeError: If the input is malformed or ends early
            DepthLimitExceeded: If the value nests deeper than max_depth
            IOFailure: If the source fails
        """
        if not self._in_session:
            self.reset()
        try:
            return self._read_value()
        finally:
            self._depth = 0
            if not self._in_session:
                self.reset()

    def at_end(self) -> bool:
        """Return True if the source has no more bytes."""
        return self._peek(eof_ok=True) is None

    def __iter__(self) -> Iterator[Any]:
        """Yield top-level values until the input ends cleanly."""
        while not self.at_end():
            yield self.read()

    def reset(self) -> None:
        """Forget every table entry; the next value starts a new pass."""
        self._refs.clear()
        self._classes.clear()
        self._types.clear()
        self._depth = 0

    @contextmanager
    def session(self) -> Iterator[Decoder]:
        """Keep tables across ``read()`` calls until the block exits."""
        if self._in_session:
            raise DecodeError("Decoder session already open")
        self.reset()
        self._in_session = True
        logger.debug("decoder session started at offset %d", self._offset)
        try:
            yield self
        finally:
            self._in_session = False
            self.reset()
            logger.debug("decoder session ended at offset %d", self._offset)

    @property
    def offset(self) -> int:
        """Number of bytes consumed so far."""
        return self._offset

    # ------------------------------------------------------------------
    # Byte access
    # ------------------------------------------------------------------

    def _pull(self, n: int) -> bytes:
        try:
            return self.source.read(n)
        except OSError as e:
            raise IOFailure(f"Source read failed at offset {self._offset}: {e}") from e

    def _peek(self, eof_ok: bool = False) -> int | None:
        if self._peeked is None:
            data = self._pull(1)
            if not data:
                if eof_ok:
                    return None
                raise TruncatedStream(1, 0, self._offset)
            self._peeked = data[0]
        return self._peeked

    def _read_byte(self) -> int:
        if self._peeked is not None:
            byte = self._peeked
            self._peeked = None
            self._offset += 1
            return byte
        return self._read_exact(1)[0]

    def _read_exact(self, n: int) -> bytes:
        if n <= 0:
            return b""

        parts = []
        got = 0
        if self._peeked is not None:
            parts.append(bytes((self._peeked,)))
            self._peeked = None
            self._offset += 1
            got = 1

        while got < n:
            data = self._pull(n - got)
            if not data:
                raise TruncatedStream(n, got, self._offset)
            parts.append(data)
            got += len(data)
            self._offset += len(data)

        return b"".join(parts)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _read_value(self) -> Any:
        while True:
            offset = self._offset
            tag = self._read_byte()
            kind = classify(tag, offset)
            if kind is WireKind.CLASS_DEF:
                # A definition record yields no value; the value follows it
                self._read_class_definition(offset)
                continue
            handler = self._handlers.get(kind)
            if handler is None:
                raise UnexpectedTag(tag, offset, expected="a value")
            return handler(tag, offset)

    def _read_int(self) -> int:
        offset = self._offset
        tag = self._read_byte()
        kind = classify(tag, offset)
        if kind not in INT_KINDS:
            raise UnexpectedTag(tag, offset, expected="an int")
        return self._handlers[kind](tag, offset)

    def _read_length(self) -> int:
        offset = self._offset
        length = self._read_int()
        if length < 0:
            raise InvalidValue(f"Negative length {length}", offset)
        return length

    def _read_string(self) -> str:
        offset = self._offset
        tag = self._read_byte()
        if classify(tag, offset) not in STRING_KINDS:
            raise UnexpectedTag(tag, offset, expected="a string")
        return self._read_text(tag, offset)

    def _read_type(self) -> str:
        offset = self._offset
        tag = self._read_byte()
        kind = classify(tag, offset)
        if kind in STRING_KINDS:
            type_name = self._read_text(tag, offset)
            self._types.append(type_name)
            return type_name
        if kind in INT_KINDS:
            index = self._handlers[kind](tag, offset)
            return self._types.get(index, offset)
        raise UnexpectedTag(tag, offset, expected="a type name or type index")

    def _descend(self, offset: int) -> None:
        self._depth += 1
        if self._depth > self.config.max_depth:
            raise DepthLimitExceeded(
                f"Input nests deeper than max_depth={self.config.max_depth} at offset {offset}"
            )

    # ------------------------------------------------------------------
    # Numbers and dates
    # ------------------------------------------------------------------

    def _read_int_direct(self, tag: int, offset: int) -> int:
        return tag - INT_ZERO

    def _read_int_byte(self, tag: int, offset: int) -> int:
        return ((tag - INT_BYTE_ZERO) << 8) + self._read_byte()

    def _read_int_short(self, tag: int, offset: int) -> int:
        return ((tag - INT_SHORT_ZERO) << 16) + int.from_bytes(self._read_exact(2), "big")

    def _read_int_full(self, tag: int, offset: int) -> int:
        return struct.unpack(">i", self._read_exact(4))[0]

    def _read_long_direct(self, tag: int, offset: int) -> Long:
        return Long(tag - LONG_ZERO)

    def _read_long_byte(self, tag: int, offset: int) -> Long:
        return Long(((tag - LONG_BYTE_ZERO) << 8) + self._read_byte())

    def _read_long_short(self, tag: int, offset: int) -> Long:
        return Long(((tag - LONG_SHORT_ZERO) << 16) + int.from_bytes(self._read_exact(2), "big"))

    def _read_long_int(self, tag: int, offset: int) -> Long:
        return Long(struct.unpack(">i", self._read_exact(4))[0])

    def _read_long_full(self, tag: int, offset: int) -> Long:
        return Long(struct.unpack(">q", self._read_exact(8))[0])

    def _read_double_byte(self, tag: int, offset: int) -> float:
        return float(struct.unpack(">b", self._read_exact(1))[0])

    def _read_double_short(self, tag: int, offset: int) -> float:
        return float(struct.unpack(">h", self._read_exact(2))[0])

    def _read_double_mill(self, tag: int, offset: int) -> float:
        return struct.unpack(">i", self._read_exact(4))[0] * 0.001

    def _read_double(self, tag: int, offset: int) -> float:
        return struct.unpack(">d", self._read_exact(8))[0]

    def _read_date(self, tag: int, offset: int) -> datetime:
        return self._to_datetime(struct.unpack(">q", self._read_exact(8))[0], offset)

    def _read_date_minute(self, tag: int, offset: int) -> datetime:
        return self._to_datetime(struct.unpack(">i", self._read_exact(4))[0] * 60000, offset)

    @staticmethod
    def _to_datetime(millis: int, offset: int) -> datetime:
        try:
            return EPOCH + timedelta(milliseconds=millis)
        except OverflowError as e:
            raise InvalidValue(f"Date {millis} ms is outside the supported range", offset) from e

    # ------------------------------------------------------------------
    # Chunked text and binary
    # ------------------------------------------------------------------

    def _chunk_length(self, tag: int, kind: WireKind, offset: int) -> tuple[int, bool]:
        """Return (length, is_final) for a text or binary chunk header."""
        if kind is WireKind.STRING_DIRECT:
            length, final = tag - STRING_DIRECT, True
        elif kind is WireKind.BINARY_DIRECT:
            length, final = tag - BINARY_DIRECT, True
        elif kind is WireKind.STRING_SHORT:
            length, final = ((tag - STRING_SHORT) << 8) + self._read_byte(), True
        elif kind is WireKind.BINARY_SHORT:
            length, final = ((tag - BINARY_SHORT) << 8) + self._read_byte(), True
        else:
            length = int.from_bytes(self._read_exact(2), "big")
            final = kind in (WireKind.STRING, WireKind.BINARY)

        if length > self.config.max_chunk_size:
            raise ChunkLengthOverflow(length, self.config.max_chunk_size, offset)
        return length, final

    def _read_text(self, tag: int, offset: int) -> str:
        parts = []
        while True:
            kind = classify(tag, offset)
            if kind not in STRING_KINDS:
                raise UnexpectedTag(tag, offset, expected="a text chunk")
            length, final = self._chunk_length(tag, kind, offset)
            parts.append(self._read_utf8(length, offset))
            if final:
                return "".join(parts)
            offset = self._offset
            tag = self._read_byte()

    def _read_utf8(self, count: int, offset: int) -> str:
        """Read ``count`` UTF-8 encoded code points.

        Every code point takes at least one byte, so the decoder reads the
        bytes still known to be needed in one call and tops up with the
        continuation bytes the lead bytes ask for.
        """
        data = bytearray()
        started = 0
        owed = 0
        while started < count or owed:
            chunk = self._read_exact(count - started + owed)
            base = self._offset - len(chunk)
            data += chunk
            for position, byte in enumerate(chunk):
                if owed:
                    owed -= 1
                    continue
                started += 1
                if byte < 0x80:
                    continue
                if 0xC0 <= byte < 0xE0:
                    owed = 1
                elif 0xE0 <= byte < 0xF0:
                    owed = 2
                elif 0xF0 <= byte < 0xF8:
                    owed = 3
                else:
                    raise InvalidValue(f"Invalid UTF-8 lead byte 0x{byte:02x}", base + position)

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidValue(f"Invalid UTF-8 in text chunk: {e}", offset) from e

    def _read_binary(self, tag: int, offset: int) -> bytes:
        parts = []
        while True:
            kind = classify(tag, offset)
            if kind not in BINARY_KINDS:
                raise UnexpectedTag(tag, offset, expected="a binary chunk")
            length, final = self._chunk_length(tag, kind, offset)
            parts.append(self._read_exact(length))
            if final:
                return b"".join(parts)
            offset = self._offset
            tag = self._read_byte()

    # ------------------------------------------------------------------
    # Lists and maps
    # ------------------------------------------------------------------

    def _read_list_variable(self, tag: int, offset: int) -> list:
        return self._read_items(self._read_type(), None, offset)

    def _read_list_fixed(self, tag: int, offset: int) -> list:
        type_name = self._read_type()
        return self._read_items(type_name, self._read_length(), offset)

    def _read_list_variable_untyped(self, tag: int, offset: int) -> list:
        return self._read_items(None, None, offset)

    def _read_list_fixed_untyped(self, tag: int, offset: int) -> list:
        return self._read_items(None, self._read_length(), offset)

    def _read_list_direct(self, tag: int, offset: int) -> list:
        return self._read_items(self._read_type(), tag - LIST_DIRECT, offset)

    def _read_list_direct_untyped(self, tag: int, offset: int) -> list:
        return self._read_items(None, tag - LIST_DIRECT_UNTYPED, offset)

    def _read_items(self, type_name: str | None, length: int | None, offset: int) -> list:
        items: list = TypedList(type_name=type_name) if type_name is not None else []
        self._refs.add(items)
        self._descend(offset)
        try:
            if length is None:
                while not self._at_end_marker():
                    items.append(self._read_value())
            else:
                for _ in range(length):
                    items.append(self._read_value())
        finally:
            self._depth -= 1
        return items

    def _read_map(self, tag: int, offset: int) -> dict:
        return self._read_entries(self._read_type(), offset)

    def _read_map_untyped(self, tag: int, offset: int) -> dict:
        return self._read_entries(None, offset)

    def _read_entries(self, type_name: str | None, offset: int) -> dict:
        result: dict = TypedMap(type_name=type_name) if type_name is not None else {}
        self._refs.add(result)
        self._descend(offset)
        try:
            while not self._at_end_marker():
                key_offset = self._offset
                key = self._read_value()
                value = self._read_value()
                try:
                    result[key] = value
                except TypeError as e:
                    raise InvalidValue(
                        f"Map key of type {type(key).__name__} is not hashable", key_offset
                    ) from e
        finally:
            self._depth -= 1
        return result

    def _at_end_marker(self) -> bool:
        if self._peek() == BC_END:
            self._read_byte()
            return True
        return False

    # ------------------------------------------------------------------
    # Objects and refs
    # ------------------------------------------------------------------

    def _read_class_definition(self, offset: int) -> None:
        name = self._read_string()
        count = self._read_length()
        fields = [self._read_string() for _ in range(count)]
        try:
            definition = ClassDefinition(name, tuple(fields))
        except SchemaError as e:
            raise InvalidValue(str(e), offset) from e
        self._classes.append(definition)

    def _read_object(self, tag: int, offset: int) -> Any:
        return self._read_instance(self._read_int(), offset)

    def _read_object_direct(self, tag: int, offset: int) -> Any:
        return self._read_instance(tag - OBJECT_DIRECT, offset)

    def _read_instance(self, index: int, offset: int) -> Any:
        definition = self._classes.get(index, offset)
        model_class = self.models.get(definition.name)

        self._descend(offset)
        try:
            if model_class is None:
                generic = GenericObject(definition)
                self._refs.add(generic)
                for _ in definition.fields:
                    generic.values.append(self._read_value())
                return generic

            instance = model_class.model_construct()
            self._refs.add(instance)
            known = model_class.model_fields
            values = {}
            for field in definition.fields:
                value = self._read_value()
                if field in known:
                    values[field] = value
            # Filled in place so refs taken while reading fields stay valid
            instance.__dict__.update(values)
            instance.__pydantic_fields_set__.update(values)
            return instance
        finally:
            self._depth -= 1

    def _read_ref(self, tag: int, offset: int) -> Any:
        index = self._read_int()
        return self._refs.get(index, offset)


def decode(data: bytes, models: Models = None, config: CodecConfig | None = None) -> Any:
    """Decode exactly one value from bytes.

    Args:
        data: Encoded bytes
        models: ModelRegistry or iterable of model classes to bind
        config: Optional codec configuration

    Returns:
        The decoded value

    Raises:
        DecodeError: If data is malformed, truncated, or has trailing bytes

    Examples:
        ```python
        from hesscodec import decode

        decode(b"T")            # True
        decode(b"\\x90")         # 0
        decode(b"z\\x91\\x01a")   # [1, 'a']
        ```
    """
    decoder = Decoder(BufferSource(data), config=config, models=models)
    value = decoder.read()
    if not decoder.at_end():
        raise DecodeError("Trailing bytes after value", decoder.offset)
    return value


def decode_all(
    data: bytes, models: Models = None, config: CodecConfig | None = None, session: bool = False
) -> list[Any]:
    """Decode every top-level value in data.

    Args:
        data: Concatenated encoded values
        models: ModelRegistry or iterable of model classes to bind
        config: Optional codec configuration
        session: Keep tables across values (the writer used a session)
    """
    decoder = Decoder(BufferSource(data), config=config, models=models)
    if not session:
        return list(decoder)
    with decoder.session():
        return list(decoder)


def load(fp: BinaryIO, models: Models = None, config: CodecConfig | None = None) -> Any:
    """Decode one value from a binary file-like object."""
    return Decoder(StreamSource(fp), config=config, models=models).read()
