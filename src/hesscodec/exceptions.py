"""Exception hierarchy for hesscodec.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from HessianError for easy catching of any codec error.
Decode errors carry the stream offset at which the problem was detected.
"""

from __future__ import annotations


class HessianError(Exception):
    """Base exception for all hesscodec errors."""

    pass


class SchemaError(HessianError):
    """Raised when a model cannot be turned into a class definition.

    Examples:
        - ``hessian_fields`` names a field the model does not have
        - Duplicate field names in a definition
    """

    pass


class EncodeError(HessianError):
    """Raised when encoding a value fails.

    Nothing is written to the sink when a top-level encode fails.
    """

    pass


class FieldArityMismatch(EncodeError):
    """Raised when an object supplies a different number of fields than its definition."""

    def __init__(self, name: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Object of class {name!r}: definition declares {expected} fields, got {actual}"
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class UnsupportedType(EncodeError):
    """Raised when a Python value has no wire representation."""

    pass


class ValueOutOfRange(EncodeError):
    """Raised when a number does not fit the requested wire type."""

    pass


class DecodeError(HessianError):
    """Raised when decoding binary data fails.

    Attributes:
        offset: Stream offset (in bytes) where the failure was detected, if known
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class UnexpectedTag(DecodeError):
    """Raised for a tag byte outside every range valid at that point."""

    def __init__(self, tag: int, offset: int | None = None, expected: str | None = None) -> None:
        message = f"Unexpected tag 0x{tag:02x}"
        if expected:
            message += f", expected {expected}"
        super().__init__(message, offset)
        self.tag = tag
        self.expected = expected


class TruncatedStream(DecodeError):
    """Raised when input ends before a value's declared length is satisfied."""

    def __init__(self, expected: int, actual: int, offset: int | None = None) -> None:
        super().__init__(
            f"Truncated stream: needed {expected} bytes, only {actual} available", offset
        )
        self.expected = expected
        self.actual = actual


class RefIndexOutOfRange(DecodeError):
    """Raised when a ref names an index the reference table does not hold yet."""

    def __init__(self, index: int, size: int, offset: int | None = None) -> None:
        super().__init__(f"Ref index {index} out of range (table holds {size})", offset)
        self.index = index
        self.size = size


class TypeIndexOutOfRange(DecodeError):
    """Raised when a class definition or type name index was never registered."""

    def __init__(
        self, index: int, size: int, offset: int | None = None, table: str = "class definition"
    ) -> None:
        super().__init__(f"{table.capitalize()} index {index} out of range (table holds {size})", offset)
        self.index = index
        self.size = size
        self.table = table


class ChunkLengthOverflow(DecodeError):
    """Raised when a declared chunk length exceeds the configured maximum."""

    def __init__(self, length: int, limit: int, offset: int | None = None) -> None:
        super().__init__(f"Chunk length {length} exceeds maximum {limit}", offset)
        self.length = length
        self.limit = limit


class InvalidValue(DecodeError):
    """Raised when a well-tagged payload does not form a valid value.

    Examples:
        - Invalid UTF-8 in a text chunk
        - Negative list length or field count
        - Map key that cannot be used as a dict key
        - Date outside the range of ``datetime``
    """

    pass


class DepthLimitExceeded(HessianError):
    """Raised when nesting exceeds ``CodecConfig.max_depth`` while encoding or decoding."""

    pass


class IOFailure(HessianError):
    """Raised when the underlying sink or source fails."""

    pass
