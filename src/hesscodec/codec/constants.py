"""Wire tags and numeric tier bounds.

Every encoded value starts with a tag byte. Compact tiers fold part of the
value (a small integer, a short length, a definition index) into the tag
itself. ``classify()`` maps any byte to exactly one WireKind so the decoder
can dispatch over a closed set; bytes with no kind are protocol errors.
"""

from __future__ import annotations

import enum

from ..exceptions import UnexpectedTag

# Int32 tiers
INT_DIRECT_MIN = -0x10
INT_DIRECT_MAX = 0x2F
INT_ZERO = 0x90

INT_BYTE_MIN = -0x800
INT_BYTE_MAX = 0x7FF
INT_BYTE_ZERO = 0xC8

INT_SHORT_MIN = -0x40000
INT_SHORT_MAX = 0x3FFFF
INT_SHORT_ZERO = 0xD4

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1

# Int64 tiers
LONG_DIRECT_MIN = -0x08
LONG_DIRECT_MAX = 0x0F
LONG_ZERO = 0xE0

LONG_BYTE_MIN = -0x800
LONG_BYTE_MAX = 0x7FF
LONG_BYTE_ZERO = 0xF8

LONG_SHORT_MIN = -0x40000
LONG_SHORT_MAX = 0x3FFFF
LONG_SHORT_ZERO = 0x3C

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# Text and binary final-chunk compact forms
STRING_DIRECT_MAX = 0x1F
STRING_DIRECT = 0x00
STRING_SHORT_MAX = 0x3FF
STRING_SHORT = 0x30

BINARY_DIRECT_MAX = 0x0F
BINARY_DIRECT = 0x20
BINARY_SHORT_MAX = 0x3FF
BINARY_SHORT = 0x34

# Compact composites
OBJECT_DIRECT_MAX = 0x0F
OBJECT_DIRECT = 0x60

LIST_DIRECT_MAX = 0x07
LIST_DIRECT = 0x70
LIST_DIRECT_UNTYPED = 0x78

# Single-byte tags
BC_BINARY_CHUNK = ord("A")
BC_BINARY = ord("B")
BC_CLASS_DEF = ord("C")
BC_DOUBLE = ord("D")
BC_FALSE = ord("F")
BC_MAP_UNTYPED = ord("H")
BC_INT = ord("I")
BC_DATE = ord("J")
BC_DATE_MINUTE = ord("K")
BC_LONG = ord("L")
BC_MAP = ord("M")
BC_NULL = ord("N")
BC_OBJECT = ord("O")
BC_REF = ord("Q")
BC_STRING_CHUNK = ord("R")
BC_STRING = ord("S")
BC_TRUE = ord("T")
BC_LIST_VARIABLE = ord("U")
BC_LIST_FIXED = ord("V")
BC_LIST_VARIABLE_UNTYPED = ord("W")
BC_LIST_FIXED_UNTYPED = ord("X")
BC_LONG_INT = ord("Y")
BC_END = ord("Z")

BC_DOUBLE_ZERO = 0x5B
BC_DOUBLE_ONE = 0x5C
BC_DOUBLE_BYTE = 0x5D
BC_DOUBLE_SHORT = 0x5E
BC_DOUBLE_MILL = 0x5F


class WireKind(enum.Enum):
    """What a tag byte introduces."""

    NULL = enum.auto()
    TRUE = enum.auto()
    FALSE = enum.auto()
    INT_DIRECT = enum.auto()
    INT_BYTE = enum.auto()
    INT_SHORT = enum.auto()
    INT = enum.auto()
    LONG_DIRECT = enum.auto()
    LONG_BYTE = enum.auto()
    LONG_SHORT = enum.auto()
    LONG_INT = enum.auto()
    LONG = enum.auto()
    DOUBLE_ZERO = enum.auto()
    DOUBLE_ONE = enum.auto()
    DOUBLE_BYTE = enum.auto()
    DOUBLE_SHORT = enum.auto()
    DOUBLE_MILL = enum.auto()
    DOUBLE = enum.auto()
    DATE = enum.auto()
    DATE_MINUTE = enum.auto()
    STRING_DIRECT = enum.auto()
    STRING_SHORT = enum.auto()
    STRING = enum.auto()
    STRING_CHUNK = enum.auto()
    BINARY_DIRECT = enum.auto()
    BINARY_SHORT = enum.auto()
    BINARY = enum.auto()
    BINARY_CHUNK = enum.auto()
    LIST_VARIABLE = enum.auto()
    LIST_FIXED = enum.auto()
    LIST_VARIABLE_UNTYPED = enum.auto()
    LIST_FIXED_UNTYPED = enum.auto()
    LIST_DIRECT = enum.auto()
    LIST_DIRECT_UNTYPED = enum.auto()
    MAP = enum.auto()
    MAP_UNTYPED = enum.auto()
    CLASS_DEF = enum.auto()
    OBJECT = enum.auto()
    OBJECT_DIRECT = enum.auto()
    REF = enum.auto()
    END = enum.auto()


INT_KINDS = frozenset({WireKind.INT_DIRECT, WireKind.INT_BYTE, WireKind.INT_SHORT, WireKind.INT})

STRING_KINDS = frozenset(
    {WireKind.STRING_DIRECT, WireKind.STRING_SHORT, WireKind.STRING, WireKind.STRING_CHUNK}
)

BINARY_KINDS = frozenset(
    {WireKind.BINARY_DIRECT, WireKind.BINARY_SHORT, WireKind.BINARY, WireKind.BINARY_CHUNK}
)


def _build_kind_table() -> tuple[WireKind | None, ...]:
    table: list[WireKind | None] = [None] * 256

    def assign(first: int, last: int, kind: WireKind) -> None:
        for byte in range(first, last + 1):
            table[byte] = kind

    assign(0x00, 0x1F, WireKind.STRING_DIRECT)
    assign(0x20, 0x2F, WireKind.BINARY_DIRECT)
    assign(0x30, 0x33, WireKind.STRING_SHORT)
    assign(0x34, 0x37, WireKind.BINARY_SHORT)
    assign(0x38, 0x3F, WireKind.LONG_SHORT)
    assign(0x60, 0x6F, WireKind.OBJECT_DIRECT)
    assign(0x70, 0x77, WireKind.LIST_DIRECT)
    assign(0x78, 0x7F, WireKind.LIST_DIRECT_UNTYPED)
    assign(0x80, 0xBF, WireKind.INT_DIRECT)
    assign(0xC0, 0xCF, WireKind.INT_BYTE)
    assign(0xD0, 0xD7, WireKind.INT_SHORT)
    assign(0xD8, 0xEF, WireKind.LONG_DIRECT)
    assign(0xF0, 0xFF, WireKind.LONG_BYTE)

    singles = {
        BC_BINARY_CHUNK: WireKind.BINARY_CHUNK,
        BC_BINARY: WireKind.BINARY,
        BC_CLASS_DEF: WireKind.CLASS_DEF,
        BC_DOUBLE: WireKind.DOUBLE,
        BC_FALSE: WireKind.FALSE,
        BC_MAP_UNTYPED: WireKind.MAP_UNTYPED,
        BC_INT: WireKind.INT,
        BC_DATE: WireKind.DATE,
        BC_DATE_MINUTE: WireKind.DATE_MINUTE,
        BC_LONG: WireKind.LONG,
        BC_MAP: WireKind.MAP,
        BC_NULL: WireKind.NULL,
        BC_OBJECT: WireKind.OBJECT,
        BC_REF: WireKind.REF,
        BC_STRING_CHUNK: WireKind.STRING_CHUNK,
        BC_STRING: WireKind.STRING,
        BC_TRUE: WireKind.TRUE,
        BC_LIST_VARIABLE: WireKind.LIST_VARIABLE,
        BC_LIST_FIXED: WireKind.LIST_FIXED,
        BC_LIST_VARIABLE_UNTYPED: WireKind.LIST_VARIABLE_UNTYPED,
        BC_LIST_FIXED_UNTYPED: WireKind.LIST_FIXED_UNTYPED,
        BC_LONG_INT: WireKind.LONG_INT,
        BC_END: WireKind.END,
        BC_DOUBLE_ZERO: WireKind.DOUBLE_ZERO,
        BC_DOUBLE_ONE: WireKind.DOUBLE_ONE,
        BC_DOUBLE_BYTE: WireKind.DOUBLE_BYTE,
        BC_DOUBLE_SHORT: WireKind.DOUBLE_SHORT,
        BC_DOUBLE_MILL: WireKind.DOUBLE_MILL,
    }
    for byte, kind in singles.items():
        table[byte] = kind

    return tuple(table)


_KIND_BY_BYTE = _build_kind_table()


def classify(tag: int, offset: int | None = None) -> WireKind:
    """Return the WireKind introduced by a tag byte.

    Args:
        tag: Tag byte (0-255)
        offset: Stream offset of the tag, used in the error

    Raises:
        UnexpectedTag: If the byte is not assigned to any kind
    """
    kind = _KIND_BY_BYTE[tag]
    if kind is None:
        raise UnexpectedTag(tag, offset)
    return kind
