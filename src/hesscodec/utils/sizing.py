"""Encoded size calculation utilities.

This module provides functions to predict how many bytes a value takes on
the wire. Integer sizes follow the tier rules directly; other values are
measured by encoding them.
"""

from __future__ import annotations

from typing import Any

from ..codec.constants import (
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    INT_BYTE_MAX,
    INT_BYTE_MIN,
    INT_DIRECT_MAX,
    INT_DIRECT_MIN,
    INT_SHORT_MAX,
    INT_SHORT_MIN,
    LONG_BYTE_MAX,
    LONG_BYTE_MIN,
    LONG_DIRECT_MAX,
    LONG_DIRECT_MIN,
    LONG_SHORT_MAX,
    LONG_SHORT_MIN,
)
from ..codec.encoder import encode
from ..config import CodecConfig
from ..exceptions import ValueOutOfRange


def int32_size(value: int) -> int:
    """Return the encoded size in bytes of a 32-bit integer.

    Example:
        >>> int32_size(47), int32_size(48), int32_size(2048), int32_size(262144)
        (1, 2, 3, 5)

    Raises:
        ValueOutOfRange: If value does not fit in 32 bits
    """
    if INT_DIRECT_MIN <= value <= INT_DIRECT_MAX:
        return 1
    if INT_BYTE_MIN <= value <= INT_BYTE_MAX:
        return 2
    if INT_SHORT_MIN <= value <= INT_SHORT_MAX:
        return 3
    if INT32_MIN <= value <= INT32_MAX:
        return 5
    raise ValueOutOfRange(f"Value {value} does not fit in 32 bits")


def int64_size(value: int) -> int:
    """Return the encoded size in bytes of a 64-bit integer.

    Raises:
        ValueOutOfRange: If value does not fit in 64 bits
    """
    if LONG_DIRECT_MIN <= value <= LONG_DIRECT_MAX:
        return 1
    if LONG_BYTE_MIN <= value <= LONG_BYTE_MAX:
        return 2
    if LONG_SHORT_MIN <= value <= LONG_SHORT_MAX:
        return 3
    if INT32_MIN <= value <= INT32_MAX:
        return 5
    if INT64_MIN <= value <= INT64_MAX:
        return 9
    raise ValueOutOfRange(f"Value {value} does not fit in 64 bits")


def encoded_size(value: Any, config: CodecConfig | None = None) -> int:
    """Return the number of bytes ``encode(value)`` produces.

    Example:
        >>> encoded_size(True)
        1
        >>> encoded_size("hello")
        6
    """
    return len(encode(value, config))
