"""Tests for integer tier boundaries and encoded sizes."""

from __future__ import annotations

import pytest

from hesscodec import (
    Long,
    UnexpectedTag,
    ValueOutOfRange,
    decode,
    encode,
    encoded_size,
    int32_size,
    int64_size,
)
from hesscodec.codec.constants import WireKind, classify

INT32_CASES = [
    (0, b"\x90"),
    (47, b"\xbf"),
    (-16, b"\x80"),
    (48, b"\xc8\x30"),
    (-17, b"\xc7\xef"),
    (2047, b"\xcf\xff"),
    (-2048, b"\xc0\x00"),
    (2048, b"\xd4\x08\x00"),
    (-2049, b"\xd3\xf7\xff"),
    (262143, b"\xd7\xff\xff"),
    (-262144, b"\xd0\x00\x00"),
    (262144, b"I\x00\x04\x00\x00"),
    (-262145, b"I\xff\xfb\xff\xff"),
    (2**31 - 1, b"I\x7f\xff\xff\xff"),
    (-(2**31), b"I\x80\x00\x00\x00"),
]

INT64_CASES = [
    (0, b"\xe0"),
    (15, b"\xef"),
    (-8, b"\xd8"),
    (16, b"\xf8\x10"),
    (-9, b"\xf7\xf7"),
    (2047, b"\xff\xff"),
    (-2048, b"\xf0\x00"),
    (2048, b"\x3c\x08\x00"),
    (-2049, b"\x3b\xf7\xff"),
    (262143, b"\x3f\xff\xff"),
    (-262144, b"\x38\x00\x00"),
    (262144, b"Y\x00\x04\x00\x00"),
    (2**31 - 1, b"Y\x7f\xff\xff\xff"),
    (2**31, b"L\x00\x00\x00\x00\x80\x00\x00\x00"),
    (-(2**63), b"L\x80\x00\x00\x00\x00\x00\x00\x00"),
]


class TestInt32Tiers:
    """Test the narrowest int32 form is chosen at every boundary."""

    @pytest.mark.parametrize("value,expected", INT32_CASES)
    def test_encode(self, value: int, expected: bytes) -> None:
        """Test exact bytes for boundary values."""
        assert encode(value) == expected

    @pytest.mark.parametrize("value,expected", INT32_CASES)
    def test_decode(self, value: int, expected: bytes) -> None:
        """Test boundary encodings decode to plain ints."""
        decoded = decode(expected)
        assert decoded == value
        assert not isinstance(decoded, Long)

    @pytest.mark.parametrize("value,expected", INT32_CASES)
    def test_size(self, value: int, expected: bytes) -> None:
        """Test int32_size agrees with the encoder."""
        assert int32_size(value) == len(expected)

    def test_size_out_of_range(self) -> None:
        """Test int32_size rejects values needing 64 bits."""
        with pytest.raises(ValueOutOfRange):
            int32_size(2**31)


class TestInt64Tiers:
    """Test the narrowest int64 form is chosen at every boundary."""

    @pytest.mark.parametrize("value,expected", INT64_CASES)
    def test_encode(self, value: int, expected: bytes) -> None:
        """Test exact bytes for boundary values."""
        assert encode(Long(value)) == expected

    @pytest.mark.parametrize("value,expected", INT64_CASES)
    def test_decode(self, value: int, expected: bytes) -> None:
        """Test boundary encodings decode to Long."""
        decoded = decode(expected)
        assert decoded == value
        assert isinstance(decoded, Long)

    @pytest.mark.parametrize("value,expected", INT64_CASES)
    def test_size(self, value: int, expected: bytes) -> None:
        """Test int64_size agrees with the encoder."""
        assert int64_size(value) == len(expected)

    def test_size_out_of_range(self) -> None:
        """Test int64_size rejects values past 64 bits."""
        with pytest.raises(ValueOutOfRange):
            int64_size(2**63)


class TestEncodedSize:
    """Test encoded_size()."""

    def test_matches_encode(self, sample_values: list) -> None:
        """Test encoded_size is the length of the encoding."""
        for value in sample_values:
            assert encoded_size(value) == len(encode(value))

    def test_examples(self) -> None:
        """Test a few known sizes."""
        assert encoded_size(True) == 1
        assert encoded_size("hello") == 6
        assert encoded_size([1, 2, 3]) == 4


class TestClassify:
    """Test the tag table."""

    def test_unassigned_bytes(self) -> None:
        """Test exactly four bytes have no kind."""
        unassigned = []
        for byte in range(256):
            try:
                classify(byte)
            except UnexpectedTag:
                unassigned.append(byte)
        assert unassigned == [0x40, 0x45, 0x47, 0x50]

    @pytest.mark.parametrize(
        "byte,kind",
        [
            (0x00, WireKind.STRING_DIRECT),
            (0x1F, WireKind.STRING_DIRECT),
            (0x2F, WireKind.BINARY_DIRECT),
            (0x33, WireKind.STRING_SHORT),
            (0x37, WireKind.BINARY_SHORT),
            (0x38, WireKind.LONG_SHORT),
            (ord("C"), WireKind.CLASS_DEF),
            (ord("Z"), WireKind.END),
            (0x5F, WireKind.DOUBLE_MILL),
            (0x6F, WireKind.OBJECT_DIRECT),
            (0x77, WireKind.LIST_DIRECT),
            (0x7F, WireKind.LIST_DIRECT_UNTYPED),
            (0xBF, WireKind.INT_DIRECT),
            (0xCF, WireKind.INT_BYTE),
            (0xD7, WireKind.INT_SHORT),
            (0xEF, WireKind.LONG_DIRECT),
            (0xFF, WireKind.LONG_BYTE),
        ],
    )
    def test_ranges(self, byte: int, kind: WireKind) -> None:
        """Test range edges map to the right kind."""
        assert classify(byte) is kind
