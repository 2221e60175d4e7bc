"""Tests for encoder/decoder sessions, depth limits and failure rollback."""

from __future__ import annotations

import io

import pytest

from hesscodec import (
    BufferSink,
    BufferSource,
    ByteSink,
    ByteSource,
    CodecConfig,
    DecodeError,
    Decoder,
    DepthLimitExceeded,
    Encoder,
    EncodeError,
    HessianObject,
    IOFailure,
    UnsupportedType,
    decode,
    decode_all,
    dump,
    encode,
    load,
)


class Point(HessianObject):
    """Simple two-field object."""

    x: int
    y: int


class FailingSink(ByteSink):
    """Sink whose transport is gone."""

    def write(self, data: bytes) -> None:
        raise BrokenPipeError("connection closed")


class FailingSource(ByteSource):
    """Source whose transport is gone."""

    def read(self, n: int) -> bytes:
        raise ConnectionResetError("connection reset")


class TestEncoderSession:
    """Test table reuse across top-level writes."""

    def test_writes_are_independent_by_default(self, encoder: Encoder, sink: BufferSink) -> None:
        """Test each write outside a session starts from empty tables."""
        point = Point(x=1, y=2)
        encoder.write(point)
        encoder.write(point)

        data = sink.getvalue()
        assert data.count(b"C\x05Point") == 2
        first, second = decode_all(data, models=[Point])
        assert first == second
        assert first is not second

    def test_session_reuses_refs(self, encoder: Encoder, sink: BufferSink) -> None:
        """Test a value written twice in a session becomes a ref."""
        point = Point(x=1, y=2)
        with encoder.session():
            encoder.write(point)
            encoder.write(point)

        data = sink.getvalue()
        assert data.endswith(b"\x60\x91\x92Q\x90")

        first, second = decode_all(data, models=[Point], session=True)
        assert first is second

    def test_session_reuses_class_definitions(self, encoder: Encoder, sink: BufferSink) -> None:
        """Test later objects of a known class send only the index."""
        with encoder.session():
            encoder.write(Point(x=1, y=2))
            mark = len(sink)
            encoder.write(Point(x=3, y=4))
            assert encoder.class_count == 1

        assert sink.getvalue()[mark:] == b"\x60\x93\x94"

    def test_session_stream_needs_session_decoder(self, encoder: Encoder, sink: BufferSink) -> None:
        """Test values after the first depend on tables built by earlier ones."""
        with encoder.session():
            encoder.write(Point(x=1, y=2))
            encoder.write(Point(x=3, y=4))

        with pytest.raises(DecodeError, match="Class definition index 0"):
            decode_all(sink.getvalue(), models=[Point])

    def test_tables_cleared_after_session(self, encoder: Encoder) -> None:
        """Test leaving the session forgets every table entry."""
        with encoder.session():
            encoder.write([Point(x=1, y=2)])
            assert encoder.ref_count == 2
        assert encoder.ref_count == 0
        assert encoder.class_count == 0

    def test_nested_session(self, encoder: Encoder) -> None:
        """Test sessions do not nest."""
        with encoder.session():
            with pytest.raises(EncodeError, match="already open"):
                with encoder.session():
                    pass

    def test_failed_write_rolls_back(self, encoder: Encoder, sink: BufferSink) -> None:
        """Test a failed write leaves the session as it was."""
        point = Point(x=1, y=2)
        with encoder.session():
            encoder.write(point)
            before = len(sink)

            with pytest.raises(UnsupportedType):
                encoder.write([Point(x=5, y=6), TypedThing()])
            assert len(sink) == before
            assert encoder.ref_count == 1
            assert encoder.class_count == 1

            encoder.write([point])
            assert sink.getvalue()[before:] == b"\x79Q\x90"

        values = decode_all(sink.getvalue(), models=[Point], session=True)
        assert values[1][0] is values[0]

    def test_failed_write_drops_new_definitions(self, encoder: Encoder, sink: BufferSink) -> None:
        """Test a definition first sent by a failed write is sent again."""
        with encoder.session():
            with pytest.raises(UnsupportedType):
                encoder.write([Point(x=1, y=2), TypedThing()])
            assert encoder.class_count == 0

            encoder.write(Point(x=1, y=2))

        assert sink.getvalue().startswith(b"C\x05Point")


class TypedThing:
    """Plain class with no wire form."""


class TestDecoderSession:
    """Test the decoder side of sessions."""

    def test_iterate_values(self) -> None:
        """Test iterating a decoder yields every top-level value."""
        data = encode(1) + encode("a") + encode([1])
        assert list(Decoder(data)) == [1, "a", [1]]

    def test_offset_tracks_values(self) -> None:
        """Test offset advances one value at a time."""
        data = encode("abc") + encode(True)
        decoder = Decoder(data)
        assert decoder.read() == "abc"
        assert decoder.offset == 4
        assert decoder.read() is True
        assert decoder.offset == 5
        assert decoder.at_end()

    def test_nested_session(self) -> None:
        """Test decoder sessions do not nest."""
        decoder = Decoder(b"")
        with decoder.session():
            with pytest.raises(DecodeError, match="already open"):
                with decoder.session():
                    pass

    def test_read_past_end(self) -> None:
        """Test reading with nothing left."""
        decoder = Decoder(b"T")
        decoder.read()
        with pytest.raises(DecodeError, match="Truncated"):
            decoder.read()


class TestDepthLimit:
    """Test nesting limits."""

    @staticmethod
    def _nested(depth: int) -> list:
        value: list = []
        for _ in range(depth - 1):
            value = [value]
        return value

    def test_encode_at_limit(self) -> None:
        """Test nesting equal to max_depth is accepted."""
        config = CodecConfig(max_depth=3)
        assert decode(encode(self._nested(3), config=config), config=config) == [[[]]]

    def test_encode_past_limit(self) -> None:
        """Test nesting past max_depth fails and writes nothing."""
        sink = BufferSink()
        with pytest.raises(DepthLimitExceeded, match="max_depth=3"):
            Encoder(sink, CodecConfig(max_depth=3)).write(self._nested(4))
        assert len(sink) == 0

    def test_deep_value_with_default_limit(self) -> None:
        """Test very deep values raise instead of exhausting the stack."""
        with pytest.raises(DepthLimitExceeded):
            encode(self._nested(1000))

    def test_decode_past_limit(self) -> None:
        """Test hostile nesting is rejected while decoding."""
        data = b"\x79" * 1000 + b"\x78"
        with pytest.raises(DepthLimitExceeded, match="max_depth=64"):
            decode(data, config=CodecConfig(max_depth=64))

    def test_depth_resets_between_values(self) -> None:
        """Test the depth counter does not leak across reads."""
        config = CodecConfig(max_depth=2)
        data = encode([[]]) * 3
        assert decode_all(data, config=config) == [[[]], [[]], [[]]]


class TestIO:
    """Test file-like objects and transport failures."""

    def test_dump_and_load(self) -> None:
        """Test dump() and load() with a BytesIO."""
        stream = io.BytesIO()
        dump({"points": [Point(x=1, y=2)]}, stream)
        stream.seek(0)
        assert load(stream, models=[Point]) == {"points": [Point(x=1, y=2)]}

    def test_decoder_accepts_file_objects(self) -> None:
        """Test a Decoder can wrap a binary stream directly."""
        decoder = Decoder(io.BytesIO(encode([1, 2]) + encode(None)))
        assert list(decoder) == [[1, 2], None]

    def test_sink_failure(self) -> None:
        """Test sink errors surface as IOFailure."""
        with pytest.raises(IOFailure, match="connection closed"):
            Encoder(FailingSink()).write(1)

    def test_source_failure(self) -> None:
        """Test source errors surface as IOFailure."""
        with pytest.raises(IOFailure, match="connection reset"):
            Decoder(FailingSource()).read()

    def test_closed_stream(self) -> None:
        """Test closed streams surface as IOFailure."""
        stream = io.BytesIO(b"T")
        stream.close()
        with pytest.raises(IOFailure):
            load(stream)
        with pytest.raises(IOFailure):
            dump(True, stream)

    def test_partial_source(self) -> None:
        """Test session values decode from a source with one-byte reads."""
        encoder = Encoder()
        point = Point(x=1, y=2)
        with encoder.session():
            encoder.write(point)
            encoder.write([point, point])

        decoder = Decoder(BufferSource(encoder.sink.getvalue(), read_size=1), models=[Point])
        with decoder.session():
            first, second = list(decoder)
        assert second[0] is first
        assert second[1] is first
