import io

import pytest

from quicvarint.stream import Stream, decode_all
from quicvarint.varint import ShortRead, VarInt
from tests.conftest import Encode, TrickleReader


def test_offset_counts_the_bytes_of_each_value(encode: Encode) -> None:
    values = [7, 300, 16384, 1073741824]
    stream = Stream(io.BytesIO(b"".join(encode(v) for v in values)))

    offsets = []
    for _ in values:
        stream.read_varint()
        offsets.append(stream.offset)

    assert offsets == [1, 3, 7, 15]


def test_capture_returns_the_raw_encoding() -> None:
    stream = Stream(io.BytesIO(b"\x07\x9d\x7f\x3e\x7d"))
    stream.read_varint()

    value, raw = stream.capture(stream.read_varint)

    assert value == VarInt(494878333)
    assert raw == b"\x9d\x7f\x3e\x7d"


def test_capture_includes_bytes_fetched_by_eof() -> None:
    stream = Stream(io.BytesIO(b"\x41\x2c"))
    assert not stream.eof

    value, raw = stream.capture(stream.read_varint)

    assert value == VarInt(300)
    assert raw == b"\x41\x2c"


def test_capture_stops_recording_after_the_block() -> None:
    stream = Stream(io.BytesIO(b"\x07\x25"))

    _, raw = stream.capture(stream.read_varint)
    stream.read_varint()

    assert raw == b"\x07"
    assert stream.offset == 2


def test_read_prefers_the_buffer() -> None:
    stream = Stream(io.BytesIO(b"\x2c"), buffer=b"\x41")
    assert stream.read(2) == b"\x41\x2c"


def test_read_completes_short_reads() -> None:
    stream = Stream(TrickleReader(b"abcdef"))  # type: ignore[arg-type]
    assert stream.read(6) == b"abcdef"


def test_readbyte_fails_at_end_of_input() -> None:
    stream = Stream(io.BytesIO(b""))
    with pytest.raises(ShortRead):
        stream.readbyte()


def test_eof_does_not_consume_input() -> None:
    stream = Stream(io.BytesIO(b"\x07"))

    assert not stream.eof
    assert stream.offset == 0
    assert stream.readbyte() == 7
    assert stream.eof


class TestDecodeAll:
    def test_yields_every_value(self, encode: Encode) -> None:
        values = [0, 63, 64, 2**62 - 1]
        data = b"".join(encode(v) for v in values)

        assert [v.value for v in decode_all(io.BytesIO(data))] == values

    def test_empty_input_yields_nothing(self) -> None:
        assert list(decode_all(io.BytesIO(b""))) == []

    def test_accepts_an_existing_stream(self) -> None:
        stream = Stream(io.BytesIO(b"\x07\x07"))
        assert list(decode_all(stream)) == [VarInt(7), VarInt(7)]
        assert stream.offset == 2

    def test_truncated_trailing_value_fails(self) -> None:
        values = decode_all(io.BytesIO(b"\x07\x41"))

        assert next(values) == VarInt(7)
        with pytest.raises(ShortRead):
            next(values)


class TestFailedReads:
    def test_buffered_bytes_survive_a_short_read(self) -> None:
        stream = Stream(io.BytesIO(b""), buffer=b"\x41")

        with pytest.raises(ShortRead, match="expected 2 bytes, got 1"):
            stream.read(2)

        assert not stream.eof
        assert stream.offset == 0
        assert stream.readbyte() == 0x41

    def test_bytes_read_from_the_source_survive_a_short_read(self) -> None:
        stream = Stream(io.BytesIO(b"\x9d\x7f"))

        with pytest.raises(ShortRead):
            stream.read_varint()

        assert stream.offset == 1
        assert stream.read(1) == b"\x7f"
        assert stream.eof

    def test_short_read_is_not_captured(self) -> None:
        stream = Stream(io.BytesIO(b"\x07"))

        with pytest.raises(ShortRead):
            stream.capture(lambda: stream.read(2))

        assert stream.capture(stream.read_varint) == (VarInt(7), b"\x07")
