from __future__ import annotations

from typing import BinaryIO, Callable, Iterator, Tuple, TypeVar

from quicvarint.varint import ShortRead, VarInt

T = TypeVar("T")


class Stream:
    """
    Reads a binary source on behalf of the decoders.

    `offset` counts the bytes handed to callers. Bytes fetched from the
    source but not yet handed out wait in `buffer`, so a read that fails
    half-way or a lookahead by `eof` loses nothing.
    """

    def __init__(self, inp: BinaryIO, buffer: bytes = b"") -> None:
        self.input: BinaryIO = inp
        self.offset = 0
        self.buffer = bytearray(buffer)
        self._recording: bytearray | None = None

    def capture(self, block: Callable[[], T]) -> Tuple[T, bytes]:
        """Run *block* and return its result with the bytes it read."""
        self._recording = bytearray()
        try:
            result = block()
            return result, bytes(self._recording)
        finally:
            self._recording = None

    def read(self, size: int) -> bytes:
        while len(self.buffer) < size:
            chunk = self.input.read(size - len(self.buffer))
            if not chunk:
                raise ShortRead(f"expected {size} bytes, got {len(self.buffer)}")
            self.buffer.extend(chunk)

        data = bytes(self.buffer[:size])
        del self.buffer[:size]

        self.offset += size
        if self._recording is not None:
            self._recording.extend(data)

        return data

    def readbyte(self) -> int:
        return self.read(1)[0]

    def read_varint(self) -> VarInt:
        return VarInt.decode(self)

    @property
    def eof(self) -> bool:
        if self.buffer:
            return False

        chunk = self.input.read(1)
        if not chunk:
            return True

        self.buffer.extend(chunk)
        return False


def decode_all(source: Stream | BinaryIO) -> Iterator[VarInt]:
    """
    Yield values from *source* until it is exhausted. A value cut off
    part-way through its encoding raises ShortRead.
    """
    stream = source if isinstance(source, Stream) else Stream(source)

    while not stream.eof:
        yield stream.read_varint()
