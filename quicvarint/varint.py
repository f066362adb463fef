"""
QUIC variable-length integers (RFC 9000, section 16).

An unsigned integer encoded in 1, 2, 4 or 8 bytes. The two most significant
bits of the first byte select the length:

  00 -> 1 byte  ( 6-bit value)
  01 -> 2 bytes (14-bit value)
  10 -> 4 bytes (30-bit value)
  11 -> 8 bytes (62-bit value)
"""
from __future__ import annotations

import logging
import operator
import struct
import sys
from dataclasses import dataclass
from typing import BinaryIO, ClassVar, Protocol

log = logging.getLogger(__name__)

MAX_VALUE: int = (1 << 62) - 1
MAX_SIZE: int = 8

TAG_MASK: int = 0b0011_1111

# (upper bound, length, tag, struct format)
TIERS: tuple[tuple[int, int, int, str], ...] = (
    (1 << 6, 1, 0b00, ">B"),
    (1 << 14, 2, 0b01, ">H"),
    (1 << 30, 4, 0b10, ">I"),
    (1 << 62, 8, 0b11, ">Q"),
)

FORMATS: dict[int, str] = {length: fmt for _, length, _, fmt in TIERS}

U64_MAX: int = (1 << 64) - 1
USIZE_MAX: int = sys.maxsize * 2 + 1


class VarIntBoundsError(ValueError):
    pass


class ShortRead(EOFError):
    pass


class ShortWrite(OSError):
    pass


class Reader(Protocol):
    def read(self, size: int, /) -> bytes: ...


class Writer(Protocol):
    def write(self, data: bytes, /) -> int | None: ...


def read_exact(reader: Reader | BinaryIO, size: int) -> bytes:
    """
    Read exactly *size* bytes, retrying short reads until the source
    returns nothing.
    """
    data = bytearray()

    while len(data) < size:
        chunk = reader.read(size - len(data))
        if not chunk:
            raise ShortRead(f"expected {size} bytes, got {len(data)}")
        data.extend(chunk)

    return bytes(data)


def write_all(writer: Writer | BinaryIO, data: bytes) -> None:
    view = memoryview(data)

    while view:
        n = writer.write(view)
        if n is None:
            # buffered sinks either take everything or raise
            return
        if n == 0:
            raise ShortWrite(f"failed to write whole buffer ({len(view)} bytes left)")
        view = view[n:]


def _check_width(x: int, bits: int) -> int:
    x = operator.index(x)
    if not 0 <= x < (1 << bits):
        raise OverflowError(f"{x} does not fit in an unsigned {bits}-bit integer")
    return x


@dataclass(frozen=True, order=True)
class VarInt:
    """An integer less than 2^62."""

    value: int

    MAX: ClassVar[VarInt]
    MAX_SIZE: ClassVar[int] = MAX_SIZE

    def __post_init__(self) -> None:
        if isinstance(self.value, bool):
            raise TypeError("VarInt value must be an integer, not bool")

        value = operator.index(self.value)
        if not 0 <= value <= MAX_VALUE:
            raise VarIntBoundsError(f"VarInt bounds exceeded: {value}")

        object.__setattr__(self, "value", value)

    # ------------------------------------------------------------------ #
    # conversions
    # ------------------------------------------------------------------ #
    @classmethod
    def from_u8(cls, x: int) -> VarInt:
        return cls(_check_width(x, 8))

    @classmethod
    def from_u16(cls, x: int) -> VarInt:
        return cls(_check_width(x, 16))

    @classmethod
    def from_u32(cls, x: int) -> VarInt:
        return cls(_check_width(x, 32))

    @classmethod
    def try_from_u64(cls, x: int) -> VarInt:
        return cls(_check_width(x, 64))

    @classmethod
    def try_from_usize(cls, x: int) -> VarInt:
        x = operator.index(x)
        if not 0 <= x <= USIZE_MAX:
            raise OverflowError(f"{x} does not fit in a platform-sized unsigned integer")
        return cls.try_from_u64(x)

    def to_u64(self) -> int:
        return self.value

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"VarInt({self.value})"

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    # ------------------------------------------------------------------ #
    # codec
    # ------------------------------------------------------------------ #
    def size(self) -> int:
        """Number of bytes needed to encode this value."""
        for bound, length, _, _ in TIERS:
            if self.value < bound:
                return length

        raise AssertionError("malformed VarInt")

    def to_bytes(self) -> bytes:
        x = self.value

        for bound, length, tag, fmt in TIERS:
            if x < bound:
                return struct.pack(fmt, tag << (length * 8 - 2) | x)

        raise AssertionError("malformed VarInt")

    def encode(self, writer: Writer | BinaryIO) -> None:
        write_all(writer, self.to_bytes())

    @staticmethod
    def encoded_size(first: int) -> int:
        """Length of an encoded value from its first byte."""
        return 2 ** ((first & 0xFF) >> 6)

    @classmethod
    def decode(cls, reader: Reader | BinaryIO) -> VarInt:
        first = read_exact(reader, 1)[0]
        return cls._decode_rest(first, reader)

    @classmethod
    def _decode_rest(cls, first: int, reader: Reader | BinaryIO) -> VarInt:
        num_bytes = cls.encoded_size(first)
        first &= TAG_MASK

        if num_bytes == 1:
            return cls.from_u8(first)

        buf = bytes([first]) + read_exact(reader, num_bytes - 1)
        (raw,) = struct.unpack(FORMATS[num_bytes], buf)

        if num_bytes == 2:
            return cls.from_u16(raw)
        elif num_bytes == 4:
            return cls.from_u32(raw)

        try:
            return cls.try_from_u64(raw)
        except VarIntBoundsError:
            log.debug("rejected 8-byte VarInt encoding %s", buf.hex(" "))
            raise

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> tuple[VarInt, int]:
        """
        Decode one value from *data* starting at *offset*.

        Returns the value and the number of bytes it occupied.
        """
        view = memoryview(data)[offset:]
        if not view:
            raise ShortRead("expected 1 byte, got 0")

        num_bytes = cls.encoded_size(view[0])
        if len(view) < num_bytes:
            log.debug("truncated VarInt: need %d bytes, have %d", num_bytes, len(view))
            raise ShortRead(f"expected {num_bytes} bytes, got {len(view)}")

        chunk = bytes(view[:num_bytes])
        (raw,) = struct.unpack(FORMATS[num_bytes], chunk)
        raw &= (1 << (num_bytes * 8 - 2)) - 1

        return cls(raw), num_bytes


VarInt.MAX = VarInt(MAX_VALUE)
