"""
Multiformat unsigned-varint, used as the baseline in the benchmark.

Seven value bits per byte, least significant group first, the high bit set
on every byte except the last. Values are limited to 63 bits, so an encoding
is at most nine bytes long, and must be minimal.
"""
from __future__ import annotations

from typing import Protocol

from quicvarint.varint import ShortRead

MAX_VALUE: int = (1 << 63) - 1
MAX_SIZE: int = 9


class InvalidLEB128(ValueError):
    pass


class ByteSource(Protocol):
    def readbyte(self) -> int: ...


def _check_range(value: int) -> None:
    if not 0 <= value <= MAX_VALUE:
        raise InvalidLEB128(f"value out of range: {value}")


def encode(value: int) -> bytes:
    _check_range(value)

    parts = []
    while value > 0x7F:
        parts.append(0x80 | (value & 0x7F))
        value >>= 7

    parts.append(value)
    return bytes(parts)


def decode(stream: ByteSource) -> int:
    value = 0
    shift = 0

    for i in range(MAX_SIZE):
        try:
            byte = stream.readbyte()
        except ShortRead:
            raise ShortRead(f"truncated varint after {i} bytes") from None

        value |= (byte & 0x7F) << shift
        shift += 7

        if byte < 0x80:
            if byte == 0 and i > 0:
                raise InvalidLEB128("varint not minimally encoded")
            return value

    raise InvalidLEB128(f"varint longer than {MAX_SIZE} bytes")


def size(value: int) -> int:
    _check_range(value)
    return max(1, (value.bit_length() + 6) // 7)
