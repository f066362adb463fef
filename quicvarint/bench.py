"""
Comparison of unsigned variable-length integer encodings.

Times the multiformat unsigned-varint against QUIC's variable-length
integers on random values below 2^62.
"""
from __future__ import annotations

import io
import logging
import random
import timeit
from dataclasses import dataclass
from typing import Callable

from quicvarint import leb128
from quicvarint.stream import Stream
from quicvarint.varint import MAX_VALUE, VarInt

log = logging.getLogger(__name__)

CODECS = ["multiformat", "quic"]


@dataclass
class BenchResult:
    codec: str
    operation: str
    ns_per_value: float
    total_bytes: int


def rand_u62(rng: random.Random) -> int:
    while True:
        n = rng.getrandbits(64)
        if n <= MAX_VALUE:
            return n


def _quic_encode(values: list[int]) -> Callable[[], bytes]:
    varints = [VarInt(v) for v in values]

    def run() -> bytes:
        out = io.BytesIO()
        for v in varints:
            v.encode(out)
        return out.getvalue()

    return run


def _quic_decode(data: bytes, count: int) -> Callable[[], list[VarInt]]:
    def run() -> list[VarInt]:
        src = io.BytesIO(data)
        return [VarInt.decode(src) for _ in range(count)]

    return run


def _multiformat_encode(values: list[int]) -> Callable[[], bytes]:
    def run() -> bytes:
        return b"".join(leb128.encode(v) for v in values)

    return run


def _multiformat_decode(data: bytes, count: int) -> Callable[[], list[int]]:
    def run() -> list[int]:
        stream = Stream(io.BytesIO(data))
        return [leb128.decode(stream) for _ in range(count)]

    return run


def run(count: int = 1000, number: int = 10, seed: int | None = None) -> list[BenchResult]:
    if count < 1 or number < 1:
        raise ValueError("count and number must be positive")

    log.info("benchmarking %d values x %d rounds (seed=%s)", count, number, seed)

    rng = random.Random(seed)
    values = [rand_u62(rng) for _ in range(count)]

    encoders = {
        "multiformat": _multiformat_encode(values),
        "quic": _quic_encode(values),
    }
    decoders = {
        "multiformat": _multiformat_decode,
        "quic": _quic_decode,
    }

    results: list[BenchResult] = []
    for codec in CODECS:
        encode = encoders[codec]
        data = encode()

        elapsed = timeit.timeit(encode, number=number)
        results.append(BenchResult(codec, "encode", elapsed * 1e9 / (count * number), len(data)))

        decode = decoders[codec](data, count)
        decoded = decode()
        if [int(v) for v in decoded] != values:
            raise AssertionError(f"{codec} round trip mismatch")

        elapsed = timeit.timeit(decode, number=number)
        results.append(BenchResult(codec, "decode", elapsed * 1e9 / (count * number), len(data)))

        log.debug("%s: %d bytes for %d values", codec, len(data), count)

    return results


def format_table(results: list[BenchResult]) -> str:
    lines = [f"{'codec':<12} | {'operation':<9} | {'ns/value':>10} | {'bytes':>8}"]
    lines.append("-" * len(lines[0]))

    for r in results:
        lines.append(
            f"{r.codec:<12} | {r.operation:<9} | {r.ns_per_value:>10.1f} | {r.total_bytes:>8}"
        )

    return "\n".join(lines)
