from __future__ import annotations

import io
import logging
from typing import Callable, Generator, Mapping, Protocol, TypeAlias

import pytest
from click.testing import CliRunner, Result

from quicvarint.cli import cli
from quicvarint.varint import VarInt

Encode: TypeAlias = Callable[[int], bytes]


class QuicVarIntCmd(Protocol):
    def __call__(
        self,
        *argv: str,
        env: Mapping[str, str] | None = None,
        stdin_data: bytes = b"",
    ) -> Result: ...


class TrickleReader:
    """Source that hands out at most one byte per read() call."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.calls = 0

    def read(self, size: int) -> bytes:
        self.calls += 1
        chunk, self.data = self.data[:1], self.data[1:]
        return chunk


class LimitedWriter:
    """Sink that accepts *capacity* bytes, one at a time, then nothing."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.written = bytearray()

    def write(self, data: bytes) -> int:
        if len(self.written) >= self.capacity:
            return 0
        self.written.extend(bytes(data[:1]))
        return 1


@pytest.fixture
def encode() -> Encode:
    def _encode(value: int) -> bytes:
        out = io.BytesIO()
        VarInt(value).encode(out)
        return out.getvalue()

    return _encode


@pytest.fixture
def quicvarint_cmd() -> QuicVarIntCmd:
    runner = CliRunner()

    def _quicvarint_cmd(
        *argv: str,
        env: Mapping[str, str] | None = None,
        stdin_data: bytes = b"",
    ) -> Result:
        return runner.invoke(cli, list(argv), input=stdin_data, env=env)

    return _quicvarint_cmd


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None]:
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)

    yield

    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler) and handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
