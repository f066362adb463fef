from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, NoReturn, Optional

import click

from quicvarint import bench as benchmark
from quicvarint.setup_logging import setup_logging
from quicvarint.stream import Stream, decode_all
from quicvarint.varint import VarInt

log = logging.getLogger(__name__)

CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def fail(message: str) -> NoReturn:
    click.echo(f"error: {message}", err=True)
    raise SystemExit(1)


def parse_int(text: str) -> int:
    # decimal unless prefixed, so "007" is seven
    if text.lstrip("+-")[:2].lower() in ("0x", "0o", "0b"):
        return int(text, 0)
    return int(text, 10)


def parse_values(values: tuple[str, ...]) -> list[VarInt]:
    result = []

    for text in values:
        try:
            result.append(VarInt(parse_int(text)))
        except ValueError as e:
            fail(f"invalid value {text!r}: {e}")

    return result


@click.group(context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    envvar="QUICVARINT_LOG_LEVEL",
    show_default=True,
    help="Logging threshold.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="QUICVARINT_LOG_FILE",
    help="Also write log records to this file.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, log_file: Optional[Path]) -> None:
    setup_logging(level=log_level, log_file=log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("values", nargs=-1, required=True)
@click.option("--raw", is_flag=True, help="Write the encoded bytes instead of hex.")
def encode(values: tuple[str, ...], raw: bool) -> None:
    """Encode each VALUE as a QUIC variable-length integer."""
    varints = parse_values(values)

    if raw:
        out = click.get_binary_stream("stdout")
        for v in varints:
            v.encode(out)
        out.flush()
        return

    for v in varints:
        click.echo(v.to_bytes().hex(" "))


@cli.command()
@click.argument("hex_data", required=False)
@click.option(
    "-i",
    "--input",
    "input_file",
    type=click.File("rb"),
    help="Read the encoded values from a binary file ('-' for stdin).",
)
@click.option("-v", "--verbose", is_flag=True, help="Also print the raw bytes of each value.")
def decode(
    hex_data: Optional[str], input_file: Optional[BinaryIO], verbose: bool
) -> None:
    """Decode the QUIC variable-length integers in HEX_DATA."""
    if (hex_data is None) == (input_file is None):
        fail("give either HEX_DATA or --input")

    if input_file is None:
        assert hex_data is not None
        try:
            source: BinaryIO = io.BytesIO(bytes.fromhex(hex_data))
        except ValueError as e:
            fail(f"invalid hex: {e}")
    else:
        source = input_file

    try:
        if verbose:
            stream = Stream(source)
            while not stream.eof:
                v, raw = stream.capture(stream.read_varint)
                click.echo(f"{v}\t{raw.hex(' ')}")
        else:
            for v in decode_all(source):
                click.echo(str(v))
    except (ValueError, EOFError) as e:
        log.debug("decode failed", exc_info=True)
        fail(str(e))


@cli.command()
@click.argument("values", nargs=-1, required=True)
def size(values: tuple[str, ...]) -> None:
    """Print the encoded size of each VALUE in bytes."""
    for v in parse_values(values):
        click.echo(str(v.size()))


@cli.command()
@click.option("-n", "--count", type=click.IntRange(min=1), default=1000, show_default=True)
@click.option("-r", "--number", type=click.IntRange(min=1), default=10, show_default=True)
@click.option("--seed", type=int, default=None, help="Seed for the random values.")
def bench(count: int, number: int, seed: Optional[int]) -> None:
    """Compare multiformat unsigned-varint against QUIC varints."""
    results = benchmark.run(count=count, number=number, seed=seed)
    click.echo(benchmark.format_table(results))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
