"""SDS Recover - record recovery from damaged SDS captures."""
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import click

from sds_core.protocol import DEFAULT_MAX_GARBAGE_BYTES, KNOWN_SPACERS

from .controller import Diagnostic, RecoveredRecord, RecoveryController
from .index import OffsetIndex
from .render import format_diagnostic, format_opened, format_record


class HexInt(click.ParamType):
    name = "hex"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return int(value, 16)
        except ValueError:
            self.fail(f"{value!r} is not a hexadecimal integer", param, ctx)


def recover_stream(
    f: BinaryIO,
    file_size: int,
    spacers=KNOWN_SPACERS,
    max_garbage: int = DEFAULT_MAX_GARBAGE_BYTES,
    index: OffsetIndex | None = None,
) -> RecoveryController:
    """Run recovery over ``f``: records to stdout, diagnostics to stderr."""
    ctl = RecoveryController(f, file_size, spacers=spacers, max_garbage=max_garbage)
    for event in ctl.run():
        if index is not None:
            index.add(event)
        if isinstance(event, RecoveredRecord):
            click.echo("\n".join(format_record(event)))
        elif isinstance(event, Diagnostic):
            click.echo(format_diagnostic(event), err=True)
    return ctl


@click.command()
@click.argument("path", required=False, type=click.Path(path_type=Path))
@click.option(
    "--spacer",
    "extra_spacers",
    multiple=True,
    type=HexInt(),
    help="Additional header spacer value (hex) to accept. Repeatable.",
)
@click.option(
    "--index",
    "index_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Write records.parquet and corruption.parquet to this directory.",
)
@click.option(
    "--max-garbage",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_GARBAGE_BYTES,
    show_default=True,
    help="Warn when an untrusted span exceeds this many bytes.",
)
def main(path: Path | None, extra_spacers: tuple[int, ...], index_dir: Path | None, max_garbage: int) -> None:
    """Recover SDS records from PATH."""
    if path is None:
        click.echo("usage : sds_recover <filename>")
        raise SystemExit(0)

    try:
        file_size = path.stat().st_size
    except OSError as e:
        click.echo(f"Failed to open '{path}' ({e.errno})", err=True)
        raise SystemExit(1)
    click.echo(format_opened(str(path), file_size), err=True)

    try:
        f = open(path, "rb")
    except OSError as e:
        click.echo(f"Error opening file '{path}' ({e.errno})", err=True)
        raise SystemExit(1)

    index = OffsetIndex() if index_dir is not None else None
    try:
        with f:
            recover_stream(
                f,
                file_size,
                spacers=KNOWN_SPACERS | set(extra_spacers),
                max_garbage=max_garbage,
                index=index,
            )
        if index is not None:
            index.write(index_dir)
    except Exception as e:
        # Fail closed with a single-line reason; no stack traces in pipelines.
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
