"""Text rendering for the data and diagnostics streams.

Line formats are consumed by downstream reinjection and offset-indexing
scripts; keep them stable.
"""
from __future__ import annotations

from typing import Iterator

from sds_core.protocol import SDS_VOID

from .controller import (
    DATA_CORRUPT,
    END,
    HEADER_CORRUPT,
    RECOVERED,
    SUMMARY,
    UNKNOWN_SPACER,
    UNTRUSTED_SPAN,
    Diagnostic,
    RecoveredRecord,
)
from .scanner import Datum


def format_value(datum: Datum) -> str:
    if datum.type_tag == SDS_VOID:
        return f"{int.from_bytes(datum.value[:4].tobytes(), 'little'):x}"
    return datum.text()


def iter_datum_lines(datums: list[Datum], depth: int = 0) -> Iterator[str]:
    """One line per datum; nested datums are indented one level per depth."""
    stack = [(depth, d) for d in reversed(datums)]
    while stack:
        level, d = stack.pop()
        indent = "\t" * (level + 1)
        line = f"{indent}{d.name:<16s} : ({d.type_tag:02d}) : {d.length:03d}"
        if d.is_nested:
            yield line
            stack.extend((level + 1, c) for c in reversed(d.children))
        else:
            yield f"{line}\t'{format_value(d)}'"


def format_record(rec: RecoveredRecord) -> list[str]:
    r = rec.record
    lines = [
        f"{rec.index:08d} - SDS header(0x{r.header_id:x}) (0x{r.spacer:04x}) "
        f"pos 0x{r.offset:08x} sz 0x{r.size:04x} ({r.size}) bytes"
    ]
    lines.extend(iter_datum_lines(rec.datums))
    lines.append("")
    return lines


def format_opened(path: str, size: int) -> str:
    return f"\nOpened file {path} size ({size:08x}) {size} bytes"


def format_diagnostic(diag: Diagnostic) -> str:
    if diag.kind == HEADER_CORRUPT:
        return f"\thdr_cor err  (0x{diag.offset:08x})"
    if diag.kind == RECOVERED:
        return f"\tvalid hdr    (0x{diag.offset:08x})"
    if diag.kind == DATA_CORRUPT:
        return f"\tsds_data err (0x{diag.offset:08x}) @(0x{diag.at:x})"
    if diag.kind == UNTRUSTED_SPAN:
        return f"\tuntrusted    (0x{diag.offset:08x}-0x{diag.end:08x})"
    if diag.kind == UNKNOWN_SPACER:
        return f"\tspacer?      (0x{diag.offset:08x}) (0x{diag.value:x})"
    if diag.kind == END:
        return "End of file reached"
    if diag.kind == SUMMARY:
        return f"\ncorruption count ({diag.count})"
    raise ValueError(f"unknown diagnostic kind {diag.kind!r}")
