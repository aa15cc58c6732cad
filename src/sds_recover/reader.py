"""Record reading: header window plus declared payload, from a seekable stream."""
from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

from sds_core.errors import IncompleteRecord, StreamError
from sds_core.protocol import HDR_LEN

from .probe import RecordHeader


@dataclass
class Record:
    """A header plus the payload it declares. Owns ``payload``."""

    offset: int
    header_id: int
    spacer: int
    size: int
    payload: bytes

    @property
    def end(self) -> int:
        return self.offset + HDR_LEN + self.size


def read_window(f: BinaryIO, offset: int, length: int) -> bytes:
    try:
        f.seek(offset)
        data = f.read(length)
    except (OSError, ValueError) as e:
        raise StreamError(str(e), offset) from e
    if data is None or len(data) != length:
        raise StreamError(f"short read ({0 if data is None else len(data)} of {length})", offset)
    return data


def read_record(f: BinaryIO, header: RecordHeader, offset: int, file_size: int) -> Record:
    """Read the payload declared by an accepted ``header`` found at ``offset``."""
    start = offset + HDR_LEN
    # Bound the read by what the file can hold before allocating anything
    if start + header.size > file_size:
        raise IncompleteRecord(f"declares {header.size} bytes, {max(file_size - start, 0)} remain", offset)

    try:
        payload = read_window(f, start, header.size)
    except StreamError as e:
        raise IncompleteRecord(e.detail, offset) from e

    return Record(
        offset=offset,
        header_id=header.header_id,
        spacer=header.spacer,
        size=header.size,
        payload=payload,
    )
