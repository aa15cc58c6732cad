"""Datum scanning: one name/type/length/value group from a bounded window.

SDS datum fields:
    name        NUL-terminated text
    type        NUL-terminated decimal text; a known code below TYPE_MAX
    length      NUL-terminated decimal text; positive
    value       ``length`` bytes, format depends on the type

INT, STRING and FLOAT values are text whose terminated length must equal the
declared length. CHAR, VOID, STRUCT, STRUCT_LIST and BASE64 values may hold
NUL bytes and are only length-checked here.

Nothing in this module reads outside ``[start, end)`` of the buffer it is
given, and nothing copies the value bytes: a Datum's ``value`` is a
memoryview slice of the scanned buffer.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import NamedTuple

from sds_core.errors import DatumFormatError
from sds_core.protocol import KNOWN_TYPES, NESTED_TYPES, TERMINATED_TYPES, TYPE_MAX, TYPE_NAMES

# C atoi(): optional leading whitespace and sign, then digits; anything else is 0
_ATOI_RE = re.compile(rb"[ \t\n\v\f\r]*([+-]?[0-9]+)")


def atoi(raw: bytes) -> int:
    m = _ATOI_RE.match(raw)
    return int(m.group(1)) if m else 0


@dataclass
class Datum:
    name: str
    type_tag: int
    length: int
    value: memoryview
    offset: int
    consumed: int
    children: list[Datum] = field(default_factory=list)
    # Bytes of a nested value the child walk could not decode
    nested_trailing: int = 0

    @property
    def type_name(self) -> str:
        return TYPE_NAMES[self.type_tag]

    @property
    def is_nested(self) -> bool:
        return self.type_tag in NESTED_TYPES

    def text(self) -> str:
        """Value as text, up to the first NUL."""
        raw = self.value.tobytes()
        return raw.split(b"\x00", 1)[0].decode("latin-1")


class _Fields(NamedTuple):
    name_end: int
    type_tag: int
    value_start: int
    length: int


def _terminator(buf: bytes, start: int, end: int, what: str) -> int:
    pos = buf.find(b"\x00", start, end)
    if pos < 0:
        raise DatumFormatError(f"{what} field not terminated", start)
    return pos


def _scan(buf: bytes, start: int, end: int) -> _Fields:
    if not 0 <= start <= end <= len(buf):
        raise ValueError(f"window [{start}, {end}) outside buffer of {len(buf)} bytes")

    # Locating the name terminator makes the name's terminated length equal
    # the distance to the type field, and it is at least 1.
    name_end = _terminator(buf, start, end, "name")
    type_start = name_end + 1

    type_end = _terminator(buf, type_start, end, "type")
    type_tag = atoi(buf[type_start:type_end])
    if type_tag >= TYPE_MAX:
        raise DatumFormatError(f"type {type_tag} out of range", type_start)
    if type_tag not in KNOWN_TYPES:
        raise DatumFormatError(f"unknown type {type_tag}", type_start)

    len_start = type_end + 1
    len_end = _terminator(buf, len_start, end, "length")
    length = atoi(buf[len_start:len_end])
    remaining = end - len_start - 1
    if length <= 0 or length >= remaining:
        raise DatumFormatError(f"length {length} not within 1..{remaining - 1}", len_start)
    # The declared length caps the rest of the scan window
    if len_end - len_start > length + 1:
        raise DatumFormatError("length field runs past the declared window", len_start)

    value_start = len_end + 1
    value_end = value_start + length
    if value_end > end:
        raise DatumFormatError(f"value of {length} bytes runs past the window", value_start)

    if type_tag in TERMINATED_TYPES:
        nul = buf.find(b"\x00", value_start, value_end)
        if nul != value_end - 1:
            measured = (nul - value_start + 1) if nul >= 0 else None
            raise DatumFormatError(
                f"{TYPE_NAMES[type_tag]} value terminated at {measured}, declared {length}",
                value_start,
            )

    return _Fields(name_end, type_tag, value_start, length)


def scan_datum(buf: bytes, start: int = 0, end: int | None = None) -> int:
    """Return the bytes consumed by the datum at ``start``, or 0 if it is malformed."""
    if end is None:
        end = len(buf)
    try:
        f = _scan(buf, start, end)
    except DatumFormatError:
        return 0
    return f.value_start + f.length - start


def decode_datum(buf: bytes, start: int = 0, end: int | None = None) -> Datum:
    """Decode the datum at ``start``. Raises DatumFormatError on any rule violation.

    Children of STRUCT and STRUCT_LIST datums are not decoded here; see
    ``sds_recover.validator``.
    """
    if end is None:
        end = len(buf)
    f = _scan(buf, start, end)
    value_end = f.value_start + f.length
    return Datum(
        name=buf[start:f.name_end].decode("latin-1"),
        type_tag=f.type_tag,
        length=f.length,
        value=memoryview(buf)[f.value_start:value_end],
        offset=start,
        consumed=value_end - start,
    )
