"""Builders for well-formed SDS datums and records.

Used by the synthetic capture generator and the test suite. The scanner
never calls into this module.
"""
from __future__ import annotations

import struct

from .protocol import HDR_FMT, NESTED_TYPES, SDS_STRUCT, TERMINATED_TYPES


def _cstr(text: str | bytes) -> bytes:
    if isinstance(text, str):
        text = text.encode("latin-1")
    return text + b"\x00"


def pack_datum(name: str, type_code: int, value: str | bytes) -> bytes:
    """Encode one name/type/length/value group.

    Text values of INT, STRING and FLOAT are terminated here so their
    terminated length equals the declared length. Other types are written
    as given.
    """
    if isinstance(value, str):
        value = value.encode("latin-1")
    if type_code in TERMINATED_TYPES:
        value = _cstr(value)
    return _cstr(name) + _cstr(str(type_code)) + _cstr(str(len(value))) + value


def pack_struct(name: str, children: list[bytes], type_code: int = SDS_STRUCT) -> bytes:
    """Encode a STRUCT (or STRUCT_LIST) datum wrapping already-packed children."""
    if type_code not in NESTED_TYPES:
        raise ValueError(f"type {type_code} does not nest")
    return pack_datum(name, type_code, b"".join(children))


def pack_header(header_id: int, spacer: int, size: int, trailer: int = 0) -> bytes:
    return struct.pack(HDR_FMT, header_id, spacer, size, trailer)


def pack_record(datums: list[bytes], header_id: int = 1, spacer: int = 0) -> bytes:
    """Encode a full record: 16-byte header followed by the datum payload."""
    payload = b"".join(datums)
    return pack_header(header_id, spacer, len(payload)) + payload
