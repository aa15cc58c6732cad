"""Header probing: does a 16-byte window look like an SDS record header?"""
from __future__ import annotations

import struct
from dataclasses import dataclass

from sds_core.protocol import HDR_FMT, HDR_LEN, HEADER_MAX, KNOWN_SPACERS


@dataclass(frozen=True)
class RecordHeader:
    header_id: int
    spacer: int
    size: int
    trailer: int


@dataclass(frozen=True)
class ProbeResult:
    header: RecordHeader
    accepted: bool
    # Rejected, but close enough to a real header to be worth noting
    suspect: bool = False
    # Rejected only because the spacer is not in the allowlist
    unknown_spacer: bool = False


def unpack_header(window: bytes) -> RecordHeader:
    if len(window) != HDR_LEN:
        raise ValueError(f"header window must be {HDR_LEN} bytes, got {len(window)}")
    return RecordHeader(*struct.unpack(HDR_FMT, window))


def is_candidate(hdr: RecordHeader, spacers=KNOWN_SPACERS) -> bool:
    return hdr.header_id <= HEADER_MAX and hdr.spacer in spacers and hdr.trailer == 0


def probe_header(
    window: bytes,
    offset: int,
    file_size: int,
    spacers=KNOWN_SPACERS,
) -> ProbeResult:
    """Judge a header window read at ``offset`` of a file of ``file_size`` bytes.

    Only ``accepted`` decides anything. The suspect and unknown-spacer
    verdicts are informational; such windows are rejected all the same.
    """
    hdr = unpack_header(window)
    if is_candidate(hdr, spacers):
        return ProbeResult(hdr, accepted=True)

    suspect = (
        hdr.header_id < HEADER_MAX
        or hdr.size + offset < file_size
        or hdr.spacer in spacers
    )
    unknown_spacer = (
        hdr.header_id <= HEADER_MAX
        and hdr.trailer == 0
        and hdr.spacer not in spacers
        and offset + HDR_LEN + hdr.size <= file_size
    )
    return ProbeResult(hdr, accepted=False, suspect=suspect, unknown_spacer=unknown_spacer)
