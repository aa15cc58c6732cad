"""Recovery controller: one linear pass over an SDS capture.

The controller alternates between two states:

- SEARCHING: alignment is not trusted; every byte offset is probed.
- LOCKED: the previous record validated; advance record by record.

``run()`` yields RecoveredRecord items for the data stream and Diagnostic
items for the diagnostics stream, in file order. Nothing is printed here.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator, Union
from warnings import warn

from sds_core.errors import HeaderMismatch, IncompleteRecord, StreamError
from sds_core.protocol import DEFAULT_MAX_GARBAGE_BYTES, HDR_LEN, KNOWN_SPACERS

from .probe import ProbeResult, probe_header
from .reader import Record, read_record, read_window
from .scanner import Datum
from .validator import validate_record

# Diagnostic kinds
HEADER_CORRUPT = "header_corrupt"
RECOVERED = "recovered"
DATA_CORRUPT = "data_corrupt"
UNTRUSTED_SPAN = "untrusted_span"
UNKNOWN_SPACER = "unknown_spacer"
END = "end"
SUMMARY = "summary"

CORRUPTION_KINDS = frozenset({HEADER_CORRUPT, DATA_CORRUPT, UNTRUSTED_SPAN})


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    offset: int
    end: int | None = None
    # DATA_CORRUPT: payload-relative position of the first bad byte
    at: int | None = None
    count: int | None = None
    # UNKNOWN_SPACER: the spacer value seen
    value: int | None = None
    code: str | None = None
    detail: str = ""


@dataclass
class RecoveredRecord:
    index: int
    record: Record
    datums: list[Datum]


Event = Union[RecoveredRecord, Diagnostic]


@dataclass
class ScanState:
    file_size: int
    offset: int = 0
    locked: bool = False
    record_count: int = 0
    corruption_count: int = 0
    # Where the current SEARCHING episode began; None while LOCKED
    episode_start: int | None = 0
    # Corruption events already counted in the current episode
    episode_events: int = 0
    stats: dict = field(
        default_factory=lambda: {
            "records": 0,
            "corrupt_headers": 0,
            "corrupt_data": 0,
            "incomplete_records": 0,
            "suspect_headers": 0,
            "resyncs": 0,
            "garbage_bytes": 0,
            "unknown_spacers": Counter(),
        }
    )


class RecoveryController:
    """Scan a capture for SDS records, tolerating corruption and lost alignment."""

    def __init__(
        self,
        f: BinaryIO,
        file_size: int,
        spacers=KNOWN_SPACERS,
        max_garbage: int = DEFAULT_MAX_GARBAGE_BYTES,
    ):
        self.f = f
        self.file_size = int(file_size)
        self.spacers = frozenset(spacers)
        self.max_garbage = int(max_garbage)
        self.state = ScanState(file_size=self.file_size)

    def run(self) -> Iterator[Event]:
        self.state = state = ScanState(file_size=self.file_size)

        while state.offset < state.file_size:
            yield from self._step(state)

        # Trailing bytes that never locked
        yield from self._end_episode(state, state.file_size)

        yield Diagnostic(END, state.offset)
        yield Diagnostic(SUMMARY, state.offset, count=state.corruption_count)

    def get_scan_stats(self) -> dict:
        stats = dict(self.state.stats)
        stats["unknown_spacers"] = dict(stats["unknown_spacers"])
        stats["corruption_count"] = self.state.corruption_count
        return stats

    def _step(self, state: ScanState) -> Iterator[Event]:
        o = state.offset
        record = None
        try:
            probe = probe_header(read_window(self.f, o, HDR_LEN), o, state.file_size, self.spacers)
            if probe.accepted:
                record = read_record(self.f, probe.header, o, state.file_size)
            else:
                yield from self._note_rejected(state, o, probe)
                failure = HeaderMismatch(offset=o)
        except IncompleteRecord as e:
            state.stats["incomplete_records"] += 1
            failure = e
        except StreamError as e:
            failure = e

        if record is None:
            was_locked = state.locked
            self._search(state, o)
            if was_locked:
                state.stats["corrupt_headers"] += 1
                yield self._count(state, Diagnostic(HEADER_CORRUPT, o, code=failure.code, detail=failure.detail))
            state.offset = o + 1
            return

        result = validate_record(record)
        if result.valid:
            if not state.locked:
                yield from self._end_episode(state, o)
                yield Diagnostic(RECOVERED, o)
            state.locked = True
            yield RecoveredRecord(state.record_count, record, result.datums)
            state.record_count += 1
            state.stats["records"] += 1
            state.offset = record.end
            return

        state.stats["corrupt_data"] += 1
        self._search(state, o)
        yield self._count(
            state,
            Diagnostic(
                DATA_CORRUPT,
                o,
                at=result.bad_offset,
                count=result.trailing,
                code=result.error.code if result.error else None,
                detail=result.error.detail if result.error else "",
            ),
        )
        # Resume just after the last good byte, not after the declared record
        state.offset = record.end - result.trailing

    def _note_rejected(self, state: ScanState, o: int, probe: ProbeResult) -> Iterator[Event]:
        if probe.suspect:
            state.stats["suspect_headers"] += 1
        if probe.unknown_spacer:
            seen = state.stats["unknown_spacers"]
            spacer = probe.header.spacer
            seen[spacer] += 1
            if seen[spacer] == 1:
                warn(f"Unknown header spacer 0x{spacer:x} at offset 0x{o:08x}")
                yield Diagnostic(UNKNOWN_SPACER, o, value=spacer)

    def _search(self, state: ScanState, o: int) -> None:
        if state.episode_start is None:
            state.episode_start = o
            state.episode_events = 0
        state.locked = False

    def _count(self, state: ScanState, diag: Diagnostic) -> Diagnostic:
        state.corruption_count += 1
        state.episode_events += 1
        return diag

    def _end_episode(self, state: ScanState, o: int) -> Iterator[Event]:
        start = state.episode_start
        state.episode_start = None
        if start is None or o <= start:
            return

        span = o - start
        if state.episode_events == 0:
            # Leading bytes at file start: no event has been counted for them yet
            state.corruption_count += 1
        state.stats["resyncs"] += 1
        state.stats["garbage_bytes"] += span
        if span > self.max_garbage:
            warn(f"Large untrusted span during resync: {span} bytes at offset 0x{start:08x}")
        yield Diagnostic(UNTRUSTED_SPAN, start, end=o, count=span, code="E_UNTRUSTED")
