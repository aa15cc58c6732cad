"""Record validation: walk a payload datum by datum and find where it breaks."""
from __future__ import annotations

from dataclasses import dataclass

from sds_core.errors import DatumFormatError

from .reader import Record
from .scanner import Datum, decode_datum


@dataclass
class ValidationResult:
    datums: list[Datum]
    size: int
    # Bytes from the first undecodable datum to the end of the payload
    trailing: int
    error: DatumFormatError | None = None

    @property
    def valid(self) -> bool:
        return self.trailing == 0

    @property
    def bad_offset(self) -> int:
        """Payload-relative position where decoding stopped."""
        return self.size - self.trailing


@dataclass
class _Frame:
    children: list[Datum]
    cursor: int
    end: int
    owner: Datum | None = None
    error: DatumFormatError | None = None
    done: bool = False


def walk(payload: bytes, start: int = 0, end: int | None = None) -> ValidationResult:
    """Decode consecutive datums in ``payload[start:end]``.

    STRUCT and STRUCT_LIST values are walked as nested datum sequences
    bounded by their declared length, before the enclosing walk continues.
    Nesting uses an explicit stack, so depth is bounded only by the payload.
    A nested walk that stops early leaves its parent valid and records the
    undecoded count on the parent datum.
    """
    if end is None:
        end = len(payload)
    top = _Frame(children=[], cursor=start, end=end)
    stack = [top]

    while stack:
        frame = stack[-1]
        if frame.done or frame.cursor >= frame.end:
            stack.pop()
            if frame.owner is not None:
                frame.owner.nested_trailing = frame.end - frame.cursor
            continue

        try:
            datum = decode_datum(payload, frame.cursor, frame.end)
        except DatumFormatError as e:
            frame.error = e
            frame.done = True
            continue

        frame.children.append(datum)
        frame.cursor += datum.consumed
        if datum.is_nested:
            value_start = datum.offset + datum.consumed - datum.length
            stack.append(
                _Frame(
                    children=datum.children,
                    cursor=value_start,
                    end=value_start + datum.length,
                    owner=datum,
                )
            )

    return ValidationResult(
        datums=top.children,
        size=end - start,
        trailing=top.end - top.cursor,
        error=top.error,
    )


def validate_record(record: Record) -> ValidationResult:
    """Validate a record's payload; ``trailing == 0`` means fully valid."""
    return walk(record.payload)
