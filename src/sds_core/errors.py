"""SDS error codes and exception taxonomy."""
from __future__ import annotations

ERRORS = {
    "E_STREAM": "Seek or read failed",
    "E_HEADER": "Header window failed the acceptance test",
    "E_INCOMPLETE": "Declared payload exceeds the readable bytes",
    "E_DATUM": "Datum field group is malformed",
    "E_UNTRUSTED": "Bytes skipped while searching for alignment",
}


class SdsError(ValueError):
    code = "E_HEADER"

    def __init__(self, detail: str = "", offset: int | None = None):
        self.detail = detail
        self.offset = offset
        msg = ERRORS[self.code]
        if detail:
            msg = f"{msg}: {detail}"
        if offset is not None:
            msg = f"{msg} (0x{offset:08x})"
        super().__init__(msg)


class StreamError(SdsError):
    code = "E_STREAM"


class HeaderMismatch(SdsError):
    code = "E_HEADER"


class IncompleteRecord(HeaderMismatch):
    code = "E_INCOMPLETE"


class DatumFormatError(SdsError):
    code = "E_DATUM"
