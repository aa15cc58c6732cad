"""SDS Core - Shared protocol constants, errors and encoders."""
from .encode import pack_datum, pack_header, pack_record, pack_struct
from .errors import (
    ERRORS,
    DatumFormatError,
    HeaderMismatch,
    IncompleteRecord,
    SdsError,
    StreamError,
)

__all__ = [
    "ERRORS",
    "SdsError",
    "StreamError",
    "HeaderMismatch",
    "IncompleteRecord",
    "DatumFormatError",
    "pack_datum",
    "pack_struct",
    "pack_header",
    "pack_record",
]
