"""SDS Recover - heuristic record recovery for SDS captures."""
from .controller import Diagnostic, RecoveredRecord, RecoveryController, ScanState
from .probe import ProbeResult, RecordHeader, probe_header
from .reader import Record, read_record
from .scanner import Datum, decode_datum, scan_datum
from .validator import ValidationResult, validate_record, walk

__all__ = [
    "RecordHeader",
    "ProbeResult",
    "probe_header",
    "Record",
    "read_record",
    "Datum",
    "scan_datum",
    "decode_datum",
    "ValidationResult",
    "walk",
    "validate_record",
    "Diagnostic",
    "RecoveredRecord",
    "RecoveryController",
    "ScanState",
]
