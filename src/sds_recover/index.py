from __future__ import annotations

import hashlib
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from sds_core.protocol import HDR_LEN

from .controller import CORRUPTION_KINDS, DATA_CORRUPT, Diagnostic, RecoveredRecord

RECORDS_SCHEMA = pa.schema(
    [
        ("index", pa.int64()),
        ("offset", pa.int64()),
        ("header_id", pa.int64()),
        ("spacer", pa.int64()),
        ("size", pa.int64()),
        ("datum_count", pa.int32()),
        ("content_hash", pa.string()),
    ]
)

CORRUPTION_SCHEMA = pa.schema(
    [
        ("code", pa.string()),
        ("kind", pa.string()),
        ("offset", pa.int64()),
        ("end", pa.int64()),
        ("detail", pa.string()),
    ]
)


class OffsetIndex:
    """Offset index of a recovery run, written as Parquet for downstream tooling.

    - records.parquet: one row per recovered record.
    - corruption.parquet: one row per corruption event and untrusted span.
    """

    def __init__(self):
        self.records: list[dict] = []
        self.corruption: list[dict] = []

    def add(self, event) -> None:
        if isinstance(event, RecoveredRecord):
            self.add_record(event)
        elif isinstance(event, Diagnostic) and event.kind in CORRUPTION_KINDS:
            self.add_diagnostic(event)

    def add_record(self, rec: RecoveredRecord) -> None:
        r = rec.record
        self.records.append(
            {
                "index": int(rec.index),
                "offset": int(r.offset),
                "header_id": int(r.header_id),
                "spacer": int(r.spacer),
                "size": int(r.size),
                "datum_count": len(rec.datums),
                "content_hash": hashlib.sha256(r.payload).hexdigest(),
            }
        )

    def add_diagnostic(self, diag: Diagnostic) -> None:
        end = diag.end
        if end is None and diag.kind == DATA_CORRUPT:
            end = diag.offset + HDR_LEN + diag.at + diag.count
        elif end is None:
            end = diag.offset + HDR_LEN
        self.corruption.append(
            {
                "code": diag.code,
                "kind": diag.kind,
                "offset": int(diag.offset),
                "end": int(end),
                "detail": diag.detail,
            }
        )

    def write(self, out_path: Path) -> None:
        out_path = Path(out_path)
        out_path.mkdir(parents=True, exist_ok=True)
        _write_table(self.records, RECORDS_SCHEMA, out_path / "records.parquet", "offset")
        _write_table(self.corruption, CORRUPTION_SCHEMA, out_path / "corruption.parquet", "offset")


def _write_table(rows: list[dict], schema: pa.Schema, path: Path, sort_key: str) -> None:
    if not rows:
        pq.write_table(schema.empty_table(), path)
        return
    df = pd.DataFrame(rows).sort_values(sort_key, kind="stable")
    table = pa.Table.from_pandas(df, schema=schema, preserve_index=False)
    pq.write_table(table, path)
