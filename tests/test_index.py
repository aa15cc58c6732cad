import hashlib
import io

import pyarrow.parquet as pq

from sds_core.encode import pack_datum, pack_header, pack_record
from sds_core.protocol import SDS_INT, SDS_STRING
from sds_recover.controller import RecoveryController
from sds_recover.index import CORRUPTION_SCHEMA, RECORDS_SCHEMA, OffsetIndex


def build_index(data: bytes) -> OffsetIndex:
    index = OffsetIndex()
    for event in RecoveryController(io.BytesIO(data), len(data)).run():
        index.add(event)
    return index


def test_index_rows(tmp_path):
    rec = pack_record([pack_datum("a", SDS_INT, "7")])
    damaged = pack_header(1, 0, 45) + pack_datum("name", SDS_STRING, "x" * 29) + b"\xff" * 5
    data = b"\xff" * 10 + rec + damaged + rec

    index = build_index(data)
    index.write(tmp_path)

    records = pq.read_table(tmp_path / "records.parquet")
    assert records.schema.equals(RECORDS_SCHEMA, check_metadata=False)
    df = records.to_pandas()
    assert df["offset"].tolist() == [10, 10 + len(rec) + len(damaged)]
    assert df["index"].tolist() == [0, 1]
    assert df["datum_count"].tolist() == [1, 1]
    assert df["content_hash"].iloc[0] == hashlib.sha256(rec[16:]).hexdigest()

    corruption = pq.read_table(tmp_path / "corruption.parquet").to_pandas()
    rows = list(zip(corruption["kind"], corruption["offset"], corruption["end"]))
    bad_at = 10 + len(rec)
    assert rows == [
        ("untrusted_span", 0, 10),
        ("data_corrupt", bad_at, bad_at + len(damaged)),
        ("untrusted_span", bad_at, bad_at + len(damaged)),
    ]
    assert corruption["code"].tolist() == ["E_UNTRUSTED", "E_DATUM", "E_UNTRUSTED"]


def test_empty_index_still_writes_tables(tmp_path):
    index = build_index(pack_record([pack_datum("a", SDS_INT, "7")]))
    assert index.corruption == []
    index.write(tmp_path / "idx")

    corruption = pq.read_table(tmp_path / "idx" / "corruption.parquet")
    assert corruption.num_rows == 0
    assert corruption.schema.equals(CORRUPTION_SCHEMA, check_metadata=False)
    assert pq.read_table(tmp_path / "idx" / "records.parquet").num_rows == 1
