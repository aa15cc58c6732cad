"""Query an offset index - list untrusted byte ranges and the records around them."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python query.py <index_dir> [kind]")
        print("Example: python query.py index/ data_corrupt")
        sys.exit(1)

    index = Path(sys.argv[1])
    kind = sys.argv[2] if len(sys.argv) > 2 else None

    con = duckdb.connect(":memory:")

    con.execute(f"CREATE VIEW records AS SELECT * FROM '{index}/records.parquet'")
    con.execute(f"CREATE VIEW corruption AS SELECT * FROM '{index}/corruption.parquet'")

    # Each corruption event with the last good record before it
    sql = """
    SELECT
        c.kind,
        c.offset,
        c."end",
        c.detail,
        (SELECT max(r.index) FROM records r WHERE r.offset < c.offset) AS prev_record
    FROM corruption c
    WHERE ? IS NULL OR c.kind = ?
    ORDER BY c.offset
    """

    print(f"--- Corruption events: {kind or 'all'} ---\n")

    df = con.execute(sql, [kind, kind]).fetchdf()
    if df.empty:
        print("No corruption recorded.")
    else:
        for _, row in df.iterrows():
            print(f"{row['kind'].upper()}: 0x{int(row['offset']):08x}-0x{int(row['end']):08x}")
            print(f"  After record: {row['prev_record']}")
            if row["detail"]:
                print(f"  Detail: {row['detail'][:80]}")
            print()


if __name__ == "__main__":
    main()
