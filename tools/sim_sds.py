import json
import random
import uuid
from pathlib import Path

from sds_core.encode import pack_datum, pack_record, pack_struct
from sds_core.protocol import (
    KNOWN_SPACERS,
    SDS_CHAR,
    SDS_FLOAT,
    SDS_INT,
    SDS_STRING,
    SDS_STRUCT_LIST,
    SDS_VOID,
)

# --- CONFIGURATION ---
DEFAULT_RECORDS = 20
LEADING_JUNK = 10
CHANNELS = ["ctrl", "aux", "telemetry", "diag", "status"]


def make_datums(rng, seq):
    """Datums for one synthetic record: scalars plus a nested block."""
    return [
        pack_datum("seq", SDS_INT, str(seq)),
        pack_datum("gain", SDS_FLOAT, f"{rng.uniform(0.0, 2.0):.4f}"),
        pack_datum("flag", SDS_CHAR, rng.choice([b"Y", b"N"])),
        pack_datum("mask", SDS_VOID, rng.randbytes(4)),
        pack_struct(
            "source",
            [
                pack_datum("rate", SDS_FLOAT, f"{rng.uniform(0.0, 1.0):.2f}"),
                pack_datum("port", SDS_STRING, rng.choice(["a0", "a1", "b0", "b1"])),
            ],
        ),
        pack_struct(
            "history",
            [pack_datum("t", SDS_INT, str(seq * 10 + i)) for i in range(2)],
            type_code=SDS_STRUCT_LIST,
        ),
        # Last, so tail damage lands in a terminated value
        pack_datum("channel", SDS_STRING, rng.choice(CHANNELS)),
    ]


def generate_capture(out_dir, records=DEFAULT_RECORDS, corrupt=False, seed=0):
    """Write capture.sds and capture.jsonl (one line per written record) under out_dir."""
    rng = random.Random(seed)
    cap_id = str(uuid.UUID(int=rng.getrandbits(128)))
    path = Path(out_dir) / f"capture-{cap_id[:8]}"
    path.mkdir(parents=True, exist_ok=True)

    spacers = sorted(KNOWN_SPACERS)
    damaged = {records // 2} if corrupt else set()

    print(f"Generating: {cap_id} (Corrupt={corrupt})")

    with open(path / "capture.sds", "wb") as f_cap, open(path / "capture.jsonl", "wb") as f_log:
        if corrupt:
            # Alignment lost before the first record
            f_cap.write(b"\xff" * LEADING_JUNK)

        for seq in range(records):
            blob = pack_record(make_datums(rng, seq), header_id=rng.randint(0, 8), spacer=rng.choice(spacers))
            status = "VALID"
            if seq in damaged:
                # Clobber the tail of the payload: the record no longer validates
                blob = blob[:-5] + b"\xff" * 5
                status = "DAMAGED"

            entry = {"seq": seq, "offset": f_cap.tell(), "length": len(blob), "status": status}
            f_cap.write(blob)
            f_log.write(json.dumps(entry, sort_keys=True).encode() + b"\n")

    print(f"GENERATED: {path}")
    return path


if __name__ == "__main__":
    import sys

    # Usage:
    #   python tools/sim_sds.py OUT_DIR [--records N] [--seed N] [--corrupt]
    args = [a for a in sys.argv[1:] if a]

    def pop_flag(arg_list: list[str], flag: str) -> tuple[bool, list[str]]:
        """Remove a boolean flag from an argv-style list."""
        if flag in arg_list:
            return True, [a for a in arg_list if a != flag]
        return False, arg_list

    def pop_int(arg_list: list[str], opt: str, default: int) -> tuple[int, list[str]]:
        if opt not in arg_list:
            return default, arg_list
        i = arg_list.index(opt)
        if i + 1 >= len(arg_list):
            raise SystemExit(f"{opt} requires a value")
        return int(arg_list[i + 1]), arg_list[:i] + arg_list[i + 2:]

    corrupt, args = pop_flag(args, "--corrupt")
    records, args = pop_int(args, "--records", DEFAULT_RECORDS)
    seed, args = pop_int(args, "--seed", 0)

    out = args[0] if len(args) > 0 else "captures"
    generate_capture(out, records=records, corrupt=corrupt, seed=seed)
