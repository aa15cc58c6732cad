import sys
from pathlib import Path


def main():
    if len(sys.argv) not in (2, 3):
        print("Usage: corrupt_one_byte.py <capture> [offset]")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    b = bytearray(p.read_bytes())
    if len(b) < 32:
        print("File too small to corrupt safely.")
        raise SystemExit(2)

    # Default: the trailer word of the first record header (bytes 12..15).
    # A non-zero trailer fails the header test, so the scan must resync.
    idx = int(sys.argv[2], 0) if len(sys.argv) == 3 else 12
    b[idx] ^= 0x01
    p.write_bytes(bytes(b))
    print(f"Corrupted 1 byte at offset {idx} in {p}")


if __name__ == "__main__":
    main()
