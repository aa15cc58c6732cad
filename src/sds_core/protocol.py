"""SDS container protocol constants.

Single source of truth for the on-disk header layout, datum type codes and
the heuristic bounds used while scanning. Scanner, recorder and tooling must
remain synchronized with this file.
"""

# Header: [HeaderId(4) | Spacer(4) | Size(4) | Trailer(4)] = 16 bytes, little-endian
HDR_FMT = "<4I"
HDR_LEN = 16

# The header identifier is at most this
HEADER_MAX = 8

# Datum type codes (decimal text in the datum's type field)
SDS_INT = 1
SDS_CHAR = 6
SDS_STRING = 7
SDS_FLOAT = 16
SDS_STRUCT = 21
SDS_VOID = 22
SDS_STRUCT_LIST = 24
SDS_BASE64 = 27

# All type codes are below this
TYPE_MAX = 28

TYPE_NAMES = {
    SDS_INT: "INT",
    SDS_CHAR: "CHAR",
    SDS_STRING: "STRING",
    SDS_FLOAT: "FLOAT",
    SDS_STRUCT: "STRUCT",
    SDS_VOID: "VOID",
    SDS_STRUCT_LIST: "STRUCT_LIST",
    SDS_BASE64: "BASE64",
}
KNOWN_TYPES = frozenset(TYPE_NAMES)

# Values of these types are text whose terminated length equals the declared length
TERMINATED_TYPES = frozenset({SDS_INT, SDS_STRING, SDS_FLOAT})

# Values of these types are nested datum sequences
NESTED_TYPES = frozenset({SDS_STRUCT, SDS_STRUCT_LIST})

# Spacer values observed next to valid data. The field is undocumented;
# extend via the CLI (--spacer) as new values are identified.
KNOWN_SPACERS = frozenset({0x0, 0x83FF, 0x7FF2, 0x2ABB})

# Untrusted span size above which a warning is raised
DEFAULT_MAX_GARBAGE_BYTES = 256 * 1024  # 256 KiB
