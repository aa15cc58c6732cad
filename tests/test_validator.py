from sds_core.encode import pack_datum, pack_struct
from sds_core.errors import DatumFormatError
from sds_core.protocol import SDS_FLOAT, SDS_INT, SDS_STRING, SDS_STRUCT_LIST, SDS_VOID
from sds_recover.reader import Record
from sds_recover.validator import validate_record, walk


def make_record(payload: bytes) -> Record:
    return Record(offset=0, header_id=1, spacer=0, size=len(payload), payload=payload)


def test_round_trip_record():
    fields = [
        ("seq", SDS_INT, "42"),
        ("label", SDS_STRING, "primary channel"),
        ("gain", SDS_FLOAT, "0.7500"),
    ]
    payload = b"".join(pack_datum(*f) for f in fields)
    result = validate_record(make_record(payload))

    assert result.valid
    assert result.trailing == 0
    assert result.error is None
    assert [(d.name, d.type_tag, d.length, d.text()) for d in result.datums] == [
        (name, type_code, len(text) + 1, text) for name, type_code, text in fields
    ]


def test_corruption_localization():
    good = pack_datum("name", SDS_STRING, "x" * 29)
    assert len(good) == 40
    payload = good + b"\xff" * 5
    assert len(payload) == 45

    result = walk(payload)
    assert result.trailing == 5
    assert result.bad_offset == 40
    assert len(result.datums) == 1
    assert isinstance(result.error, DatumFormatError)


def test_failure_stops_the_walk():
    payload = pack_datum("a", SDS_INT, "1") + b"junk\x00" + pack_datum("b", SDS_INT, "2")
    result = walk(payload)
    assert [d.name for d in result.datums] == ["a"]
    assert result.trailing == len(payload) - 8


def test_empty_payload_is_valid():
    result = walk(b"")
    assert result.valid
    assert result.datums == []


def test_nested_decode():
    children = [pack_datum("a", SDS_INT, "7"), pack_datum("b", SDS_STRING, "hi")]
    payload = pack_struct("s", children) + pack_datum("tail", SDS_INT, "1")
    result = walk(payload)

    assert result.valid
    s, tail = result.datums
    assert s.name == "s"
    assert s.nested_trailing == 0
    assert len(s.children) == 2
    assert [(c.name, c.type_tag, c.length, c.text()) for c in s.children] == [
        ("a", SDS_INT, 2, "7"),
        ("b", SDS_STRING, 3, "hi"),
    ]
    # Children are views into the same payload
    assert all(c.value.obj is payload for c in s.children)
    assert tail.name == "tail"


def test_struct_list_descends_like_struct():
    payload = pack_struct("l", [pack_datum("t", SDS_INT, "1")] * 3, type_code=SDS_STRUCT_LIST)
    result = walk(payload)
    assert result.valid
    assert len(result.datums[0].children) == 3


def test_nested_damage_does_not_fail_the_parent():
    payload = pack_struct("s", [pack_datum("a", SDS_INT, "7"), b"\xff\xff\xff"])
    result = walk(payload)
    assert result.valid
    (s,) = result.datums
    assert [c.name for c in s.children] == ["a"]
    assert s.nested_trailing == 3


def test_deep_nesting_does_not_exhaust_the_call_stack():
    depth = 2000
    blob = pack_datum("leaf", SDS_VOID, b"\x01\x00\x00\x00")
    for _ in range(depth):
        blob = pack_struct("s", [blob])

    result = walk(blob)
    assert result.valid

    node = result.datums[0]
    levels = 1
    while node.children:
        (node,) = node.children
        levels += 1
    assert levels == depth + 1
    assert node.name == "leaf"
