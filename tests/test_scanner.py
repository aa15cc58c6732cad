import pytest

from sds_core.encode import pack_datum, pack_struct
from sds_core.errors import DatumFormatError
from sds_core.protocol import SDS_BASE64, SDS_CHAR, SDS_INT, SDS_STRING, SDS_VOID
from sds_recover.scanner import atoi, decode_datum, scan_datum


def test_minimal_datum_round_trip():
    buf = pack_datum("a", SDS_INT, "7")
    assert buf == b"a\x001\x002\x007\x00"
    assert scan_datum(buf) == len(buf)

    d = decode_datum(buf)
    assert d.name == "a"
    assert d.type_tag == SDS_INT
    assert d.type_name == "INT"
    assert d.length == 2
    assert d.value.tobytes() == b"7\x00"
    assert d.text() == "7"
    assert d.offset == 0
    assert d.consumed == len(buf)
    assert d.children == []


def test_scan_is_deterministic():
    buf = pack_datum("label", SDS_STRING, "hello") + b"\xff" * 3
    first = scan_datum(buf)
    assert first == len(buf) - 3
    assert all(scan_datum(buf) == first for _ in range(5))
    assert scan_datum(b"\xff" * 8) == scan_datum(b"\xff" * 8) == 0


def test_value_is_a_view_into_the_buffer():
    buf = pack_datum("label", SDS_STRING, "hello")
    d = decode_datum(buf)
    assert isinstance(d.value, memoryview)
    assert d.value.obj is buf


def test_scan_at_offset_within_window():
    first = pack_datum("a", SDS_INT, "1")
    second = pack_datum("b", SDS_STRING, "xyz")
    buf = first + second
    assert scan_datum(buf, len(first)) == len(second)
    d = decode_datum(buf, len(first))
    assert d.offset == len(first)
    assert d.text() == "xyz"


@pytest.mark.parametrize("type_text", [b"5", b"28", b"99", b"abc", b"-1", b"0"])
def test_rejects_unknown_types(type_text):
    buf = b"a\x00" + type_text + b"\x002\x007\x00"
    assert scan_datum(buf) == 0


def test_type_parses_like_atoi():
    buf = b"a\x00 7xyz\x002\x00x\x00"
    assert scan_datum(buf) == len(buf)
    assert decode_datum(buf).type_tag == SDS_STRING


@pytest.mark.parametrize("length_text", [b"0", b"-2", b"x"])
def test_rejects_non_positive_length(length_text):
    buf = b"a\x001\x00" + length_text + b"\x007\x00"
    assert scan_datum(buf) == 0


def test_out_of_bounds_guard():
    # Declares 9 value bytes, the window holds 4
    buf = b"a\x007\x009\x00abc\x00" + b"def\x00" * 4
    assert scan_datum(buf, 0, 10) == 0
    with pytest.raises(DatumFormatError, match="length 9"):
        decode_datum(buf, 0, 10)


def test_value_past_window_end_fails_even_if_buffer_continues():
    buf = pack_datum("n", SDS_STRING, "abc")
    assert scan_datum(buf + b"\x00" * 8, 0, len(buf) - 1) == 0
    assert scan_datum(buf + b"\x00" * 8, 0, len(buf)) == len(buf)


def test_window_outside_buffer_is_a_caller_error():
    with pytest.raises(ValueError):
        scan_datum(b"a\x00", 0, 10)


def test_terminated_length_must_match_declared():
    buf = b"n\x007\x004\x00a\x00bc"
    assert scan_datum(buf) == 0
    with pytest.raises(DatumFormatError, match="terminated at 2, declared 4"):
        decode_datum(buf)


def test_unterminated_value_fails_for_text_types():
    buf = b"n\x001\x004\x001234" + b"\x00"
    assert scan_datum(buf, 0, len(buf) - 1) == 0


@pytest.mark.parametrize("type_code", [SDS_CHAR, SDS_VOID, SDS_BASE64])
def test_exempt_types_may_embed_nul(type_code):
    buf = pack_datum("n", type_code, b"a\x00bc")
    assert scan_datum(buf) == len(buf)
    assert decode_datum(buf).value.tobytes() == b"a\x00bc"


def test_unterminated_name_fails():
    assert scan_datum(b"abcdef") == 0
    with pytest.raises(DatumFormatError, match="name"):
        decode_datum(b"abcdef")


def test_length_text_capped_by_declared_length():
    # "00002" parses to 2 but runs past the 3-byte window the length allows
    assert scan_datum(b"a\x001\x0000002\x007\x00" + b"\x00" * 8) == 0


def test_nested_children_are_not_decoded_by_the_scanner():
    buf = pack_struct("s", [pack_datum("a", SDS_INT, "1")])
    d = decode_datum(buf)
    assert d.is_nested
    assert d.children == []


def test_atoi():
    assert atoi(b"12") == 12
    assert atoi(b"  -3x") == -3
    assert atoi(b"x1") == 0
    assert atoi(b"") == 0
