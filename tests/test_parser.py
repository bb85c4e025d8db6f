import struct

import pytest

from vsdmp4.errors import Mp4Error
from vsdmp4.parser import (
    Mp4Parser,
    alldata,
    children,
    sample_description,
    type_from_string,
    type_to_string,
    visual_sample_entry,
)


def make_box(name: bytes, payload: bytes = b"") -> bytes:
    return struct.pack(">I", 8 + len(payload)) + name + payload


def make_full_box(name: bytes, version: int, flags: int, payload: bytes = b"") -> bytes:
    return make_box(name, struct.pack(">I", (version << 24) | flags) + payload)


def test_type_round_trip():
    for name in ("moov", "trak", "mdat", "stpp"):
        assert type_to_string(type_from_string(name)) == name
    assert type_from_string("abcd") == int.from_bytes(b"abcd", "big")


def test_type_from_string_requires_four_chars():
    with pytest.raises(ValueError):
        type_from_string("moo")


def test_basic_box_callback():
    seen = []
    Mp4Parser().box("free", lambda b: seen.append((b.name, b.reader.read_bytes(3), b.header_size()))).parse(
        make_box(b"free", b"xyz")
    )
    assert seen == [("free", b"xyz", 8)]


def test_full_box_version_and_flags():
    seen = []
    Mp4Parser().full_box("tfdt", lambda b: seen.append((b.version, b.flags, b.header_size()))).parse(
        make_full_box(b"tfdt", 1, 0x000203, b"\x00" * 8)
    )
    assert seen == [(1, 0x000203, 12)]


def test_unknown_boxes_are_skipped():
    seen = []
    data = make_box(b"skip", b"123456") + make_box(b"free", b"ab")
    Mp4Parser().box("free", alldata(seen.append)).parse(data)
    assert seen == [b"ab"]


def test_children_absolute_start():
    starts = []
    inner = make_box(b"trak", b"q")
    data = make_box(b"ftyp", b"abcd") + make_box(b"moov", inner)
    parser = Mp4Parser().box("moov", children).box("trak", lambda b: starts.append(b.start))
    parser.parse(data)
    ftyp_len = len(make_box(b"ftyp", b"abcd"))
    assert starts == [ftyp_len + 8]


def test_size_zero_extends_to_end():
    seen = []
    data = struct.pack(">I", 0) + b"mdat" + b"payload"
    Mp4Parser().box("mdat", lambda b: seen.append((b.size, b.reader.read_bytes(b.reader.length)))).parse(data)
    assert seen == [(len(data), b"payload")]


def test_64_bit_size():
    seen = []
    payload = b"hello"
    data = struct.pack(">I", 1) + b"mdat" + struct.pack(">Q", 16 + len(payload)) + payload
    Mp4Parser().box("mdat", lambda b: seen.append((b.has_64_bit_size, b.header_size(),
                                                   b.reader.read_bytes(len(payload))))).parse(data)
    assert seen == [(True, 16, payload)]


def test_truncated_box_raises_read_error():
    data = make_box(b"mdat", b"abcdef")[:-2]
    with pytest.raises(Mp4Error) as info:
        Mp4Parser().box("mdat", alldata(lambda d: None)).parse(data)
    assert info.value.is_read_err()


def test_partial_okay_truncates_payload():
    seen = []
    data = make_box(b"mdat", b"abcdef")[:-2]
    Mp4Parser().box("mdat", alldata(seen.append)).parse(data, partial_okay=True)
    assert seen == [b"abcd"]


def test_stop_on_partial_stops_quietly():
    seen = []
    data = make_box(b"free", b"x") + make_box(b"mdat", b"abcdef")[:-2]
    parser = Mp4Parser().box("free", alldata(seen.append)).box("mdat", alldata(seen.append))
    parser.parse(data, stop_on_partial=True)
    assert seen == [b"x"]
    assert parser.done


def test_invalid_box_type_is_decode_error():
    data = struct.pack(">I", 8) + b"\xff\xfe\xff\xfe"
    with pytest.raises(Mp4Error) as info:
        Mp4Parser().parse(data)
    assert info.value.is_decode_err()


def test_sample_description_respects_count():
    seen = []
    entries = make_box(b"wvtt") + make_box(b"wvtt")
    stsd = make_full_box(b"stsd", 0, 0, struct.pack(">I", 1) + entries)
    Mp4Parser().full_box("stsd", sample_description).box("wvtt", lambda b: seen.append(b.name)).parse(stsd)
    assert seen == ["wvtt"]


def test_visual_sample_entry_skips_fixed_fields():
    seen = []
    entry = make_box(b"avc1", b"\x00" * 78 + make_box(b"avcC", b"cfg"))
    Mp4Parser().box("avc1", visual_sample_entry).box("avcC", alldata(seen.append)).parse(entry)
    assert seen == [b"cfg"]


def test_visual_sample_entry_too_short():
    entry = make_box(b"avc1", b"\x00" * 10)
    with pytest.raises(Mp4Error) as info:
        Mp4Parser().box("avc1", visual_sample_entry).parse(entry)
    assert info.value.is_read_err()


def test_stop_and_parse_reset():
    parser = Mp4Parser()
    parser.stop()
    assert parser.done
    parser.parse(make_box(b"free"))
    assert not parser.done


def test_copy_is_independent():
    parser = Mp4Parser().box("free", lambda b: None)
    clone = parser.copy()
    clone.box("mdat", lambda b: None)
    clone.stop()
    assert type_from_string("mdat") not in parser.box_definitions
    assert type_from_string("free") in clone.box_definitions
    assert not parser.done


def test_callback_error_propagates():
    def fail(box):
        raise Mp4Error("bad box")

    with pytest.raises(Mp4Error, match="bad box"):
        Mp4Parser().box("free", fail).parse(make_box(b"free"))