import struct

import pytest

from vsdmp4.boxes import MdhdBox, TfdtBox, TfhdBox, TrunBox
from vsdmp4.errors import Mp4Error
from vsdmp4.reader import Reader


def _lang(code):
    a, b, c = (ord(ch) - 0x60 for ch in code)
    return (a << 10) | (b << 5) | c


def test_tfhd_all_fields():
    data = struct.pack(">IQIII", 7, 1000, 1, 512, 64)
    reader = Reader(data)
    box = TfhdBox.parse(reader, 0x1 | 0x2 | 0x8 | 0x10)
    assert box.track_id == 7
    assert box.base_data_offset == 1000
    assert box.default_sample_duration == 512
    assert box.default_sample_size == 64
    assert reader.position == reader.length


def test_tfhd_no_flags():
    box = TfhdBox.parse(Reader(struct.pack(">I", 3)), 0)
    assert box.track_id == 3
    assert box.default_sample_duration is None
    assert box.default_sample_size is None
    assert box.base_data_offset is None


def test_tfhd_truncated_raises_read_error():
    with pytest.raises(Mp4Error) as info:
        TfhdBox.parse(Reader(struct.pack(">I", 3)), 0x8)
    assert info.value.is_read_err()


@pytest.mark.parametrize("version,fmt", [(0, ">I"), (1, ">Q")])
def test_tfdt_versions(version, fmt):
    box = TfdtBox.parse(Reader(struct.pack(fmt, 90000)), version)
    assert box.base_media_decode_time == 90000


def test_tfdt_truncated():
    with pytest.raises(Mp4Error) as info:
        TfdtBox.parse(Reader(struct.pack(">I", 1)), 1)
    assert info.value.is_read_err()


def test_mdhd_version0():
    data = struct.pack(">IIIIH", 0, 0, 1000, 0, _lang("eng"))
    box = MdhdBox.parse(Reader(data), 0)
    assert box.timescale == 1000
    assert box.language == "eng"


def test_mdhd_version1():
    data = struct.pack(">QQIIH", 0, 0, 48000, 0, _lang("fra"))
    box = MdhdBox.parse(Reader(data), 1)
    assert box.timescale == 48000
    assert box.language == "fra"


def test_mdhd_truncated():
    with pytest.raises(Mp4Error) as info:
        MdhdBox.parse(Reader(struct.pack(">II", 0, 0)), 0)
    assert info.value.is_read_err()


def test_trun_full_version1():
    flags = 0x1 | 0x4 | 0x100 | 0x200 | 0x400 | 0x800
    data = struct.pack(">III", 2, 16, 0)
    data += struct.pack(">IIIi", 100, 20, 0, -5)
    data += struct.pack(">IIIi", 200, 30, 0, 7)
    box = TrunBox.parse(Reader(data), 1, flags)
    assert box.sample_count == 2
    assert box.data_offset == 16
    assert [s.sample_duration for s in box.sample_data] == [100, 200]
    assert [s.sample_size for s in box.sample_data] == [20, 30]
    assert [s.sample_composition_time_offset for s in box.sample_data] == [-5, 7]


def test_trun_version0_offset_reinterpreted_signed():
    data = struct.pack(">II", 1, 0xFFFFFFFF)
    box = TrunBox.parse(Reader(data), 0, 0x800)
    assert box.sample_data[0].sample_composition_time_offset == -1


def test_trun_no_sample_fields():
    box = TrunBox.parse(Reader(struct.pack(">I", 3)), 0, 0)
    assert box.sample_count == 3
    assert len(box.sample_data) == 3
    assert all(
        s.sample_duration is None and s.sample_size is None
        and s.sample_composition_time_offset is None
        for s in box.sample_data
    )
    assert box.data_offset is None


def test_trun_truncated():
    with pytest.raises(Mp4Error) as info:
        TrunBox.parse(Reader(struct.pack(">I", 2)), 0, 0x100)
    assert info.value.is_read_err()