import struct

import pytest

from vsdmp4.reader import Reader, ReaderError


def test_big_endian_reads():
    data = struct.pack(">HIQi", 0x1234, 0xDEADBEEF, 2**40 + 5, -7)
    reader = Reader(data)
    assert reader.read_u16() == 0x1234
    assert reader.read_u32() == 0xDEADBEEF
    assert reader.read_u64() == 2**40 + 5
    assert reader.read_i32() == -7
    assert not reader.has_more_data()


def test_little_endian_reads():
    data = struct.pack("<HI", 0x0102, 0x01020304)
    reader = Reader(data, little_endian=True)
    assert reader.read_u16() == 0x0102
    assert reader.read_u32() == 0x01020304


def test_length_and_position():
    reader = Reader(b"abcdef")
    assert reader.length == 6
    assert reader.position == 0
    assert reader.read_bytes(4) == b"abcd"
    assert reader.position == 4
    assert reader.has_more_data()


def test_read_past_end_raises():
    reader = Reader(b"\x00\x01\x02")
    with pytest.raises(ReaderError):
        reader.read_u32()


def test_skip_bounds():
    reader = Reader(b"12345")
    reader.skip(5)
    assert reader.position == 5
    assert not reader.has_more_data()
    with pytest.raises(ReaderError):
        reader.skip(1)


def test_read_u16_array_endianness():
    data = struct.pack(">3H", 1, 2, 3)
    assert Reader(data).read_u16_array(6) == [1, 2, 3]
    le = struct.pack("<2H", 0x41, 0x42)
    assert Reader(le, little_endian=True).read_u16_array(4) == [0x41, 0x42]


def test_read_u16_array_odd_count_raises():
    with pytest.raises(ReaderError):
        Reader(b"abc").read_u16_array(3)


def test_empty_reader():
    reader = Reader()
    assert reader.length == 0
    assert not reader.has_more_data()
    assert reader.read_bytes(0) == b""