import pytest

from vsdmp4.errors import ErrorKind, Mp4Error


def test_plain_error_message():
    err = Mp4Error("STPP box not found")
    assert str(err) == "STPP box not found."
    assert err.kind is ErrorKind.OTHER
    assert not err.is_read_err()
    assert not err.is_decode_err()


def test_read_error_message():
    err = Mp4Error.read_error("box size (u32)")
    assert str(err) == "Cannot read box size (u32)."
    assert err.is_read_err()
    assert not err.is_decode_err()


def test_decode_error_message():
    err = Mp4Error.decode_error("payload name as valid utf-8 data")
    assert str(err) == "Cannot decode payload name as valid utf-8 data."
    assert err.is_decode_err()
    assert not err.is_read_err()


def test_error_is_raisable():
    err = Mp4Error.read_error("x")
    assert err.reason == "x"
    with pytest.raises(Mp4Error, match=r"^Cannot read x\.$") as info:
        raise err
    assert info.value.is_read_err()