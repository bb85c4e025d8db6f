"""Sequential reader over a byte buffer."""

from __future__ import annotations

import struct


class ReaderError(Exception):
    """Raised when a read or skip goes past the end of the data."""


class Reader:
    """Reads integers and byte runs from an in-memory buffer."""

    def __init__(self, data: bytes = b"", little_endian: bool = False) -> None:
        self._data = bytes(data)
        self._pos = 0
        self.little_endian = little_endian

    def has_more_data(self) -> bool:
        return self._pos < len(self._data)

    @property
    def length(self) -> int:
        return len(self._data)

    @property
    def position(self) -> int:
        return self._pos

    def _unpack(self, fmt: str, size: int) -> int:
        chunk = self.read_bytes(size)
        order = "<" if self.little_endian else ">"
        return struct.unpack(order + fmt, chunk)[0]

    def read_u16(self) -> int:
        return self._unpack("H", 2)

    def read_i32(self) -> int:
        return self._unpack("i", 4)

    def read_u32(self) -> int:
        return self._unpack("I", 4)

    def read_u64(self) -> int:
        return self._unpack("Q", 8)

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` bytes."""
        if count < 0 or self._pos + count > len(self._data):
            raise ReaderError("mp4reader: out of bounds")
        chunk = self._data[self._pos:self._pos + count]
        self._pos += count
        return chunk

    def read_u16_array(self, count: int) -> list[int]:
        """Read ``count`` bytes and interpret them as 16-bit units."""
        if count % 2:
            raise ReaderError("mp4reader: odd byte count for 16-bit units")
        chunk = self.read_bytes(count)
        order = "<" if self.little_endian else ">"
        return list(struct.unpack(f"{order}{count // 2}H", chunk))

    def skip(self, count: int) -> None:
        position = self._pos + count
        if count < 0 or position > len(self._data):
            raise ReaderError("mp4reader: out of bounds")
        self._pos = position