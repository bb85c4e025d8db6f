"""Parsers for the fragment and media header boxes used by subtitle tracks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import Mp4Error
from .reader import Reader, ReaderError


def _read(func: Callable[[], int], what: str) -> int:
    try:
        return func()
    except ReaderError:
        raise Mp4Error.read_error(what) from None


def _skip(reader: Reader, count: int, what: str) -> None:
    try:
        reader.skip(count)
    except ReaderError:
        raise Mp4Error.read_error(what) from None


def _to_i32(value: int) -> int:
    return value - (1 << 32) if value >= 1 << 31 else value


@dataclass
class TfhdBox:
    """Track fragment header."""

    track_id: int
    default_sample_duration: Optional[int] = None
    default_sample_size: Optional[int] = None
    base_data_offset: Optional[int] = None

    @classmethod
    def parse(cls, reader: Reader, flags: int) -> "TfhdBox":
        """Parse a TFHD box payload."""
        track_id = _read(reader.read_u32, "TFHD box track id (u32)")
        base_data_offset = default_sample_duration = default_sample_size = None

        if flags & 0x000001:
            base_data_offset = _read(reader.read_u64, "TFHD box data offset (u64)")
        if flags & 0x000002:
            _skip(reader, 4, "TFHD box sample description index data (4 bytes)")
        if flags & 0x000008:
            default_sample_duration = _read(
                reader.read_u32, "TFHD box default sample duration (u32)"
            )
        if flags & 0x000010:
            default_sample_size = _read(reader.read_u32, "TFHD box default sample size (u32)")

        return cls(track_id, default_sample_duration, default_sample_size, base_data_offset)


@dataclass
class TfdtBox:
    """Track fragment decode time."""

    base_media_decode_time: int

    @classmethod
    def parse(cls, reader: Reader, version: int) -> "TfdtBox":
        """Parse a TFDT box payload."""
        if version == 1:
            value = _read(reader.read_u64, "TFDT box base media decode time (u64)")
        else:
            value = _read(reader.read_u32, "TFDT box base media decode time (u32)")
        return cls(value)


@dataclass
class MdhdBox:
    """Media header."""

    timescale: int
    language: str

    @classmethod
    def parse(cls, reader: Reader, version: int) -> "MdhdBox":
        """Parse an MDHD box payload."""
        width = 8 if version == 1 else 4
        _skip(reader, width, f"MDHD box creation time data ({width} bytes)")
        _skip(reader, width, f"MDHD box modification time data ({width} bytes)")
        timescale = _read(reader.read_u32, "MDHD box timescale (u32)")
        _skip(reader, 4, "MDHD box duration data (4 bytes)")
        language = _read(reader.read_u16, "MDHD box language data (u16)")

        # ISO-639-2/T code packed as three 5-bit offsets from 0x60.
        letters = (
            (language >> 10) + 0x60,
            ((language & 0x03C0) >> 5) + 0x60,
            (language & 0x1F) + 0x60,
        )
        return cls(timescale, "".join(map(chr, letters)))


@dataclass
class TrunSample:
    """Per-sample data from a TRUN box."""

    sample_duration: Optional[int] = None
    sample_size: Optional[int] = None
    sample_composition_time_offset: Optional[int] = None


@dataclass
class TrunBox:
    """Track fragment run."""

    sample_count: int
    sample_data: list[TrunSample] = field(default_factory=list)
    data_offset: Optional[int] = None

    @classmethod
    def parse(cls, reader: Reader, version: int, flags: int) -> "TrunBox":
        """Parse a TRUN box payload."""
        sample_count = _read(reader.read_u32, "TRUN box sample count (u32)")
        data_offset = None

        if flags & 0x000001:
            data_offset = _read(reader.read_u32, "TRUN box data offset (u32)")
        if flags & 0x000004:
            _skip(reader, 4, "TRUN box first sample flags (4 bytes)")

        samples = []
        for _ in range(sample_count):
            sample = TrunSample()
            if flags & 0x000100:
                sample.sample_duration = _read(reader.read_u32, "TRUN box sample duration (u32)")
            if flags & 0x000200:
                sample.sample_size = _read(reader.read_u32, "TRUN box sample size (u32)")
            if flags & 0x000400:
                _skip(reader, 4, "TRUN box sample flags (u32)")
            if flags & 0x000800:
                if version == 0:
                    sample.sample_composition_time_offset = _to_i32(
                        _read(reader.read_u32, "TRUN box sample time offset (u32)")
                    )
                else:
                    sample.sample_composition_time_offset = _read(
                        reader.read_i32, "TRUN box sample time offset (i32)"
                    )
            samples.append(sample)

        return cls(sample_count, samples, data_offset)