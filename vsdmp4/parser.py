"""Callback-driven parser for mp4 box structures."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import Mp4Error
from .reader import Reader, ReaderError

BoxCallback = Callable[["ParsedBox"], None]


class BoxType(enum.Enum):
    """Whether a box carries a version/flags header."""

    BASIC_BOX = "basic"
    FULL_BOX = "full"


@dataclass
class ParsedBox:
    """A box handed to a callback."""

    name: str
    parser: "Mp4Parser"
    partial_okay: bool
    start: int
    size: int
    version: Optional[int]
    flags: Optional[int]
    reader: Reader
    has_64_bit_size: bool = False

    def header_size(self) -> int:
        """Size of the box header in bytes."""
        size = 8
        if self.has_64_bit_size:
            size += 8
        if self.flags is not None:
            size += 4
        return size


@dataclass
class Mp4Parser:
    """Parses mp4 boxes, dispatching registered box types to callbacks."""

    headers: dict = field(default_factory=dict)
    box_definitions: dict = field(default_factory=dict)
    done: bool = False

    def _register(self, name: str, kind: BoxType, definition: BoxCallback) -> "Mp4Parser":
        code = type_from_string(name)
        self.headers[code] = kind
        self.box_definitions[code] = definition
        return self

    def box(self, name: str, definition: BoxCallback) -> "Mp4Parser":
        """Declare a box type as a basic box."""
        return self._register(name, BoxType.BASIC_BOX, definition)

    def full_box(self, name: str, definition: BoxCallback) -> "Mp4Parser":
        """Declare a box type as a full box."""
        return self._register(name, BoxType.FULL_BOX, definition)

    def stop(self) -> None:
        """Stop parsing at the current level."""
        self.done = True

    def copy(self) -> "Mp4Parser":
        return Mp4Parser(dict(self.headers), dict(self.box_definitions), self.done)

    def parse(self, data: bytes, partial_okay: bool = False,
              stop_on_partial: bool = False) -> None:
        """Parse ``data`` using the registered callbacks."""
        reader = Reader(data)
        self.done = False
        while reader.has_more_data() and not self.done:
            self.parse_next(0, reader, partial_okay, stop_on_partial)

    def parse_next(self, abs_start: int, reader: Reader, partial_okay: bool = False,
                   stop_on_partial: bool = False) -> None:
        """Parse the next box on the current level."""
        start = reader.position
        length = reader.length

        if stop_on_partial and start + 8 > length:
            self.done = True
            return

        size = _read(reader.read_u32, "box size (u32)")
        code = _read(reader.read_u32, "box type (u32)")
        try:
            name = type_to_string(code)
        except UnicodeDecodeError:
            raise Mp4Error.decode_error(f"{code} (u32) to string") from None
        has_64_bit_size = False

        if size == 0:
            size = length - start
        elif size == 1:
            if stop_on_partial and reader.position + 8 > length:
                self.done = True
                return
            size = _read(reader.read_u64, "box size (u64)")
            has_64_bit_size = True

        definition = self.box_definitions.get(code)
        if definition is None:
            remaining = length - reader.position
            box_left = start + size - reader.position
            skip_length = remaining if box_left < 0 else min(box_left, remaining)
            try:
                reader.skip(skip_length)
            except ReaderError:
                raise Mp4Error.read_error(f"{skip_length} bytes") from None
            return

        version = flags = None
        if self.headers[code] is BoxType.FULL_BOX:
            if stop_on_partial and reader.position + 4 > length:
                self.done = True
                return
            version_and_flags = _read(reader.read_u32, "box version and flags (u32)")
            version = version_and_flags >> 24
            flags = version_and_flags & 0xFFFFFF

        end = start + size
        if partial_okay and end > length:
            end = length
        if stop_on_partial and end > length:
            self.done = True
            return

        payload_size = end - reader.position
        if payload_size != 0:
            try:
                payload = reader.read_bytes(payload_size)
            except ReaderError:
                raise Mp4Error.read_error(f"box payload ({payload_size} bytes)") from None
        else:
            payload = b""

        definition(ParsedBox(
            name=name,
            parser=self.copy(),
            partial_okay=partial_okay,
            start=start + abs_start,
            size=size,
            version=version,
            flags=flags,
            reader=Reader(payload),
            has_64_bit_size=has_64_bit_size,
        ))


def _read(func: Callable[[], int], what: str) -> int:
    try:
        return func()
    except ReaderError:
        raise Mp4Error.read_error(what) from None


def children(box: ParsedBox) -> None:
    """Treat the body of a box as a series of boxes."""
    header_size = box.header_size()
    while box.reader.has_more_data() and not box.parser.done:
        box.parser.parse_next(box.start + header_size, box.reader, box.partial_okay)


def sample_description(box: ParsedBox) -> None:
    """Treat the body of a box as a counted list of child boxes."""
    header_size = box.header_size()
    count = _read(box.reader.read_u32, "sample description count (u32)")
    for _ in range(count):
        box.parser.parse_next(box.start + header_size, box.reader, box.partial_okay)
        if box.parser.done:
            break


def visual_sample_entry(box: ParsedBox) -> None:
    """Skip the 78 fixed bytes of a visual sample entry, then parse children."""
    header_size = box.header_size()
    try:
        box.reader.skip(78)
    except ReaderError:
        raise Mp4Error.read_error("visual sample entry reserved 78 bytes") from None
    while box.reader.has_more_data() and not box.parser.done:
        box.parser.parse_next(box.start + header_size, box.reader, box.partial_okay)


def alldata(callback: Callable[[bytes], None]) -> BoxCallback:
    """Create a box callback that passes the whole remaining body to ``callback``."""

    def handle(box: ParsedBox) -> None:
        remaining = box.reader.length - box.reader.position
        try:
            data = box.reader.read_bytes(remaining)
        except ReaderError:
            raise Mp4Error.read_error(f"all data {remaining} bytes") from None
        callback(data)

    return handle


def type_from_string(name: str) -> int:
    """Convert a four-character box name to its integer code."""
    if len(name.encode("utf-8")) != 4:
        raise ValueError("MP4 box names must be 4 characters long")
    code = 0
    for char in name:
        code = (code << 8) | ord(char)
    return code


def type_to_string(code: int) -> str:
    """Convert an integer box code to its four-character name."""
    raw = bytes((code >> shift) & 0xFF for shift in (24, 16, 8, 0))
    return raw.decode("utf-8")