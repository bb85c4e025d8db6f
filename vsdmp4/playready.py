"""PlayReady object parsing for the data carried by PSSH boxes."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Callable, Optional
from xml.etree import ElementTree

from .errors import Mp4Error
from .reader import Reader, ReaderError

_WRM_HEADER_RECORD = 1
_IGNORED_RECORDS = (2, 3)


def _read(func: Callable[[], int], what: str) -> int:
    try:
        return func()
    except ReaderError:
        raise Mp4Error.read_error(what) from None


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ElementTree.Element, name: str) -> Optional[ElementTree.Element]:
    return next((child for child in element if _local(child.tag) == name), None)


def _kid_value(element: ElementTree.Element) -> str:
    value = element.attrib.get("VALUE")
    if value is None:
        raise ValueError("missing field `@VALUE`")
    return value


def _decode_kid(encoded: str) -> str:
    try:
        return base64.b64decode(encoded, validate=True).hex()
    except (binascii.Error, ValueError):
        raise Mp4Error.decode_error(
            f"PSSH box playready object key id {encoded} as valid base64 data"
        ) from None


@dataclass
class WrmHeader:
    """The parts of a WRMHEADER document that carry key ids (base64)."""

    version: str
    data_kid: Optional[str] = None
    protect_kid: Optional[str] = None
    protect_kids: Optional[list[str]] = None

    @classmethod
    def from_xml(cls, xml: str) -> "WrmHeader":
        """Read a WRMHEADER document; raises ValueError when it does not fit."""
        try:
            root = ElementTree.fromstring(xml.lstrip("\ufeff"))
        except (ElementTree.ParseError, ValueError) as exc:
            raise ValueError(f"invalid xml: {exc}") from None

        version = root.attrib.get("version")
        if version is None:
            raise ValueError("missing field `@version`")

        header = cls(version)
        data = _child(root, "DATA")
        if data is None:
            return header

        kid = _child(data, "KID")
        if kid is not None:
            header.data_kid = (kid.text or "").strip()

        protect_info = _child(data, "PROTECTINFO")
        if protect_info is not None:
            protect_kid = _child(protect_info, "KID")
            if protect_kid is not None:
                header.protect_kid = _kid_value(protect_kid)
            kids = _child(protect_info, "KIDS")
            if kids is not None:
                header.protect_kids = [
                    _kid_value(child) for child in kids if _local(child.tag) == "KID"
                ]
        return header

    def kids(self) -> list[str]:
        """Key ids in hex, chosen according to the header version."""
        encoded: list[str] = []
        if self.version == "4.0.0.0":
            if self.data_kid is not None:
                encoded.append(self.data_kid)
        elif self.version == "4.1.0.0":
            if self.protect_kid is not None:
                encoded.append(self.protect_kid)
        elif self.version in ("4.2.0.0", "4.3.0.0"):
            if self.protect_kid is not None:
                encoded.append(self.protect_kid)
            if self.protect_kids is not None:
                encoded.extend(self.protect_kids)
        else:
            raise Mp4Error(
                f"Unsupported PSSH box playready object header version v{self.version}"
            )
        return [_decode_kid(kid) for kid in encoded]


def parse(data: bytes) -> list[str]:
    """Return the key ids (hex) found in a PlayReady object."""
    reader = Reader(data, little_endian=True)
    size = _read(reader.read_u32, "PSSH box playready object size (u32)")
    if size != len(data):
        raise Mp4Error("Invalid length of PSSH box playready object")

    count = _read(reader.read_u16, "PSSH box playready object record count (u16)")
    kids: list[str] = []

    for _ in range(count):
        record_type = _read(reader.read_u16, "PSSH box playready object record type (u16)")
        record_len = _read(reader.read_u16, "PSSH box playready object record size (u16)")
        what = f"PSSH box playready object record data ({record_len} bytes)"
        if record_len % 2:
            raise Mp4Error.read_error(what)
        try:
            record = reader.read_bytes(record_len)
        except ReaderError:
            raise Mp4Error.read_error(what) from None

        if record_type == _WRM_HEADER_RECORD:
            try:
                xml = record.decode("utf-16-le")
            except UnicodeDecodeError:
                raise Mp4Error.decode_error(
                    "PSSH box playready object record data as valid utf-16 data "
                    "(little endian)"
                ) from None
            try:
                header = WrmHeader.from_xml(xml)
            except ValueError as exc:
                raise Mp4Error.decode_error(
                    f"PSSH box playready object record data i.e. {xml}\n\n{exc}"
                ) from None
            kids.extend(header.kids())
        elif record_type not in _IGNORED_RECORDS:
            raise Mp4Error(f"Invalid PSSH box playready object record type {record_type}")

    if reader.has_more_data():
        raise Mp4Error.read_error("PSSH box extra data after playready object records")
    return kids