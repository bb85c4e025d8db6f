"""PSSH box parsing: system ids and key ids."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, ClassVar

from . import playready
from .errors import Mp4Error
from .parser import Mp4Parser, ParsedBox, children
from .reader import ReaderError

COMMON_SYSTEM_ID = "1077efecc0b24d02ace33c1e52e2fb4b"
PLAYREADY_SYSTEM_ID = "9a04f07998404286ab92e65be0885f95"
WIDEVINE_SYSTEM_ID = "edef8ba979d64acea3c827dcd51d21ed"


def _read(func: Callable[[], int], what: str) -> int:
    try:
        return func()
    except ReaderError:
        raise Mp4Error.read_error(what) from None


@dataclass(frozen=True)
class KeyIdSystemType:
    """The DRM system a key id was found for; other systems carry their id."""

    label: str

    COMMON: ClassVar["KeyIdSystemType"]
    PLAYREADY: ClassVar["KeyIdSystemType"]
    WIDEVINE: ClassVar["KeyIdSystemType"]

    @classmethod
    def other(cls, system_id: str) -> "KeyIdSystemType":
        return cls(system_id)

    def __str__(self) -> str:
        return self.label


KeyIdSystemType.COMMON = KeyIdSystemType("comman")
KeyIdSystemType.PLAYREADY = KeyIdSystemType("playready")
KeyIdSystemType.WIDEVINE = KeyIdSystemType("widevine")


@dataclass(frozen=True)
class KeyId:
    """A key id (hex) parsed from a pssh box."""

    system_type: KeyIdSystemType
    value: str

    def uuid(self) -> str:
        """The key id written as a dashed UUID."""
        value = self.value
        if len(value) < 20:
            raise ValueError(f"key id {value!r} is too short for a uuid")
        return f"{value[:8]}-{value[8:12]}-{value[12:16]}-{value[16:20]}-{value[20:]}"


@dataclass
class Pssh:
    """Key ids and system ids (hex) collected from the pssh boxes of an mp4."""

    key_ids: list[KeyId] = field(default_factory=list)
    system_ids: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, data: bytes) -> "Pssh":
        """Collect every pssh box in ``data``; key ids are de-duplicated by value."""
        found = cls()
        (
            Mp4Parser()
            .box("moov", children)
            .box("moof", children)
            .full_box("pssh", found._parse_pssh_box)
            .parse(data)
        )

        unique: dict[str, KeyId] = {}
        for key_id in found.key_ids:
            unique.setdefault(key_id.value, key_id)
        return cls(list(unique.values()), list(found.system_ids))

    def _parse_pssh_box(self, box: ParsedBox) -> None:
        if box.version is None:
            raise Mp4Error("PSSH boxes are full boxes and must have a valid version")
        if box.flags is None:
            raise Mp4Error("PSSH boxes are full boxes and must have a valid flag")
        if box.version > 1:
            return

        reader = box.reader
        try:
            system_id = reader.read_bytes(16).hex()
        except ReaderError:
            raise Mp4Error.read_error("PSSH box system id (16 bytes)") from None

        if box.version > 0:
            system_type = (
                KeyIdSystemType.COMMON
                if system_id == COMMON_SYSTEM_ID
                else KeyIdSystemType.other(system_id)
            )
            count = _read(reader.read_u32, "PSSH box number of key ids (u32)")
            for _ in range(count):
                try:
                    value = reader.read_bytes(16).hex()
                except ReaderError:
                    raise Mp4Error.read_error("PSSH box key id (16 bytes)") from None
                self.key_ids.append(KeyId(system_type, value))

        data_size = _read(reader.read_u32, "PSSH box data size (u32)")
        try:
            pssh_data = reader.read_bytes(data_size)
        except ReaderError:
            raise Mp4Error.read_error(f"PSSH box data ({data_size} bytes)") from None

        if system_id == PLAYREADY_SYSTEM_ID:
            self.key_ids.extend(
                KeyId(KeyIdSystemType.PLAYREADY, kid) for kid in playready.parse(pssh_data)
            )

        self.system_ids.append(system_id)