"""Error type raised while parsing mp4 data."""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Category of a parsing error."""

    OTHER = "other"
    READ = "read"
    DECODE = "decode"


_PREFIXES = {
    ErrorKind.OTHER: "",
    ErrorKind.READ: "Cannot read ",
    ErrorKind.DECODE: "Cannot decode ",
}


class Mp4Error(Exception):
    """An error that may occur when parsing data."""

    def __init__(self, reason: str, kind: ErrorKind = ErrorKind.OTHER) -> None:
        super().__init__(reason)
        self.reason = reason
        self.kind = kind

    @classmethod
    def read_error(cls, reason: str) -> "Mp4Error":
        """Create an error for data that could not be read."""
        return cls(reason, ErrorKind.READ)

    @classmethod
    def decode_error(cls, reason: str) -> "Mp4Error":
        """Create an error for data that could not be decoded."""
        return cls(reason, ErrorKind.DECODE)

    def is_read_err(self) -> bool:
        return self.kind is ErrorKind.READ

    def is_decode_err(self) -> bool:
        return self.kind is ErrorKind.DECODE

    def __str__(self) -> str:
        return f"{_PREFIXES[self.kind]}{self.reason}."