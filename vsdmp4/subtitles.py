"""Subtitle cues and their rendering as WebVTT or SubRip."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterable


@dataclass
class Cue:
    """A single subtitle cue; times are in seconds."""

    start_time: float
    end_time: float
    payload: str
    settings: str = ""
    id: str = ""


class Subtitles:
    """A list of cues with empty and duplicate neighbours folded away."""

    def __init__(self, cues: Iterable[Cue] = ()) -> None:
        self._cues: list[Cue] = []
        for cue in cues:
            if not cue.payload or cue.start_time == cue.end_time:
                continue
            if self._cues:
                last = self._cues[-1]
                if (
                    last.end_time == cue.start_time
                    and last.settings == cue.settings
                    and last.payload == cue.payload
                ):
                    last.end_time = cue.end_time
                    continue
            self._cues.append(dataclasses.replace(cue))

    @property
    def cues(self) -> list[Cue]:
        return list(self._cues)

    def extend(self, other: "Subtitles") -> None:
        """Append the cues of ``other``."""
        self._cues.extend(other._cues)

    def as_vtt(self) -> str:
        """Render as WebVTT."""
        parts = ["WEBVTT\n\n"]
        for cue in self._cues:
            parts.append(
                f"{seconds_to_timestamp(cue.start_time, '.')} --> "
                f"{seconds_to_timestamp(cue.end_time, '.')} {cue.settings}\n"
                f"{cue.payload}\n\n"
            )
        return "".join(parts)

    def as_srt(self) -> str:
        """Render as SubRip."""
        return "".join(
            f"{number}\n{seconds_to_timestamp(cue.start_time, ',')} --> "
            f"{seconds_to_timestamp(cue.end_time, ',')}\n{cue.payload}\n\n"
            for number, cue in enumerate(self._cues, start=1)
        )


def seconds_to_timestamp(seconds: float, millisecond_sep: str) -> str:
    """Format seconds as ``HH:MM:SS<sep>mmm``; negative values clamp to zero."""
    total_ms = max(0, int(seconds * 1000.0))
    total_seconds, milliseconds = divmod(total_ms, 1000)
    minutes, secs = divmod(total_seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02}:{minutes:02}:{secs:02}{millisecond_sep}{milliseconds:03}"