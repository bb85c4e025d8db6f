"""Extraction of WebVTT cues carried in mp4 (wvtt) tracks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .boxes import MdhdBox, TfdtBox, TfhdBox, TrunBox, TrunSample
from .errors import Mp4Error
from .parser import Mp4Parser, ParsedBox, alldata, children, sample_description, type_to_string
from .reader import Reader, ReaderError
from .subtitles import Cue, Subtitles


def _read(func: Callable[[], int], what: str) -> int:
    try:
        return func()
    except ReaderError:
        raise Mp4Error.read_error(what) from None


def _to_i32(value: int) -> int:
    return value - (1 << 32) if value >= 1 << 31 else value


@dataclass
class _MediaState:
    base_time: int = 0
    presentations: list[TrunSample] = field(default_factory=list)
    saw_tfdt: bool = False
    saw_trun: bool = False
    default_duration: Optional[int] = None
    cues: list[Cue] = field(default_factory=list)


class Mp4VttParser:
    """Parses vtt subtitles from mp4 segments."""

    def __init__(self, timescale: int) -> None:
        self.timescale = timescale

    @classmethod
    def parse_init(cls, data: bytes) -> "Mp4VttParser":
        """Parse an initialization segment; a ``wvtt`` box must be present."""
        saw_wvtt = False
        timescale: Optional[int] = None

        def on_mdhd(box: ParsedBox) -> None:
            nonlocal timescale
            if box.version not in (0, 1):
                raise Mp4Error("MDHD box version can only be 0 or 1")
            timescale = MdhdBox.parse(box.reader, box.version).timescale

        def on_wvtt(box: ParsedBox) -> None:
            nonlocal saw_wvtt
            saw_wvtt = True

        (
            Mp4Parser()
            .box("moov", children)
            .box("trak", children)
            .box("mdia", children)
            .full_box("mdhd", on_mdhd)
            .box("minf", children)
            .box("stbl", children)
            .full_box("stsd", sample_description)
            .box("wvtt", on_wvtt)
            .parse(data)
        )

        if not saw_wvtt:
            raise Mp4Error("WVTT box not found")
        if timescale is None:
            raise Mp4Error("Missing timescale (should exist inside MDHD box)")
        return cls(timescale)

    def parse_media(self, data: bytes, period_start: Optional[float] = None) -> Subtitles:
        """Parse media segments holding ``mdat`` boxes of vtt cues."""
        period_start = 0.0 if period_start is None else period_start
        state = _MediaState()
        timescale = self.timescale

        def on_tfdt(box: ParsedBox) -> None:
            state.saw_tfdt = True
            if box.version not in (0, 1):
                raise Mp4Error("TFDT version can only be 0 or 1")
            state.base_time = TfdtBox.parse(box.reader, box.version).base_media_decode_time

        def on_tfhd(box: ParsedBox) -> None:
            if box.flags is None:
                raise Mp4Error("TFHD box should have a valid flags value")
            state.default_duration = TfhdBox.parse(box.reader, box.flags).default_sample_duration

        def on_trun(box: ParsedBox) -> None:
            state.saw_trun = True
            if box.version is None:
                raise Mp4Error("TRUN box should have a valid version value")
            if box.flags is None:
                raise Mp4Error("TRUN box should have a valid flags value")
            state.presentations = TrunBox.parse(box.reader, box.version, box.flags).sample_data

        def on_mdat(payload: bytes) -> None:
            if not state.saw_tfdt and not state.saw_trun:
                raise Mp4Error("Some required boxes (either TFDT or TRUN) are missing")
            state.cues.extend(_parse_mdat(
                timescale,
                period_start,
                state.base_time,
                state.default_duration,
                state.presentations,
                payload,
            ))

        (
            Mp4Parser()
            .box("moof", children)
            .box("traf", children)
            .full_box("tfdt", on_tfdt)
            .full_box("tfhd", on_tfhd)
            .full_box("trun", on_trun)
            .box("mdat", alldata(on_mdat))
            .parse(data, partial_okay=False)
        )

        return Subtitles(state.cues)


def _parse_mdat(
    timescale: int,
    period_start: float,
    base_time: int,
    default_duration: Optional[int],
    presentations: list[TrunSample],
    raw_payload: bytes,
) -> list[Cue]:
    cues: list[Cue] = []
    current_time = base_time
    reader = Reader(raw_payload)

    for presentation in presentations:
        # One presentation spanning several payloads gives them all the same timing.
        duration = (
            presentation.sample_duration
            if presentation.sample_duration is not None
            else default_duration
        )
        if presentation.sample_composition_time_offset is not None:
            start_time = base_time + presentation.sample_composition_time_offset
        else:
            start_time = current_time
        current_time = start_time + (duration or 0)

        total_size = 0
        while True:
            payload_size = _to_i32(_read(reader.read_u32, "payload size (u32)"))
            total_size += payload_size
            payload_type = _read(reader.read_u32, "payload type (u32)")
            try:
                payload_name = type_to_string(payload_type)
            except UnicodeDecodeError:
                raise Mp4Error.decode_error("payload name as valid utf-8 data") from None

            payload = None
            body_size = payload_size - 8
            try:
                if payload_name == "vttc":
                    if payload_size > 8:
                        payload = reader.read_bytes(body_size)
                else:
                    # vtte (empty cue) or an unknown box: ignore its data.
                    reader.skip(body_size)
            except ReaderError:
                raise Mp4Error.read_error(f"payload data ({body_size} bytes)") from None

            if duration is None:
                raise Mp4Error("WVTT sample duration unknown, and no default found")
            if payload is not None:
                cue = parse_vttc(
                    payload,
                    period_start + start_time / timescale,
                    period_start + current_time / timescale,
                )
                if cue is not None:
                    cues.append(cue)

            sample_size = presentation.sample_size
            if sample_size is not None and total_size > sample_size:
                raise Mp4Error(
                    "The samples do not fit evenly into the sample sizes given in the TRUN box"
                )
            # Without a sample size a presentation holds a single cue.
            if sample_size is None or total_size >= sample_size:
                break

    if reader.has_more_data():
        raise Mp4Error(
            "MDAT which contain VTT cues and non-VTT data are not currently supported"
        )
    return cues


def parse_vttc(data: bytes, start_time: float, end_time: float) -> Optional[Cue]:
    """Parse a vttc box body into a cue, or None when it has no payload."""
    fields = {"payl": "", "iden": "", "sttg": ""}
    labels = {"payl": "payload", "iden": "id", "sttg": "setting"}

    def store(name: str) -> Callable[[bytes], None]:
        def handle(raw: bytes) -> None:
            try:
                fields[name] = raw.decode("utf-8")
            except UnicodeDecodeError:
                raise Mp4Error.decode_error(
                    f"VTTC box {labels[name]} as valid utf-8 data"
                ) from None

        return handle

    parser = Mp4Parser()
    for name in fields:
        parser.box(name, alldata(store(name)))
    parser.parse(data)

    if not fields["payl"]:
        return None
    return Cue(
        start_time=start_time,
        end_time=end_time,
        payload=fields["payl"],
        settings=fields["sttg"],
        id=fields["iden"],
    )