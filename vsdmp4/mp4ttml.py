"""Extraction of TTML subtitles carried in mp4 (stpp) tracks."""

from __future__ import annotations

from .errors import Mp4Error
from .parser import Mp4Parser, ParsedBox, alldata, children, sample_description
from .subtitles import Cue, Subtitles
from . import ttml


class Mp4TtmlParser:
    """Parses ttml subtitles from mp4 segments."""

    @classmethod
    def parse_init(cls, data: bytes) -> "Mp4TtmlParser":
        """Parse an initialization segment; an ``stpp`` box must be present."""
        saw_stpp = False

        def on_stpp(box: ParsedBox) -> None:
            nonlocal saw_stpp
            saw_stpp = True
            box.parser.stop()

        (
            Mp4Parser()
            .box("moov", children)
            .box("trak", children)
            .box("mdia", children)
            .box("minf", children)
            .box("stbl", children)
            .full_box("stsd", sample_description)
            .box("stpp", on_stpp)
            .parse(data)
        )

        if not saw_stpp:
            raise Mp4Error("STPP box not found")
        return cls()

    def parse_media(self, data: bytes) -> Subtitles:
        """Parse media segments holding ``mdat`` boxes of TTML documents."""
        saw_mdat = False
        cues: list[Cue] = []

        def on_mdat(payload: bytes) -> None:
            nonlocal saw_mdat
            saw_mdat = True
            try:
                xml = payload.decode("utf-8")
            except UnicodeDecodeError:
                raise Mp4Error.decode_error("MDAT box payload as valid utf-8 data") from None
            try:
                cues.extend(ttml.parse(xml).into_cues())
            except ValueError as exc:
                raise Mp4Error.decode_error(
                    f"xml string as ttml content.\n\n{xml}\n\n{exc}"
                ) from None

        Mp4Parser().box("mdat", alldata(on_mdat)).parse(data, partial_okay=False)

        if not saw_mdat:
            raise Mp4Error("MDAT box not found")
        return Subtitles(cues)