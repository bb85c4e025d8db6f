"""TTML document parsing into subtitle cues."""

from __future__ import annotations

from dataclasses import dataclass, field
from xml.etree import ElementTree
from xml.parsers import expat
from xml.sax.saxutils import escape

from .subtitles import Cue, Subtitles

_BREAKS = ("<br></br>", "<br/>", "<br />")
_PAYLOAD_TAGS = (
    ("{b}", "<b>"),
    ("{/b}", "</b>"),
    ("{i}", "<i>"),
    ("{/i}", "</i>"),
    ("{u}", "<u>"),
    ("{/u}", "</u>"),
    ("{font", "<font"),
    ("{/font}", "</font>"),
)


@dataclass
class Paragraph:
    """A timed ``p`` element."""

    begin: str
    end: str
    value: str


@dataclass
class Div:
    paragraphs: list[Paragraph] = field(default_factory=list)


@dataclass
class Body:
    divs: list[Div] = field(default_factory=list)


@dataclass
class TT:
    """A parsed TTML document."""

    body: Body

    def into_cues(self) -> list[Cue]:
        """Turn every paragraph into a cue; raises ValueError on bad times."""
        cues = []
        for div in self.body.divs:
            for paragraph in div.paragraphs:
                payload = paragraph.value
                for placeholder, tag in _PAYLOAD_TAGS:
                    payload = payload.replace(placeholder, tag)
                cues.append(Cue(
                    start_time=parse_duration(paragraph.begin),
                    end_time=parse_duration(paragraph.end),
                    payload=payload,
                ))
        return cues

    def into_subtitles(self) -> Subtitles:
        return Subtitles(self.into_cues())


def _local(name: str) -> str:
    return name.rsplit(":", 1)[-1]


def _parse_tree(text: str) -> ElementTree.Element:
    builder = ElementTree.TreeBuilder()
    parser = expat.ParserCreate()
    parser.StartElementHandler = lambda name, attrs: builder.start(
        _local(name), {_local(k): v for k, v in attrs.items()}
    )
    parser.EndElementHandler = lambda name: builder.end(_local(name))
    parser.CharacterDataHandler = builder.data
    try:
        parser.Parse(text, True)
    except expat.ExpatError as exc:
        raise ValueError(f"invalid xml: {exc}") from None
    return builder.close()


def _inner(element: ElementTree.Element, escaped: bool = False) -> str:
    def text(value: str | None) -> str:
        value = value or ""
        return escape(value) if escaped else value

    parts = [text(element.text)]
    for child in element:
        attrs = "".join(
            f' {key}="{escape(value, {chr(34): "&quot;"})}"'
            for key, value in child.attrib.items()
        )
        parts.append(f"<{child.tag}{attrs}>{_inner(child, escaped)}</{child.tag}>")
        parts.append(text(child.tail))
    return "".join(parts)


def _format_span(fragment: str) -> str:
    span = _parse_tree(fragment)
    value = _inner(span, escaped=True).strip()
    attrs = span.attrib

    if attrs.get("fontWeight") == "bold":
        value = f"{{b}}{value}{{/b}}"
    if attrs.get("fontStyle") == "italic":
        value = f"{{i}}{value}{{/i}}"
    if attrs.get("textDecoration") == "underline":
        value = f"{{u}}{value}{{/u}}"
    color = attrs.get("color")
    if color is not None:
        quoted = escape(color, {'"': "&quot;"})
        value = f'{{font color="{quoted}">{value}{{/font}}'
        value = f'<font color="{quoted}">{value}</font>'
    return value


def _flatten_spans(xml: str) -> str:
    while True:
        start = xml.find("<span")
        end = xml.find("span>")
        if start == -1 or end == -1:
            return xml
        match = xml[start:end + 5]
        sub_span = xml[start + 5:end + 5]
        sub_start = sub_span.find("<span")
        sub_end = sub_span.find("span>")
        if sub_start != -1 and sub_end != -1:
            match = sub_span[sub_start:sub_end + 5]
        xml = xml.replace(match, _format_span(match))


def parse(xml: str) -> TT:
    """Parse TTML text; raises ValueError when it is not usable TTML."""
    for br in _BREAKS:
        xml = xml.replace(br, "\n")
    root = _parse_tree(_flatten_spans(xml))

    body_element = root.find("body")
    if body_element is None:
        raise ValueError("missing field `body`")

    divs = []
    for div_element in body_element.findall("div"):
        paragraphs = []
        for p in div_element.findall("p"):
            try:
                begin, end = p.attrib["begin"], p.attrib["end"]
            except KeyError as exc:
                raise ValueError(f"missing field `@{exc.args[0]}`") from None
            paragraphs.append(Paragraph(begin, end, _inner(p).strip()))
        divs.append(Div(paragraphs))
    return TT(Body(divs))


def parse_duration(duration: str) -> float:
    """Convert a TTML time expression to seconds."""
    cleaned = duration.replace("s", "").replace(",", ".")
    parts = cleaned.split(":")
    is_frame = len(parts) >= 4
    remaining = iter(reversed(parts))
    total = 0.0

    def number(text: str) -> float:
        try:
            return float(text)
        except ValueError:
            raise ValueError(f"could not convert {duration!r} to seconds") from None

    if is_frame:
        value = next(remaining, None)
        if value is not None:
            total += number(value) / 1000.0
    for scale in (1.0, 60.0, 3600.0):
        value = next(remaining, None)
        if value is None:
            break
        total += number(value) * scale
    return total