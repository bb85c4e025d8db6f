# vsdmp4

A small, dependency-free toolkit for working with fragmented MP4 data:

- a callback-driven MP4 box parser (`vsdmp4.parser.Mp4Parser`);
- extraction of key ids and system ids from `pssh` boxes, including the
  key ids held in PlayReady headers (`vsdmp4.pssh.Pssh`);
- extraction of WebVTT (`wvtt`) and TTML (`stpp`) subtitles carried in
  MP4 fragments, rendered as WebVTT or SubRip (`vsdmp4.subtitles.Subtitles`);
- a command line tool to extract subtitles and merge segment files.

## Installation

```
pip install .
```

## Command line

Extract subtitles from an MP4 file holding a `wvtt` or `stpp` track. The
initialization data and the media fragments are read from the same file, so
merge separate init and media segments first. The result is written to
standard output, as WebVTT by default:

```
vsdmp4 extract subtitles.mp4
vsdmp4 extract subtitles.mp4 --codec subrip
```

Merge segments into one file, either by plain byte concatenation (the
default) or through ffmpeg's concat demuxer (`ffmpeg` must be on `PATH`):

```
vsdmp4 merge "segments/*.m4s" --output merged.mp4
vsdmp4 merge "segments/*.ts" --output merged.mp4 --type ffmpeg
```

Each argument is a glob pattern; the matches of each pattern are taken in
sorted order. At least two files must match in total. The ffmpeg merge writes
a list file named `vsd-ffmpeg-concat.txt` in the current directory and removes
it when ffmpeg succeeds.

A `--color {auto,always,never}` option is accepted but does not change the
output. On failure the command prints `error: ...` to standard error and
exits with status 1.

## Library

Parse boxes with your own callbacks:

```python
from vsdmp4.parser import Mp4Parser, children

def on_mdat(box):
    print(box.name, box.size, box.start)

parser = Mp4Parser()
parser.box("moov", children)
parser.box("mdat", on_mdat)
parser.parse(data)
```

`full_box()` registers a box that carries a version and flags header, and
`sample_description`, `visual_sample_entry` and `alldata()` are ready-made
callbacks. Calling `box.parser.stop()` inside a callback ends parsing.

Read key ids from `pssh` boxes:

```python
from vsdmp4.pssh import Pssh

pssh = Pssh.parse(init_segment)
for key_id in pssh.key_ids:
    print(key_id.system_type, key_id.uuid())
print(pssh.system_ids)
```

Key ids are de-duplicated by value. They come from version 1 `pssh` boxes
and from PlayReady header records.

Extract WebVTT subtitles:

```python
from vsdmp4.vtt import Mp4VttParser

vtt = Mp4VttParser.parse_init(init_segment)
subtitles = vtt.parse_media(media_segment)
print(subtitles.as_vtt())
```

Extract TTML subtitles:

```python
from vsdmp4.mp4ttml import Mp4TtmlParser

ttml = Mp4TtmlParser.parse_init(init_segment)
print(ttml.parse_media(media_segment).as_srt())
```

`Subtitles` drops cues with no text or no duration, and joins a cue with the
one before it when they touch and have the same text and settings.
`Subtitles.extend()` appends the cues of another `Subtitles`.

Parsing failures raise `vsdmp4.errors.Mp4Error`; `is_read_err()` and
`is_decode_err()` tell truncated data apart from undecodable content.

## What it does not do

- It does not download HLS or DASH playlists or their segments.
- It does not decrypt encrypted streams; it only reports the key ids and
  system ids found in `pssh` boxes.
- Key ids inside Widevine `pssh` data are not read; the Widevine system id
  is still listed in `system_ids`.