"""Command line entry: extract subtitles from mp4 and merge segments."""

from __future__ import annotations

import argparse
import enum
import glob
import os
import shutil
import subprocess
import sys
from typing import Iterable, Optional, Sequence

from .errors import Mp4Error
from .mp4ttml import Mp4TtmlParser
from .vtt import Mp4VttParser

_BUFFER_SIZE = 1024 * 1024 * 2
_CONCAT_FILE = "vsd-ffmpeg-concat.txt"


class Codec(enum.Enum):
    """Output format for extracted subtitles."""

    SUBRIP = "subrip"
    WEBVTT = "webvtt"


class MergeType(enum.Enum):
    """How segments are joined together."""

    BINARY = "binary"
    FFMPEG = "ffmpeg"


def extract(input_path: str | os.PathLike, codec: Codec = Codec.WEBVTT) -> str:
    """Read an mp4 holding a wvtt or stpp track and render its subtitles."""
    with open(input_path, "rb") as handle:
        data = handle.read()

    try:
        subtitles = Mp4VttParser.parse_init(data).parse_media(data)
    except Mp4Error as vtt_error:
        try:
            ttml = Mp4TtmlParser.parse_init(data)
        except Mp4Error:
            raise Mp4Error(
                "Cannot determine subtitles codec because neither WVTT nor STPP box is found"
            ) from vtt_error
        subtitles = ttml.parse_media(data)

    return subtitles.as_srt() if codec is Codec.SUBRIP else subtitles.as_vtt()


def _expand(patterns: Iterable[str]) -> list[str]:
    return [path for pattern in patterns for path in sorted(glob.glob(pattern))]


def merge(patterns: Sequence[str], output: str,
          merge_type: MergeType = MergeType.BINARY) -> None:
    """Join the files matched by ``patterns`` into ``output``."""
    files = _expand(patterns)
    if len(files) <= 1:
        raise ValueError("At least 2 files are required to merge together.")

    if merge_type is MergeType.BINARY:
        with open(output, "wb") as target:
            for path in files:
                with open(path, "rb") as source:
                    shutil.copyfileobj(source, target, _BUFFER_SIZE)
        return

    with open(_CONCAT_FILE, "w", encoding="utf-8") as concat:
        concat.writelines(f"file '{path}'\n" for path in files if path != output)

    status = subprocess.run([
        "ffmpeg", "-hide_banner", "-y", "-f", "concat", "-i", _CONCAT_FILE,
        "-c", "copy", output,
    ])
    if status.returncode != 0:
        raise RuntimeError(f"ffmpeg exited with code {status.returncode}.")
    os.remove(_CONCAT_FILE)


def _build_parser() -> argparse.ArgumentParser:
    color = argparse.ArgumentParser(add_help=False)
    color.add_argument("--color", choices=("auto", "always", "never"),
                       default=argparse.SUPPRESS, help="When to output colored text.")

    parser = argparse.ArgumentParser(prog="vsd", parents=[color])
    parser.set_defaults(color="auto")
    commands = parser.add_subparsers(dest="command", required=True)

    extract_cmd = commands.add_parser("extract", parents=[color],
                                      help="Extract subtitles from mp4 boxes.")
    extract_cmd.add_argument("input", help="Path of mp4 file which contains a WVTT or STPP box.")
    extract_cmd.add_argument("-c", "--codec", choices=[c.value for c in Codec],
                             default=Codec.WEBVTT.value, help="Codec for output subtitles.")

    merge_cmd = commands.add_parser("merge", parents=[color],
                                    help="Merge multiple segments to a single file.")
    merge_cmd.add_argument("files", nargs="+", help="Files (at least 2) to merge together.")
    merge_cmd.add_argument("-o", "--output", required=True, help="Path for merged output file.")
    merge_cmd.add_argument("-t", "--type", dest="merge_type",
                           choices=[m.value for m in MergeType],
                           default=MergeType.BINARY.value, help="Type of merge to be performed.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; returns the process exit status."""
    args = _build_parser().parse_args(argv)
    try:
        if args.command == "extract":
            sys.stdout.write(extract(args.input, Codec(args.codec)))
        else:
            merge(args.files, args.output, MergeType(args.merge_type))
    except (Mp4Error, ValueError, RuntimeError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())