"""Audio inputs streamed with youtube-dl and converted through ffmpeg."""

from __future__ import annotations

import asyncio
import json
import logging
import subprocess
from collections.abc import Sequence
from typing import Any

from .child import ChildContainer
from .codec import CodecType
from .container import Container
from .errors import JsonError, MetadataError, StdoutError
from .ffmpeg import FFMPEG_COMMAND
from .metadata import Metadata
from .reader import Reader
from .source import Input

__all__ = ["YOUTUBE_DL_COMMAND", "ytdl", "ytdl_search", "ytdl_metadata"]

_log = logging.getLogger(__name__)

YOUTUBE_DL_COMMAND = "youtube-dl"

_FORMAT = "webm[abr>0]/bestaudio/best"

_FFMPEG_ARGS = (
    "-f",
    "s16le",
    "-ac",
    "2",
    "-ar",
    "48000",
    "-acodec",
    "pcm_f32le",
    "-",
)


def _ytdl_args(json_flag: str, uri: str) -> list[str]:
    return [
        json_flag,
        "-f",
        _FORMAT,
        "-R",
        "infinite",
        "--no-playlist",
        "--ignore-config",
        "--no-warnings",
        uri,
        "-o",
        "-",
    ]


def _text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return ""


def _parse_json(data: bytes, whole: bytes) -> Any:
    try:
        return json.loads(data)
    except ValueError as exc:
        raise JsonError(exc, _text(whole)) from exc


async def ytdl(uri: str) -> Input:
    """Stream an online resource through youtube-dl and ffmpeg; not seekable."""
    return await _ytdl(uri, ())


async def _ytdl(uri: str, pre_args: Sequence[str]) -> Input:
    youtube_dl = subprocess.Popen(
        [YOUTUBE_DL_COMMAND, *_ytdl_args("--print-json", uri)],
        stdin=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        stdout=subprocess.PIPE,
    )

    try:
        try:
            line = await asyncio.to_thread(youtube_dl.stderr.readline)
        except (OSError, ValueError) as exc:
            raise MetadataError() from exc
        value = _parse_json(line, line)

        if youtube_dl.stdout is None:
            raise StdoutError()
        ffmpeg = subprocess.Popen(
            [FFMPEG_COMMAND, *pre_args, "-i", "-", *_FFMPEG_ARGS],
            stdin=youtube_dl.stdout,
            stderr=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
        )
    except BaseException:
        ChildContainer([youtube_dl]).close()
        if youtube_dl.stderr is not None:
            youtube_dl.stderr.close()
        raise

    # ffmpeg owns the pipe now; dropping our end lets a dead ffmpeg stop youtube-dl.
    youtube_dl.stdout.close()

    metadata = Metadata.from_ytdl_output(value)
    _log.debug("ytdl metadata %r", metadata)

    return Input(
        True,
        Reader.from_children([youtube_dl, ffmpeg]),
        CodecType.FLOAT_PCM,
        Container.raw(),
        metadata,
    )


async def ytdl_metadata(uri: str) -> Metadata:
    """Fetch only the metadata of an online resource through youtube-dl."""
    proc = await asyncio.create_subprocess_exec(
        YOUTUBE_DL_COMMAND,
        *_ytdl_args("-j", uri),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    _, stderr = await proc.communicate()

    first_line = stderr.split(b"\n", 1)[0]
    return Metadata.from_ytdl_output(_parse_json(first_line, stderr))


async def ytdl_search(name: str) -> Input:
    """Stream the first search result for `name` through youtube-dl and ffmpeg."""
    return await ytdl(f"ytsearch1:{name}")