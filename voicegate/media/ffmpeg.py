"""Audio inputs decoded through ffmpeg, with channel detection through ffprobe."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import subprocess
from collections.abc import Sequence

from .codec import CodecType
from .container import Container
from .errors import InputError, JsonError, StreamsError
from .metadata import Metadata
from .reader import Reader
from .source import Input

__all__ = ["FFMPEG_COMMAND", "FFPROBE_COMMAND", "ffmpeg", "ffmpeg_optioned", "is_stereo"]

_log = logging.getLogger(__name__)

FFMPEG_COMMAND = "ffmpeg"
FFPROBE_COMMAND = "ffprobe"

_PROBE_ARGS = ("-v", "quiet", "-of", "json", "-show_format", "-show_streams", "-i")


def _output_args(stereo: bool) -> list[str]:
    return [
        "-f",
        "s16le",
        "-ac",
        "2" if stereo else "1",
        "-ar",
        "48000",
        "-acodec",
        "pcm_f32le",
        "-",
    ]


def _text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return ""


async def is_stereo(path: str | os.PathLike) -> tuple[bool, Metadata]:
    """Probe a file with ffprobe: whether it has two channels, and its metadata.

    Raises StreamsError if no channel count is found, JsonError on bad
    output, and OSError if ffprobe cannot be run.
    """
    proc = await asyncio.create_subprocess_exec(
        FFPROBE_COMMAND,
        *_PROBE_ARGS,
        os.fspath(path),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    stdout, _ = await proc.communicate()

    try:
        value = json.loads(stdout)
    except ValueError as exc:
        raise JsonError(exc, _text(stdout)) from exc

    metadata = Metadata.from_ffprobe_json(value)
    _log.debug("ffprobe metadata %r", metadata)

    if metadata.channels is None:
        raise StreamsError()
    return metadata.channels == 2, metadata


async def _stereo_or_default(path: str | os.PathLike) -> tuple[bool, Metadata]:
    # Probing fails for anything that is not a local file, such as a URL.
    try:
        return await is_stereo(path)
    except (InputError, OSError) as exc:
        _log.debug("Probe of %s failed: %r", path, exc)
        return False, Metadata()


async def ffmpeg(path: str | os.PathLike) -> Input:
    """Open an audio file through ffmpeg as a float PCM input; not seekable."""
    known = await _stereo_or_default(path)
    return await _ffmpeg_optioned(path, (), _output_args(known[0]), known)


async def ffmpeg_optioned(
    path: str | os.PathLike,
    pre_input_args: Sequence[str] = (),
    args: Sequence[str] = (),
) -> Input:
    """Open an audio file through ffmpeg with exactly the given arguments."""
    return await _ffmpeg_optioned(path, pre_input_args, args, None)


async def _ffmpeg_optioned(
    path: str | os.PathLike,
    pre_input_args: Sequence[str],
    args: Sequence[str],
    known: tuple[bool, Metadata] | None,
) -> Input:
    stereo, metadata = known if known is not None else await _stereo_or_default(path)

    process = subprocess.Popen(
        [FFMPEG_COMMAND, *pre_input_args, "-i", os.fspath(path), *args],
        stdin=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
    )

    return Input(
        stereo,
        Reader.from_children([process]),
        CodecType.FLOAT_PCM,
        Container.raw(),
        metadata,
    )