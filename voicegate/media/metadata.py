"""Descriptive information about an audio source."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, fields
from datetime import timedelta
from typing import Any

from .utils import SAMPLE_RATE

__all__ = ["Metadata"]

_UNSIGNED = re.compile(r"\+?[0-9]+")


def _get(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def _str(obj: Any, key: str) -> str | None:
    value = _get(obj, key)
    return value if isinstance(value, str) else None


def _parse_float(text: Any) -> float | None:
    if not isinstance(text, str) or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _seconds(value: float | None) -> timedelta | None:
    if value is None or not math.isfinite(value) or value < 0:
        return None
    return timedelta(seconds=value)


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


@dataclass
class Metadata:
    """Information about an input source; every field may be unknown."""

    track: str | None = None
    artist: str | None = None
    date: str | None = None
    channels: int | None = None
    channel: str | None = None
    start_time: timedelta | None = None
    duration: timedelta | None = None
    sample_rate: int | None = None
    source_url: str | None = None
    title: str | None = None
    thumbnail: str | None = None

    @classmethod
    def from_ffprobe_json(cls, value: Any) -> Metadata:
        """Extract metadata from the parsed JSON output of ffprobe."""
        fmt = _get(value, "format")

        duration = _seconds(_parse_float(_get(fmt, "duration")))

        start = _parse_float(_get(fmt, "start_time"))
        if start is not None and (math.isnan(start) or start < 0):
            start = 0.0
        start_time = _seconds(start)

        tags = _get(fmt, "tags")

        streams = _get(value, "streams")
        stream = None
        if isinstance(streams, list):
            stream = next(
                (s for s in streams if _str(s, "codec_type") == "audio"), None
            )

        channels = _get(stream, "channels")
        if isinstance(channels, bool) or not isinstance(channels, int) or channels < 0:
            channels = None
        else:
            channels &= 0xFF

        rate_text = _str(stream, "sample_rate")
        sample_rate = None
        if rate_text is not None and _UNSIGNED.fullmatch(rate_text):
            rate = int(rate_text)
            if rate < 2**64:
                sample_rate = rate & 0xFFFF_FFFF

        return cls(
            track=_str(tags, "title"),
            artist=_str(tags, "artist"),
            date=_str(tags, "date"),
            channels=channels,
            start_time=start_time,
            duration=duration,
            sample_rate=sample_rate,
        )

    @classmethod
    def from_ytdl_output(cls, value: Any) -> Metadata:
        """Extract metadata from the JSON output of youtube-dl for an online resource."""
        artist = _str(value, "artist")
        if artist is None:
            artist = _str(value, "uploader")
        date = _str(value, "release_date")
        if date is None:
            date = _str(value, "upload_date")

        return cls(
            track=_str(value, "track"),
            artist=artist,
            date=date,
            channels=2,
            channel=_str(value, "channel"),
            duration=_seconds(_number(_get(value, "duration"))),
            sample_rate=SAMPLE_RATE,
            source_url=_str(value, "webpage_url"),
            title=_str(value, "title"),
            thumbnail=_str(value, "thumbnail"),
        )

    def take(self) -> Metadata:
        """Move every field into a new Metadata, leaving this one empty."""
        moved = Metadata(**{f.name: getattr(self, f.name) for f in fields(self)})
        for f in fields(self):
            setattr(self, f.name, None)
        return moved