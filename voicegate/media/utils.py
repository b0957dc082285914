"""Conversions between time and positions in 48kHz float PCM streams."""

from __future__ import annotations

from datetime import timedelta

__all__ = [
    "SAMPLE_RATE",
    "FRAME_LEN_MS",
    "MONO_FRAME_SIZE",
    "STEREO_FRAME_SIZE",
    "SAMPLE_SIZE",
    "timestamp_to_sample_count",
    "sample_count_to_timestamp",
    "timestamp_to_byte_count",
    "byte_count_to_timestamp",
]

SAMPLE_RATE = 48_000
FRAME_LEN_MS = 20
MONO_FRAME_SIZE = SAMPLE_RATE * FRAME_LEN_MS // 1000
STEREO_FRAME_SIZE = 2 * MONO_FRAME_SIZE
SAMPLE_SIZE = 4  # bytes in one float32 sample

_ONE_MS = timedelta(milliseconds=1)


def timestamp_to_sample_count(timestamp: timedelta, stereo: bool) -> int:
    """The sample position of a timestamp, to whole milliseconds."""
    if timestamp < timedelta(0):
        raise ValueError(f"timestamp must not be negative: {timestamp}")
    millis = timestamp // _ONE_MS
    return (millis * (MONO_FRAME_SIZE // FRAME_LEN_MS)) << int(stereo)


def sample_count_to_timestamp(amt: int, stereo: bool) -> timedelta:
    """The timestamp of a sample position, to whole milliseconds."""
    if amt < 0:
        raise ValueError(f"sample count must not be negative: {amt}")
    return timedelta(milliseconds=((amt * FRAME_LEN_MS) // MONO_FRAME_SIZE) >> int(stereo))


def timestamp_to_byte_count(timestamp: timedelta, stereo: bool) -> int:
    """The byte position of a timestamp in a float32 stream."""
    return timestamp_to_sample_count(timestamp, stereo) * SAMPLE_SIZE


def byte_count_to_timestamp(amt: int, stereo: bool) -> timedelta:
    """The timestamp of a byte position in a float32 stream."""
    if amt < 0:
        raise ValueError(f"byte count must not be negative: {amt}")
    return sample_count_to_timestamp(amt // SAMPLE_SIZE, stereo)