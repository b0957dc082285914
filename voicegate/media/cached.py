"""Shared in-memory caches of input sources, for reuse and fast seeking."""

from __future__ import annotations

import copy
import io
import threading
from dataclasses import dataclass, replace
from datetime import timedelta

from .metadata import Metadata
from .reader import Reader
from .source import Input
from .utils import FRAME_LEN_MS, timestamp_to_byte_count

__all__ = [
    "AUDIO_FRAME_RATE",
    "CacheConfig",
    "LengthHint",
    "apply_length_hint",
    "compressed_cost_per_sec",
    "raw_cost_per_sec",
    "default_config",
    "Memory",
]

AUDIO_FRAME_RATE = 1000 // FRAME_LEN_MS

_FRAME_HEADER_SIZE = 2
_NAMED_BITRATES = {"auto": 64_000, "max": 512_000}
_ONE_SECOND = timedelta(seconds=1)
_ONE_MS = timedelta(milliseconds=1)


@dataclass
class CacheConfig:
    """How a cache pulls data from its source.

    `chunk_size` is how many bytes are read from the source at a time;
    `length_hint`, if set, is the size of the first read.
    """

    chunk_size: int = 32 * 1024
    length_hint: int | None = None

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk size must be positive: {self.chunk_size}")
        if self.length_hint is not None and self.length_hint < 0:
            raise ValueError(f"length hint must not be negative: {self.length_hint}")


@dataclass(frozen=True)
class LengthHint:
    """Expected length of an input, in bytes or in time."""

    size: int | None = None
    duration: timedelta | None = None

    def __post_init__(self) -> None:
        if (self.size is None) == (self.duration is None):
            raise ValueError("a length hint needs exactly one of size or duration")

    @classmethod
    def from_bytes(cls, size: int) -> LengthHint:
        return cls(size=size)

    @classmethod
    def from_time(cls, duration: timedelta) -> LengthHint:
        return cls(duration=duration)

    def to_bytes(self, cost_per_sec: int) -> int:
        """The hint in bytes; time is rounded up to whole seconds."""
        if self.size is not None:
            return self.size
        seconds = self.duration // _ONE_SECOND
        if (self.duration % _ONE_SECOND) // _ONE_MS > 0:
            seconds += 1
        return seconds * cost_per_sec


def apply_length_hint(
    config: CacheConfig, hint: LengthHint | int | timedelta, cost_per_sec: int
) -> None:
    """Set the config's first read to hold the hinted length at the given cost."""
    if isinstance(hint, timedelta):
        hint = LengthHint.from_time(hint)
    elif isinstance(hint, int):
        hint = LengthHint.from_bytes(hint)
    config.length_hint = hint.to_bytes(cost_per_sec)


def compressed_cost_per_sec(bitrate: int | str) -> int:
    """Estimated bytes per second of audio compressed at a bitrate.

    The bitrate is in bits per second, or "auto" or "max".
    """
    if isinstance(bitrate, str):
        try:
            raw = _NAMED_BITRATES[bitrate.lower()]
        except KeyError:
            raise ValueError(f"unknown bitrate: {bitrate!r}") from None
    elif isinstance(bitrate, bool) or not isinstance(bitrate, int):
        raise TypeError(f"bitrate must be an int or a name, not {type(bitrate).__name__}")
    elif bitrate < 0:
        raise ValueError(f"bitrate must not be negative: {bitrate}")
    else:
        raw = bitrate
    return raw // 8 + AUDIO_FRAME_RATE * _FRAME_HEADER_SIZE


def raw_cost_per_sec(stereo: bool) -> int:
    """Bytes per second of raw float PCM audio."""
    return timestamp_to_byte_count(_ONE_SECOND, stereo)


def default_config(cost_per_sec: int) -> CacheConfig:
    """The default cache config: read five seconds' worth at a time."""
    return CacheConfig(chunk_size=5 * cost_per_sec)


class _SharedStore:
    """Bytes read so far from one source, shared between handles."""

    def __init__(self, reader: Reader, config: CacheConfig) -> None:
        self._reader = reader
        self._chunk_size = config.chunk_size
        self._next_read = config.length_hint or config.chunk_size
        self._data = bytearray()
        self._finished = False
        self._lock = threading.Lock()

    def fill_to(self, end: int | None) -> int:
        """Read until `end` bytes are held (everything if None); return the count held."""
        with self._lock:
            while not self._finished and (end is None or len(self._data) < end):
                chunk = self._reader.read(self._next_read)
                self._next_read = self._chunk_size
                if not chunk:
                    self._finished = True
                    self._reader.close()
                    break
                self._data += chunk
            return len(self._data)

    def slice(self, start: int, stop: int) -> bytes:
        with self._lock:
            return bytes(self._data[start:stop])


class Memory:
    """An input's raw bytes cached in memory, shareable and seekable.

    Data is pulled from the source as handles read it. Metadata is moved
    out of the source.
    """

    def __init__(self, source: Input, config: CacheConfig | None = None) -> None:
        self.stereo = source.stereo
        self.kind = source.kind
        self.container = source.container
        self.metadata = source.metadata.take()

        cost = raw_cost_per_sec(self.stereo)
        self.config = replace(config) if config is not None else default_config(cost)
        if self.config.length_hint is None and self.metadata.duration is not None:
            apply_length_hint(self.config, self.metadata.duration, cost)

        self._store = _SharedStore(source.reader, self.config)
        self._pos = 0

    def __repr__(self) -> str:
        return (
            f"Memory(stereo={self.stereo}, kind={self.kind}, "
            f"container={self.container!r}, position={self._pos})"
        )

    def new_handle(self) -> Memory:
        """A new view of the same cached data, starting from the beginning."""
        handle = copy.copy(self)
        handle.metadata = replace(self.metadata)
        handle._pos = 0
        return handle

    def seekable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes (everything left if negative)."""
        start = self._pos
        if size < 0:
            stop = self._store.fill_to(None)
        else:
            stop = min(start + size, self._store.fill_to(start + size))
        data = self._store.slice(start, stop)
        self._pos += len(data)
        return data

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move to a position, stopping at the end of the data; return it."""
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._pos + offset
        elif whence == io.SEEK_END:
            target = self._store.fill_to(None) + offset
        else:
            raise ValueError(f"invalid whence: {whence}")
        if target < 0:
            raise ValueError(f"negative seek position: {target}")
        self._pos = min(target, self._store.fill_to(target))
        return self._pos

    def into_input(self) -> Input:
        """An Input reading from this handle."""
        return Input(
            self.stereo,
            Reader(self, seekable=True),
            self.kind,
            self.container,
            replace(self.metadata),
        )