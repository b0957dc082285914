"""Byte sources for audio input streams."""

from __future__ import annotations

import io
import subprocess
from collections.abc import Iterable
from typing import Any, BinaryIO

from .child import ChildContainer

__all__ = ["Reader"]

_NO_SEEK = "Seeking not supported on Reader of this type."


class Reader:
    """A readable byte source, seekable only when its source supports it.

    By default seekability is taken from the source's own `seekable()`.
    """

    def __init__(self, source: Any, seekable: bool | None = None) -> None:
        self._source = source
        if seekable is None:
            probe = getattr(source, "seekable", None)
            seekable = bool(probe()) if callable(probe) else False
        self._seekable = seekable

    def __repr__(self) -> str:
        return f"Reader({self._source!r})"

    @classmethod
    def from_file(cls, file: BinaryIO) -> Reader:
        """A source contained in an open binary file."""
        return cls(file)

    @classmethod
    def from_memory(cls, data: bytes) -> Reader:
        """A source held in memory."""
        return cls(io.BytesIO(bytes(data)))

    @classmethod
    def from_children(cls, children: Iterable[subprocess.Popen]) -> Reader:
        """The piped stdout of the last of a chain of processes; never seekable."""
        return cls(ChildContainer(children), seekable=False)

    def is_seekable(self) -> bool:
        return self._seekable

    def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes (all remaining if negative); empty at the end."""
        return self._source.read(size)

    def read_exact(self, size: int) -> bytes:
        """Read exactly `size` bytes, raising EOFError if the stream ends first."""
        data = bytearray()
        while len(data) < size:
            chunk = self._source.read(size - len(data))
            if not chunk:
                raise EOFError(f"stream ended after {len(data)} of {size} bytes")
            data += chunk
        return bytes(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move to a new position and return it."""
        if not self._seekable:
            raise io.UnsupportedOperation(_NO_SEEK)
        return self._source.seek(offset, whence)

    def close(self) -> None:
        """Release the source, stopping any child processes behind it."""
        close = getattr(self._source, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Reader:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()