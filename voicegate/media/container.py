"""Framing of input bytestreams: raw samples or length-prefixed DCA frames."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import BinaryIO, Protocol

__all__ = ["Frame", "ContainerKind", "Container"]

_FRAME_HEADER = struct.Struct("<h")


class _SampleSized(Protocol):
    def sample_len(self) -> int: ...


@dataclass(frozen=True)
class Frame:
    """Where the next audio frame lies: its header and payload lengths in bytes."""

    header_len: int
    frame_len: int


class ContainerKind(enum.Enum):
    RAW = "raw"
    DCA = "dca"


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = reader.read(size - len(data))
        if not chunk:
            raise EOFError(f"stream ended after {len(data)} of {size} bytes")
        data += chunk
    return bytes(data)


@dataclass(frozen=True)
class Container:
    """How frames of audio are delimited within a bytestream."""

    kind: ContainerKind = ContainerKind.RAW
    first_frame: int = 0

    def __post_init__(self) -> None:
        if self.first_frame < 0:
            raise ValueError(f"first frame offset must not be negative: {self.first_frame}")
        if self.kind is ContainerKind.RAW and self.first_frame:
            raise ValueError("raw containers have no header to skip")

    @classmethod
    def raw(cls) -> Container:
        """Unframed input."""
        return cls(ContainerKind.RAW)

    @classmethod
    def dca(cls, first_frame: int) -> Container:
        """DCA input whose first frame starts at the given byte offset."""
        return cls(ContainerKind.DCA, first_frame)

    def next_frame_length(self, reader: BinaryIO, codec: _SampleSized) -> Frame:
        """Read the next frame's header from the reader, if the input is framed."""
        if self.kind is ContainerKind.RAW:
            return Frame(header_len=0, frame_len=codec.sample_len())
        (length,) = _FRAME_HEADER.unpack(_read_exact(reader, _FRAME_HEADER.size))
        return Frame(header_len=_FRAME_HEADER.size, frame_len=max(length, 0))

    def try_seek_trivial(self, codec: _SampleSized) -> int | None:
        """The sample length to seek by directly, or None if the input is framed."""
        if self.kind is ContainerKind.RAW:
            return codec.sample_len()
        return None

    def input_start(self) -> int:
        """Byte offset of the first frame holding audio data."""
        return self.first_frame