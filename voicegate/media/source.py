"""Audio inputs: a byte source with its codec, framing and metadata."""

from __future__ import annotations

import io
import logging
import struct
from collections.abc import MutableSequence, Sequence
from datetime import timedelta
from typing import Protocol

from .codec import CodecType
from .container import Container
from .metadata import Metadata
from .reader import Reader
from .utils import (
    MONO_FRAME_SIZE,
    SAMPLE_SIZE,
    STEREO_FRAME_SIZE,
    byte_count_to_timestamp,
    timestamp_to_byte_count,
)

__all__ = [
    "STEREO_FRAME_BYTE_SIZE",
    "MONO_FRAME_BYTE_SIZE",
    "Input",
    "add_float_pcm_frame",
]

_log = logging.getLogger(__name__)

STEREO_FRAME_BYTE_SIZE = STEREO_FRAME_SIZE * SAMPLE_SIZE
MONO_FRAME_BYTE_SIZE = MONO_FRAME_SIZE * SAMPLE_SIZE

_MIX_CHUNK_BYTES = 512 * SAMPLE_SIZE
_I16_SIZE = 2


class _Readable(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class _OpusDecoder(Protocol):
    def decode(self, packet: bytes) -> Sequence[float]:
        """Decode one packet into interleaved stereo float samples."""
        ...

    def reset(self) -> None: ...


def _pack_floats(values: Sequence[float]) -> bytes:
    return struct.pack(f"<{len(values)}f", *values)


def _unpack_floats(data: bytes) -> tuple[float, ...]:
    count = len(data) // SAMPLE_SIZE
    return struct.unpack(f"<{count}f", data[: count * SAMPLE_SIZE])


def add_float_pcm_frame(
    reader: _Readable,
    float_buffer: MutableSequence[float],
    stereo: bool,
    volume: float,
) -> int | None:
    """Mix one 20ms frame of float PCM from `reader` into a stereo buffer.

    Returns the number of bytes' worth of buffer filled, or None if the
    reader failed for a reason other than ending early.
    """
    frame_pos = 0
    max_bytes = STEREO_FRAME_BYTE_SIZE if stereo else MONO_FRAME_BYTE_SIZE

    while frame_pos < len(float_buffer):
        try:
            data = reader.read(min(max_bytes, _MIX_CHUNK_BYTES))
        except EOFError as exc:
            _log.error("EOF unexpectedly: %r", exc)
            return frame_pos * SAMPLE_SIZE
        except (OSError, ValueError) as exc:
            _log.error("Input died unexpectedly: %r", exc)
            return None

        samples = _unpack_floats(data)
        if stereo:
            room = len(float_buffer) - frame_pos
            samples = samples[:room]
            for offset, sample in enumerate(samples):
                float_buffer[frame_pos + offset] += volume * sample
            frame_pos += len(samples)
        else:
            room = (len(float_buffer) - frame_pos) // 2
            samples = samples[:room]
            for offset, sample in enumerate(samples):
                scaled = volume * sample
                float_buffer[frame_pos + 2 * offset] += scaled
                float_buffer[frame_pos + 2 * offset + 1] += scaled
            frame_pos += 2 * len(samples)

        max_bytes -= len(samples) * SAMPLE_SIZE
        if not samples:
            break

    return frame_pos * SAMPLE_SIZE


class Input:
    """An audio bytestream with what is needed to read it as 48kHz float PCM.

    Reading yields little-endian float32 samples matching the source's
    channel count. Opus inputs need a framed container, and decoding them
    needs `decoder` to be set to an object with `decode(packet)` and
    `reset()`; passthrough of Opus frames works without one.
    """

    def __init__(
        self,
        stereo: bool,
        reader: Reader,
        kind: CodecType = CodecType.FLOAT_PCM,
        container: Container | None = None,
        metadata: Metadata | None = None,
    ) -> None:
        self.metadata = metadata if metadata is not None else Metadata()
        self.stereo = stereo
        self.reader = reader
        self.kind = kind
        self.container = container if container is not None else Container.raw()
        self.decoder: _OpusDecoder | None = None
        self.allow_passthrough = True
        self._frame: list[float] = []
        self._frame_pos = 0
        self._should_reset = False
        self._pos = 0

    @classmethod
    def float_pcm(cls, is_stereo: bool, reader: Reader) -> Input:
        """A raw float PCM input from the given reader."""
        return cls(is_stereo, reader, CodecType.FLOAT_PCM, Container.raw())

    def __repr__(self) -> str:
        return (
            f"Input(stereo={self.stereo}, kind={self.kind}, container={self.container!r}, "
            f"reader={self.reader!r}, position={self._pos})"
        )

    @property
    def position(self) -> int:
        """Current byte position in the float PCM output stream."""
        return self._pos

    def is_seekable(self) -> bool:
        return self.reader.is_seekable()

    def is_stereo(self) -> bool:
        return self.stereo

    def mix(self, float_buffer: MutableSequence[float], volume: float) -> int:
        """Mix this input into a 20ms stereo buffer; returns the bytes consumed."""
        result = add_float_pcm_frame(self, float_buffer, self.stereo, volume)
        return 0 if result is None else result

    def seek_time(self, time: timedelta) -> timedelta | None:
        """Seek to a time, returning the time actually reached, or None on failure."""
        target = timestamp_to_byte_count(time, self.stereo)
        try:
            reached = self.seek(target)
        except (OSError, ValueError, EOFError) as exc:
            _log.debug("Seek to %s failed: %r", time, exc)
            return None
        return byte_count_to_timestamp(reached, self.stereo)

    def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes of float PCM; everything left if negative."""
        if size < 0:
            return self.read_all()
        data = self._read_chunk(size)
        self._pos += len(data)
        return data

    def read_all(self) -> bytes:
        """Read until the input yields no more data."""
        out = bytearray()
        while chunk := self.read(STEREO_FRAME_BYTE_SIZE):
            out += chunk
        return bytes(out)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move to a byte position in the float PCM output and return it."""
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._pos + offset
        elif whence == io.SEEK_END:
            raise io.UnsupportedOperation("the end of an input is not known")
        else:
            raise ValueError(f"invalid whence: {whence}")
        if target < 0:
            raise ValueError(f"negative seek position: {target}")

        _log.debug("Seeking to %d", target)

        if target == self._pos:
            return self._pos

        conversion = self.container.try_seek_trivial(self.kind)
        if conversion is not None:
            inner = (target * conversion) // SAMPLE_SIZE
            inner_dest = self.reader.seek(inner)
            self._pos = (inner_dest * SAMPLE_SIZE) // conversion
        elif target > self._pos:
            self._cheap_consume(target - self._pos)
        else:
            self.reader.seek(self.container.input_start())
            self._pos = 0
            self._drop_frame()
            self._should_reset = True
            self._cheap_consume(target)
        return self._pos

    def supports_passthrough(self) -> bool:
        """Whether whole Opus frames can be handed on without decoding."""
        return self.kind is CodecType.OPUS and self.allow_passthrough

    def read_opus_frame(self, size: int) -> bytes:
        """Read the next whole Opus frame, which must fit in `size` bytes."""
        if self.kind is not CodecType.OPUS:
            raise io.UnsupportedOperation("Frame passthrough not supported for this file.")

        self._pos += (len(self._frame) - self._frame_pos) * SAMPLE_SIZE
        self._drop_frame()

        frame = self.container.next_frame_length(self.reader, self.kind)
        if frame.frame_len > size:
            raise ValueError(
                f"frame of {frame.frame_len} bytes does not fit in {size} bytes"
            )
        data = self.reader.read_exact(frame.frame_len)
        self._pos += STEREO_FRAME_BYTE_SIZE
        return data

    def _drop_frame(self) -> None:
        self._frame = []
        self._frame_pos = 0

    def _read_up_to(self, size: int) -> bytes:
        data = bytearray()
        while len(data) < size:
            chunk = self.reader.read(size - len(data))
            if not chunk:
                break
            data += chunk
        return bytes(data)

    def _read_chunk(self, size: int) -> bytes:
        if self.kind is CodecType.FLOAT_PCM:
            return self.reader.read(size)
        if self.kind is CodecType.PCM:
            raw = self._read_up_to((size // SAMPLE_SIZE) * _I16_SIZE)
            count = len(raw) // _I16_SIZE
            ints = struct.unpack(f"<{count}h", raw[: count * _I16_SIZE])
            return _pack_floats([value / 32768.0 for value in ints])
        return self._read_opus(size)

    def _check_opus_container(self) -> None:
        if self.container.try_seek_trivial(self.kind) is not None:
            raise ValueError("Raw container cannot demarcate Opus frames.")

    def _read_opus(self, size: int) -> bytes:
        self._check_opus_container()
        if self.decoder is None:
            raise io.UnsupportedOperation("no Opus decoder is set for this input")

        if self._frame_pos == len(self._frame):
            if self._should_reset:
                self.decoder.reset()
                self._should_reset = False
            try:
                frame = self.container.next_frame_length(self.reader, self.kind)
            except EOFError:
                return b""
            packet = self.reader.read(frame.frame_len)
            try:
                samples = list(self.decoder.decode(packet))[:STEREO_FRAME_SIZE]
            except Exception as exc:  # a bad packet decodes to silence of length 0
                _log.debug("Opus decode failed: %r", exc)
                samples = []
            self._frame = samples
            self._frame_pos = 0

        start = self._frame_pos
        to_write = min(size // SAMPLE_SIZE, len(self._frame) - start)
        self._frame_pos += to_write
        return _pack_floats(self._frame[start : start + to_write])

    def _skip(self, size: int) -> int:
        if self.kind is not CodecType.OPUS:
            skipped = len(self._read_chunk(size))
            self._pos += skipped
            return skipped

        self._check_opus_container()
        # Use up what is left of the current frame, then skip whole frames.
        skipped = (len(self._frame) - self._frame_pos) * SAMPLE_SIZE
        self._drop_frame()
        while size - skipped >= STEREO_FRAME_BYTE_SIZE:
            self._should_reset = True
            frame = self.container.next_frame_length(self.reader, self.kind)
            self._read_up_to(frame.frame_len)
            skipped += STEREO_FRAME_BYTE_SIZE
        self._pos += skipped
        return skipped

    def _cheap_consume(self, count: int) -> int:
        limit = STEREO_FRAME_BYTE_SIZE * 4
        done = 0
        while True:
            step = self._skip(min(limit, count - done))
            if step == 0:
                return done
            done += step