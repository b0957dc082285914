"""Kinds of encoded audio data carried by an input."""

from __future__ import annotations

import enum
import struct

__all__ = ["CodecType"]

_F32 = struct.calcsize("<f")
_I16 = struct.calcsize("<h")


class CodecType(enum.Enum):
    """How samples in an input bytestream are encoded."""

    OPUS = "opus"
    """Opus frames; needs a framed (non-raw) container."""
    PCM = "pcm"
    """Raw signed 16-bit samples; needs a raw container."""
    FLOAT_PCM = "float_pcm"
    """Raw 32-bit float samples; needs a raw container."""

    def sample_len(self) -> int:
        """Length of one output sample, in bytes."""
        return _I16 if self is CodecType.PCM else _F32