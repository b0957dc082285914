"""Opening DCA1 files: a JSON metadata block followed by length-prefixed Opus frames."""

from __future__ import annotations

import asyncio
import json
import os
import struct
from typing import Any

from .codec import CodecType
from .container import Container
from .errors import DcaError, InvalidHeaderError, InvalidMetadataError, InvalidSizeError
from .metadata import Metadata
from .reader import Reader
from .source import Input

__all__ = ["metadata_from_dca", "dca"]

_MAGIC = b"DCA1"
_SIZE = struct.Struct("<i")


def _invalid(message: str) -> InvalidMetadataError:
    return InvalidMetadataError(ValueError(message))


def _object(value: Any, where: str, optional: bool = False) -> dict | None:
    if value is None and optional:
        return None
    if not isinstance(value, dict):
        raise _invalid(f"{where}: expected an object")
    return value


def _string(obj: dict, key: str, where: str, optional: bool = False) -> str | None:
    value = obj.get(key)
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise _invalid(f"{where}.{key}: expected a string")
    return value


def _unsigned(
    obj: dict, key: str, where: str, bits: int, optional: bool = False
) -> int | None:
    value = obj.get(key)
    if value is None and optional:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**bits:
        raise _invalid(f"{where}.{key}: expected an unsigned {bits}-bit integer")
    return value


def metadata_from_dca(value: Any) -> Metadata:
    """Validate a parsed DCA metadata block and extract its Metadata.

    Raises InvalidMetadataError if a required field is missing or mistyped.
    """
    root = _object(value, "metadata")

    dca_block = _object(root.get("dca"), "dca")
    _unsigned(dca_block, "version", "dca", 64)
    tool = _object(dca_block.get("tool"), "dca.tool")
    for key in ("name", "version", "url", "author"):
        _string(tool, key, "dca.tool")

    opus = _object(root.get("opus"), "opus")
    _string(opus, "mode", "opus")
    sample_rate = _unsigned(opus, "sample_rate", "opus", 32)
    for key in ("frame_size", "abr", "vbr"):
        _unsigned(opus, key, "opus", 64)
    channels = _unsigned(opus, "channels", "opus", 8)

    track = artist = None
    info = _object(root.get("info"), "info", optional=True)
    if info is not None:
        track = _string(info, "title", "info", optional=True)
        artist = _string(info, "artist", "info", optional=True)
        for key in ("album", "genre", "cover"):
            _string(info, key, "info", optional=True)

    origin = _object(root.get("origin"), "origin", optional=True)
    if origin is not None:
        for key in ("source", "encoding", "url"):
            _string(origin, key, "origin", optional=True)
        _unsigned(origin, "abr", "origin", 64, optional=True)
        _unsigned(origin, "channels", "origin", 8, optional=True)

    return Metadata(
        track=track, artist=artist, channels=channels, sample_rate=sample_rate
    )


def _open_dca(path: str | os.PathLike) -> Input:
    try:
        file = open(path, "rb")
    except OSError as exc:
        raise DcaError(str(exc)) from exc

    try:
        header = file.read(len(_MAGIC))
        if len(header) < len(_MAGIC):
            raise DcaError("failed to fill whole buffer")
        if header != _MAGIC:
            raise InvalidHeaderError()

        size_bytes = file.read(_SIZE.size)
        if len(size_bytes) < _SIZE.size:
            raise InvalidHeaderError()
        (size,) = _SIZE.unpack(size_bytes)
        if size < 2:
            raise InvalidSizeError(size)

        raw_json = file.read(size)
        try:
            value = json.loads(raw_json)
        except ValueError as exc:
            raise InvalidMetadataError(exc) from exc
        metadata = metadata_from_dca(value)
    except BaseException:
        file.close()
        raise

    return Input(
        metadata.channels == 2,
        Reader.from_file(file),
        CodecType.OPUS,
        Container.dca(size + _SIZE.size + len(_MAGIC)),
        metadata,
    )


async def dca(path: str | os.PathLike) -> Input:
    """Open a DCA1 file as a streamed Opus input."""
    return await asyncio.to_thread(_open_dca, path)