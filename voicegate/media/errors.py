"""Errors raised while creating audio inputs."""

from __future__ import annotations

import json
import subprocess
from typing import Any

__all__ = [
    "InputError",
    "JsonError",
    "MetadataError",
    "StdoutError",
    "StreamsError",
    "YouTubeDlProcessingError",
    "YouTubeDlRunError",
    "YouTubeDlUrlError",
    "DcaError",
    "InvalidHeaderError",
    "InvalidMetadataError",
    "InvalidSizeError",
]


class InputError(Exception):
    """An audio input could not be created."""


class JsonError(InputError):
    """JSON output (from a probe or downloader) could not be parsed."""

    def __init__(self, error: json.JSONDecodeError, parsed_text: str) -> None:
        super().__init__("parsing JSON failed")
        self.error = error
        self.parsed_text = parsed_text
        self.__cause__ = error


class MetadataError(InputError):
    """Metadata could not be extracted from the side channel of a process."""

    def __init__(self) -> None:
        super().__init__("extracting metadata failed")


class StdoutError(InputError):
    """A child process came without a piped stdout."""

    def __init__(self) -> None:
        super().__init__("creating stdout failed")


class StreamsError(InputError):
    """The channel count of a file could not be found."""

    def __init__(self) -> None:
        super().__init__("checking if path is stereo failed")


class YouTubeDlProcessingError(InputError):
    """The downloader's JSON output could not be processed; `value` holds it."""

    def __init__(self, value: Any) -> None:
        super().__init__("youtube-dl returned invalid JSON")
        self.value = value


class YouTubeDlRunError(InputError):
    """The downloader failed; `output` holds what it produced."""

    def __init__(self, output: subprocess.CompletedProcess) -> None:
        super().__init__(f"youtube-dl encountered an error: {output!r}")
        self.output = output


class YouTubeDlUrlError(InputError):
    """The downloader's JSON output had no `url` field; `value` holds it."""

    def __init__(self, value: Any) -> None:
        super().__init__("missing youtube-dl url")
        self.value = value


class DcaError(InputError):
    """A DCA file could not be opened."""

    def __init__(self, message: str = "opening file DCA failed") -> None:
        super().__init__(message)


class InvalidHeaderError(DcaError):
    """The file did not start with a valid DCA header."""

    def __init__(self) -> None:
        super().__init__("invalid header")


class InvalidMetadataError(DcaError):
    """The DCA metadata block could not be parsed."""

    def __init__(self, error: Exception) -> None:
        super().__init__("invalid metadata")
        self.error = error
        self.__cause__ = error


class InvalidSizeError(DcaError):
    """The DCA header gave an impossible metadata block size."""

    def __init__(self, size: int) -> None:
        super().__init__(f"invalid metadata block size: {size}")
        self.size = size