"""Errors and awaitables for joining voice channels through the gateway."""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from typing import Any

from .info import ConnectionInfo

__all__ = [
    "JoinError",
    "TimedOutError",
    "DroppedError",
    "NoSenderError",
    "NoCallError",
    "JoinGateway",
]


class JoinError(Exception):
    """A voice channel could not be joined or left."""


class TimedOutError(JoinError):
    """The gateway did not answer in time."""

    def __init__(self, message: str = "gateway response timed out") -> None:
        super().__init__(message)


class DroppedError(JoinError):
    """The request was abandoned before an answer arrived."""

    def __init__(self, message: str = "request was dropped before completion") -> None:
        super().__init__(message)


class NoSenderError(JoinError):
    """There is no gateway connection to send the request over."""

    def __init__(self, message: str = "no gateway sender for this call") -> None:
        super().__init__(message)


class NoCallError(JoinError):
    """No call exists for the requested guild."""

    def __init__(self, message: str = "no call exists for this guild") -> None:
        super().__init__(message)


class JoinGateway:
    """Awaitable answer from the gateway to a join request.

    Awaiting yields the ConnectionInfo. Cancelling the underlying future means
    the request was dropped. Do not await this while holding a lock on the call.
    """

    def __init__(self, future: asyncio.Future, timeout: float | None) -> None:
        self._future = future
        self._timeout = timeout

    def __await__(self) -> Generator[Any, None, ConnectionInfo]:
        return self._wait().__await__()

    async def _wait(self) -> ConnectionInfo:
        # Shielding keeps a cancelled waiter distinct from a dropped request.
        shielded = asyncio.shield(self._future)
        try:
            if self._timeout is None:
                return await shielded
            return await asyncio.wait_for(shielded, self._timeout)
        except asyncio.TimeoutError:
            raise TimedOutError() from None
        except asyncio.CancelledError:
            if self._future.cancelled():
                raise DroppedError() from None
            raise