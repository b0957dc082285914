"""Handles for sending gateway messages over sharded connections."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from .join import JoinError

__all__ = ["ShardHandle", "Sharder"]

_log = logging.getLogger(__name__)

Sender = Callable[[Any], None]


class ShardHandle:
    """One shard's send channel, buffering messages while it is disconnected."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sender: Sender | None = None
        self._queue: list[Any] = []

    def register(self, sender: Sender) -> None:
        """Attach a sender and flush every buffered message through it."""
        with self._lock:
            self._sender = sender
            queued, self._queue = self._queue, []

            sent = 0
            for message in queued:
                try:
                    sender(message)
                except Exception as exc:  # the rest of the queue is discarded
                    _log.error("Error while clearing gateway message queue: %r", exc)
                    break
                sent += 1

        if sent:
            _log.debug("%d buffered messages sent.", sent)

    def deregister(self) -> None:
        """Detach the sender; later messages are buffered."""
        with self._lock:
            self._sender = None

    async def send(self, message: Any) -> None:
        """Send a JSON message, or buffer it while no sender is attached."""
        with self._lock:
            if self._sender is None:
                _log.debug("Shard temporarily disconnected: buffering message.")
                self._queue.append(message)
                return
            try:
                self._sender(message)
            except Exception as exc:
                raise JoinError(f"failed to send gateway message: {exc}") from exc


class Sharder:
    """Source of shard handles, keyed by shard id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[int, ShardHandle] = {}

    def get_shard(self, shard_id: int) -> ShardHandle:
        """Return the handle for a shard, creating it if needed."""
        with self._lock:
            return self._handles.setdefault(shard_id, ShardHandle())

    def register_shard_handle(self, shard_id: int, sender: Sender) -> None:
        self.get_shard(shard_id).register(sender)

    def deregister_shard_handle(self, shard_id: int) -> None:
        self.get_shard(shard_id).deregister()