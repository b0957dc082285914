"""A shard-aware registry of voice calls, one per guild."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from .handler import Call
from .ids import ChannelId, GuildId, UserId
from .info import ConnectionInfo
from .join import DroppedError, JoinError, NoCallError
from .shards import Sharder

__all__ = ["VoiceManager", "shard_id"]

_log = logging.getLogger(__name__)

_Id = TypeVar("_Id", ChannelId, GuildId, UserId)


def shard_id(guild_id: int, shard_count: int) -> int:
    """The shard that carries gateway traffic for a guild."""
    if shard_count <= 0:
        raise ValueError(f"shard count must be positive, not {shard_count}")
    return (guild_id >> 22) % shard_count


def _as_id(kind: type[_Id], value: _Id | int) -> _Id:
    return value if isinstance(value, kind) else kind(value)


@dataclass
class _ClientData:
    shard_count: int = 0
    initialised: bool = False
    user_id: UserId = field(default_factory=UserId)


@dataclass
class _Entry:
    call: Call
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class VoiceManager:
    """Maps guilds to their calls and forwards gateway voice events to them."""

    def __init__(
        self, sharder: Sharder | None = None, gateway_timeout: float | None = None
    ) -> None:
        self._sharder = sharder if sharder is not None else Sharder()
        self._gateway_timeout = gateway_timeout
        self._client = _ClientData()
        self._lock = threading.Lock()
        self._entries: dict[GuildId, _Entry] = {}

    def __repr__(self) -> str:
        return (
            f"VoiceManager(shard_count={self._client.shard_count}, "
            f"user_id={self._client.user_id!r}, calls={len(self._entries)})"
        )

    def initialise_client_data(self, shard_count: int, user_id: UserId | int) -> None:
        """Set the bot's user and shard count; does nothing once already set."""
        with self._lock:
            if self._client.initialised:
                return
            self._client = _ClientData(
                shard_count=shard_count,
                initialised=True,
                user_id=_as_id(UserId, user_id),
            )

    def get(self, guild_id: GuildId | int) -> Call | None:
        """The call for a guild, if one exists."""
        entry = self._entries.get(_as_id(GuildId, guild_id))
        return None if entry is None else entry.call

    def _entry(self, guild_id: GuildId) -> _Entry:
        with self._lock:
            entry = self._entries.get(guild_id)
            if entry is None:
                client = self._client
                shard = shard_id(guild_id.value, client.shard_count)
                handle = self._sharder.get_shard(shard)
                call = Call(guild_id, client.user_id, handle, self._gateway_timeout)
                entry = self._entries[guild_id] = _Entry(call)
            return entry

    def get_or_insert(self, guild_id: GuildId | int) -> Call:
        """The call for a guild, creating it if needed without joining anything."""
        return self._entry(_as_id(GuildId, guild_id)).call

    def set_gateway_timeout(self, timeout: float | None) -> None:
        """Set the gateway timeout used by calls created from now on."""
        with self._lock:
            self._gateway_timeout = timeout

    async def join_gateway(
        self, guild_id: GuildId | int, channel_id: ChannelId | int
    ) -> tuple[Call, ConnectionInfo]:
        """Join a channel through the gateway and return the call and its details.

        Raises the call's JoinError if the request could not be sent, and
        DroppedError if no answer arrived.
        """
        guild = _as_id(GuildId, guild_id)
        channel = _as_id(ChannelId, channel_id)
        entry = self._entry(guild)

        async with entry.lock:
            pending = await entry.call.join_gateway(channel)

        try:
            info = await pending
        except JoinError as exc:
            raise DroppedError() from exc
        return entry.call, info

    async def leave(self, guild_id: GuildId | int) -> None:
        """Leave the guild's voice channel, keeping the call and its settings."""
        entry = self._entries.get(_as_id(GuildId, guild_id))
        if entry is None:
            raise NoCallError()
        async with entry.lock:
            await entry.call.leave()

    async def remove(self, guild_id: GuildId | int) -> None:
        """Leave the guild's voice channel and forget its call."""
        guild = _as_id(GuildId, guild_id)
        await self.leave(guild)
        with self._lock:
            self._entries.pop(guild, None)

    def register_shard(self, shard_id: int, sender: Callable[[Any], None]) -> None:
        """Attach a shard's sender, flushing any buffered messages."""
        _log.debug("Registering shard handle %d", shard_id)
        self._sharder.register_shard_handle(shard_id, sender)

    def deregister_shard(self, shard_id: int) -> None:
        """Detach a shard's sender; its messages are buffered until re-registered."""
        _log.debug("Deregistering shard handle %d", shard_id)
        self._sharder.deregister_shard_handle(shard_id)

    async def server_update(
        self, guild_id: GuildId | int, endpoint: str | None, token: str
    ) -> None:
        """Forward a voice server update to the guild's call."""
        entry = self._entries.get(_as_id(GuildId, guild_id))
        if entry is None or endpoint is None:
            return
        async with entry.lock:
            entry.call.update_server(endpoint, token)

    async def state_update(
        self,
        guild_id: GuildId | int,
        user_id: UserId | int,
        session_id: str,
        channel_id: ChannelId | int | None,
    ) -> None:
        """Forward a voice state update to the guild's call if it concerns this bot."""
        if _as_id(UserId, user_id) != self._client.user_id:
            return
        entry = self._entries.get(_as_id(GuildId, guild_id))
        if entry is None:
            return
        channel = None if channel_id is None else _as_id(ChannelId, channel_id)
        async with entry.lock:
            entry.call.update_state(session_id, channel)