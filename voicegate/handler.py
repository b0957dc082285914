"""A handler for one guild's voice connection over the gateway."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .ids import ChannelId, GuildId, UserId
from .info import ConnectionInfo, ConnectionProgress
from .join import JoinGateway, NoSenderError
from .shards import ShardHandle

__all__ = ["Call"]

_log = logging.getLogger(__name__)

_VOICE_STATE_UPDATE = 4


def _deliver(future: asyncio.Future | None, info: ConnectionInfo | None) -> None:
    # A waiter that has gone away is not an error.
    if future is not None and info is not None and not future.done():
        future.set_result(info)


def _drop(future: asyncio.Future | None) -> None:
    if future is not None and not future.done():
        future.cancel()


class Call:
    """One voice connection, tracking gateway state and sending voice state updates.

    A call made without a shard handle (see `standalone`) only records its
    state locally; any attempt to send an update raises NoSenderError.
    """

    def __init__(
        self,
        guild_id: GuildId,
        user_id: UserId,
        ws: ShardHandle | None,
        gateway_timeout: float | None = None,
    ) -> None:
        self._guild_id = guild_id
        self._user_id = user_id
        self._ws = ws
        self.gateway_timeout = gateway_timeout
        self._progress: ConnectionProgress | None = None
        self._waiter: asyncio.Future | None = None
        self._self_deaf = False
        self._self_mute = False

    @classmethod
    def standalone(
        cls, guild_id: GuildId, user_id: UserId, gateway_timeout: float | None = None
    ) -> Call:
        """A call with no gateway connection; state changes are only recorded."""
        return cls(guild_id, user_id, None, gateway_timeout)

    def __repr__(self) -> str:
        return (
            f"Call(guild_id={self._guild_id!r}, user_id={self._user_id!r}, "
            f"connection={self._progress!r}, self_deaf={self._self_deaf}, "
            f"self_mute={self._self_mute})"
        )

    @property
    def guild_id(self) -> GuildId:
        return self._guild_id

    @property
    def user_id(self) -> UserId:
        return self._user_id

    def _set_connection(
        self, progress: ConnectionProgress | None, waiter: asyncio.Future | None
    ) -> None:
        if self._waiter is not waiter:
            _drop(self._waiter)
        self._progress = progress
        self._waiter = waiter

    def _do_connect(self) -> None:
        if self._progress is not None:
            _deliver(self._waiter, self._progress.get_connection_info())

    async def deafen(self, deaf: bool) -> None:
        """Set self-deafen and send the new voice state."""
        self._self_deaf = deaf
        await self._update()

    def is_deaf(self) -> bool:
        return self._self_deaf

    async def mute(self, mute: bool) -> None:
        """Set self-mute and send the new voice state."""
        self._self_mute = mute
        await self._update()

    def is_mute(self) -> bool:
        return self._self_mute

    async def _should_actually_join(
        self, waiter: asyncio.Future, channel_id: ChannelId
    ) -> bool:
        progress = self._progress
        if progress is None:
            return True
        if progress.in_progress():
            await self.leave()
            return True
        if progress.channel_id() == channel_id:
            _deliver(waiter, progress.info())
            return False
        return True

    async def join_gateway(self, channel_id: ChannelId) -> JoinGateway:
        """Request to join a channel; await the result for the connection details.

        The returned awaitable must not be awaited while holding a lock on
        this call, since completing it needs update_state and update_server.
        """
        waiter = asyncio.get_running_loop().create_future()

        if not await self._should_actually_join(waiter, channel_id):
            return JoinGateway(waiter, None)

        self._set_connection(
            ConnectionProgress(self._guild_id, self._user_id, channel_id), waiter
        )
        await self._update()
        return JoinGateway(waiter, self.gateway_timeout)

    def current_connection(self) -> ConnectionInfo | None:
        """The complete connection details, if the connection is established."""
        if self._progress is None:
            return None
        return self._progress.get_connection_info()

    def current_channel(self) -> ChannelId | None:
        """The channel connected or connecting to, if any."""
        if self._progress is None:
            return None
        return self._progress.channel_id()

    async def leave(self) -> None:
        """Leave the current channel, keeping mute and deafen settings."""
        self._leave_local()
        await self._update()

    def _leave_local(self) -> None:
        self._set_connection(None, None)

    def update_server(self, endpoint: str, token: str) -> None:
        """Apply a voice server update from the gateway."""
        if self._progress is not None and self._progress.apply_server_update(
            endpoint, token
        ):
            self._do_connect()

    def update_state(self, session_id: str, channel_id: ChannelId | None) -> None:
        """Apply a voice state update for this user; no channel means disconnected."""
        if channel_id is None:
            # Most likely disconnected by an admin.
            self._leave_local()
            return
        if self._progress is not None and self._progress.apply_state_update(
            session_id, channel_id
        ):
            self._do_connect()

    async def _update(self) -> None:
        if self._ws is None:
            raise NoSenderError()

        channel = self.current_channel()
        message: dict[str, Any] = {
            "op": _VOICE_STATE_UPDATE,
            "d": {
                "channel_id": None if channel is None else channel.value,
                "guild_id": self._guild_id.value,
                "self_deaf": self._self_deaf,
                "self_mute": self._self_mute,
            },
        }
        _log.debug("Sending voice state update for guild %s", self._guild_id)
        await self._ws.send(message)