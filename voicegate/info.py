"""Connection details and the tracking of a connection as it is negotiated."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .ids import ChannelId, GuildId, UserId

__all__ = ["ConnectionInfo", "ConnectionProgress"]


@dataclass(frozen=True, repr=False)
class ConnectionInfo:
    """Everything needed to start talking to a voice server."""

    channel_id: ChannelId | None
    endpoint: str
    guild_id: GuildId
    session_id: str
    token: str
    user_id: UserId

    def __repr__(self) -> str:
        return (
            f"ConnectionInfo(channel_id={self.channel_id!r}, endpoint={self.endpoint!r}, "
            f"guild_id={self.guild_id!r}, session_id={self.session_id!r}, "
            f"token='<secret>', user_id={self.user_id!r})"
        )


@dataclass
class _Partial:
    channel_id: ChannelId
    guild_id: GuildId
    user_id: UserId
    endpoint: str | None = None
    session_id: str | None = None
    token: str | None = None

    def __repr__(self) -> str:
        return (
            f"Partial(channel_id={self.channel_id!r}, endpoint={self.endpoint!r}, "
            f"session_id={self.session_id!r}, token_is_some={self.token is not None})"
        )

    def _finalise(self) -> ConnectionInfo | None:
        if self.endpoint is None or self.session_id is None or self.token is None:
            return None
        info = ConnectionInfo(
            channel_id=self.channel_id,
            endpoint=self.endpoint,
            guild_id=self.guild_id,
            session_id=self.session_id,
            token=self.token,
            user_id=self.user_id,
        )
        self.endpoint = self.session_id = self.token = None
        return info

    def apply_state_update(
        self, session_id: str, channel_id: ChannelId
    ) -> ConnectionInfo | None:
        if self.channel_id != channel_id:
            self.endpoint = None
            self.token = None
        self.channel_id = channel_id
        self.session_id = session_id
        return self._finalise()

    def apply_server_update(self, endpoint: str, token: str) -> ConnectionInfo | None:
        self.endpoint = endpoint
        self.token = token
        return self._finalise()


class ConnectionProgress:
    """A voice connection that is either complete or still gathering details."""

    def __init__(self, guild_id: GuildId, user_id: UserId, channel_id: ChannelId) -> None:
        self._state: ConnectionInfo | _Partial = _Partial(
            channel_id=channel_id, guild_id=guild_id, user_id=user_id
        )

    def __repr__(self) -> str:
        return f"ConnectionProgress({self._state!r})"

    def get_connection_info(self) -> ConnectionInfo | None:
        """The finished connection details, or None while still in progress."""
        return self._state if isinstance(self._state, ConnectionInfo) else None

    def in_progress(self) -> bool:
        return isinstance(self._state, _Partial)

    def channel_id(self) -> ChannelId:
        if isinstance(self._state, ConnectionInfo):
            if self._state.channel_id is None:
                raise RuntimeError("connection details are missing their channel id")
            return self._state.channel_id
        return self._state.channel_id

    def guild_id(self) -> GuildId:
        return self._state.guild_id

    def user_id(self) -> UserId:
        return self._state.user_id

    def info(self) -> ConnectionInfo | None:
        return self.get_connection_info()

    def apply_state_update(self, session_id: str, channel_id: ChannelId) -> bool:
        """Record a voice state update; True if a (re)connection should be attempted."""
        if self.channel_id() != channel_id:
            # Most likely moved to another channel by an admin.
            self._state = _Partial(
                channel_id=channel_id, guild_id=self.guild_id(), user_id=self.user_id()
            )

        state = self._state
        if isinstance(state, ConnectionInfo):
            should_reconnect = state.session_id != session_id
            self._state = replace(state, session_id=session_id)
            return should_reconnect

        info = state.apply_state_update(session_id, channel_id)
        if info is None:
            return False
        self._state = info
        return True

    def apply_server_update(self, endpoint: str, token: str) -> bool:
        """Record a voice server update; True if a (re)connection should be attempted."""
        state = self._state
        if isinstance(state, ConnectionInfo):
            should_reconnect = state.endpoint != endpoint or state.token != token
            self._state = replace(state, endpoint=endpoint, token=token)
            return should_reconnect

        info = state.apply_server_update(endpoint, token)
        if info is None:
            return False
        self._state = info
        return True