"""Identifier types for voice channels, guilds and users."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["ChannelId", "GuildId", "UserId"]

_U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class _Snowflake:
    """An unsigned 64-bit identifier."""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(
                f"{type(self).__name__} needs an int, not {type(self.value).__name__}"
            )
        if not 0 <= self.value <= _U64_MAX:
            raise ValueError(
                f"{type(self).__name__} must fit in an unsigned 64-bit integer: {self.value}"
            )

    def __str__(self) -> str:
        return str(self.value)

    def __int__(self) -> int:
        return self.value


class ChannelId(_Snowflake):
    """ID of a voice or text channel."""


class GuildId(_Snowflake):
    """ID of a guild (a server)."""


class UserId(_Snowflake):
    """ID of a user."""