"""Discord REST client used as the storage medium.

Required bot permissions in the storage guild:

- Manage Channels
- Send Messages
- Manage Messages
- Read Message History

The Message Content privileged intent must be enabled for the application,
otherwise message bodies of rows come back empty.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, List, Optional

import discord

from ...timing import timed

logger = logging.getLogger(__name__)

_NO_MENTIONS = discord.AllowedMentions.none()


class DiscordClient:
    """Thin async wrapper over the discord.py HTTP surface.

    Only the REST API is used; no gateway connection is opened. Discord
    exceptions propagate unchanged so callers can attach their own context.
    """

    def __init__(self, client: discord.Client) -> None:
        self._client = client
        self._guilds: Dict[int, discord.Guild] = {}

    @classmethod
    async def login(
        cls, token: str, *, intents: Optional[discord.Intents] = None
    ) -> "DiscordClient":
        intents = discord.Intents(**dict(intents)) if intents is not None else discord.Intents.default()
        intents.message_content = True
        client = discord.Client(intents=intents)
        try:
            await client.login(token)
        except discord.DiscordException:
            await client.close()
            raise
        logger.info("Logged in to Discord as %s", client.user)
        return cls(client)

    async def close(self) -> None:
        await self._client.close()

    @timed("find_guild_id")
    async def find_guild_id(self, guild_name: str) -> Optional[int]:
        """Return the id of the first guild the bot belongs to named ``guild_name``."""

        async for guild in self._client.fetch_guilds(limit=None):
            if guild.name == guild_name:
                self._guilds[guild.id] = guild
                return guild.id
        return None

    async def _guild(self, guild_id: int) -> discord.Guild:
        guild = self._guilds.get(guild_id)
        if guild is None:
            guild = await self._client.fetch_guild(guild_id)
            self._guilds[guild_id] = guild
        return guild

    def _channel(self, channel_id: int) -> discord.PartialMessageable:
        return self._client.get_partial_messageable(channel_id)

    @timed("get_channels")
    async def get_channels(self, guild_id: int) -> List[discord.TextChannel]:
        """Text channels of the guild; other channel kinds cannot hold rows."""

        guild = await self._guild(guild_id)
        channels = await guild.fetch_channels()
        return [channel for channel in channels if isinstance(channel, discord.TextChannel)]

    @timed("create_channel")
    async def create_channel(self, guild_id: int, name: str) -> discord.TextChannel:
        guild = await self._guild(guild_id)
        return await guild.create_text_channel(name)

    @timed("delete_channel")
    async def delete_channel(self, channel_id: int) -> None:
        channel = await self._client.fetch_channel(channel_id)
        await channel.delete()

    @timed("get_message")
    async def get_message(self, channel_id: int, message_id: int) -> Optional[discord.Message]:
        try:
            return await self._channel(channel_id).fetch_message(message_id)
        except discord.NotFound:
            return None

    @timed("get_pins")
    async def get_pins(self, channel_id: int, *, limit: Optional[int] = None) -> List[discord.Message]:
        """Pinned messages, most recently pinned first."""

        return [message async for message in self._channel(channel_id).pins(limit=limit)]

    @timed("pin_message")
    async def pin_message(self, channel_id: int, message_id: int, *, reason: str) -> None:
        await self._channel(channel_id).get_partial_message(message_id).pin(reason=reason)

    @timed("send_message")
    async def send_message(self, channel_id: int, content: str) -> discord.Message:
        return await self._channel(channel_id).send(content, allowed_mentions=_NO_MENTIONS)

    @timed("edit_message")
    async def edit_message(self, channel_id: int, message_id: int, content: str) -> discord.Message:
        partial = self._channel(channel_id).get_partial_message(message_id)
        return await partial.edit(content=content, allowed_mentions=_NO_MENTIONS)

    @timed("delete_message")
    async def delete_message(self, channel_id: int, message_id: int) -> None:
        await self._channel(channel_id).get_partial_message(message_id).delete()

    def history(self, channel_id: int) -> AsyncIterator[discord.Message]:
        """Every message of the channel, newest first."""

        return self._channel(channel_id).history(limit=None)


__all__ = ["DiscordClient"]
