"""Table name to channel resolution within the storage guild."""
from __future__ import annotations

import logging
from typing import List, Optional

import discord

from .adapters.discord import DiscordClient
from .errors import NotFoundError, remote_call

logger = logging.getLogger(__name__)


class ChannelDirectory:
    """Maps table names onto text channels of a single guild.

    Nothing is cached: every lookup enumerates the guild's channels, so tables
    created or dropped by other processes are seen immediately. Creation is
    not locked and two concurrent creators can produce duplicate channels.
    """

    def __init__(self, client: DiscordClient, guild_id: int) -> None:
        self._client = client
        self._guild_id = guild_id

    @property
    def guild_id(self) -> int:
        return self._guild_id

    async def channels(self, *, operation: str) -> List[discord.TextChannel]:
        with remote_call(f"{operation}) failed get_channels"):
            return await self._client.get_channels(self._guild_id)

    async def resolve(self, table_name: str, *, operation: str) -> Optional[int]:
        """Id of the channel backing ``table_name``, or ``None``."""

        channel_name = table_name.lower()
        for channel in await self.channels(operation=operation):
            if channel.name == channel_name:
                return channel.id
        return None

    async def require(self, table_name: str, *, operation: str) -> int:
        channel_id = await self.resolve(table_name, operation=operation)
        if channel_id is None:
            raise NotFoundError(f"{operation}) not found channel: {table_name.lower()}")
        return channel_id

    async def create(self, table_name: str, *, operation: str) -> int:
        with remote_call(f"{operation}) failed create_channel"):
            channel = await self._client.create_channel(self._guild_id, table_name)
        logger.info("Created channel %s (%s) for table %s", channel.name, channel.id, table_name)
        return channel.id

    async def delete(self, channel_id: int, *, operation: str) -> None:
        with remote_call(f"{operation}) failed delete_channel"):
            await self._client.delete_channel(channel_id)
        logger.info("Deleted channel %s", channel_id)


__all__ = ["ChannelDirectory"]
