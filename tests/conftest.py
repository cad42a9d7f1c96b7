"""Shared fixtures: an in-memory stand-in for the Discord REST client."""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Set
from unittest.mock import MagicMock

import discord
import pytest

from discord_storage.store import DiscordStorage

GUILD_ID = 900_000_000_000_000_001
GUILD_NAME = "GlueSQL Storage Test"


def http_error(cls=discord.HTTPException, status: int = 500, text: str = "boom"):
    response = MagicMock(status=status, reason=text)
    return cls(response, text)


@dataclass
class FakeMessage:
    id: int
    content: str
    type: discord.MessageType = discord.MessageType.default
    pinned: bool = False


@dataclass
class FakeChannel:
    id: int
    name: str
    messages: Dict[int, FakeMessage] = field(default_factory=dict)
    pin_order: List[int] = field(default_factory=list)


class FakeDiscordClient:
    """Mimics ``DiscordClient`` against in-memory guild state.

    Ids increase monotonically like snowflakes. Pinning adds a ``pins_add``
    system message as Discord does. Method names listed in ``fail_on`` raise
    an HTTP 500.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1_100_000_000_000_000_000)
        self.guilds: Dict[str, int] = {GUILD_NAME: GUILD_ID}
        self.channels: Dict[int, FakeChannel] = {}
        self.calls: List[str] = []
        self.fail_on: Set[str] = set()
        self.closed = False

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise http_error()

    def _get_channel(self, channel_id: int) -> FakeChannel:
        channel = self.channels.get(channel_id)
        if channel is None:
            raise http_error(discord.NotFound, 404, "Unknown Channel")
        return channel

    def add_channel(self, name: str) -> FakeChannel:
        channel = FakeChannel(id=next(self._ids), name=name)
        self.channels[channel.id] = channel
        return channel

    def add_message(self, channel: FakeChannel, content: str, **kwargs) -> FakeMessage:
        message = FakeMessage(id=next(self._ids), content=content, **kwargs)
        channel.messages[message.id] = message
        return message

    def channel_named(self, name: str) -> FakeChannel:
        return next(channel for channel in self.channels.values() if channel.name == name)

    async def close(self) -> None:
        self.closed = True

    async def find_guild_id(self, guild_name: str) -> Optional[int]:
        self._call("find_guild_id")
        return self.guilds.get(guild_name)

    async def get_channels(self, guild_id: int) -> List[FakeChannel]:
        self._call("get_channels")
        return list(self.channels.values())

    async def create_channel(self, guild_id: int, name: str) -> FakeChannel:
        self._call("create_channel")
        return self.add_channel(name.lower())

    async def delete_channel(self, channel_id: int) -> None:
        self._call("delete_channel")
        self._get_channel(channel_id)
        del self.channels[channel_id]

    async def get_message(self, channel_id: int, message_id: int) -> Optional[FakeMessage]:
        self._call("get_message")
        return self._get_channel(channel_id).messages.get(message_id)

    async def get_pins(self, channel_id: int, *, limit: Optional[int] = None) -> List[FakeMessage]:
        self._call("get_pins")
        channel = self._get_channel(channel_id)
        pins = [channel.messages[message_id] for message_id in reversed(channel.pin_order)]
        return pins if limit is None else pins[:limit]

    async def pin_message(self, channel_id: int, message_id: int, *, reason: str) -> None:
        self._call("pin_message")
        channel = self._get_channel(channel_id)
        channel.messages[message_id].pinned = True
        channel.pin_order.append(message_id)
        self.add_message(channel, "", type=discord.MessageType.pins_add)

    async def send_message(self, channel_id: int, content: str) -> FakeMessage:
        self._call("send_message")
        return self.add_message(self._get_channel(channel_id), content)

    async def edit_message(self, channel_id: int, message_id: int, content: str) -> FakeMessage:
        self._call("edit_message")
        message = self._get_channel(channel_id).messages.get(message_id)
        if message is None:
            raise http_error(discord.NotFound, 404, "Unknown Message")
        message.content = content
        return message

    async def delete_message(self, channel_id: int, message_id: int) -> None:
        self._call("delete_message")
        channel = self._get_channel(channel_id)
        if message_id not in channel.messages:
            raise http_error(discord.NotFound, 404, "Unknown Message")
        del channel.messages[message_id]
        if message_id in channel.pin_order:
            channel.pin_order.remove(message_id)

    async def _history(self, channel: FakeChannel) -> AsyncIterator[FakeMessage]:
        for message_id in sorted(channel.messages, reverse=True):
            yield channel.messages[message_id]

    def history(self, channel_id: int) -> AsyncIterator[FakeMessage]:
        self._call("history")
        return self._history(self._get_channel(channel_id))


@pytest.fixture
def fake_client() -> FakeDiscordClient:
    return FakeDiscordClient()


@pytest.fixture
def storage(fake_client) -> DiscordStorage:
    return DiscordStorage(fake_client, GUILD_ID)
