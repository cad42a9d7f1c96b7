"""Row persistence as regular, non-pinned channel messages."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

import discord

from . import codec
from .adapters.discord import DiscordClient
from .directory import ChannelDirectory
from .errors import DecodeError, InvalidKeyError, StorageError, remote_call
from .models import DataRow, Key

logger = logging.getLogger(__name__)

# Discord snowflakes are unsigned 64-bit integers.
_SNOWFLAKE_MAX = 2**64 - 1

RAW_CONTENT_COLUMN = "content"


def parse_key(key: Key, *, operation: str) -> int:
    """Message id addressed by a row key."""

    if not isinstance(key, str) or not (key.isascii() and key.isdigit()):
        raise InvalidKeyError(f"{operation}) invalid key {key!r}")
    message_id = int(key)
    if message_id > _SNOWFLAKE_MAX:
        raise InvalidKeyError(f"{operation}) invalid key {key!r}")
    return message_id


def decode_row(content: str) -> DataRow:
    """Decode message content, falling back to a single raw-text column.

    Messages typed into a table channel by hand are still readable as rows
    instead of failing the whole read.
    """

    try:
        return codec.decode(content, DataRow)
    except DecodeError as exc:
        logger.debug("Treating undecodable message as raw content: %s", exc)
        return DataRow.map({RAW_CONTENT_COLUMN: content})


def is_row_message(message: discord.Message) -> bool:
    """Regular messages that are not the pinned schema."""

    return message.type == discord.MessageType.default and not message.pinned


class RowStore:
    """One row per message, keyed by the Discord message id."""

    def __init__(self, client: DiscordClient, directory: ChannelDirectory) -> None:
        self._client = client
        self._directory = directory

    def _encode(self, row: DataRow, *, operation: str) -> str:
        content = codec.encode(row)
        if not codec.message_fits(content):
            raise StorageError(f"{operation}) row exceeds the Discord message limit")
        return content

    async def fetch(self, table_name: str, key: Key) -> Optional[DataRow]:
        operation = "fetch_data"
        channel_id = await self._directory.resolve(table_name, operation=operation)
        if channel_id is None:
            return None
        message_id = parse_key(key, operation=operation)
        with remote_call(f"{operation}) failed get_message"):
            message = await self._client.get_message(channel_id, message_id)
        if message is None or not is_row_message(message):
            return None
        return decode_row(message.content)

    async def scan(self, table_name: str) -> List[Tuple[Key, DataRow]]:
        """All rows of the table, oldest first.

        Discord pages history newest first, so the whole channel is drained
        before the order can be reversed.
        """

        operation = "scan_data"
        channel_id = await self._directory.resolve(table_name, operation=operation)
        if channel_id is None:
            return []
        rows: List[Tuple[Key, DataRow]] = []
        with remote_call(f"{operation}) failed history"):
            async for message in self._client.history(channel_id):
                if not is_row_message(message):
                    continue
                rows.append((str(message.id), decode_row(message.content)))
        rows.reverse()
        return rows

    async def append(self, table_name: str, rows: Iterable[DataRow]) -> List[Key]:
        """Post each row as a new message; the assigned ids become the keys."""

        operation = "append_data"
        channel_id = await self._directory.require(table_name, operation=operation)
        keys: List[Key] = []
        for row in rows:
            content = self._encode(row, operation=operation)
            with remote_call(f"{operation}) failed send_message"):
                message = await self._client.send_message(channel_id, content)
            keys.append(str(message.id))
        return keys

    async def insert_or_update(self, table_name: str, rows: Iterable[Tuple[Key, DataRow]]) -> None:
        """Edit rows in place by key; unknown keys are posted as new rows.

        A new row gets a fresh message id, not the requested key.
        """

        operation = "insert_data"
        channel_id = await self._directory.require(table_name, operation=operation)
        for key, row in rows:
            message_id = parse_key(key, operation=operation)
            content = self._encode(row, operation=operation)
            with remote_call(f"{operation}) failed get_message"):
                existing = await self._client.get_message(channel_id, message_id)
            if existing is not None and not is_row_message(existing):
                raise InvalidKeyError(f"{operation}) key {key!r} does not address a row")
            if existing is not None:
                with remote_call(f"{operation}) failed edit_message"):
                    await self._client.edit_message(channel_id, message_id, content)
            else:
                with remote_call(f"{operation}) failed send_message"):
                    message = await self._client.send_message(channel_id, content)
                logger.debug("Key %s not found in %s; stored as %s", key, table_name, message.id)

    async def delete(self, table_name: str, keys: Iterable[Key]) -> None:
        operation = "delete_data"
        channel_id = await self._directory.require(table_name, operation=operation)
        for key in keys:
            message_id = parse_key(key, operation=operation)
            with remote_call(f"{operation}) failed delete_message"):
                await self._client.delete_message(channel_id, message_id)


__all__ = ["RAW_CONTENT_COLUMN", "RowStore", "decode_row", "is_row_message", "parse_key"]
