"""Schema persistence as the pinned message of a table's channel."""
from __future__ import annotations

import logging
from typing import List, Optional

from . import codec
from .adapters.discord import DiscordClient
from .config import DEFAULT_PIN_REASON
from .directory import ChannelDirectory
from .errors import ConstraintViolation, RemoteError, StorageError, remote_call
from .models import Schema

logger = logging.getLogger(__name__)


class SchemaStore:
    """Reads and writes the single write-once schema pin of each channel."""

    def __init__(
        self,
        client: DiscordClient,
        directory: ChannelDirectory,
        *,
        pin_reason: str = DEFAULT_PIN_REASON,
        schemaless_tables: bool = False,
    ) -> None:
        self._client = client
        self._directory = directory
        self._pin_reason = pin_reason
        self._schemaless_tables = schemaless_tables

    async def fetch(self, table_name: str) -> Optional[Schema]:
        operation = "fetch_schema"
        channel_id = await self._directory.resolve(table_name, operation=operation)
        if channel_id is None:
            return None
        return await self._read(channel_id, table_name.lower(), operation=operation)

    async def fetch_all(self) -> List[Schema]:
        operation = "fetch_all_schemas"
        schemas: List[Schema] = []
        for channel in await self._directory.channels(operation=operation):
            schema = await self._read(channel.id, channel.name, operation=operation)
            if schema is not None:
                schemas.append(schema)
        return schemas

    async def _read(self, channel_id: int, channel_name: str, *, operation: str) -> Optional[Schema]:
        with remote_call(f"{operation}) failed get_pins"):
            pins = await self._client.get_pins(channel_id, limit=1)
        if not pins:
            if self._schemaless_tables:
                return Schema(table_name=channel_name, column_defs=None)
            return None
        return codec.decode(pins[0].content, Schema)

    async def insert(self, schema: Schema) -> None:
        """Create the table's channel if needed and pin ``schema`` into it.

        Primary keys are refused before any remote call: uniqueness cannot be
        enforced without scanning the whole channel. If pinning fails, the
        freshly posted message is deleted again so the channel is left without
        a half-written schema.
        """

        operation = "insert_schema"
        primary = schema.primary_key_columns()
        if primary:
            raise ConstraintViolation(f"primary key is not supported: {', '.join(primary)}")

        content = codec.encode(schema)
        if not codec.message_fits(content):
            raise StorageError(f"{operation}) schema exceeds the Discord message limit")

        channel_name = schema.table_name.lower()
        channel_id = await self._directory.resolve(channel_name, operation=operation)
        if channel_id is None:
            channel_id = await self._directory.create(schema.table_name, operation=operation)

        with remote_call(f"{operation}) failed get_pins"):
            pins = await self._client.get_pins(channel_id, limit=1)
        if pins:
            raise ConstraintViolation(f"channel is already pinned: {channel_name}")

        with remote_call(f"{operation}) failed send_message"):
            message = await self._client.send_message(channel_id, content)
        try:
            with remote_call(f"{operation}) failed pin_message"):
                await self._client.pin_message(channel_id, message.id, reason=self._pin_reason)
        except RemoteError:
            await self._discard(channel_id, message.id)
            raise
        logger.info("Pinned schema for %s as message %s", channel_name, message.id)

    async def _discard(self, channel_id: int, message_id: int) -> None:
        try:
            with remote_call("insert_schema) failed delete_message"):
                await self._client.delete_message(channel_id, message_id)
        except RemoteError:
            logger.exception("Orphaned schema message %s left in channel %s", message_id, channel_id)

    async def delete(self, table_name: str) -> None:
        """Drop the table's channel, rows included."""

        operation = "delete_schema"
        channel_id = await self._directory.require(table_name, operation=operation)
        await self._directory.delete(channel_id, operation=operation)


__all__ = ["SchemaStore"]
