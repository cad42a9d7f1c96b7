"""Storage interfaces expected by the query engine and the Discord backend."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from .adapters.discord import DiscordClient
from .config import StorageConfig, get_config
from .directory import ChannelDirectory
from .errors import NotFoundError, StorageError, remote_call
from .models import DataRow, Key, Schema
from .row_store import RowStore
from .schema_store import SchemaStore
from .timing import timed

logger = logging.getLogger(__name__)


class Store(ABC):
    """Read-only storage operations."""

    @abstractmethod
    async def fetch_schema(self, table_name: str) -> Optional[Schema]:
        ...

    @abstractmethod
    async def fetch_all_schemas(self) -> List[Schema]:
        ...

    @abstractmethod
    async def fetch_data(self, table_name: str, key: Key) -> Optional[DataRow]:
        ...

    @abstractmethod
    async def scan_data(self, table_name: str) -> List[Tuple[Key, DataRow]]:
        ...


class StoreMut(ABC):
    """Mutating storage operations."""

    @abstractmethod
    async def insert_schema(self, schema: Schema) -> None:
        ...

    @abstractmethod
    async def delete_schema(self, table_name: str) -> None:
        ...

    @abstractmethod
    async def append_data(self, table_name: str, rows: Sequence[DataRow]) -> List[Key]:
        ...

    @abstractmethod
    async def insert_data(self, table_name: str, rows: Sequence[Tuple[Key, DataRow]]) -> None:
        ...

    @abstractmethod
    async def delete_data(self, table_name: str, keys: Sequence[Key]) -> None:
        ...


class DiscordStorage(Store, StoreMut):
    """Stores tables as text channels of one Discord guild.

    Each table is a channel named after it, its schema is the channel's pinned
    message, and every other regular message is a row keyed by its message id.
    Table names are case-folded here so the components below only ever see
    lowercase names.
    """

    def __init__(
        self,
        client: DiscordClient,
        guild_id: int,
        *,
        config: Optional[StorageConfig] = None,
    ) -> None:
        config = config or StorageConfig()
        self._client = client
        self._guild_id = guild_id
        directory = ChannelDirectory(client, guild_id)
        self._schemas = SchemaStore(
            client,
            directory,
            pin_reason=config.pin_reason,
            schemaless_tables=config.schemaless_tables,
        )
        self._rows = RowStore(client, directory)

    @classmethod
    async def connect(
        cls,
        client: DiscordClient,
        guild_name: str,
        *,
        config: Optional[StorageConfig] = None,
    ) -> "DiscordStorage":
        """Resolve the storage guild by name once and bind the adapter to it."""

        with remote_call("connect) failed find_guild_id"):
            guild_id = await client.find_guild_id(guild_name)
        if guild_id is None:
            raise NotFoundError(f"not found guild_name: {guild_name}")
        logger.info("Using guild %s (%s) as storage", guild_name, guild_id)
        return cls(client, guild_id, config=config)

    @classmethod
    async def from_config(cls, config: Optional[StorageConfig] = None) -> "DiscordStorage":
        """Log in with the configured bot token and connect to the storage guild."""

        config = config or get_config()
        if not config.token:
            raise StorageError("DISCORD_BOT_TOKEN environment variable must be set")
        with remote_call("connect) failed login"):
            client = await DiscordClient.login(config.token)
        try:
            return await cls.connect(client, config.guild_name, config=config)
        except StorageError:
            await client.close()
            raise

    @property
    def guild_id(self) -> int:
        return self._guild_id

    async def close(self) -> None:
        await self._client.close()

    async def __aenter__(self) -> "DiscordStorage":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @timed("fetch_schema")
    async def fetch_schema(self, table_name: str) -> Optional[Schema]:
        return await self._schemas.fetch(table_name.lower())

    @timed("fetch_all_schemas")
    async def fetch_all_schemas(self) -> List[Schema]:
        return await self._schemas.fetch_all()

    @timed("fetch_data")
    async def fetch_data(self, table_name: str, key: Key) -> Optional[DataRow]:
        return await self._rows.fetch(table_name.lower(), key)

    @timed("scan_data")
    async def scan_data(self, table_name: str) -> List[Tuple[Key, DataRow]]:
        return await self._rows.scan(table_name.lower())

    @timed("insert_schema")
    async def insert_schema(self, schema: Schema) -> None:
        await self._schemas.insert(schema)

    @timed("delete_schema")
    async def delete_schema(self, table_name: str) -> None:
        await self._schemas.delete(table_name.lower())

    @timed("append_data")
    async def append_data(self, table_name: str, rows: Sequence[DataRow]) -> List[Key]:
        return await self._rows.append(table_name.lower(), rows)

    @timed("insert_data")
    async def insert_data(self, table_name: str, rows: Sequence[Tuple[Key, DataRow]]) -> None:
        await self._rows.insert_or_update(table_name.lower(), rows)

    @timed("delete_data")
    async def delete_data(self, table_name: str, keys: Sequence[Key]) -> None:
        await self._rows.delete(table_name.lower(), keys)


__all__ = ["DiscordStorage", "Store", "StoreMut"]
