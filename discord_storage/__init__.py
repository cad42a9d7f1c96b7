"""Relational table storage backed by Discord channels and messages."""

from __future__ import annotations

from .adapters.discord import DiscordClient
from .config import ConfigLoader, StorageConfig, get_config
from .errors import (
    ConstraintViolation,
    DecodeError,
    InvalidKeyError,
    NotFoundError,
    RemoteError,
    StorageError,
)
from .models import ColumnDef, ColumnUniqueOption, DataRow, Key, Schema, SchemaIndex
from .store import DiscordStorage, Store, StoreMut

__all__ = [
    "ColumnDef",
    "ColumnUniqueOption",
    "ConfigLoader",
    "ConstraintViolation",
    "DataRow",
    "DecodeError",
    "DiscordClient",
    "DiscordStorage",
    "InvalidKeyError",
    "Key",
    "NotFoundError",
    "RemoteError",
    "Schema",
    "SchemaIndex",
    "StorageConfig",
    "StorageError",
    "Store",
    "StoreMut",
    "get_config",
]
