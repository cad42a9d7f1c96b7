"""Storage error hierarchy surfaced to the query engine."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import aiohttp
import discord

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised for any storage failure; the engine only sees this type."""


class NotFoundError(StorageError):
    """Raised when a table, channel, or guild required by a mutation is absent."""


class InvalidKeyError(StorageError):
    """Raised when a row key is not a Discord message id."""


class DecodeError(StorageError):
    """Raised when stored message content does not parse."""


class ConstraintViolation(StorageError):
    """Raised for primary keys and attempts to redefine a pinned schema."""


class RemoteError(StorageError):
    """Raised when a Discord call fails; the transport error is chained."""


@contextmanager
def remote_call(context: str) -> Iterator[None]:
    """Translate Discord transport failures into :class:`RemoteError`."""

    try:
        yield
    except (discord.DiscordException, aiohttp.ClientError) as exc:
        logger.warning("%s: %s", context, exc)
        raise RemoteError(f"{context}: {exc}") from exc


__all__ = [
    "ConstraintViolation",
    "DecodeError",
    "InvalidKeyError",
    "NotFoundError",
    "RemoteError",
    "StorageError",
    "remote_call",
]
