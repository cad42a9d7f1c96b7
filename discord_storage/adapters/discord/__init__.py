"""Discord adapter: the REST client used as the storage medium."""

from __future__ import annotations

from .client import DiscordClient

__all__ = ["DiscordClient"]
