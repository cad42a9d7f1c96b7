"""Configuration loading utilities for the Discord storage adapter."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "data" / "settings.yaml"
DEFAULT_GUILD_NAME = "GlueSQL Storage Test"
DEFAULT_PIN_REASON = "add table schema"

_TRUTHY = {"1", "true", "yes", "on"}


def _parse_bool(value: Any, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class StorageConfig:
    """Immutable settings shared by every storage operation."""

    token: Optional[str] = None
    guild_name: str = DEFAULT_GUILD_NAME
    pin_reason: str = DEFAULT_PIN_REASON
    schemaless_tables: bool = False

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "StorageConfig":
        discord_cfg = dict(data.get("discord") or {})
        storage_cfg = dict(data.get("storage") or {})
        return StorageConfig(
            token=discord_cfg.get("token"),
            guild_name=str(discord_cfg.get("guild_name", DEFAULT_GUILD_NAME)),
            pin_reason=str(storage_cfg.get("pin_reason", DEFAULT_PIN_REASON)),
            schemaless_tables=_parse_bool(storage_cfg.get("schemaless_tables")),
        )

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        *,
        base: Optional["StorageConfig"] = None,
    ) -> "StorageConfig":
        """Load configuration from environment variables, layered over ``base``."""

        env = os.environ if env is None else env
        config = base or cls()
        overrides: Dict[str, Any] = {}
        if env.get("DISCORD_BOT_TOKEN"):
            overrides["token"] = env["DISCORD_BOT_TOKEN"]
        if env.get("DISCORD_STORAGE_GUILD"):
            overrides["guild_name"] = env["DISCORD_STORAGE_GUILD"]
        if env.get("DISCORD_STORAGE_PIN_REASON"):
            overrides["pin_reason"] = env["DISCORD_STORAGE_PIN_REASON"]
        if "DISCORD_STORAGE_SCHEMALESS" in env:
            overrides["schemaless_tables"] = _parse_bool(env["DISCORD_STORAGE_SCHEMALESS"])
        return replace(config, **overrides)


class ConfigLoader:
    """Loads and caches storage settings from a YAML file plus the environment."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or DEFAULT_SETTINGS_PATH
        self._cache: StorageConfig | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self, force: bool = False, env: Optional[Mapping[str, str]] = None) -> StorageConfig:
        if self._cache is not None and not force:
            return self._cache
        with self._path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        self._cache = StorageConfig.from_env(env, base=StorageConfig.from_dict(data))
        logger.debug("Loaded storage settings from %s", self._path)
        return self._cache


def get_config() -> StorageConfig:
    """Convenience accessor for default settings."""

    return ConfigLoader().load()


__all__ = ["ConfigLoader", "StorageConfig", "get_config"]
