"""Tests for storage configuration loading."""
from __future__ import annotations

import pytest

from discord_storage.config import (
    DEFAULT_GUILD_NAME,
    DEFAULT_PIN_REASON,
    DEFAULT_SETTINGS_PATH,
    ConfigLoader,
    StorageConfig,
)

ENV_VARS = [
    "DISCORD_BOT_TOKEN",
    "DISCORD_STORAGE_GUILD",
    "DISCORD_STORAGE_PIN_REASON",
    "DISCORD_STORAGE_SCHEMALESS",
]


@pytest.fixture(autouse=True)
def reset_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield


def test_storage_config_defaults():
    """Test default storage configuration."""
    config = StorageConfig()
    assert config.token is None
    assert config.guild_name == DEFAULT_GUILD_NAME
    assert config.pin_reason == DEFAULT_PIN_REASON
    assert config.schemaless_tables is False


def test_storage_config_from_env():
    """Test loading storage configuration from environment variables."""
    config = StorageConfig.from_env(
        {
            "DISCORD_BOT_TOKEN": "abc",
            "DISCORD_STORAGE_GUILD": "Tables",
            "DISCORD_STORAGE_PIN_REASON": "schema",
            "DISCORD_STORAGE_SCHEMALESS": "yes",
        }
    )
    assert config == StorageConfig(
        token="abc", guild_name="Tables", pin_reason="schema", schemaless_tables=True
    )


def test_storage_config_env_overrides_base_only_where_set():
    """Test that unset environment variables keep file values."""
    base = StorageConfig(guild_name="From YAML", schemaless_tables=True)
    config = StorageConfig.from_env({"DISCORD_STORAGE_SCHEMALESS": "off"}, base=base)
    assert config.guild_name == "From YAML"
    assert config.schemaless_tables is False


def test_storage_config_is_immutable():
    """Test that configuration cannot be changed after loading."""
    config = StorageConfig()
    with pytest.raises(AttributeError):
        config.guild_name = "other"  # type: ignore[misc]


def test_default_settings_file_loads():
    """Test the bundled settings file."""
    assert DEFAULT_SETTINGS_PATH.exists()
    config = ConfigLoader().load(env={})
    assert config.guild_name == DEFAULT_GUILD_NAME
    assert config.schemaless_tables is False


def test_loader_reads_yaml_and_caches(tmp_path):
    """Test YAML loading, environment layering and caching."""
    path = tmp_path / "settings.yaml"
    path.write_text(
        "discord:\n  guild_name: Ledger\n  token: from-file\nstorage:\n  schemaless_tables: true\n",
        encoding="utf-8",
    )
    loader = ConfigLoader(path)

    config = loader.load(env={"DISCORD_BOT_TOKEN": "from-env"})
    assert config.guild_name == "Ledger"
    assert config.token == "from-env"
    assert config.schemaless_tables is True

    path.write_text("discord:\n  guild_name: Changed\n", encoding="utf-8")
    assert loader.load() is config
    assert loader.load(force=True, env={}).guild_name == "Changed"


def test_loader_tolerates_empty_file(tmp_path):
    """Test loading an empty settings file."""
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert ConfigLoader(path).load(env={}) == StorageConfig()
