"""Deployment checks for the Discord storage adapter."""
from __future__ import annotations

import argparse
import asyncio
import os
from dataclasses import dataclass
from typing import Iterable, List, Mapping

from discord_storage.config import DEFAULT_GUILD_NAME, StorageConfig, get_config
from discord_storage.errors import StorageError
from discord_storage.store import DiscordStorage


@dataclass(frozen=True)
class CheckResult:
    name: str
    status: str
    detail: str


REQUIRED_ENV = ["DISCORD_BOT_TOKEN"]
_BOOL_VALUES = {"1", "0", "true", "false", "yes", "no", "on", "off"}


def _status(level: str, name: str, detail: str) -> CheckResult:
    return CheckResult(name=name, status=level, detail=detail)


def run_checks(env: Mapping[str, str]) -> List[CheckResult]:
    results: List[CheckResult] = []

    for key in REQUIRED_ENV:
        if env.get(key):
            results.append(_status("ok", key, "present"))
        else:
            results.append(_status("error", key, "missing"))

    guild = env.get("DISCORD_STORAGE_GUILD", "").strip()
    if guild:
        results.append(_status("ok", "storage_guild", f"using guild {guild!r}"))
    else:
        results.append(
            _status("warning", "storage_guild", f"DISCORD_STORAGE_GUILD unset; defaulting to {DEFAULT_GUILD_NAME!r}")
        )

    schemaless = env.get("DISCORD_STORAGE_SCHEMALESS")
    if schemaless is None:
        results.append(_status("ok", "schemaless_tables", "disabled"))
    elif schemaless.strip().lower() in _BOOL_VALUES:
        results.append(_status("ok", "schemaless_tables", f"set to {schemaless.strip()}"))
    else:
        results.append(_status("error", "schemaless_tables", f"unrecognised boolean {schemaless!r}"))

    return results


async def list_tables(config: StorageConfig) -> List[CheckResult]:
    """Connect with ``config`` and report the tables the guild holds."""

    try:
        async with await DiscordStorage.from_config(config) as storage:
            schemas = await storage.fetch_all_schemas()
    except StorageError as exc:
        return [_status("error", "discord_connect", str(exc))]
    names = ", ".join(schema.table_name for schema in schemas) or "none"
    return [
        _status("ok", "discord_connect", f"connected to {config.guild_name!r}"),
        _status("ok", "tables", names),
    ]


def _print_table(results: Iterable[CheckResult]) -> None:
    header = f"{'Check':<32} {'Status':<8} Detail"
    print(header)
    print("-" * len(header))
    for result in results:
        print(f"{result.name:<32} {result.status:<8} {result.detail}")


def main(argv: Iterable[str] | None = None) -> int:  # pragma: no cover - CLI entry point
    parser = argparse.ArgumentParser(description="Check Discord storage configuration.")
    parser.add_argument("--connect", action="store_true", help="log in and list stored tables")
    args = parser.parse_args(argv)
    results = run_checks(os.environ)
    if args.connect and not any(result.status == "error" for result in results):
        results.extend(asyncio.run(list_tables(get_config())))
    _print_table(results)
    if any(result.status == "error" for result in results):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
