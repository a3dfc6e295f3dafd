"""Vault sync command for notesync CLI."""

import asyncio

from ...core.config import Config
from ...services import SyncService
from ...sources import VaultLoader
from ...store import NoteStore


def handle_sync(args, config: Config) -> None:
    """Sync a vault directory into the store.

    Args:
        args: Parsed command arguments.
        config: Application configuration.
    """
    if args.vault:
        config.sync.vault_path = args.vault
    asyncio.run(_handle_sync_async(config))


async def _handle_sync_async(config: Config) -> None:
    loader = VaultLoader(config.sync)
    async with NoteStore(config) as store:
        result = await SyncService(store, loader).full_sync()

    print(f"Updated: {result.updated}")
    print(f"Deleted: {result.deleted}")
    if result.errors:
        print(f"Errors: {len(result.errors)}")
        for path, message in result.errors:
            print(f"  {path}: {message}")
