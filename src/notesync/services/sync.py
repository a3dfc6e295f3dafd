"""Vault synchronization service.

Mirrors a vault directory into the note store: a full sync on demand, and
per-file handlers for hosts that report individual changes.
"""

from __future__ import annotations

import asyncio
import time

from loguru import logger

from ..core.types import SyncResult
from ..sources.vault import VaultLoader
from ..store.adapter import NoteStore


class SyncService:
    """Keeps a NoteStore in step with a vault.

    Example:

        async with NoteStore(config) as store:
            service = SyncService(store, VaultLoader(config.sync))
            result = await service.full_sync()
            print(f"Updated {result.updated}, removed {result.deleted}")
    """

    def __init__(self, store: NoteStore, loader: VaultLoader):
        self.store = store
        self.loader = loader

    async def full_sync(self) -> SyncResult:
        """Upsert every note in the vault and drop notes no longer on disk.

        All notes go to the store as one batch. Files that failed to load
        keep whatever the store already holds for them.
        """
        start = time.perf_counter()
        logger.info(f"Performing full sync of {self.loader.root}")

        records, errors = await asyncio.to_thread(self.loader.load_all)
        result = SyncResult(errors=errors)

        if records:
            result.updated = await self.store.update_note(records)

        on_disk = {r.path for r in records} | {path for path, _ in errors}
        stale = sorted(set(await self.store.list_paths()) - on_disk)
        if stale:
            result.deleted = await self.store.delete_notes(stale)

        elapsed = time.perf_counter() - start
        logger.info(
            f"Full sync completed in {elapsed:.2f}s: updated={result.updated}, "
            f"deleted={result.deleted}, errors={len(result.errors)}"
        )
        return result

    async def on_modified(self, path: str) -> None:
        """Handle a created or modified note."""
        record = await asyncio.to_thread(self.loader.load, self.loader.root / path)
        await self.store.update_note(record)

    async def on_deleted(self, path: str) -> None:
        """Handle a deleted note."""
        await self.store.delete_note(path)

    async def on_renamed(self, old_path: str, new_path: str) -> None:
        """Handle a note moved from old_path to new_path."""
        record = await asyncio.to_thread(self.loader.load, self.loader.root / new_path)
        await self.store.rename_note(old_path, record)

    async def on_opened(self, path: str) -> None:
        """Handle a note being opened."""
        await self.store.update_last_opened(path)
