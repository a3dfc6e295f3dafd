"""Persistence layer for notesync.

This package provides the SQLite store adapter:
- CommandExecutor: runs one script per sqlite3 process
- WriteQueue: FIFO serialization of all writes
- VersionManager: schema creation, reset and migration
- NoteStore: the collaborator-facing API tying them together

Example:
    from notesync.store import NoteStore

    async with NoteStore(config) as store:
        await store.update_note(records)
"""

from .adapter import NoteStore
from .executor import CommandExecutor
from .migrations import Migration, MigrationRegistry, VersionManager
from .queue import WriteQueue

__all__ = [
    "NoteStore",
    "CommandExecutor",
    "WriteQueue",
    "Migration",
    "MigrationRegistry",
    "VersionManager",
]
