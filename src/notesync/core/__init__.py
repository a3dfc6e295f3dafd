"""Core types, configuration and errors for notesync."""

from .config import Config, StoreConfig, SyncConfig
from .exceptions import (
    CommandProcessError,
    CommandTimeoutError,
    DatabaseError,
    MigrationError,
    NoteSyncError,
    OutputParseError,
    QueueClosedError,
    SourceError,
    StoreNotInitializedError,
)
from .types import (
    NoteRecord,
    RelationKind,
    ResultMode,
    SchemaResult,
    SchemaStatus,
    StoredNote,
    SyncResult,
)

__all__ = [
    "Config",
    "StoreConfig",
    "SyncConfig",
    "NoteSyncError",
    "DatabaseError",
    "CommandTimeoutError",
    "CommandProcessError",
    "OutputParseError",
    "MigrationError",
    "StoreNotInitializedError",
    "QueueClosedError",
    "SourceError",
    "NoteRecord",
    "RelationKind",
    "ResultMode",
    "SchemaResult",
    "SchemaStatus",
    "StoredNote",
    "SyncResult",
]
