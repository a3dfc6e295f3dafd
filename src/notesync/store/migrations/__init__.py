"""Schema versioning for notesync.

Example:
    from notesync.store.migrations import MigrationRegistry, VersionManager

    manager = VersionManager(executor, MigrationRegistry.default())
    result = await manager.ensure_schema()
"""

from .runner import Migration, MigrationRegistry, VersionManager, discover_migrations

__all__ = [
    "Migration",
    "MigrationRegistry",
    "VersionManager",
    "discover_migrations",
]
