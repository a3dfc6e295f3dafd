"""Collaborator-facing note store.

NoteStore ties the pieces together: the VersionManager prepares the schema
once, then every write is rendered by the statement builder and funneled
through the WriteQueue into the CommandExecutor.
"""

from __future__ import annotations

from typing import Any, Iterable

from loguru import logger

from ..core.config import Config
from ..core.exceptions import QueueClosedError, StoreNotInitializedError
from ..core.types import NoteRecord, ResultMode, SchemaResult, StoredNote
from . import statements
from .executor import CommandExecutor
from .migrations import MigrationRegistry, VersionManager
from .queue import WriteQueue


class NoteStore:
    """SQLite-backed note index driven through the sqlite3 CLI.

    Usage as context manager (recommended):

        async with NoteStore(config) as store:
            await store.update_note(record)
            await store.update_last_opened(record.path)

    Usage with manual lifecycle:

        store = await NoteStore.create(config)
        try:
            await store.delete_note("old.md")
        finally:
            await store.close()

    Attributes:
        config: Application configuration.
        executor: Executor bound to config.db_path.
        queue: FIFO queue all writes go through.
        schema_result: Outcome of the startup schema check, once initialized.
    """

    def __init__(
        self,
        config: Config,
        executor: CommandExecutor | None = None,
        registry: MigrationRegistry | None = None,
    ):
        """Initialize store.

        Args:
            config: Application configuration.
            executor: Executor override (default: built from config).
            registry: Migration registry override (default: discovered).
        """
        self.config = config
        self.executor = executor or CommandExecutor(config.db_path, config.store)
        self._registry = registry
        self.queue = WriteQueue()
        self.schema_result: SchemaResult | None = None
        self._initialized = False
        self._closed = False

    @classmethod
    async def create(cls, config: Config, **kwargs: Any) -> "NoteStore":
        """Construct and initialize a store."""
        store = cls(config, **kwargs)
        await store.initialize()
        return store

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> SchemaResult | None:
        """Bring the schema up to date and open the write queue.

        Safe to call more than once; later calls return the first result.

        Returns:
            SchemaResult, or None when config.store.skip_init_check is set.

        Raises:
            QueueClosedError: The store has been closed.
        """
        if self._closed:
            raise QueueClosedError("NoteStore is closed; create a new one")
        if self._initialized:
            return self.schema_result

        if self.config.store.skip_init_check:
            logger.debug("Skipping schema check")
        else:
            try:
                manager = VersionManager(
                    self.executor, self._registry or MigrationRegistry.default()
                )
                self.schema_result = await manager.ensure_schema()
            except Exception as e:
                logger.error(f"Failed to initialize database: {e}")
                raise
            logger.info(self.schema_result.message)

        self.queue.start()
        self._initialized = True
        return self.schema_result

    async def close(self) -> None:
        """Drain pending writes and stop accepting new ones."""
        self._closed = True
        await self.queue.close()
        self._initialized = False

    async def __aenter__(self) -> "NoteStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _require_initialized(self) -> None:
        if self._closed:
            raise QueueClosedError("NoteStore is closed; create a new one")
        if not self._initialized:
            raise StoreNotInitializedError(
                "NoteStore not initialized. Call initialize() first."
            )

    async def _write(self, script: str) -> str:
        self._require_initialized()
        return await self.queue.enqueue(lambda: self.executor.run(script))

    # --- Writes (serialized through the queue) ---

    async def update_note(self, records: NoteRecord | Iterable[NoteRecord]) -> int:
        """Insert or update one note or a batch of notes.

        Tags and frontmatter of every note in the batch are replaced by the
        sets carried in the records. The batch is one sqlite3 invocation.

        Returns:
            Number of distinct paths written.
        """
        self._require_initialized()
        batch = [records] if isinstance(records, NoteRecord) else list(records)
        script = statements.build_note_write(batch)
        if not script:
            return 0

        await self._write(script)
        written = len({r.path for r in batch})
        logger.debug(f"Updated {written} note(s)")
        return written

    async def delete_note(self, path: str) -> None:
        """Delete a note; its tags and frontmatter cascade."""
        await self._write(statements.build_delete(path))
        logger.debug(f"Deleted note {path}")

    async def delete_notes(self, paths: Iterable[str]) -> int:
        """Delete several notes in one invocation.

        Returns:
            Number of paths passed in.
        """
        paths = list(paths)
        script = statements.build_delete_many(paths)
        if not script:
            return 0
        await self._write(script)
        return len(paths)

    async def rename_note(self, old_path: str, record: NoteRecord) -> None:
        """Move a note to a new path as one queued write."""
        await self._write(statements.build_rename(old_path, record))
        logger.debug(f"Renamed note {old_path} -> {record.path}")

    async def update_last_opened(self, path: str, now: int | None = None) -> None:
        """Stamp a note as opened now (epoch milliseconds)."""
        await self._write(statements.build_touch_last_opened(path, now))

    # --- Reads (bypass the queue) ---

    async def query(self, sql: str) -> list[dict[str, Any]]:
        """Run a read-only query and return its rows."""
        return await self.executor.run(sql, mode=ResultMode.STRUCTURED)

    async def get_note(self, path: str) -> StoredNote | None:
        """Get one note row by path."""
        rows = await self.query(
            f"SELECT * FROM note WHERE path = {statements.quote(path)};"
        )
        if not rows:
            return None
        row = rows[0]
        return StoredNote(
            path=row["path"],
            title=row["title"],
            title_lower=row["title_lower"],
            content_lower=row["content_lower"],
            created=row["created"],
            last_modified=row["last_modified"],
            last_opened=row["last_opened"],
        )

    async def get_tags(self, path: str) -> set[str]:
        """Get the lower-cased tag names of a note."""
        rows = await self.query(
            "SELECT tag_name_lower FROM note_tag "
            f"WHERE note_path = {statements.quote(path)};"
        )
        return {row["tag_name_lower"] for row in rows}

    async def get_frontmatter(self, path: str) -> dict[str, str]:
        """Get frontmatter of a note as name -> stored value."""
        rows = await self.query(
            "SELECT frontmatter_name, frontmatter_value FROM note_frontmatter "
            f"WHERE note_path = {statements.quote(path)} "
            "ORDER BY frontmatter_name_lower;"
        )
        return {row["frontmatter_name"]: row["frontmatter_value"] for row in rows}

    async def list_paths(self) -> list[str]:
        """Get every note path in the store."""
        rows = await self.query("SELECT path FROM note ORDER BY path;")
        return [row["path"] for row in rows]
