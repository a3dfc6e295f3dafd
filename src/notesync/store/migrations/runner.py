"""Schema version management for notesync.

The store records its version in a singleton ``version`` row. On startup the
VersionManager compares it with CURRENT_VERSION and either creates the
store, rebuilds it, walks it forward through migration steps, or leaves it
alone.

Migration steps are only authored from MIN_MIGRATION_VERSION onward. The
registry must cover every version between MIN_MIGRATION_VERSION + 1 and
CURRENT_VERSION; a gap is refused when the registry is built.
"""

from __future__ import annotations

import importlib
import pkgutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from loguru import logger

from ...core.exceptions import CommandProcessError, MigrationError
from ...core.types import SchemaResult, SchemaStatus
from .. import schema

if TYPE_CHECKING:
    from ..executor import CommandExecutor

STORE_SUFFIXES = ("", "-journal", "-wal", "-shm")


@dataclass
class Migration:
    """A database migration step."""

    version: int
    description: str
    sql: str

    def __repr__(self) -> str:
        return f"Migration({self.version}, {self.description!r})"


def discover_migrations() -> list[Migration]:
    """Load migration steps from the versions subpackage.

    Returns:
        List of Migration objects sorted by version number.
    """
    from notesync.store.migrations import versions

    migrations = []
    for _, modname, ispkg in pkgutil.iter_modules(versions.__path__):
        if ispkg:
            continue

        module = importlib.import_module(f"notesync.store.migrations.versions.{modname}")

        if not hasattr(module, "VERSION") or not hasattr(module, "SQL"):
            logger.warning(f"Skipping invalid migration module: {modname}")
            continue

        migrations.append(
            Migration(
                version=module.VERSION,
                description=getattr(module, "DESCRIPTION", modname),
                sql=module.SQL,
            )
        )

    migrations.sort(key=lambda m: m.version)
    return migrations


class MigrationRegistry:
    """Ordered, gap-free list of migration steps."""

    def __init__(
        self,
        migrations: Iterable[Migration],
        min_version: int = schema.MIN_MIGRATION_VERSION,
        current_version: int = schema.CURRENT_VERSION,
    ):
        """Build and validate the registry.

        Args:
            migrations: Migration steps, in any order.
            min_version: Oldest version that can be walked forward.
            current_version: Version this build writes.

        Raises:
            MigrationError: Steps do not exactly cover
                min_version + 1 .. current_version.
        """
        if min_version > current_version:
            raise MigrationError(
                f"Minimum migration version {min_version} is above "
                f"current version {current_version}"
            )

        self.min_version = min_version
        self.current_version = current_version
        self.migrations = sorted(migrations, key=lambda m: m.version)
        self._validate()

    @classmethod
    def default(cls) -> "MigrationRegistry":
        """Registry built from the versions subpackage."""
        return cls(discover_migrations())

    def _validate(self) -> None:
        versions = [m.version for m in self.migrations]
        duplicates = sorted({v for v in versions if versions.count(v) > 1})
        if duplicates:
            raise MigrationError(f"Duplicate migration steps for versions {duplicates}")

        required = set(range(self.min_version + 1, self.current_version + 1))
        missing = sorted(required - set(versions))
        if missing:
            raise MigrationError(f"Missing migration script for version(s) {missing}")

        extra = sorted(set(versions) - required)
        if extra:
            raise MigrationError(
                f"Migration steps {extra} fall outside the supported range "
                f"{self.min_version + 1}..{self.current_version}"
            )

    def steps_after(self, version: int) -> list[Migration]:
        """Get the steps needed to go from ``version`` to current."""
        return [m for m in self.migrations if m.version > version]


class VersionManager:
    """Brings a store to the current schema version.

    Runs once at startup, before the write queue accepts traffic, and talks
    to the executor directly.

    Example:
        manager = VersionManager(executor, MigrationRegistry.default())
        result = await manager.ensure_schema()
        print(result.message)
    """

    def __init__(
        self,
        executor: "CommandExecutor",
        registry: MigrationRegistry | None = None,
    ):
        """Initialize with an executor and a migration registry.

        Args:
            executor: Executor bound to the store file.
            registry: Migration steps (default: discovered from versions/).
        """
        self.executor = executor
        self.registry = registry or MigrationRegistry.default()

    @property
    def db_path(self) -> Path:
        return self.executor.db_path

    async def get_version(self) -> int | None:
        """Read the stored version.

        Returns:
            The version number, None if the version table is missing, or 0
            if the row is missing or unparsable.

        Raises:
            CommandProcessError: The file cannot be read as a store.
        """
        exists = await self.executor.run(schema.CHECK_VERSION_TABLE)
        if not exists:
            return None

        raw = await self.executor.run(schema.GET_VERSION)
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning(f"Unreadable schema version {raw!r}, treating as 0")
            return 0

    async def ensure_schema(self) -> SchemaResult:
        """Create, reset, upgrade or accept the store.

        Returns:
            SchemaResult describing what was done.

        Raises:
            MigrationError: The store is newer than this build.
            DatabaseError: The engine failed while creating or migrating.
        """
        current = self.registry.current_version

        try:
            version = await self.get_version()
        except CommandProcessError as e:
            logger.warning(f"Version table unreadable, recreating store: {e}")
            version = None

        if version is None:
            await self.recreate()
            return SchemaResult(SchemaStatus.CREATED, None, current)

        if version < self.registry.min_version:
            logger.warning(
                f"Store version {version} is below minimum "
                f"{self.registry.min_version}, recreating"
            )
            await self.recreate()
            return SchemaResult(SchemaStatus.RESET, version, current)

        if version < current:
            await self.upgrade(version)
            return SchemaResult(SchemaStatus.UPGRADED, version, current)

        if version > current:
            raise MigrationError(
                f"Store version {version} is newer than supported version {current}"
            )

        logger.debug(f"Database at version {version}, no migrations to apply")
        return SchemaResult(SchemaStatus.CURRENT, version, current)

    async def recreate(self) -> None:
        """Destroy the store file and create the current schema."""
        for suffix in STORE_SUFFIXES:
            path = self.db_path.with_name(self.db_path.name + suffix)
            path.unlink(missing_ok=True)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        await self.executor.run(schema.SCHEMA)
        await self.executor.run(schema.build_set_version(self.registry.current_version))
        logger.info(f"Created store at version {self.registry.current_version}")

    async def upgrade(self, from_version: int) -> int:
        """Apply every step after ``from_version``, in order.

        Returns:
            Number of steps applied.
        """
        applied = 0
        for migration in self.registry.steps_after(from_version):
            logger.info(f"Applying migration {migration.version}: {migration.description}")
            try:
                await self.executor.run(migration.sql)
            except Exception as e:
                logger.error(f"Migration {migration.version} failed: {e}")
                raise
            applied += 1

        await self.executor.run(schema.build_set_version(self.registry.current_version))
        logger.info(
            f"Applied {applied} migration(s), "
            f"database now at version {self.registry.current_version}"
        )
        return applied
