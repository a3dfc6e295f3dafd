"""Type definitions for notesync."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class RelationKind(Enum):
    """One-to-many child tables of a note."""

    TAGS = "tags"
    FRONTMATTER = "frontmatter"


class ResultMode(Enum):
    """How sqlite3 output is returned to the caller."""

    TEXT = "text"
    STRUCTURED = "structured"


class SchemaStatus(Enum):
    """Outcome of the startup schema check."""

    CREATED = "created"
    RESET = "reset"
    UPGRADED = "upgraded"
    CURRENT = "current"


@dataclass
class NoteRecord:
    """Normalized note as handed over by the vault loader.

    ``content`` is expected to be already lower-cased and cleaned for search.
    Timestamps are epoch milliseconds.
    """

    path: str
    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    frontmatter: dict[str, Any] = field(default_factory=dict)
    created: int = 0
    last_modified: int = 0


@dataclass
class SchemaResult:
    """Result of VersionManager.ensure_schema()."""

    status: SchemaStatus
    from_version: Optional[int]
    to_version: int

    @property
    def message(self) -> str:
        """Describe the result for logs and the CLI."""
        if self.status is SchemaStatus.CREATED:
            return f"New database created with version {self.to_version}."
        if self.status is SchemaStatus.RESET:
            return (
                f"Database was recreated with version {self.to_version} "
                f"(found unsupported version {self.from_version})."
            )
        if self.status is SchemaStatus.UPGRADED:
            return (
                f"Database structure upgraded from version {self.from_version} "
                f"to {self.to_version}."
            )
        return f"Database structure is up to date, version {self.to_version}."


@dataclass
class StoredNote:
    """A row of the note table."""

    path: str
    title: str
    title_lower: str
    content_lower: str
    created: Optional[int]
    last_modified: Optional[int]
    last_opened: Optional[int]


@dataclass
class SyncResult:
    """Outcome of a full vault sync."""

    updated: int = 0
    deleted: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
