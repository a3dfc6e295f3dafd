"""Markdown vault loader.

Turns markdown files into NoteRecords: frontmatter and tags are split out
of the body, and the body is lower-cased and whitespace-collapsed for
search. Stopword filtering is left to whoever builds the search side.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

from ..core.config import SyncConfig
from ..core.exceptions import SourceError
from ..core.types import NoteRecord
from .parsing import extract_inline_tags, extract_tags_from_field, parse_frontmatter, strip_tags

_WHITESPACE = re.compile(r"\s+")


def clean_content(body: str, tags: list[str]) -> str:
    """Prepare a note body for the content_lower column.

    Args:
        body: Note body with frontmatter already removed.
        tags: Tags to strip from the body.

    Returns:
        Lower-cased body without tags, whitespace collapsed.
    """
    text = strip_tags(body, tags)
    return _WHITESPACE.sub(" ", text.lower()).strip()


def _collect_tags(frontmatter: dict[str, Any], body: str) -> list[str]:
    tags = [
        tag if tag.startswith("#") else f"#{tag}"
        for tag in extract_tags_from_field(frontmatter.get("tags"))
    ]
    tags.extend(extract_inline_tags(body))

    # Keep first spelling of each tag, in order of appearance
    seen: set[str] = set()
    unique = []
    for tag in tags:
        key = tag.lower()
        if key not in seen:
            seen.add(key)
            unique.append(tag)
    return unique


class VaultLoader:
    """Reads notes from a vault directory.

    Example:
        loader = VaultLoader(SyncConfig(vault_path=Path("~/notes").expanduser()))
        records, errors = loader.load_all()
    """

    def __init__(self, config: SyncConfig):
        """Initialize loader.

        Args:
            config: Sync configuration; vault_path must be set.

        Raises:
            SourceError: vault_path is missing or not a directory.
        """
        if config.vault_path is None:
            raise SourceError("No vault path configured")
        self.config = config
        self.root = Path(config.vault_path)
        if not self.root.is_dir():
            raise SourceError(f"Vault path does not exist: {self.root}")

    def relative_path(self, path: Path) -> str:
        """Get the vault-relative POSIX path used as the note key."""
        return path.relative_to(self.root).as_posix()

    def iter_files(self) -> Iterator[Path]:
        """Yield note files matching the glob patterns, skipping hidden dirs."""
        seen: set[Path] = set()
        for pattern in self.config.glob_patterns:
            for path in sorted(self.root.glob(pattern)):
                if path in seen or not path.is_file():
                    continue
                if any(part.startswith(".") for part in path.relative_to(self.root).parts):
                    continue
                seen.add(path)
                yield path

    def load(self, path: Path) -> NoteRecord:
        """Build a NoteRecord from one file.

        Args:
            path: Absolute path, or path relative to the vault root.

        Raises:
            SourceError: The file cannot be read or decoded, or its
                path is not valid UTF-8.
        """
        if not path.is_absolute():
            path = self.root / path
        key = self.relative_path(path)
        try:
            key.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SourceError(f"Path is not valid UTF-8: {path!r}") from e

        try:
            text = path.read_text(encoding=self.config.encoding)
            stat = path.stat()
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(f"Failed to read {path}: {e}") from e

        parsed = parse_frontmatter(text)
        tags = _collect_tags(parsed.data, parsed.content)
        title = parsed.data.get("title") or path.stem
        created = getattr(stat, "st_birthtime", stat.st_ctime)

        return NoteRecord(
            path=key,
            title=str(title),
            content=clean_content(parsed.content, tags),
            tags=tags,
            frontmatter=parsed.data,
            created=int(created * 1000),
            last_modified=stat.st_mtime_ns // 1_000_000,
        )

    def load_all(self) -> tuple[list[NoteRecord], list[tuple[str, str]]]:
        """Load every note in the vault.

        Returns:
            Tuple of (records, errors) where errors holds (path, message)
            for files that could not be loaded.
        """
        records: list[NoteRecord] = []
        errors: list[tuple[str, str]] = []

        for path in self.iter_files():
            try:
                records.append(self.load(path))
            except SourceError as e:
                logger.warning(str(e))
                errors.append((self.relative_path(path), str(e)))

        logger.debug(f"Loaded {len(records)} note(s) from {self.root}")
        return records, errors
