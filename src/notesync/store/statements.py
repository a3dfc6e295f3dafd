"""SQL generation for note writes.

sqlite3 is driven through its command-line interface, so values cannot be
bound as parameters. Every value is rendered as a literal here: strings
with single quotes doubled, integers through ``int()``.

All functions are pure. A batch of records always yields one script per
call so that a whole batch reaches the engine in a single invocation.
"""

from __future__ import annotations

import datetime
import json
import time
from typing import Any, Iterable, Sequence

from ..core.types import NoteRecord, RelationKind

_RELATION_TABLES = {
    RelationKind.TAGS: (
        "note_tag",
        ("note_path", "tag_name", "tag_name_lower"),
    ),
    RelationKind.FRONTMATTER: (
        "note_frontmatter",
        (
            "note_path",
            "frontmatter_name",
            "frontmatter_name_lower",
            "frontmatter_value",
            "frontmatter_value_lower",
        ),
    ),
}


def escape(text: str) -> str:
    """Double single quotes so ``text`` can sit inside a SQL string literal."""
    return text.replace("'", "''")


def quote(value: Any) -> str:
    """Render a Python value as a SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(int(value))
    return f"'{escape(str(value))}'"


def _as_list(records: NoteRecord | Iterable[NoteRecord]) -> list[NoteRecord]:
    """Normalize input to a list, keeping only the last record per path."""
    if isinstance(records, NoteRecord):
        return [records]

    latest: dict[str, NoteRecord] = {}
    for record in records:
        # Re-insert so the surviving record takes its final batch position
        latest.pop(record.path, None)
        latest[record.path] = record
    return list(latest.values())


def _values(rows: Sequence[Sequence[Any]]) -> str:
    return ",\n".join(
        "  (" + ", ".join(quote(value) for value in row) + ")" for row in rows
    )


def normalize_tag(tag: str) -> str:
    """Strip one leading ``#`` marker and surrounding whitespace."""
    tag = tag.strip()
    if tag.startswith("#"):
        tag = tag[1:]
    return tag.strip()


def frontmatter_value(value: Any) -> str:
    """Render a frontmatter value for storage.

    Strings are stored as-is and dates as ISO 8601 text; everything else
    is stored as JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return json.dumps(value, ensure_ascii=False, default=_json_default)


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def tag_rows(record: NoteRecord) -> list[tuple[str, str, str]]:
    """Get note_tag rows for a record."""
    rows = []
    for raw in record.tags:
        tag = normalize_tag(raw)
        if not tag:
            continue
        rows.append((record.path, tag, tag.lower()))
    return rows


def frontmatter_rows(record: NoteRecord) -> list[tuple[str, str, str, str, str]]:
    """Get note_frontmatter rows for a record."""
    rows = []
    for name, value in record.frontmatter.items():
        name = str(name)
        rendered = frontmatter_value(value)
        rows.append((record.path, name, name.lower(), rendered, rendered.lower()))
    return rows


def build_upsert(records: NoteRecord | Iterable[NoteRecord]) -> str:
    """Build one multi-row upsert into the note table.

    Existing rows keep their ``last_opened`` value; every other column is
    replaced by the incoming record.

    Args:
        records: A record or a batch of records.

    Returns:
        SQL statement, or an empty string for an empty batch.
    """
    batch = _as_list(records)
    if not batch:
        return ""

    rows = [
        (
            r.path,
            r.title,
            r.title.lower(),
            r.content,
            r.created,
            r.last_modified,
        )
        for r in batch
    ]
    return (
        "INSERT INTO note "
        "(path, title, title_lower, content_lower, created, last_modified)\n"
        "VALUES\n"
        f"{_values(rows)}\n"
        "ON CONFLICT(path) DO UPDATE SET\n"
        "  title = excluded.title,\n"
        "  title_lower = excluded.title_lower,\n"
        "  content_lower = excluded.content_lower,\n"
        "  created = excluded.created,\n"
        "  last_modified = excluded.last_modified;"
    )


def build_relation_replace(
    records: NoteRecord | Iterable[NoteRecord], kind: RelationKind
) -> str:
    """Build the delete-then-insert script for one relation table.

    The delete covers every path in the batch, so paths whose new set is
    empty lose all their rows. The insert is left out when the batch has
    no rows at all.

    Args:
        records: A record or a batch of records.
        kind: Which relation table to rebuild.

    Returns:
        SQL script, or an empty string for an empty batch.
    """
    batch = _as_list(records)
    if not batch:
        return ""

    table, columns = _RELATION_TABLES[kind]
    paths = ", ".join(quote(r.path) for r in batch)
    statements = [f"DELETE FROM {table} WHERE note_path IN ({paths});"]

    build_rows = tag_rows if kind is RelationKind.TAGS else frontmatter_rows
    rows = [row for r in batch for row in build_rows(r)]
    if rows:
        statements.append(
            f"INSERT OR IGNORE INTO {table} ({', '.join(columns)})\n"
            f"VALUES\n{_values(rows)};"
        )
    return "\n".join(statements)


def build_note_write(records: NoteRecord | Iterable[NoteRecord]) -> str:
    """Build the full write for a batch: note upsert plus both relations.

    The statements are wrapped in one transaction so a failure part way
    leaves the previous revision of every note intact.
    """
    batch = _as_list(records)
    if not batch:
        return ""

    return _transaction(_note_write_statements(batch))


def build_rename(old_path: str, record: NoteRecord) -> str:
    """Build a move of a note to ``record.path`` as one transaction."""
    return _transaction([build_delete(old_path), *_note_write_statements([record])])


def _note_write_statements(batch: list[NoteRecord]) -> list[str]:
    return [
        build_upsert(batch),
        build_relation_replace(batch, RelationKind.TAGS),
        build_relation_replace(batch, RelationKind.FRONTMATTER),
    ]


def _transaction(body: list[str]) -> str:
    return "\n".join(["BEGIN;", *body, "COMMIT;"])


def build_delete(path: str) -> str:
    """Build a delete by primary key; relation rows go through the cascade."""
    return f"DELETE FROM note WHERE path = {quote(path)};"


def build_delete_many(paths: Iterable[str]) -> str:
    """Build a single delete for several paths."""
    quoted = ", ".join(quote(p) for p in paths)
    if not quoted:
        return ""
    return f"DELETE FROM note WHERE path IN ({quoted});"


def build_touch_last_opened(path: str, now: int | None = None) -> str:
    """Build an update of ``last_opened`` for one note.

    Args:
        path: Note path.
        now: Timestamp in epoch milliseconds (default: current time).
    """
    if now is None:
        now = int(time.time() * 1000)
    return f"UPDATE note SET last_opened = {int(now)} WHERE path = {quote(path)};"
