"""Database schema for notesync.

The store is versioned through a singleton ``version`` row rather than
``PRAGMA user_version``, so the version survives being inspected with any
sqlite3 client. Stores older than MIN_MIGRATION_VERSION are rebuilt from
scratch; the note index is derived data and can always be re-synced.
"""

CURRENT_VERSION = 20
MIN_MIGRATION_VERSION = 18

CHECK_VERSION_TABLE = (
    "SELECT name FROM sqlite_master WHERE type='table' AND name='version';"
)

GET_VERSION = "SELECT version FROM version WHERE id = 1;"

SCHEMA = """
-- Notes keyed by vault-relative path
CREATE TABLE IF NOT EXISTS note (
    path TEXT PRIMARY KEY,
    title TEXT,
    title_lower TEXT,
    content_lower TEXT,
    created INTEGER,
    last_modified INTEGER,
    last_opened INTEGER
);

-- Legacy tag catalogue, kept for readers of older stores
CREATE TABLE IF NOT EXISTS tag (
    name TEXT PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS note_tag (
    note_path TEXT,
    tag_name TEXT,
    tag_name_lower TEXT,
    PRIMARY KEY (note_path, tag_name_lower),
    FOREIGN KEY (note_path) REFERENCES note(path) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS note_frontmatter (
    note_path TEXT,
    frontmatter_name TEXT,
    frontmatter_name_lower TEXT,
    frontmatter_value TEXT,
    frontmatter_value_lower TEXT,
    PRIMARY KEY (note_path, frontmatter_name_lower),
    FOREIGN KEY (note_path) REFERENCES note(path) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_note_tag_name ON note_tag(tag_name_lower);
CREATE INDEX IF NOT EXISTS idx_note_frontmatter_name
    ON note_frontmatter(frontmatter_name_lower, frontmatter_value_lower);
CREATE INDEX IF NOT EXISTS idx_note_last_opened ON note(last_opened);
CREATE INDEX IF NOT EXISTS idx_note_title_lower ON note(title_lower);
"""


def build_set_version(version: int) -> str:
    """Get the script that creates the version table and stores ``version``."""
    return f"""
CREATE TABLE IF NOT EXISTS version (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER
);
INSERT OR REPLACE INTO version (id, version) VALUES (1, {int(version)});
"""


def get_schema() -> str:
    """Get the full current schema, including the version row."""
    return SCHEMA + build_set_version(CURRENT_VERSION)
