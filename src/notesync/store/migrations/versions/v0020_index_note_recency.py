"""Index note recency and title lookups."""

VERSION = 20
DESCRIPTION = "Index note.last_opened and note.title_lower"

SQL = """
CREATE INDEX IF NOT EXISTS idx_note_last_opened ON note(last_opened);
CREATE INDEX IF NOT EXISTS idx_note_title_lower ON note(title_lower);
"""
