"""Index tag and frontmatter lookups.

Queries from the launcher filter notes by tag name and by frontmatter
name/value; both scanned the whole relation table at version 18.
"""

VERSION = 19
DESCRIPTION = "Index note_tag and note_frontmatter lookups"

SQL = """
CREATE INDEX IF NOT EXISTS idx_note_tag_name ON note_tag(tag_name_lower);
CREATE INDEX IF NOT EXISTS idx_note_frontmatter_name
    ON note_frontmatter(frontmatter_name_lower, frontmatter_value_lower);
"""
