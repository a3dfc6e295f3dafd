"""Note sources for notesync."""

from .parsing import (
    FrontmatterResult,
    extract_inline_tags,
    extract_tags_from_field,
    parse_frontmatter,
)
from .vault import VaultLoader, clean_content

__all__ = [
    "FrontmatterResult",
    "parse_frontmatter",
    "extract_inline_tags",
    "extract_tags_from_field",
    "VaultLoader",
    "clean_content",
]
