"""Parsing utilities for vault notes.

Provides functions to parse YAML frontmatter and extract inline tags
from markdown content.
"""

import re
from dataclasses import dataclass
from typing import Any

import yaml


@dataclass
class FrontmatterResult:
    """Result from parsing YAML frontmatter.

    Attributes:
        data: Parsed YAML data as dictionary (empty if no frontmatter).
        content: Note content after frontmatter is removed.
        has_frontmatter: Whether frontmatter was found.
    """

    data: dict[str, Any]
    content: str
    has_frontmatter: bool


# Matches: ---\n<yaml content>\n---\n
_FRONTMATTER_PATTERN = re.compile(
    r"^---\s*\n(.*?)\n---\s*\n?",
    re.DOTALL,
)

# Matches: #tag, #tag/subtag, #tag-with-dashes, #tag_with_underscores
# Does NOT match: # heading, #123 (pure numbers), # (bare hash)
_INLINE_TAG_PATTERN = re.compile(
    r"(?<![^\s([\"{])#([^\W\d][\w/-]*)",
)

_CODE_FENCE_PATTERN = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE_PATTERN = re.compile(r"`[^`]+`")


def parse_frontmatter(content: str) -> FrontmatterResult:
    """Parse YAML frontmatter from markdown content.

    Example:
        >>> result = parse_frontmatter('''---
        ... title: My Note
        ... tags: [python, code]
        ... ---
        ... # Hello
        ... ''')
        >>> result.data
        {'title': 'My Note', 'tags': ['python', 'code']}
    """
    match = _FRONTMATTER_PATTERN.match(content)
    if not match:
        return FrontmatterResult(data={}, content=content, has_frontmatter=False)

    remaining_content = content[match.end() :]

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        # Invalid YAML - treat as no frontmatter
        return FrontmatterResult(data={}, content=content, has_frontmatter=False)

    if data is None:
        data = {}
    elif not isinstance(data, dict):
        data = {"_raw": data}

    return FrontmatterResult(data=data, content=remaining_content, has_frontmatter=True)


def _remove_code_blocks(content: str) -> str:
    result = _CODE_FENCE_PATTERN.sub(lambda m: " " * len(m.group()), content)
    return _INLINE_CODE_PATTERN.sub(lambda m: " " * len(m.group()), result)


def extract_inline_tags(content: str) -> list[str]:
    """Extract inline hashtags from content, in order of appearance.

    Tags inside fenced or inline code are ignored. Returned tags keep
    their ``#`` marker, the way a note's metadata cache reports them.

    Example:
        >>> extract_inline_tags("Check #python and #rust/async code")
        ['#python', '#rust/async']
    """
    return [f"#{tag}" for tag in _INLINE_TAG_PATTERN.findall(_remove_code_blocks(content))]


def extract_tags_from_field(value: Any) -> list[str]:
    """Extract tags from a frontmatter ``tags`` value.

    Handles a list, a comma-separated string, or a single value.
    """
    if value is None:
        return []

    if isinstance(value, list):
        tags = [str(item).strip() for item in value if item is not None]
        return [t for t in tags if t]

    if isinstance(value, str):
        if "," in value:
            return [t.strip() for t in value.split(",") if t.strip()]
        if re.search(r"#\w+\s+#\w+", value):
            return re.findall(r"#[\w/-]+", value)
        return [value.strip()] if value.strip() else []

    return [str(value).strip()] if value else []


def strip_tags(content: str, tags: list[str]) -> str:
    """Remove every occurrence of the given ``#tag`` markers, ignoring case."""
    for tag in sorted(set(tags), key=len, reverse=True):
        name = tag.lstrip("#")
        if not name:
            continue
        content = re.sub(rf"#{re.escape(name)}(?![\w/-])", "", content, flags=re.IGNORECASE)
    return content
