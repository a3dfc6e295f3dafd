"""Store and single-note commands for notesync CLI."""

import asyncio

from ...core.config import Config
from ...core.exceptions import NoteSyncError
from ...store import NoteStore


def handle_init(args, config: Config) -> None:
    """Create, reset or upgrade the store schema."""
    asyncio.run(_handle_init_async(config))


async def _handle_init_async(config: Config) -> None:
    async with NoteStore(config) as store:
        result = store.schema_result
        if result is None:
            print("Schema check skipped.")
        else:
            print(result.message)


def handle_delete(args, config: Config) -> None:
    """Delete one note and its tags and frontmatter."""
    asyncio.run(_handle_delete_async(args.path, config))


async def _handle_delete_async(path: str, config: Config) -> None:
    async with NoteStore(config) as store:
        await store.delete_note(path)
    print(f"Deleted: {path}")


def handle_touch(args, config: Config) -> None:
    """Set last_opened of one note to now."""
    asyncio.run(_handle_touch_async(args.path, config))


async def _handle_touch_async(path: str, config: Config) -> None:
    async with NoteStore(config) as store:
        await store.update_last_opened(path)
    print(f"Touched: {path}")


def handle_show(args, config: Config) -> None:
    """Print one stored note with its tags and frontmatter."""
    asyncio.run(_handle_show_async(args.path, config))


async def _handle_show_async(path: str, config: Config) -> None:
    async with NoteStore(config) as store:
        note = await store.get_note(path)
        if note is None:
            raise NoteSyncError(f"Note not found: {path}")
        tags = await store.get_tags(path)
        frontmatter = await store.get_frontmatter(path)

    print(f"Path: {note.path}")
    print(f"Title: {note.title}")
    print(f"Created: {note.created}")
    print(f"Modified: {note.last_modified}")
    print(f"Opened: {note.last_opened if note.last_opened is not None else '-'}")
    print(f"Tags: {', '.join(sorted(tags)) or '-'}")
    if frontmatter:
        print("Frontmatter:")
        for name, value in frontmatter.items():
            print(f"  {name}: {value}")
