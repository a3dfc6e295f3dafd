"""Command implementations for notesync CLI."""

from .diagnose import handle_diagnose
from .notes import handle_delete, handle_init, handle_show, handle_touch
from .sync import handle_sync

__all__ = [
    "handle_init",
    "handle_delete",
    "handle_touch",
    "handle_show",
    "handle_sync",
    "handle_diagnose",
]
