"""Services built on top of the note store."""

from .diagnostics import DiagnosticsReport, run_diagnostics
from .sync import SyncService

__all__ = [
    "DiagnosticsReport",
    "run_diagnostics",
    "SyncService",
]
