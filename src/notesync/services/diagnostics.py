"""Store diagnostics.

Checks that commonly explain slow or failing writes: file permissions,
free disk space, engine settings, and whether a write can be made at all.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field

from loguru import logger

from ..core.exceptions import DatabaseError
from ..store.adapter import NoteStore

SETTINGS = ("journal_mode", "synchronous", "page_size", "cache_size")

WRITE_PROBE = """
BEGIN IMMEDIATE;
CREATE TABLE IF NOT EXISTS notesync_write_probe (id INTEGER PRIMARY KEY);
INSERT INTO notesync_write_probe DEFAULT VALUES;
SELECT COUNT(*) FROM notesync_write_probe;
ROLLBACK;
"""


@dataclass
class DiagnosticsReport:
    """Outcome of run_diagnostics()."""

    readable: bool = False
    writable: bool = False
    free_bytes: int | None = None
    file_size: int | None = None
    settings: dict[str, str] = field(default_factory=dict)
    write_ok: bool = False
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


async def run_diagnostics(store: NoteStore) -> DiagnosticsReport:
    """Inspect the store behind ``store``.

    Every check runs even if an earlier one failed; failures are collected
    in ``problems``.
    """
    report = DiagnosticsReport()
    db_path = store.executor.db_path

    report.readable = os.access(db_path, os.R_OK)
    report.writable = os.access(db_path, os.W_OK)
    if not (report.readable and report.writable):
        report.problems.append(f"Store file is not readable and writable: {db_path}")

    try:
        report.free_bytes = shutil.disk_usage(db_path.parent).free
        report.file_size = db_path.stat().st_size
    except OSError as e:
        report.problems.append(f"Error checking disk: {e}")

    for setting in SETTINGS:
        try:
            report.settings[setting] = await store.executor.run(f"PRAGMA {setting};")
        except DatabaseError as e:
            report.problems.append(f"Error reading {setting}: {e}")

    try:
        # Goes through the queue so it cannot interleave with pending writes
        output = await store.queue.enqueue(lambda: store.executor.run(WRITE_PROBE))
        report.write_ok = output.strip() == "1"
        if not report.write_ok:
            report.problems.append(f"Unexpected write probe result: {output!r}")
    except DatabaseError as e:
        report.problems.append(f"Test write failed: {e}")

    if report.problems:
        logger.warning(f"Diagnostics found {len(report.problems)} problem(s)")
    else:
        logger.debug("Diagnostics passed")
    return report
