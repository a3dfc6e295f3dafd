"""Executor stand-in backed by Python's sqlite3 module.

Behaves like CommandExecutor run with ``-bail``: one fresh connection per
call, foreign keys switched on, first failing statement aborts the call.
Lets store semantics be tested where the sqlite3 binary is not installed.
"""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Iterator

from notesync.core.exceptions import CommandProcessError
from notesync.core.types import ResultMode


def split_statements(script: str) -> Iterator[str]:
    """Yield complete SQL statements from a script."""
    buffer = ""
    for ch in script:
        buffer += ch
        if ch == ";" and sqlite3.complete_statement(buffer):
            yield buffer.strip()
            buffer = ""
    if buffer.strip():
        yield buffer.strip()


class ModuleExecutor:
    """Fake executor recording every script it runs.

    Attributes:
        scripts: Scripts in the order run() received them.
        failures: Exceptions to raise, one per call, before touching the store.
        delay: Seconds to sleep before executing each script.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.scripts: list[str] = []
        self.failures: list[Exception] = []
        self.delay = 0.0

    async def run(
        self,
        script: str,
        *,
        timeout: float | None = None,
        mode: ResultMode = ResultMode.TEXT,
    ) -> Any:
        self.scripts.append(script)
        if self.failures:
            raise self.failures.pop(0)
        if self.delay:
            await asyncio.sleep(self.delay)

        rows = self._execute(script)
        if mode is ResultMode.STRUCTURED:
            return [dict(row) for row in rows]
        return "\n".join(
            "|".join("" if v is None else str(v) for v in tuple(row)) for row in rows
        )

    def _execute(self, script: str) -> list[sqlite3.Row]:
        conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        conn.row_factory = sqlite3.Row
        rows: list[sqlite3.Row] = []
        try:
            for statement in split_statements("PRAGMA foreign_keys = ON;\n" + script):
                cursor = conn.execute(statement)
                if cursor.description:
                    rows.extend(cursor.fetchall())
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise CommandProcessError(
                f"SQLite process exited with code 1. Error: {e}",
                returncode=1,
                stderr=f"Error: {e}",
            ) from e
        finally:
            conn.close()
        return rows
