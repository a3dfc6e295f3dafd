"""sqlite3 command-line executor.

Each call starts a fresh ``sqlite3`` process against the store file, feeds
it one script on stdin followed by ``.exit``, and collects its output.
Nothing is kept open between calls; ordering between calls is the job of
the write queue.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from loguru import logger

from ..core.config import StoreConfig
from ..core.exceptions import (
    CommandProcessError,
    CommandTimeoutError,
    OutputParseError,
)
from ..core.types import ResultMode

# stderr fragments meaning the target file is not a usable store, even if
# sqlite3 exits with status 0
CORRUPTION_MARKERS = (
    "file is not a database",
    "database disk image is malformed",
)

EXIT_DIRECTIVE = ".exit"


class CommandExecutor:
    """Runs SQL scripts through the sqlite3 command-line interface.

    Example:
        executor = CommandExecutor(Path("notes.db"), StoreConfig())
        rows = await executor.run("SELECT path FROM note;", mode=ResultMode.STRUCTURED)
    """

    def __init__(self, db_path: Path, config: StoreConfig | None = None):
        """Initialize executor.

        Args:
            db_path: Path to the SQLite store file.
            config: Engine configuration (default: StoreConfig()).
        """
        self.db_path = Path(db_path)
        self.config = config or StoreConfig()

    def build_command(self, mode: ResultMode = ResultMode.TEXT) -> list[str]:
        """Get the argv used to start sqlite3."""
        command = [self.config.binary, "-bail"]
        if mode is ResultMode.STRUCTURED:
            command.append("-json")
        command.append(str(self.db_path))
        return command

    @staticmethod
    def compose(script: str) -> str:
        """Get the full stdin payload for a script."""
        body = script.strip()
        if body and not body.endswith(";"):
            body += ";"
        # Foreign keys are per connection, and every call is a new connection
        return f"PRAGMA foreign_keys = ON;\n{body}\n{EXIT_DIRECTIVE}\n"

    async def run(
        self,
        script: str,
        *,
        timeout: float | None = None,
        mode: ResultMode = ResultMode.TEXT,
    ) -> Any:
        """Execute a script in a new sqlite3 process.

        Args:
            script: One or more SQL statements.
            timeout: Seconds before the process is killed
                (default: config.timeout).
            mode: TEXT returns stripped stdout; STRUCTURED returns the
                parsed JSON rows.

        Returns:
            Stripped output text, or a list of row dicts in STRUCTURED mode.

        Raises:
            CommandTimeoutError: The process outlived its timeout.
            CommandProcessError: The script cannot be encoded, the process
                failed, or the store is unusable.
            OutputParseError: STRUCTURED output was not valid JSON rows.
        """
        if timeout is None:
            timeout = self.config.timeout

        command = self.build_command(mode)
        try:
            payload = self.compose(script).encode("utf-8")
        except UnicodeEncodeError as e:
            raise CommandProcessError(f"Script is not valid UTF-8: {e}") from e

        if self.config.log_sql:
            logger.debug(f"Executing SQL against {self.db_path}:\n{script.strip()}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandProcessError(
                f"Failed to start {self.config.binary}: {e}"
            ) from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(payload), timeout
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.error(f"sqlite3 timed out after {timeout:g}s on {self.db_path}")
            raise CommandTimeoutError(timeout) from None
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if process.returncode != 0:
            raise CommandProcessError(
                f"SQLite process exited with code {process.returncode}. "
                f"Error: {stderr.strip()}",
                returncode=process.returncode,
                stderr=stderr,
            )

        lowered = stderr.lower()
        if any(marker in lowered for marker in CORRUPTION_MARKERS):
            raise CommandProcessError(
                f"Not a valid SQLite store: {stderr.strip()}",
                returncode=process.returncode,
                stderr=stderr,
            )

        if stderr.strip():
            logger.warning(f"sqlite3 reported: {stderr.strip()}")

        output = stdout.strip()
        if mode is ResultMode.STRUCTURED:
            return self.parse_rows(output)
        return output

    @staticmethod
    def parse_rows(output: str) -> list[dict[str, Any]]:
        """Parse ``sqlite3 -json`` output into row dicts.

        Raises:
            OutputParseError: Output is not a JSON array of objects.
        """
        if not output:
            return []

        try:
            rows = json.loads(output)
        except json.JSONDecodeError as e:
            raise OutputParseError(output, str(e)) from e

        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise OutputParseError(output, "expected a JSON array of objects")
        return rows

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        """Kill and reap a process that is still running."""
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()
