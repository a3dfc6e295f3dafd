"""Custom exceptions for notesync."""


class NoteSyncError(Exception):
    """Base exception for all notesync errors."""

    pass


class DatabaseError(NoteSyncError):
    """Database operation failed."""

    pass


class CommandTimeoutError(DatabaseError, TimeoutError):
    """The sqlite3 process did not finish before its deadline."""

    def __init__(self, timeout: float):
        """Initialize exception with the timeout that expired.

        Args:
            timeout: Timeout in seconds that was exceeded.
        """
        self.timeout = timeout
        super().__init__(f"SQLite process timed out after {timeout:g}s")


class CommandProcessError(DatabaseError):
    """The sqlite3 process failed or reported an unusable store."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        """Initialize exception with process diagnostics.

        Args:
            message: Human-readable description.
            returncode: Exit code of the process, if it ran.
            stderr: Captured error stream.
        """
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class OutputParseError(DatabaseError):
    """Structured output from sqlite3 could not be parsed."""

    def __init__(self, output: str, reason: str):
        self.output = output
        super().__init__(f"Malformed sqlite3 output: {reason}")


class MigrationError(DatabaseError):
    """Schema migration is impossible or misconfigured."""

    pass


class StoreNotInitializedError(DatabaseError):
    """Store used before initialize() completed."""

    pass


class QueueClosedError(DatabaseError):
    """Write queue no longer accepts operations."""

    pass


class SourceError(NoteSyncError):
    """Reading notes from a vault failed."""

    pass
