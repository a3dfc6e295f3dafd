"""Configuration management for notesync."""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class StoreConfig:
    """sqlite3 engine configuration."""

    # Command used to start the engine; resolved through PATH
    binary: str = "sqlite3"
    # Seconds before a running sqlite3 process is killed
    timeout: float = 5.0
    # Log every executed script at debug level
    log_sql: bool = False
    # Trust the existing schema and skip the version check on startup
    skip_init_check: bool = False


@dataclass
class SyncConfig:
    """Vault loading configuration."""

    vault_path: Path | None = None
    glob_patterns: list[str] = field(default_factory=lambda: ["**/*.md"])
    encoding: str = "utf-8"


def _default_db_path() -> Path:
    """Get default database path."""
    cache_dir = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    return cache_dir / "notesync" / "notes.db"


@dataclass
class Config:
    """Main application configuration."""

    db_path: Path = field(default_factory=_default_db_path)
    store: StoreConfig = field(default_factory=StoreConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        config = cls()
        config.apply_env()
        return config

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from a TOML file, then apply env overrides.

        Args:
            path: Path to the TOML configuration file.

        Returns:
            Config with file values and environment overrides applied.
        """
        with open(path, "rb") as f:
            data = tomllib.load(f)

        config = cls()
        config._apply_mapping(data)
        config.apply_env()
        return config

    @classmethod
    def from_env_or_file(cls, path: Path | None = None) -> "Config":
        """Load from an explicit path, NOTESYNC_CONFIG, or the environment."""
        if path is None and (env_path := os.environ.get("NOTESYNC_CONFIG")):
            path = Path(env_path)
        if path is not None:
            return cls.from_file(path)
        return cls.from_env()

    def apply_env(self) -> None:
        """Override fields from NOTESYNC_* environment variables."""
        if path := os.environ.get("NOTESYNC_DB_PATH"):
            self.db_path = Path(path)

        if binary := os.environ.get("NOTESYNC_SQLITE_BINARY"):
            self.store.binary = binary

        if timeout := os.environ.get("NOTESYNC_TIMEOUT"):
            self.store.timeout = float(timeout)

        if log_sql := os.environ.get("NOTESYNC_LOG_SQL"):
            self.store.log_sql = log_sql.strip().lower() in _TRUTHY

        if vault := os.environ.get("NOTESYNC_VAULT"):
            self.sync.vault_path = Path(vault)

    def _apply_mapping(self, data: dict[str, Any]) -> None:
        if "db_path" in data:
            self.db_path = Path(data["db_path"]).expanduser()

        store = data.get("store", {})
        if "binary" in store:
            self.store.binary = str(store["binary"])
        if "timeout" in store:
            self.store.timeout = float(store["timeout"])
        if "log_sql" in store:
            self.store.log_sql = bool(store["log_sql"])
        if "skip_init_check" in store:
            self.store.skip_init_check = bool(store["skip_init_check"])

        sync = data.get("sync", {})
        if "vault_path" in sync:
            self.sync.vault_path = Path(sync["vault_path"]).expanduser()
        if "glob_patterns" in sync:
            self.sync.glob_patterns = [str(p) for p in sync["glob_patterns"]]
        if "encoding" in sync:
            self.sync.encoding = str(sync["encoding"])
