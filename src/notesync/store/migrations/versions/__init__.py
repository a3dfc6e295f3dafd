"""Migration version modules.

Each module in this package upgrades a store by one version.
Modules must define:
    VERSION: int - The version this step produces
    DESCRIPTION: str - Human-readable description
    SQL: str - Script run through the sqlite3 executor

Versions must be contiguous from MIN_MIGRATION_VERSION + 1 to
CURRENT_VERSION.
"""
