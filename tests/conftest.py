"""Pytest configuration and fixtures."""

import stat
from pathlib import Path
from typing import Callable

import pytest

from notesync.core.config import Config
from notesync.core.types import NoteRecord
from tests.fakes import ModuleExecutor


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary store path for tests."""
    return tmp_path / "notes.db"


@pytest.fixture
def config(test_db_path: Path) -> Config:
    """Provide a Config pointing at the temporary store."""
    cfg = Config()
    cfg.db_path = test_db_path
    return cfg


@pytest.fixture
def module_executor(test_db_path: Path) -> ModuleExecutor:
    """Provide an executor backed by the sqlite3 module."""
    return ModuleExecutor(test_db_path)


@pytest.fixture
def fake_engine(tmp_path: Path) -> Callable[[str], str]:
    """Provide a factory writing executable /bin/sh stand-ins for sqlite3.

    The returned callable takes the script body and returns the path to
    use as StoreConfig.binary.
    """
    counter = iter(range(1_000_000))

    def make(body: str) -> str:
        path = tmp_path / f"fake-sqlite3-{next(counter)}"
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return make


@pytest.fixture
def sample_note() -> NoteRecord:
    """Provide the a.md note with two tags and one frontmatter entry."""
    return NoteRecord(
        path="a.md",
        title="A",
        content="hello world",
        tags=["#x", "#y"],
        frontmatter={"k": "v"},
        created=1,
        last_modified=2,
    )
