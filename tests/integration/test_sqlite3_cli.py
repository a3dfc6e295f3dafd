"""End-to-end tests against the real sqlite3 command-line tool."""

import asyncio
import shutil
import sqlite3
from pathlib import Path

import pytest

from notesync.core.config import Config
from notesync.core.exceptions import CommandProcessError, OutputParseError
from notesync.core.types import NoteRecord, ResultMode, SchemaStatus
from notesync.store import CommandExecutor, NoteStore
from notesync.store import schema

pytestmark = pytest.mark.skipif(
    shutil.which("sqlite3") is None, reason="sqlite3 command-line tool not installed"
)


def _seed(path: Path, version: int) -> None:
    conn = sqlite3.connect(str(path))
    conn.executescript(schema.SCHEMA)
    conn.executescript(schema.build_set_version(version))
    conn.execute("INSERT INTO note (path, title) VALUES ('keep.md', 'Keep')")
    conn.commit()
    conn.close()


class TestExecutor:
    """CommandExecutor against sqlite3."""

    @pytest.mark.asyncio
    async def test_text_and_structured_output(self, test_db_path: Path):
        executor = CommandExecutor(test_db_path)

        assert await executor.run("SELECT 1 + 1;") == "2"
        assert await executor.run(
            "SELECT 'a.md' AS path, 3 AS n;", mode=ResultMode.STRUCTURED
        ) == [{"path": "a.md", "n": 3}]

    @pytest.mark.asyncio
    async def test_empty_result_is_empty_list(self, test_db_path: Path):
        executor = CommandExecutor(test_db_path)
        await executor.run("CREATE TABLE t (x INTEGER);")

        assert await executor.run("SELECT x FROM t;", mode=ResultMode.STRUCTURED) == []

    @pytest.mark.asyncio
    async def test_sql_error_is_process_error(self, test_db_path: Path):
        executor = CommandExecutor(test_db_path)

        with pytest.raises(CommandProcessError) as exc_info:
            await executor.run("SELEC 1;")

        assert exc_info.value.returncode != 0
        assert exc_info.value.stderr

    @pytest.mark.asyncio
    async def test_not_a_database_is_process_error(self, test_db_path: Path):
        test_db_path.write_bytes(b"garbage" * 200)

        with pytest.raises(CommandProcessError):
            await CommandExecutor(test_db_path).run("SELECT * FROM sqlite_master;")

    @pytest.mark.asyncio
    async def test_text_output_in_structured_mode_is_parse_error(self, test_db_path: Path):
        executor = CommandExecutor(test_db_path)

        with pytest.raises(OutputParseError):
            await executor.run(".print not-json", mode=ResultMode.STRUCTURED)


class TestNoteStore:
    """NoteStore against sqlite3."""

    @pytest.mark.asyncio
    async def test_fresh_store_created(self, config: Config):
        async with NoteStore(config) as store:
            assert store.schema_result.status is SchemaStatus.CREATED

        async with NoteStore(config) as store:
            assert store.schema_result.status is SchemaStatus.CURRENT

    @pytest.mark.asyncio
    async def test_tag_replacement_scenario(self, config: Config, sample_note: NoteRecord):
        async with NoteStore(config) as store:
            await store.update_note(sample_note)
            assert await store.get_tags("a.md") == {"x", "y"}

            sample_note.tags = ["#y"]
            await store.update_note(sample_note)

            assert await store.get_tags("a.md") == {"y"}
            assert await store.get_frontmatter("a.md") == {"k": "v"}

    @pytest.mark.asyncio
    async def test_delete_cascades(self, config: Config, sample_note: NoteRecord):
        async with NoteStore(config) as store:
            await store.update_note(sample_note)
            await store.delete_note("a.md")

            rows = await store.query(
                "SELECT (SELECT COUNT(*) FROM note_tag) AS tags, "
                "(SELECT COUNT(*) FROM note_frontmatter) AS frontmatter;"
            )

        assert rows == [{"tags": 0, "frontmatter": 0}]

    @pytest.mark.asyncio
    async def test_concurrent_batches_and_touch(self, config: Config):
        batch = [NoteRecord(path=f"{i}.md", title=f"Note {i}", tags=[f"#t{i}"]) for i in range(20)]

        async with NoteStore(config) as store:
            await asyncio.gather(
                store.update_note(batch),
                store.update_last_opened("3.md", now=99),
                store.delete_note("0.md"),
            )
            paths = await store.list_paths()
            note = await store.get_note("3.md")

        assert len(paths) == 19
        assert "0.md" not in paths
        assert note.last_opened == 99

    @pytest.mark.asyncio
    async def test_store_below_minimum_reset(self, config: Config):
        _seed(config.db_path, schema.MIN_MIGRATION_VERSION - 1)

        async with NoteStore(config) as store:
            assert store.schema_result.status is SchemaStatus.RESET
            assert await store.list_paths() == []

    @pytest.mark.asyncio
    async def test_store_at_minimum_upgraded(self, config: Config):
        _seed(config.db_path, schema.MIN_MIGRATION_VERSION)

        async with NoteStore(config) as store:
            assert store.schema_result.status is SchemaStatus.UPGRADED
            assert await store.list_paths() == ["keep.md"]
            rows = await store.query(schema.GET_VERSION)

        assert rows == [{"version": schema.CURRENT_VERSION}]
