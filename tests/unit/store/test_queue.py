"""Tests for the FIFO write queue."""

import asyncio
import sys
from pathlib import Path

import pytest

from notesync.core.config import StoreConfig
from notesync.core.exceptions import CommandTimeoutError, QueueClosedError
from notesync.store.executor import CommandExecutor
from notesync.store.queue import WriteQueue


def _recorder(log: list, name: str, delay: float = 0.0, result=None):
    async def operation():
        log.append(f"start {name}")
        await asyncio.sleep(delay)
        log.append(f"end {name}")
        return result if result is not None else name

    return operation


class TestWriteQueueOrdering:
    """Tests for strict FIFO execution."""

    @pytest.mark.asyncio
    async def test_operations_run_one_at_a_time_in_order(self):
        queue = WriteQueue()
        log: list[str] = []

        # The first operation is the slowest; it must still finish first
        results = await asyncio.gather(
            queue.enqueue(_recorder(log, "a.md", delay=0.05)),
            queue.enqueue(_recorder(log, "b.md", delay=0.01)),
            queue.enqueue(_recorder(log, "c.md")),
        )

        assert results == ["a.md", "b.md", "c.md"]
        assert log == [
            "start a.md",
            "end a.md",
            "start b.md",
            "end b.md",
            "start c.md",
            "end c.md",
        ]
        await queue.close()

    @pytest.mark.asyncio
    async def test_unrelated_keys_are_not_run_concurrently(self):
        queue = WriteQueue()
        active = 0
        peak = 0

        async def operation():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        await asyncio.gather(*(queue.enqueue(operation) for _ in range(10)))

        assert peak == 1
        await queue.close()

    @pytest.mark.asyncio
    async def test_returns_operation_result(self):
        queue = WriteQueue()

        async def operation():
            return {"rows": 3}

        assert await queue.enqueue(operation) == {"rows": 3}
        await queue.close()


class TestWriteQueueFailures:
    """Tests for failure isolation."""

    @pytest.mark.asyncio
    async def test_failure_reaches_only_its_caller(self):
        queue = WriteQueue()
        log: list[str] = []

        async def failing():
            log.append("fail")
            raise ValueError("boom")

        first, second, third = await asyncio.gather(
            queue.enqueue(_recorder(log, "before")),
            queue.enqueue(failing),
            queue.enqueue(_recorder(log, "after")),
            return_exceptions=True,
        )

        assert first == "before"
        assert isinstance(second, ValueError)
        assert third == "after"
        assert log == ["start before", "end before", "fail", "start after", "end after"]
        await queue.close()

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="stand-in engine is a /bin/sh script")
    async def test_timeout_does_not_block_next_operation(
        self, test_db_path: Path, fake_engine
    ):
        slow = CommandExecutor(
            test_db_path, StoreConfig(binary=fake_engine("exec sleep 30"), timeout=0.2)
        )
        fast = CommandExecutor(
            test_db_path, StoreConfig(binary=fake_engine("cat >/dev/null\necho done"))
        )
        queue = WriteQueue()

        timed_out, finished = await asyncio.gather(
            queue.enqueue(lambda: slow.run("UPDATE note SET title = 'x';")),
            queue.enqueue(lambda: fast.run("DELETE FROM note WHERE path = 'b.md';")),
            return_exceptions=True,
        )

        assert isinstance(timed_out, CommandTimeoutError)
        assert finished == "done"
        await queue.close()

    @pytest.mark.asyncio
    async def test_cancelled_caller_is_skipped(self):
        queue = WriteQueue()
        log: list[str] = []

        blocker = asyncio.create_task(queue.enqueue(_recorder(log, "blocker", delay=0.05)))
        await asyncio.sleep(0)
        doomed = asyncio.create_task(queue.enqueue(_recorder(log, "doomed")))
        await asyncio.sleep(0)
        doomed.cancel()

        await blocker
        assert await queue.enqueue(_recorder(log, "next")) == "next"
        assert "start doomed" not in log
        await queue.close()

    @pytest.mark.asyncio
    async def test_operation_cancelling_itself_keeps_worker_alive(self):
        queue = WriteQueue()
        log: list[str] = []

        async def self_cancelling():
            done = asyncio.get_running_loop().create_future()
            done.cancel()
            await done

        cancelled = asyncio.create_task(queue.enqueue(self_cancelling))
        following = asyncio.create_task(queue.enqueue(_recorder(log, "after")))

        assert await asyncio.wait_for(following, 1) == "after"
        with pytest.raises(asyncio.CancelledError):
            await cancelled
        assert queue.running
        await queue.close()


class TestWriteQueueLifecycle:
    """Tests for start/close."""

    @pytest.mark.asyncio
    async def test_close_drains_pending_operations(self):
        queue = WriteQueue()
        queue.start()
        log: list[str] = []

        tasks = [
            asyncio.create_task(queue.enqueue(_recorder(log, str(i), delay=0.01)))
            for i in range(3)
        ]
        await asyncio.sleep(0)
        await queue.close()

        assert await asyncio.gather(*tasks) == ["0", "1", "2"]
        assert not queue.running
        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_enqueue_after_close_rejected(self):
        queue = WriteQueue()
        queue.start()
        await queue.close()

        async def operation():
            return None

        with pytest.raises(QueueClosedError):
            await queue.enqueue(operation)

        with pytest.raises(QueueClosedError):
            queue.start()

    @pytest.mark.asyncio
    async def test_enqueue_starts_worker_lazily(self):
        queue = WriteQueue()
        assert not queue.running

        async def operation():
            return 1

        assert await queue.enqueue(operation) == 1
        assert queue.running
        await queue.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        queue = WriteQueue()
        queue.start()

        await queue.close()
        await queue.close()

        assert queue.closed

    @pytest.mark.asyncio
    async def test_close_fails_entries_left_by_stopped_worker(self):
        queue = WriteQueue()
        queue.start()
        log: list[str] = []

        running = asyncio.create_task(queue.enqueue(_recorder(log, "slow", delay=5)))
        waiting = asyncio.create_task(queue.enqueue(_recorder(log, "waiting")))
        await asyncio.sleep(0.01)

        worker = queue._worker
        worker.cancel()
        await asyncio.gather(worker, return_exceptions=True)
        await queue.close()

        with pytest.raises(QueueClosedError):
            await asyncio.wait_for(waiting, 1)
        with pytest.raises(asyncio.CancelledError):
            await running
        assert "start waiting" not in log
        assert queue.pending == 0
