"""FIFO write queue.

Every mutating operation against the store runs through one worker, one
operation at a time, in the order it was enqueued. There is no per-key
partitioning: writes to unrelated notes are serialized as strictly as
writes to the same note, since independent sqlite3 processes give no
isolation guarantee between each other.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from ..core.exceptions import QueueClosedError

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


@dataclass
class _Entry:
    seq: int
    operation: Operation[Any]
    future: asyncio.Future


class WriteQueue:
    """Serializes async operations through a single worker task.

    A failed operation only fails its own caller; the worker moves on to the
    next entry regardless.

    Example:
        queue = WriteQueue()
        queue.start()
        await queue.enqueue(lambda: executor.run(sql))
        await queue.close()
    """

    def __init__(self, name: str = "writes"):
        self.name = name
        self._queue: asyncio.Queue[_Entry | None] | None = None
        self._worker: asyncio.Task | None = None
        self._counter = itertools.count(1)
        self._closed = False

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of entries waiting for the worker."""
        if self._queue is None:
            return 0
        return self._queue.qsize()

    def start(self) -> None:
        """Start the worker task. Must be called from a running event loop."""
        if self._closed:
            raise QueueClosedError(f"Queue {self.name!r} is closed")
        if self.running:
            return

        if self._queue is None:
            self._queue = asyncio.Queue()
        self._worker = asyncio.get_running_loop().create_task(
            self._run(), name=f"notesync-{self.name}-queue"
        )
        logger.debug(f"Write queue {self.name!r} started")

    async def enqueue(self, operation: Operation[T]) -> T:
        """Append an operation and wait for it to settle.

        Args:
            operation: Zero-argument callable returning an awaitable.

        Returns:
            Whatever the operation returns.

        Raises:
            QueueClosedError: The queue has been closed.
            Exception: Whatever the operation raises.
        """
        if self._closed:
            raise QueueClosedError(f"Queue {self.name!r} is closed")
        if not self.running:
            self.start()

        future = asyncio.get_running_loop().create_future()
        entry = _Entry(next(self._counter), operation, future)
        assert self._queue is not None
        self._queue.put_nowait(entry)
        logger.debug(f"Enqueued operation #{entry.seq} ({self.pending} pending)")
        return await future

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            entry = await self._queue.get()
            try:
                if entry is None:
                    return
                await self._execute(entry)
            finally:
                self._queue.task_done()

    async def _execute(self, entry: _Entry) -> None:
        if entry.future.done():
            # Caller stopped waiting before the operation started
            logger.debug(f"Skipping cancelled operation #{entry.seq}")
            return

        try:
            result = await entry.operation()
        except asyncio.CancelledError:
            if not entry.future.done():
                entry.future.cancel()
            worker = asyncio.current_task()
            if worker is not None and worker.cancelling():
                raise
            # The operation cancelled itself; only its caller sees it
            logger.debug(f"Operation #{entry.seq} was cancelled")
        except Exception as e:
            logger.debug(f"Operation #{entry.seq} failed: {e}")
            if not entry.future.done():
                entry.future.set_exception(e)
        else:
            if not entry.future.done():
                entry.future.set_result(result)

    async def close(self) -> None:
        """Drain pending operations and stop the worker.

        Operations enqueued after close() is called are rejected.
        """
        if self._closed:
            return
        self._closed = True

        if self.running:
            assert self._queue is not None
            self._queue.put_nowait(None)
            await self._worker
        self._worker = None
        self._fail_pending()
        logger.debug(f"Write queue {self.name!r} closed")

    def _fail_pending(self) -> None:
        """Settle entries left behind by a worker that stopped early."""
        if self._queue is None:
            return

        while not self._queue.empty():
            entry = self._queue.get_nowait()
            self._queue.task_done()
            if entry is None or entry.future.done():
                continue
            logger.warning(f"Dropping operation #{entry.seq}: queue closed")
            entry.future.set_exception(
                QueueClosedError(f"Queue {self.name!r} closed before operation ran")
            )
