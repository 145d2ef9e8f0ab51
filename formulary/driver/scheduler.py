"""Bounded-concurrency task scheduler.

Tasks are handed out in FIFO order from an :class:`asyncio.Queue` to a fixed
pool of worker coroutines. The pool size caps how many handlers are in
flight, and so how many browser tabs are open at once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

TaskT = TypeVar("TaskT")


class TaskScheduler(Generic[TaskT]):
    """Runs a handler over a list of tasks with at most N in flight.

    Example:
        scheduler = TaskScheduler(concurrency=4)
        await scheduler.run(tasks, process_task)
    """

    def __init__(self, concurrency: int):
        self.concurrency = concurrency

    def effective_concurrency(self, task_count: int) -> int:
        return max(1, min(self.concurrency, max(1, task_count)))

    async def run(
        self,
        tasks: Sequence[TaskT],
        handler: Callable[[TaskT], Awaitable[None]],
    ) -> None:
        """Run ``handler`` once per task and wait for all of them.

        A handler that raises is logged; its worker moves on to the next
        task and sibling handlers are unaffected.

        Args:
            tasks: Tasks in the order they should be started.
            handler: Coroutine function processing one task.
        """
        if not tasks:
            return

        queue: asyncio.Queue[TaskT] = asyncio.Queue()
        for task in tasks:
            queue.put_nowait(task)

        workers = [
            asyncio.create_task(self._worker(i, queue, handler))
            for i in range(self.effective_concurrency(len(tasks)))
        ]

        try:
            await queue.join()
        finally:
            # Cancel workers (they're waiting on the queue)
            for worker in workers:
                worker.cancel()

            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(
        self,
        worker_id: int,
        queue: asyncio.Queue[TaskT],
        handler: Callable[[TaskT], Awaitable[None]],
    ) -> None:
        while True:
            try:
                task = await queue.get()
            except asyncio.CancelledError:
                # Worker was cancelled (normal shutdown)
                break

            try:
                await handler(task)
            except Exception as e:
                logger.error(
                    f"Worker {worker_id} handler failed for {task!r}: {e}",
                    exc_info=True,
                )
            finally:
                # Always mark task as done to allow join() to complete
                queue.task_done()
