"""Tests for the bounded-concurrency task scheduler."""

import asyncio

import pytest

from formulary.driver.scheduler import TaskScheduler


class ConcurrencyProbe:
    """Handler recording how many calls overlap."""

    def __init__(self, delay: float = 0.005) -> None:
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.started: list[int] = []
        self.finished: list[int] = []

    async def __call__(self, task: int) -> None:
        self.started.append(task)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        self.finished.append(task)


class TestTaskScheduler:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "concurrency, task_count, expected_max",
        [(3, 10, 3), (4, 2, 2), (1, 5, 1), (8, 8, 8)],
    )
    async def test_bounded_concurrency(
        self, concurrency, task_count, expected_max
    ):
        """In-flight handlers shall never exceed the effective limit."""
        probe = ConcurrencyProbe()

        await TaskScheduler(concurrency).run(list(range(task_count)), probe)

        assert probe.max_active == expected_max
        assert sorted(probe.finished) == list(range(task_count))

    @pytest.mark.asyncio
    async def test_fifo_start_order(self):
        probe = ConcurrencyProbe()

        await TaskScheduler(2).run(list(range(6)), probe)

        assert probe.started == list(range(6))

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_siblings(self):
        """A raising handler shall be logged and the run shall continue."""
        done: list[int] = []

        async def handler(task: int) -> None:
            await asyncio.sleep(0)
            if task % 2:
                raise RuntimeError(f"task {task} failed")
            done.append(task)

        await TaskScheduler(2).run(list(range(6)), handler)

        assert sorted(done) == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_empty_task_list(self):
        probe = ConcurrencyProbe()

        await TaskScheduler(4).run([], probe)

        assert probe.started == []

    def test_effective_concurrency(self):
        scheduler = TaskScheduler(4)

        assert scheduler.effective_concurrency(0) == 1
        assert scheduler.effective_concurrency(2) == 2
        assert scheduler.effective_concurrency(100) == 4
        assert TaskScheduler(0).effective_concurrency(5) == 1
