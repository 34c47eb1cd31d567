"""Tests for the worker pool."""

from __future__ import annotations

import asyncio

import pytest

from gamefinder.aggregation.pool import WorkerPool


class TestWorkerPoolInit:
    """Tests for WorkerPool initialization."""

    def test_default_concurrency(self) -> None:
        """The pool defaults to eight concurrent tasks."""
        assert WorkerPool().max_concurrency == 8

    def test_invalid_concurrency(self) -> None:
        """Concurrency below one is rejected."""
        with pytest.raises(ValueError, match="at least 1"):
            WorkerPool(0)


class TestWorkerPoolSubmit:
    """Tests for submit."""

    @pytest.mark.asyncio
    async def test_returns_task_result(self) -> None:
        """The returned task produces the coroutine's result."""
        pool = WorkerPool()

        async def work() -> int:
            return 42

        task = pool.submit(work(), name="answer")

        assert task.get_name() == "answer"
        assert await task == 42

    @pytest.mark.asyncio
    async def test_bounds_concurrency(self) -> None:
        """No more than max_concurrency coroutines run at once."""
        pool = WorkerPool(max_concurrency=2)
        running = 0
        peak = 0

        async def work() -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        await asyncio.gather(*(pool.submit(work()) for _ in range(6)))

        assert peak == 2

    @pytest.mark.asyncio
    async def test_exception_propagates_to_task(self) -> None:
        """A failing coroutine fails its task."""
        pool = WorkerPool()

        async def work() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await pool.submit(work())

    def test_reusable_across_event_loops(self) -> None:
        """A pool used by one asyncio.run call keeps working in the next."""
        pool = WorkerPool(max_concurrency=1)

        async def work(i: int) -> int:
            await asyncio.sleep(0.01)
            return i

        async def run() -> list[int]:
            return await asyncio.gather(*(pool.submit(work(i)) for i in range(3)))

        assert asyncio.run(run()) == [0, 1, 2]
        assert asyncio.run(run()) == [0, 1, 2]


class TestWorkerPoolShutdown:
    """Tests for shutdown."""

    @pytest.mark.asyncio
    async def test_cancel(self) -> None:
        """shutdown(cancel=True) cancels outstanding tasks."""
        pool = WorkerPool()
        task = pool.submit(asyncio.sleep(10))
        await asyncio.sleep(0)

        await pool.shutdown(cancel=True)

        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_wait(self) -> None:
        """shutdown() waits for outstanding tasks."""
        pool = WorkerPool()
        task = pool.submit(asyncio.sleep(0.01, result="done"))

        await pool.shutdown()

        assert task.result() == "done"
