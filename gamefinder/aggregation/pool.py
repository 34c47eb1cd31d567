"""Bounded worker pool for pending listing resolutions."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from gamefinder.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


class WorkerPool:
    """
    Runs submitted coroutines as tasks, at most ``max_concurrency`` at a time.

    Work starts as soon as it is submitted; callers keep the returned task
    and await it later. The pool holds a strong reference to every task
    until it finishes, so fire-and-forget submissions are not garbage
    collected mid-flight.
    """

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY) -> None:
        """
        Initialize the pool.

        Args:
            max_concurrency: Maximum number of coroutines running at once.

        Raises:
            ValueError: If max_concurrency is less than 1.
        """
        if max_concurrency < 1:
            msg = "max_concurrency must be at least 1"
            raise ValueError(msg)
        self._max_concurrency = max_concurrency
        self._semaphore: asyncio.Semaphore | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def max_concurrency(self) -> int:
        """Return the concurrency bound."""
        return self._max_concurrency

    def submit[T](self, coro: Coroutine[Any, Any, T], *, name: str | None = None) -> asyncio.Task[T]:
        """
        Schedule a coroutine on the pool.

        Must be called while an event loop is running.

        Args:
            coro: Coroutine to run.
            name: Optional task name.

        Returns:
            The task running the coroutine.
        """
        task = asyncio.create_task(self._run(coro, self._slots()), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _slots(self) -> asyncio.Semaphore:
        """Return the semaphore for the running loop, replacing one bound to an earlier loop."""
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._loop is not loop:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)
            self._loop = loop
        return self._semaphore

    async def _run[T](self, coro: Coroutine[Any, Any, T], slots: asyncio.Semaphore) -> T:
        """Run a coroutine once a slot is free."""
        async with slots:
            return await coro

    async def shutdown(self, *, cancel: bool = False) -> None:
        """
        Wait for, or cancel, every outstanding task.

        Args:
            cancel: Cancel outstanding tasks instead of waiting for them.
        """
        tasks = list(self._tasks)
        if not tasks:
            return
        if cancel:
            for task in tasks:
                task.cancel()
        logger.debug("Worker pool shutting down", tasks=len(tasks), cancel=cancel)
        await asyncio.gather(*tasks, return_exceptions=True)
