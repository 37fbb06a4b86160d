"""Owned fire-and-forget task tracking."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Tracks detached tasks spawned by a repository.

    Tasks are never awaited by the code path that spawns them. A failure is
    logged and passed to the ``on_error`` callback given at spawn time;
    ``drain()`` waits for everything outstanding (clean shutdown, tests).
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        coro: Coroutine[Any, Any, Any],
        name: str,
        on_error: Callable[[str, BaseException], None] | None = None,
    ) -> asyncio.Task:
        """Start ``coro`` in the background.

        Args:
            coro: Coroutine to run
            name: Short description used in logs and error messages
            on_error: Called with (name, exception) if the task fails
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._tasks.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is None:
                return
            logger.warning("Background task %s failed: %s", name, exc)
            if on_error is not None:
                on_error(name, exc)

        task.add_done_callback(_done)
        return task

    async def drain(self) -> None:
        """Wait for all outstanding tasks, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
