"""Reset-on-call debouncer for async flush operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Coalesces bursts of requests into a single call of ``flush``.

    Each request cancels the pending timer and starts a new one; ``flush``
    runs once the timer expires without another request. ``flush`` takes no
    arguments, so it must read the current state when it runs rather than a
    value captured when the request was made.
    """

    def __init__(self, delay: float, flush: Callable[[], Awaitable[None]]):
        self.delay = delay
        self._flush = flush
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """True while a timer is waiting or a flush is running."""
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        await self._flush()

    async def request(self) -> bool:
        """Schedule a flush, superseding any pending one.

        Waits until this request's timer fires and the flush completes.

        Returns:
            True if this request performed the flush, False if a later
            request superseded it

        Raises:
            Whatever ``flush`` raises, for the request that performed it
        """
        self.cancel()
        task = asyncio.create_task(self._run())
        self._task = task

        await asyncio.wait({task})
        if task.cancelled():
            logger.debug("Debounced flush superseded")
            return False
        task.result()
        return True

    def cancel(self) -> None:
        """Cancel the pending timer, if any. Superseded callers return quietly."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush_now(self) -> bool:
        """Run a pending flush immediately instead of waiting for the timer.

        Returns:
            True if a flush was pending and has been performed
        """
        if not self.pending:
            return False
        self.cancel()
        await self._flush()
        return True
