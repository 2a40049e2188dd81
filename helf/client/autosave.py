"""Trailing-edge debounced autosave.

``schedule()`` (re)arms a timer; only the last call within ``delay`` seconds
leads to a flush. Rescheduling cancels a sleeping timer only. Once the timer
fires, the flush runs as its own task and is never interrupted, and flushes
never overlap.
"""
import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class AutosaveScheduler:
    def __init__(self, flush: Callable[[], Awaitable[None]], delay: float = 3.0):
        self._flush = flush
        self._delay = delay
        self._timer: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def schedule(self) -> None:
        self.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_flush())

    def cancel(self) -> None:
        if self.pending:
            self._timer.cancel()
        self._timer = None

    async def flush_now(self) -> None:
        """Flush immediately, skipping the timer. Errors propagate to the caller."""
        self.cancel()
        await self._locked_flush()

    async def wait_idle(self) -> None:
        """Wait for a flush started by the timer, if one is running."""
        if self._inflight:
            await asyncio.gather(*self._inflight)

    async def _wait_then_flush(self) -> None:
        await asyncio.sleep(self._delay)
        self._timer = None
        task = asyncio.create_task(self._background_flush())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _background_flush(self) -> None:
        try:
            await self._locked_flush()
        except Exception:
            logger.exception("Autosave flush failed")

    async def _locked_flush(self) -> None:
        async with self._lock:
            await self._flush()
