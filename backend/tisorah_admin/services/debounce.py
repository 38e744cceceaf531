"""Resettable debounce timer for coroutine callbacks."""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set


class Debouncer:
    """Run a coroutine function after a quiet period.

    Every ``call`` restarts the timer and replaces the pending callback. Once
    the timer fires the callback runs to completion even if a newer call
    arrives: cancelling only ever drops callbacks that have not started yet.
    Callers that need only the newest result discard stale ones themselves.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._task: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Future] = set()

    @property
    def pending(self) -> bool:
        """True while a callback is waiting for its quiet period to end."""
        return self._task is not None and not self._task.done()

    def call(self, func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.create_task(self._delayed(func, args, kwargs))
        return self._task

    async def _delayed(self, func, args, kwargs):
        await asyncio.sleep(self.delay)
        inner = asyncio.ensure_future(func(*args, **kwargs))
        self._inflight.add(inner)
        inner.add_done_callback(self._inflight.discard)
        return await asyncio.shield(inner)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait for the pending timer and every callback already started."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
