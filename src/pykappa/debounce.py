"""Debounced async calls with cancel-on-supersede semantics.

``debounce(fn, delay)`` returns a :class:`Debouncer`.  Each
:meth:`Debouncer.schedule` call replaces the previously scheduled (not yet
started) invocation; once the delay elapses without a newer call, ``fn``
runs as a fire-and-forget task.  A call that has already started is never
cancelled by a later schedule.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

_logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, fn: Callable[..., Awaitable[Any]], delay: float) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        self._fn = fn
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._pending_args: tuple[tuple[Any, ...], dict[str, Any]] | None = None
        self._inflight: set[asyncio.Task[Any]] = set()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """Whether an invocation is scheduled but has not started."""
        return self._handle is not None

    @property
    def inflight(self) -> int:
        """Number of started invocations that have not finished."""
        return len(self._inflight)

    def schedule(self, *args: Any, **kwargs: Any) -> None:
        """(Re)start the delay; the previous pending invocation is dropped."""
        loop = asyncio.get_running_loop()
        self.cancel()
        self._pending_args = (args, kwargs)
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending invocation.  Returns whether one was pending."""
        handle = self._handle
        self._handle = None
        self._pending_args = None
        if handle is None:
            return False
        handle.cancel()
        return True

    async def flush(self) -> None:
        """Run the pending invocation now and wait for it, if there is one."""
        pending = self._pending_args
        if not self.cancel() or pending is None:
            return
        args, kwargs = pending
        await self._fn(*args, **kwargs)

    async def drain(self) -> None:
        """Wait for every started invocation to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def _fire(self) -> None:
        pending = self._pending_args
        self._handle = None
        self._pending_args = None
        if pending is None:
            return
        args, kwargs = pending
        task = asyncio.ensure_future(self._fn(*args, **kwargs))
        self._inflight.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.warning("Debounced call %r failed", self._fn, exc_info=exc)


def debounce(fn: Callable[..., Awaitable[Any]], delay: float) -> Debouncer:
    """Wrap *fn* so bursts of calls collapse into one call *delay* seconds later."""
    return Debouncer(fn, delay)
