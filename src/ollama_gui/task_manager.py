"""Named background tasks for the catalog fetcher and the generation worker."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


class TaskManager:
    """Own at most one live asyncio task per name."""

    def __init__(self) -> None:
        self._named: dict[str, asyncio.Task[Any]] = {}
        # Cancelled but still unwinding; awaited by cancel_all.
        self._retiring: set[asyncio.Task[Any]] = set()

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Start ``coro`` under ``name``, cancelling any task it replaces."""
        self.cancel_nowait(name)
        task = asyncio.create_task(coro, name=name)
        self._named[name] = task
        task.add_done_callback(lambda done: self._on_done(name, done))
        return task

    def is_running(self, name: str) -> bool:
        task = self._named.get(name)
        return task is not None and not task.done()

    def cancel_nowait(self, name: str) -> bool:
        """Request cancellation of a named task without waiting for it.

        Returns True when a live task was cancelled.
        """
        task = self._named.pop(name, None)
        if task is None or task.done():
            return False
        task.cancel()
        self._retiring.add(task)
        task.add_done_callback(self._retiring.discard)
        LOGGER.debug("task.cancelled", extra={"event": "task.cancelled", "task": name})
        return True

    async def cancel_all(self) -> None:
        """Cancel every tracked task and await them all."""
        live = list(self._named.values())
        self._named.clear()
        for task in live:
            if not task.done():
                task.cancel()
        await asyncio.gather(*live, *self._retiring, return_exceptions=True)

    def _on_done(self, name: str, task: asyncio.Task[Any]) -> None:
        if self._named.get(name) is task:
            del self._named[name]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error(
                "task.failed",
                extra={"event": "task.failed", "task": name},
                exc_info=exc,
            )
