"""
Fire-and-forget background work for the realtime core.

Durable presence writes must not delay the live path, so they run as
asyncio tasks. Failures are logged and swallowed; drain() waits for every
outstanding task and exists for tests and graceful shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """
    Tracks scheduled background coroutines.

    Usage:
        tasks = BackgroundTasks()
        tasks.schedule(store.set_presence("4821", True, now), name="presence:4821")
        await tasks.drain()
    """

    def __init__(self):
        self._pending: set[asyncio.Task] = set()

    def schedule(self, coro: Coroutine[Any, Any, Any], name: str = "") -> asyncio.Task:
        """Run `coro` in the background on the current event loop."""
        task = asyncio.get_running_loop().create_task(self._run(coro, name), name=name or None)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, coro: Coroutine[Any, Any, Any], name: str) -> Any:
        try:
            return await coro
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Background task {name or coro!r} failed")
            return None

    async def drain(self) -> None:
        """Wait until every scheduled task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._pending)
