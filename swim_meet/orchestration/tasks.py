"""
Tracking for fire-and-forget provider calls.
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Keeps references to running tasks so they are not garbage collected and can be awaited."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background task %s failed", task.get_name(), exc_info=error)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait(self) -> None:
        """Wait until every task, including ones spawned while waiting, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close_when_done(self, tasks: list[asyncio.Task], resource: Any, name: Optional[str] = None) -> asyncio.Task:
        """Close `resource` once every task in `tasks` has finished, however they end."""

        async def close() -> None:
            try:
                await asyncio.gather(*tasks, return_exceptions=True)
            finally:
                await resource.aclose()

        return self.spawn(close(), name=name)
