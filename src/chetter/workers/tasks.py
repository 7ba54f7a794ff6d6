"""Tracking of work that outlives the request that started it.

Closing a pull request can take minutes when it has hundreds of refs, far
longer than GitHub waits for a webhook response. Such work is spawned here
instead; on shutdown the tracker stops taking new work and waits a bounded
time for what is still running.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from chetter.refs.models import OperationResult

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 600.0


class TaskTrackerClosedError(RuntimeError):
    """Raised when work is spawned on a tracker that is shutting down."""


class BackgroundTaskTracker:
    """Owns background tasks and drains them on shutdown."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False
        self.stats: dict[str, int] = {
            "spawned": 0,
            "succeeded": 0,
            "failed": 0,
            "cancelled": 0,
        }

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(
        self, coro: Coroutine[Any, Any, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Run ``coro`` in the background.

        Raises:
            TaskTrackerClosedError: If the tracker no longer accepts work
        """
        if self._closed:
            coro.close()
            raise TaskTrackerClosedError(f"Not accepting new tasks: {name}")

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        self.stats["spawned"] += 1
        task.add_done_callback(self._on_done)
        logger.debug(f"Spawned background task {task.get_name()}")
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        name = task.get_name()

        if task.cancelled():
            self.stats["cancelled"] += 1
            logger.warning(f"Background task {name} was cancelled")
            return

        error = task.exception()
        if error is not None:
            self.stats["failed"] += 1
            logger.error(f"Background task {name} failed: {error}", exc_info=error)
            return

        result = task.result()
        if isinstance(result, OperationResult) and not result.ok:
            self.stats["failed"] += 1
            logger.error(f"Background task {name} failed: {result}")
            return

        self.stats["succeeded"] += 1
        logger.debug(f"Background task {name} finished")

    def close(self) -> None:
        """Stop accepting new tasks."""
        self._closed = True

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait for running tasks.

        Returns:
            True if all of them finished within ``timeout``
        """
        if not self._tasks:
            return True
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        return not pending

    async def shutdown(self, timeout: float | None = DEFAULT_SHUTDOWN_TIMEOUT) -> bool:
        """Close the tracker and drain it, cancelling whatever outlasts ``timeout``.

        Returns:
            True if every task finished on its own
        """
        self.close()
        if self._tasks:
            logger.info(f"Waiting up to {timeout}s for {self.pending} background tasks")

        finished = await self.wait(timeout)
        if finished:
            return True

        leftover = list(self._tasks)
        logger.warning(
            f"Timed out after {timeout}s waiting for {len(leftover)} background "
            f"tasks; cancelling them"
        )
        for task in leftover:
            task.cancel()
        await asyncio.gather(*leftover, return_exceptions=True)
        return False
