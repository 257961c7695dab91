"""In-process fire-and-forget task runner.

The webhook handler spawns work here and returns without awaiting it.
The runner holds strong references so the event loop does not garbage
collect running tasks, logs failures, and lets the app lifespan drain
pending work on shutdown.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from loguru import logger


class BackgroundRunner:
    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"Background task {task.get_name()} failed: {exc}")

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for pending tasks; return how many were still running at the deadline."""
        if not self._tasks:
            return 0
        logger.info(f"Draining {len(self._tasks)} background task(s)")
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            logger.warning(f"{len(still_running)} background task(s) still running after {timeout}s")
        return len(still_running)
