# -*- coding: utf-8 -*-
"""
Fire-and-forget jobs with an error boundary.

Conversational learning runs after the reply has been sent. Jobs are kept in
a tracked set so they are not garbage collected mid-flight, failures are
logged and dropped, and drain() lets tests and shutdown wait for them.
"""
# Standard library
import asyncio
import logging
from typing import Awaitable, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundJobs:
    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def schedule(self, coro: Awaitable, name: Optional[str] = None) -> asyncio.Task:
        """Start coro on the running loop. Errors are logged, never raised."""
        task = asyncio.ensure_future(self._guard(coro, name or 'background job'))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every job scheduled so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @staticmethod
    async def _guard(coro: Awaitable, name: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"{name} failed: {e}", exc_info=True)
