"""In-process stand-in for the build executor queue.

The real executor is an external service; this handle only carries the
token-generation slots the server fills in and a queue it can drain on
shutdown.
"""

from __future__ import annotations

import asyncio
from typing import Any
from typing import Callable
from typing import Dict
from typing import Optional

from dockyard.utils.log import log


class QueueExecutor:
    def __init__(self):
        self.token_gen: Optional[Callable[..., str]] = None
        self.user_token_gen: Optional[Callable[..., str]] = None
        self._queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def enqueue(self, job: Dict[str, Any]) -> None:
        await self._queue.put(job)

    async def clean_up(self) -> None:
        """Drop every job that has not been picked up yet."""

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        log.info("executor queue drained", dropped=dropped)
