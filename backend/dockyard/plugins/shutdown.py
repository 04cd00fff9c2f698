"""Graceful-shutdown coordination.

Other parts of the server hand named cleanup tasks to the coordinator; they
all run once, in registration order, when the server lifespan exits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable
from typing import Callable
from typing import List

from dockyard.plugins.registry import Plugin
from dockyard.utils.log import log


@dataclass(frozen=True)
class ShutdownTask:
    taskname: str
    task: Callable[[], Awaitable[None]]


class ShutdownCoordinator:
    """Collects :class:`ShutdownTask` objects and runs them on shutdown."""

    def __init__(self):
        self._tasks: List[ShutdownTask] = []
        self._ran = False

    @property
    def tasks(self) -> List[ShutdownTask]:
        return list(self._tasks)

    def handler(self, task: ShutdownTask) -> None:
        """Register *task* to run during graceful shutdown."""

        if self._ran:
            raise RuntimeError(f"shutdown already ran; cannot register '{task.taskname}'")
        self._tasks.append(task)
        log.debug("shutdown task registered", taskname=task.taskname)

    async def run(self) -> None:
        """Run every registered task once.  A failing task does not stop the rest."""

        if self._ran:
            return
        self._ran = True

        for item in self._tasks:
            try:
                await item.task()
            except Exception:
                log.exception("shutdown task failed", taskname=item.taskname)
            else:
                log.debug("shutdown task finished", taskname=item.taskname)


class ShutdownPlugin(Plugin):
    name = "shutdown"

    async def register(self, server, config) -> ShutdownCoordinator:
        # The server's lifespan runs whatever coordinator is exposed here.
        return ShutdownCoordinator()
