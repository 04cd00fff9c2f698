"""Minimal domain-service handles used when running the server standalone.

Only the attributes the bootstrap touches are modelled: the public API URI,
the token generator slot and the executor it shares that generator with.
"""

from __future__ import annotations

from typing import Callable
from typing import Optional

from dockyard.services.executor import QueueExecutor


class BuildFactory:
    def __init__(self, executor: QueueExecutor):
        self.executor = executor
        self.api_uri: Optional[str] = None
        self.token_gen: Optional[Callable[..., str]] = None


class JobFactory:
    def __init__(self, executor: QueueExecutor):
        self.executor = executor
        self.api_uri: Optional[str] = None
        self.token_gen: Optional[Callable[..., str]] = None

    async def clean_up(self) -> None:
        await self.executor.clean_up()
