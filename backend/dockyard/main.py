"""Process entry point: ``python -m dockyard.main`` or the ``dockyard`` script."""

from __future__ import annotations

import asyncio
import sys

from dockyard.bootstrap import create_server
from dockyard.config import get_settings
from dockyard.config.server_config import build_server_config
from dockyard.constants import BUILD_FACTORY
from dockyard.constants import JOB_FACTORY
from dockyard.services.executor import QueueExecutor
from dockyard.services.factories import BuildFactory
from dockyard.services.factories import JobFactory
from dockyard.utils.log import configure_logging
from dockyard.utils.log import log


async def serve() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    executor = QueueExecutor()
    config = build_server_config(
        settings,
        factories={
            BUILD_FACTORY: BuildFactory(executor),
            JOB_FACTORY: JobFactory(executor),
        },
    )

    server = await create_server(config)
    if server is None:
        return 1

    await server.wait_closed()
    log.info("server stopped")
    return 0


def main() -> None:
    sys.exit(asyncio.run(serve()))


if __name__ == "__main__":
    main()
