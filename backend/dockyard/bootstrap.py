"""Configure, wire and start the API server.

:func:`create_server` walks the server through its bootstrap states::

    configuring -> registering -> wiring -> starting -> running
                        |            |          |
                        +------------+----------+--> failed

A plugin registration failure (or a wiring failure) is raised to the
caller before any socket is bound.  A start failure is logged and
:func:`create_server` returns ``None`` instead of raising; callers must treat
``None`` as "did not start".
"""

from __future__ import annotations

from typing import Awaitable
from typing import Callable
from typing import Optional

from dockyard.config.server_config import ServerConfiguration
from dockyard.constants import BUILD_STATUS_EVENT
from dockyard.cors import build_cors_policy
from dockyard.errors import install_error_handlers
from dockyard.exceptions import StartFailed
from dockyard.metrics import bootstrap_failures_total
from dockyard.plugins import register_plugins
from dockyard.server import BootstrapState
from dockyard.server import RunningServer
from dockyard.utils.log import log
from dockyard.wiring import wire_services

Registrar = Callable[[RunningServer, ServerConfiguration], Awaitable[None]]


def _transition(server: RunningServer, state: BootstrapState) -> None:
    log.debug("bootstrap state", previous=server.state.value, state=state.value)
    server.state = state


def _fail(server: RunningServer) -> None:
    bootstrap_failures_total.labels(phase=server.state.value).inc()
    _transition(server, BootstrapState.FAILED)


def configure_server(config: ServerConfiguration) -> RunningServer:
    """Build the server with CORS, error normalization and event channels."""

    cors = build_cors_policy(config.ecosystem)
    server = RunningServer(config, cors)
    install_error_handlers(server.api)
    server.events.register(BUILD_STATUS_EVENT)
    return server


async def create_server(
    config: ServerConfiguration,
    registrar: Registrar = register_plugins,
) -> Optional[RunningServer]:
    """Bootstrap the API server and return it once it is listening."""

    server = configure_server(config)

    _transition(server, BootstrapState.REGISTERING)
    try:
        await registrar(server, config)
    except Exception:
        _fail(server)
        raise

    _transition(server, BootstrapState.WIRING)
    try:
        wire_services(server, shutdown=server.plugins.get("shutdown"))
        server.app.token_issuer.require_attached()
    except Exception:
        _fail(server)
        raise

    _transition(server, BootstrapState.STARTING)
    try:
        await server.start()
    except Exception as exc:
        failure = exc if isinstance(exc, StartFailed) else StartFailed(exc)
        _fail(server)
        log.error("Failed to start server", error=str(failure), exc_info=exc)
        return None

    _transition(server, BootstrapState.RUNNING)
    return server
