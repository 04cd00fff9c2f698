"""The live API server: FastAPI application, plugin namespace and listener."""

from __future__ import annotations

import asyncio
import socket
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any
from typing import AsyncIterator
from typing import Mapping
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dockyard.config.server_config import EcosystemSettings
from dockyard.config.server_config import HttpdSettings
from dockyard.config.server_config import ServerConfiguration
from dockyard.cors import CorsPolicy
from dockyard.events import EventBus
from dockyard.exceptions import StartFailed
from dockyard.exceptions import WiringError
from dockyard.middleware.strip_slash import StripTrailingSlashMiddleware
from dockyard.middleware.unhandled_errors import UnhandledErrorMiddleware
from dockyard.plugins.registry import PluginNamespace
from dockyard.utils.log import log
from dockyard.wiring import TokenIssuer

# Poll interval while waiting for uvicorn to report it is serving.
_START_POLL_SECONDS = 0.01


class BootstrapState(str, Enum):
    CONFIGURING = "configuring"
    REGISTERING = "registering"
    WIRING = "wiring"
    STARTING = "starting"
    RUNNING = "running"
    FAILED = "failed"


@dataclass(frozen=True)
class ServerInfo:
    host: str
    port: int
    protocol: str
    uri: str

    @classmethod
    def from_httpd(cls, httpd: HttpdSettings, port: Optional[int] = None) -> "ServerInfo":
        port = httpd.port if port is None else port
        uri = httpd.uri or f"{httpd.protocol}://{httpd.host}:{port}"
        return cls(host=httpd.host, port=port, protocol=httpd.protocol, uri=uri)


@dataclass(frozen=True)
class AppContext:
    """Application-scoped references shared with request handlers.

    Built once with the server.  The factories themselves stay mutable; the
    only fields written after construction are their token generator slots,
    and only during wiring.
    """

    factories: Mapping[str, Any]
    ecosystem: EcosystemSettings
    token_issuer: TokenIssuer

    def factory(self, name: str) -> Any:
        try:
            return self.factories[name]
        except KeyError:
            raise WiringError(f"Factory '{name}' is not configured") from None


class RunningServer:
    """Owns the FastAPI app (``api``), the app context (``app``) and the listener."""

    def __init__(self, config: ServerConfiguration, cors: CorsPolicy):
        self.config = config
        self.state = BootstrapState.CONFIGURING
        self.info = ServerInfo.from_httpd(config.httpd)
        self.plugins = PluginNamespace()
        self.events = EventBus()
        self.app = AppContext(
            factories=config.factories,
            ecosystem=config.ecosystem,
            token_issuer=TokenIssuer(),
        )

        self.api = FastAPI(lifespan=self._lifespan)
        self.api.state.context = self.app
        # Middleware added first sits innermost: unhandled errors become
        # normalized 500s before CORS headers are applied.
        self.api.add_middleware(UnhandledErrorMiddleware)
        self.api.add_middleware(CORSMiddleware, **cors.middleware_options())
        # Added last so it runs first, before CORS and routing see the path.
        self.api.add_middleware(StripTrailingSlashMiddleware)

        self._uvicorn: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None

    @asynccontextmanager
    async def _lifespan(self, api: FastAPI) -> AsyncIterator[None]:
        yield
        coordinator = self.plugins.get("shutdown")
        if coordinator is not None:
            await coordinator.run()

    # ------------------------------------------------------------------
    # Listener
    # ------------------------------------------------------------------

    def _bind_socket(self) -> socket.socket:
        httpd = self.config.httpd
        family = socket.AF_INET6 if ":" in httpd.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((httpd.host, httpd.port))
        except OSError:
            sock.close()
            raise
        sock.set_inheritable(True)
        return sock

    async def start(self) -> None:
        """Bind the socket and serve until stopped; return once accepting traffic.

        Raises :class:`StartFailed` when the socket cannot be bound or the
        application aborts its startup.
        """

        if self._serve_task is not None:
            raise StartFailed(detail="server already started")

        try:
            sock = self._bind_socket()
        except OSError as exc:
            raise StartFailed(exc, "cannot bind listener") from exc

        # Port 0 asks the OS for a free port; report the real one.
        bound_port = sock.getsockname()[1]
        if bound_port != self.info.port:
            self.info = ServerInfo.from_httpd(self.config.httpd, port=bound_port)

        tls = self.config.httpd.tls
        uv_config = uvicorn.Config(
            self.api,
            host=self.info.host,
            port=bound_port,
            ssl_certfile=tls.certfile if tls else None,
            ssl_keyfile=tls.keyfile if tls else None,
            log_config=None,
            lifespan="on",
        )
        self._uvicorn = uvicorn.Server(uv_config)
        self._serve_task = asyncio.create_task(self._uvicorn.serve(sockets=[sock]))

        while not self._uvicorn.started:
            if self._serve_task.done():
                sock.close()
                cause = None if self._serve_task.cancelled() else self._serve_task.exception()
                raise StartFailed(cause, "listener stopped during startup")
            await asyncio.sleep(_START_POLL_SECONDS)

        log.info("server listening", uri=self.info.uri)

    async def wait_closed(self) -> None:
        """Block until the listener has shut down."""

        if self._serve_task is not None:
            await self._serve_task

    async def stop(self) -> None:
        """Ask uvicorn to shut down gracefully and wait for it."""

        if self._uvicorn is None:
            return
        self._uvicorn.should_exit = True
        await self.wait_closed()

    def __repr__(self) -> str:  # pragma: no cover – debugging aid
        return f"<RunningServer {self.info.uri} state={self.state.value}>"


__all__ = [
    "AppContext",
    "BootstrapState",
    "RunningServer",
    "ServerInfo",
]
