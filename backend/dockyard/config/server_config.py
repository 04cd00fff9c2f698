"""Immutable input aggregate consumed by the bootstrap orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any
from typing import Mapping
from typing import Optional

from dockyard.config import Settings


@dataclass(frozen=True)
class TlsSettings:
    certfile: str
    keyfile: str


@dataclass(frozen=True)
class HttpdSettings:
    """Network settings of the listener."""

    port: int = 8080
    host: str = "0.0.0.0"
    # Public routable address; derived from host/port when not given.
    uri: Optional[str] = None
    tls: Optional[TlsSettings] = None

    @property
    def protocol(self) -> str:
        return "https" if self.tls else "http"


@dataclass(frozen=True)
class WebhookSettings:
    restrict_pr: str = "none"
    chain_pr: bool = False


@dataclass(frozen=True)
class EcosystemSettings:
    """Hosts of the ecosystem around the API.

    ``allow_cors`` is deliberately untyped: configuration loaders may hand us
    anything and only a list/tuple is merged into the CORS origins.
    """

    ui: str
    allow_cors: Any = None


@dataclass(frozen=True)
class AuthSettings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    default_expires_in: int = 7200


@dataclass(frozen=True)
class ServerConfiguration:
    """Everything :func:`dockyard.bootstrap.create_server` needs.

    ``factories`` maps names such as ``"build_factory"`` to externally managed
    domain-service handles.  The mapping itself is read-only; the handles it
    points to are not.
    """

    httpd: HttpdSettings
    ecosystem: EcosystemSettings
    webhooks: WebhookSettings = field(default_factory=WebhookSettings)
    auth: Optional[AuthSettings] = None
    factories: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze a private copy so later edits to the caller's dict are not seen.
        object.__setattr__(self, "factories", MappingProxyType(dict(self.factories)))


def build_server_config(settings: Settings, factories: Mapping[str, Any]) -> ServerConfiguration:
    """Translate environment :class:`Settings` into a :class:`ServerConfiguration`."""

    tls = None
    if settings.tls_cert and settings.tls_key:
        tls = TlsSettings(certfile=settings.tls_cert, keyfile=settings.tls_key)

    return ServerConfiguration(
        httpd=HttpdSettings(port=settings.port, host=settings.host, uri=settings.uri, tls=tls),
        ecosystem=EcosystemSettings(ui=settings.ecosystem_ui, allow_cors=list(settings.ecosystem_allow_cors)),
        webhooks=WebhookSettings(
            restrict_pr=settings.webhooks_restrict_pr,
            chain_pr=settings.webhooks_chain_pr,
        ),
        auth=AuthSettings(
            jwt_secret=settings.jwt_secret,
            jwt_algorithm=settings.jwt_algorithm,
            default_expires_in=settings.jwt_default_expires_in,
        ),
        factories=factories,
    )
