"""Centralised configuration helper.

This module eliminates scattered ``os.getenv`` calls by exposing a single
:class:`Settings` snapshot (retrieved via :func:`get_settings`).  The bootstrap
code never reads the environment itself: it consumes the immutable
:class:`~dockyard.config.server_config.ServerConfiguration` built from these
settings (see :func:`~dockyard.config.server_config.build_server_config`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# ``_REPO_ROOT`` points to the top-level repository directory.  This file is
# located at ``backend/dockyard/config/__init__.py``.

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _truthy(value: str | None) -> bool:  # noqa: D401 – small helper
    """Return *True* when *value* looks like an affirmative string."""

    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:  # noqa: D401 – simple data container
    """Lightweight settings container populated from environment variables."""

    # Runtime flags -----------------------------------------------------
    testing: bool
    log_level: str

    # Listener ----------------------------------------------------------
    port: int
    host: str
    uri: str | None
    tls_cert: str | None
    tls_key: str | None

    # Webhooks ----------------------------------------------------------
    webhooks_restrict_pr: str
    webhooks_chain_pr: bool

    # Ecosystem ---------------------------------------------------------
    ecosystem_ui: str
    ecosystem_allow_cors: list[str]

    # Auth --------------------------------------------------------------
    jwt_secret: str
    jwt_algorithm: str
    jwt_default_expires_in: int


def _load_settings() -> Settings:  # noqa: D401 – helper
    """Populate :class:`Settings` from environment variables."""

    env_path = _REPO_ROOT / ".env"
    if env_path.exists():
        # Explicit process environment wins over the file.
        load_dotenv(env_path, override=False)

    return Settings(
        testing=_truthy(os.getenv("TESTING")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        port=int(os.getenv("PORT", "8080")),
        host=os.getenv("HOST", "0.0.0.0"),
        uri=os.getenv("URI") or None,
        tls_cert=os.getenv("TLS_CERT") or None,
        tls_key=os.getenv("TLS_KEY") or None,
        webhooks_restrict_pr=os.getenv("WEBHOOKS_RESTRICT_PR", "none"),
        webhooks_chain_pr=_truthy(os.getenv("WEBHOOKS_CHAIN_PR")),
        ecosystem_ui=os.getenv("ECOSYSTEM_UI", "http://localhost:4200"),
        ecosystem_allow_cors=_csv(os.getenv("ECOSYSTEM_ALLOW_CORS")),
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_default_expires_in=int(os.getenv("JWT_DEFAULT_EXPIRES_IN", "7200")),
    )


# ------------------------------------------------------------------
# Runtime validation – fail fast when *required* secrets are missing.
# ------------------------------------------------------------------


def _validate_required(settings: Settings) -> None:  # noqa: D401 – helper
    """Abort startup when mandatory configuration is missing or unsafe.

    Token signing with the development secret would hand out credentials any
    reader of this repository could forge, so outside of *TESTING* a weak
    ``JWT_SECRET`` is rejected before the server is even constructed.
    """

    if settings.testing:
        return

    problems = []

    weak = settings.jwt_secret.strip() in {"", "dev-secret"} or len(settings.jwt_secret) < 16
    if weak and settings.jwt_algorithm.upper().startswith("HS"):
        problems.append("JWT_SECRET (must be >=16 chars, not 'dev-secret')")

    if bool(settings.tls_cert) != bool(settings.tls_key):
        problems.append("TLS_CERT and TLS_KEY must be set together")

    if not 0 <= settings.port <= 65535:
        problems.append(f"PORT out of range: {settings.port}")

    if problems:
        raise RuntimeError(
            f"CRITICAL: Invalid configuration: {', '.join(problems)}\n"
            f"Set these in your .env file or deployment environment."
        )


def get_settings() -> Settings:  # noqa: D401 – public accessor
    """Return :class:`Settings` instance loaded from environment."""

    settings = _load_settings()
    _validate_required(settings)
    return settings


__all__ = [
    "Settings",
    "get_settings",
]
