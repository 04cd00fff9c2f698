"""Cross-origin resource sharing policy for the API listener."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Dict
from typing import Tuple

from dockyard.config.server_config import EcosystemSettings

# Headers browsers may read on top of the CORS safelist.  The first two are
# what clients of the previous HTTP framework already relied on.
DEFAULT_EXPOSED_HEADERS: Tuple[str, ...] = ("WWW-Authenticate", "Server-Authorization")
ADDITIONAL_EXPOSED_HEADERS: Tuple[str, ...] = ("x-more-data",)


@dataclass(frozen=True)
class CorsPolicy:
    """Allowed origins (UI first, then extras), exposed headers and credentials flag."""

    origins: Tuple[str, ...]
    additional_exposed_headers: Tuple[str, ...] = ADDITIONAL_EXPOSED_HEADERS
    credentials: bool = True

    def middleware_options(self) -> Dict[str, Any]:
        """Keyword arguments for :class:`starlette.middleware.cors.CORSMiddleware`."""

        return {
            "allow_origins": list(self.origins),
            "allow_credentials": self.credentials,
            "allow_methods": ["*"],
            "allow_headers": ["*"],
            "expose_headers": [*DEFAULT_EXPOSED_HEADERS, *self.additional_exposed_headers],
        }


def build_cors_policy(ecosystem: EcosystemSettings) -> CorsPolicy:
    """Return the policy allowing the UI origin plus any configured extras.

    Only a ``list`` or ``tuple`` of extras is merged; a missing value, a bare
    string or anything else yields the single-origin policy.
    """

    origins = [ecosystem.ui]

    extra = ecosystem.allow_cors
    if isinstance(extra, (list, tuple)):
        origins.extend(extra)

    return CorsPolicy(origins=tuple(origins))
