"""Token issuance capability exposed as ``server.plugins.auth``.

Only the two operations the rest of the server consumes live here:
building a profile for a subject and signing it into a JWT.  Verifying
incoming credentials is the job of the route dependencies, not of this
plugin.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from datetime import timedelta
from datetime import timezone
from typing import Any
from typing import Dict
from typing import Mapping
from typing import Optional
from typing import Sequence

from jose import jwt

from dockyard.config.server_config import AuthSettings
from dockyard.plugins.registry import Plugin

Profile = Dict[str, Any]


class JwtAuth:
    """Builds subject profiles and signs them with the configured key."""

    def __init__(self, settings: AuthSettings):
        self._settings = settings

    def generate_profile(
        self,
        subject_id: str,
        scm_context: Optional[str],
        scopes: Sequence[str],
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Profile:
        """Return the claims describing *subject_id* with *scopes*.

        ``metadata`` is merged in first so it can never override the subject,
        SCM context or scope of the profile.
        """

        profile: Profile = dict(metadata or {})
        profile.update(
            {
                "username": subject_id,
                "scmContext": scm_context,
                "scope": list(scopes),
            }
        )
        return profile

    def generate_token(self, profile: Mapping[str, Any], expires_in: Optional[int] = None) -> str:
        """Sign *profile* into a JWT that expires after *expires_in* seconds."""

        ttl = expires_in if expires_in is not None else self._settings.default_expires_in
        now = datetime.now(timezone.utc)

        # ``exp``/``iat`` must be integer UNIX timestamps.
        claims = dict(profile)
        claims.update(
            {
                "sub": str(profile.get("username")),
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(seconds=ttl)).timestamp()),
                "jti": uuid.uuid4().hex,
            }
        )
        return jwt.encode(claims, self._settings.jwt_secret, algorithm=self._settings.jwt_algorithm)


class AuthPlugin(Plugin):
    name = "auth"

    async def register(self, server, config) -> JwtAuth:
        if config.auth is None:
            raise ValueError("auth settings are required to issue tokens")
        return JwtAuth(config.auth)
