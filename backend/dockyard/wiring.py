"""Post-registration wiring of plugin capabilities into domain services.

The auth capability only exists once plugins are registered, while the
build and job factories exist from the start.  :class:`TokenIssuer` bridges
the two: it is created empty with the server, receives the capability
exactly once through :meth:`TokenIssuer.attach_auth`, and its bound methods
are what the factories and their executors store as token generators.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Protocol
from typing import Sequence

from dockyard.constants import BUILD_FACTORY
from dockyard.constants import BUILD_TOKEN_SCOPE
from dockyard.constants import EXECUTOR_CLEANUP_TASK
from dockyard.constants import JOB_FACTORY
from dockyard.constants import USER_TOKEN_SCOPE
from dockyard.exceptions import WiringError
from dockyard.plugins.shutdown import ShutdownCoordinator
from dockyard.plugins.shutdown import ShutdownTask
from dockyard.utils.log import log

if TYPE_CHECKING:  # pragma: no cover
    from dockyard.server import RunningServer


class AuthCapability(Protocol):
    def generate_profile(
        self,
        subject_id: str,
        scm_context: Optional[str],
        scopes: Sequence[str],
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Any: ...

    def generate_token(self, profile: Any, expires_in: Optional[int] = None) -> str: ...


class TokenIssuer:
    """Mints build- and user-scoped tokens once an auth capability is attached."""

    def __init__(self):
        self._auth: Optional[AuthCapability] = None

    @property
    def attached(self) -> bool:
        return self._auth is not None

    def attach_auth(self, auth: AuthCapability) -> None:
        if auth is None:
            raise WiringError("cannot attach a missing auth capability")
        if self._auth is not None:
            raise WiringError("auth capability is already attached")
        self._auth = auth

    def require_attached(self) -> AuthCapability:
        if self._auth is None:
            raise WiringError("auth capability was never attached")
        return self._auth

    def build_token(
        self,
        build_id: Any,
        metadata: Optional[Mapping[str, Any]],
        scm_context: Optional[str],
        expires_in: Optional[int] = None,
    ) -> str:
        """Return a ``temporal``-scoped token for a build."""

        auth = self.require_attached()
        profile = auth.generate_profile(build_id, scm_context, [BUILD_TOKEN_SCOPE], metadata)
        return auth.generate_token(profile, expires_in)

    def user_token(self, username: str, metadata: Optional[Mapping[str, Any]], scm_context: Optional[str]) -> str:
        """Return a ``user``-scoped token with the default expiry."""

        auth = self.require_attached()
        profile = auth.generate_profile(username, scm_context, [USER_TOKEN_SCOPE], metadata)
        return auth.generate_token(profile)


def wire_services(server: "RunningServer", shutdown: Optional[ShutdownCoordinator] = None) -> None:
    """Bind the auth capability and public URI into the build and job factories.

    When a *shutdown* coordinator is given, the executor queue cleanup is
    registered with it; without one nothing is registered.
    """

    context = server.app
    build_factory = context.factory(BUILD_FACTORY)
    job_factory = context.factory(JOB_FACTORY)

    context.token_issuer.attach_auth(server.plugins.require("auth"))

    build_factory.api_uri = server.info.uri
    build_factory.token_gen = context.token_issuer.build_token
    build_factory.executor.token_gen = build_factory.token_gen

    job_factory.api_uri = server.info.uri
    job_factory.token_gen = context.token_issuer.user_token
    job_factory.executor.user_token_gen = job_factory.token_gen

    if shutdown is not None:

        async def _cleanup() -> None:
            await job_factory.clean_up()
            log.info("completed clean up tasks")

        shutdown.handler(ShutdownTask(taskname=EXECUTOR_CLEANUP_TASK, task=_cleanup))
