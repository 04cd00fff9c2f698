from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import pytest

from dockyard.config.server_config import AuthSettings
from dockyard.config.server_config import EcosystemSettings
from dockyard.config.server_config import HttpdSettings
from dockyard.config.server_config import ServerConfiguration
from dockyard.constants import BUILD_FACTORY
from dockyard.constants import JOB_FACTORY
from dockyard.server import RunningServer

TEST_JWT_SECRET = "unit-test-secret-0123456789"


@pytest.fixture
def build_factory():
    """Stand-in for the externally managed build factory."""
    factory = MagicMock(name="build_factory")
    factory.executor = MagicMock(name="build_executor")
    return factory


@pytest.fixture
def job_factory():
    """Stand-in for the externally managed job factory."""
    factory = MagicMock(name="job_factory")
    factory.executor = MagicMock(name="job_executor")
    factory.clean_up = AsyncMock()
    return factory


@pytest.fixture
def server_config(build_factory, job_factory):
    return ServerConfiguration(
        httpd=HttpdSettings(port=0, host="127.0.0.1", uri="https://api.example"),
        ecosystem=EcosystemSettings(ui="https://ui.example"),
        auth=AuthSettings(jwt_secret=TEST_JWT_SECRET, default_expires_in=600),
        factories={BUILD_FACTORY: build_factory, JOB_FACTORY: job_factory},
    )


@pytest.fixture
def fake_auth():
    """Auth capability recording the calls made to it."""
    auth = MagicMock(name="auth")
    auth.generate_profile.return_value = {"username": "subject", "scope": ["temporal"]}
    auth.generate_token.return_value = "signed-token"
    return auth


@pytest.fixture
def make_registrar(fake_auth):
    """Return a registrar exposing ``auth`` and, optionally, ``shutdown``."""

    def _make(shutdown=None, auth=fake_auth):
        async def registrar(server, config):
            if auth is not None:
                server.plugins.expose("auth", auth)
            if shutdown is not None:
                server.plugins.expose("shutdown", shutdown)

        return registrar

    return _make


@pytest.fixture
def start_mock(monkeypatch):
    """Replace the listener start so no socket is bound."""
    start = AsyncMock()
    monkeypatch.setattr(RunningServer, "start", start)
    return start
