from unittest.mock import MagicMock

import pytest
from jose import jwt

from dockyard.config.server_config import AuthSettings
from dockyard.exceptions import DuplicatePlugin
from dockyard.exceptions import RegistrationFailed
from dockyard.exceptions import WiringError
from dockyard.plugins import Plugin
from dockyard.plugins import PluginNamespace
from dockyard.plugins import register_plugins
from dockyard.plugins.auth import AuthPlugin
from dockyard.plugins.auth import JwtAuth
from dockyard.plugins.shutdown import ShutdownCoordinator
from dockyard.plugins.shutdown import ShutdownPlugin
from dockyard.plugins.shutdown import ShutdownTask

SECRET = "plugin-test-secret-0123456789"


class _Recording(Plugin):
    def __init__(self, name, log, capability=None):
        self.name = name
        self._log = log
        self._capability = capability

    async def register(self, server, config):
        self._log.append(self.name)
        return self._capability


class TestPluginNamespace:
    def test_expose_and_lookup(self):
        plugins = PluginNamespace()
        auth = object()
        plugins.expose("auth", auth)

        assert plugins.auth is auth
        assert plugins.get("auth") is auth
        assert plugins.require("auth") is auth
        assert "auth" in plugins

    def test_absent_capability(self):
        plugins = PluginNamespace()

        assert plugins.get("shutdown") is None
        with pytest.raises(AttributeError):
            plugins.shutdown
        with pytest.raises(WiringError):
            plugins.require("shutdown")

    def test_duplicate_name_rejected(self):
        plugins = PluginNamespace()
        plugins.expose("auth", object())

        with pytest.raises(DuplicatePlugin):
            plugins.expose("auth", object())


class TestRegistrar:
    @pytest.mark.asyncio
    async def test_plugins_install_in_order(self):
        server = MagicMock()
        server.plugins = PluginNamespace()
        order = []

        await register_plugins(server, MagicMock(), plugins=[_Recording("a", order, 1), _Recording("b", order, 2)])

        assert order == ["a", "b"]
        assert server.plugins.names == ["a", "b"]
        assert server.plugins.b == 2

    @pytest.mark.asyncio
    async def test_first_failure_stops_registration(self):
        class Failing(Plugin):
            name = "failing"

            async def register(self, server, config):
                raise ConnectionError("queue unreachable")

        server = MagicMock()
        server.plugins = PluginNamespace()
        order = []

        with pytest.raises(RegistrationFailed) as exc_info:
            await register_plugins(server, MagicMock(), plugins=[Failing(), _Recording("later", order)])

        assert exc_info.value.plugin_name == "failing"
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert order == []


class TestJwtAuth:
    @pytest.fixture
    def auth(self):
        return JwtAuth(AuthSettings(jwt_secret=SECRET, default_expires_in=120))

    def test_profile_merges_metadata_without_overriding_identity(self, auth):
        profile = auth.generate_profile("b1", "github:github.com", ["temporal"], {"isPR": True, "scope": ["admin"]})

        assert profile == {
            "username": "b1",
            "scmContext": "github:github.com",
            "scope": ["temporal"],
            "isPR": True,
        }

    def test_token_carries_profile_and_expiry(self, auth):
        profile = auth.generate_profile("alice", "gh", ["user"], None)

        claims = jwt.decode(auth.generate_token(profile, 3600), SECRET, algorithms=["HS256"])

        assert claims["username"] == "alice"
        assert claims["sub"] == "alice"
        assert claims["scope"] == ["user"]
        assert claims["exp"] - claims["iat"] == 3600
        assert claims["jti"]

    def test_default_expiry(self, auth):
        claims = jwt.decode(auth.generate_token({"username": "bob"}), SECRET, algorithms=["HS256"])

        assert claims["exp"] - claims["iat"] == 120

    @pytest.mark.asyncio
    async def test_plugin_requires_auth_settings(self):
        config = MagicMock()
        config.auth = None

        with pytest.raises(ValueError):
            await AuthPlugin().register(MagicMock(), config)


class TestShutdownCoordinator:
    @pytest.mark.asyncio
    async def test_tasks_run_once_in_order_despite_failures(self):
        coordinator = ShutdownCoordinator()
        ran = []

        async def first():
            ran.append("first")
            raise RuntimeError("flaky")

        async def second():
            ran.append("second")

        coordinator.handler(ShutdownTask(taskname="first", task=first))
        coordinator.handler(ShutdownTask(taskname="second", task=second))

        await coordinator.run()
        await coordinator.run()

        assert ran == ["first", "second"]

    @pytest.mark.asyncio
    async def test_cannot_register_after_running(self):
        coordinator = ShutdownCoordinator()
        await coordinator.run()

        async def late():
            pass

        with pytest.raises(RuntimeError):
            coordinator.handler(ShutdownTask(taskname="late", task=late))

    @pytest.mark.asyncio
    async def test_plugin_only_returns_a_coordinator(self):
        # spec=[] makes any attribute access on the server an error
        coordinator = await ShutdownPlugin().register(MagicMock(spec=[]), MagicMock())

        assert isinstance(coordinator, ShutdownCoordinator)
        assert coordinator.tasks == []
