"""Plugin contract, capability namespace and the default registrar.

A plugin is installed with ``await plugin.register(server, config)`` and
returns the capability object that the rest of the process reaches through
``server.plugins.<name>``.  Plugins run strictly one after another in the
order given; the first failure aborts registration.
"""

from __future__ import annotations

from abc import ABC
from abc import abstractmethod
from typing import TYPE_CHECKING
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

from dockyard.exceptions import DuplicatePlugin
from dockyard.exceptions import RegistrationFailed
from dockyard.exceptions import WiringError
from dockyard.utils.log import log

if TYPE_CHECKING:  # pragma: no cover
    from dockyard.config.server_config import ServerConfiguration
    from dockyard.server import RunningServer


class Plugin(ABC):
    """A module installed into the running server."""

    name: str

    @abstractmethod
    async def register(self, server: "RunningServer", config: "ServerConfiguration") -> Any:
        """Install routes/hooks and return the capability exposed under :attr:`name`."""
        pass


class PluginNamespace:
    """Capabilities exposed by registered plugins, keyed by plugin name."""

    def __init__(self):
        self._capabilities: Dict[str, Any] = {}

    def expose(self, name: str, capability: Any) -> None:
        if name in self._capabilities:
            raise DuplicatePlugin(name)
        self._capabilities[name] = capability

    def get(self, name: str, default: Any = None) -> Any:
        return self._capabilities.get(name, default)

    def require(self, name: str) -> Any:
        """Return capability *name* or raise :class:`WiringError` when absent."""
        try:
            return self._capabilities[name]
        except KeyError:
            raise WiringError(f"Required plugin capability '{name}' is not registered") from None

    @property
    def names(self) -> List[str]:
        return list(self._capabilities)

    def __contains__(self, name: object) -> bool:
        return name in self._capabilities

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._capabilities[name]
        except KeyError:
            raise AttributeError(f"No plugin capability named '{name}'") from None


def default_plugins() -> List[Plugin]:
    """Plugins installed by :func:`register_plugins` when none are given."""

    # Imported here so plugin modules can import this one for the base class.
    from dockyard.plugins.auth import AuthPlugin
    from dockyard.plugins.metrics import MetricsPlugin
    from dockyard.plugins.shutdown import ShutdownPlugin
    from dockyard.plugins.status import StatusPlugin

    return [StatusPlugin(), MetricsPlugin(), AuthPlugin(), ShutdownPlugin()]


async def register_plugins(
    server: "RunningServer",
    config: "ServerConfiguration",
    plugins: Optional[Iterable[Plugin]] = None,
) -> None:
    """Install *plugins* (or :func:`default_plugins`) into *server* in order."""

    for plugin in plugins if plugins is not None else default_plugins():
        try:
            capability = await plugin.register(server, config)
        except Exception as exc:
            raise RegistrationFailed(plugin.name, exc) from exc

        server.plugins.expose(plugin.name, capability)
        log.debug("plugin registered", plugin=plugin.name)
