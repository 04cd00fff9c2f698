"""Exceptions raised while assembling and starting the API server.

Request-time failures are *not* defined here; they all go through
:class:`dockyard.errors.ApiError`.
"""

from typing import Optional


class BootstrapError(Exception):
    """Base exception for failures while building or starting the server."""


class RegistrationFailed(BootstrapError):
    """Raised when a plugin cannot be installed into the server."""

    def __init__(self, plugin_name: str, cause: Optional[BaseException] = None):
        self.plugin_name = plugin_name
        self.cause = cause
        message = f"Failed to register plugin '{plugin_name}'"
        if cause:
            message += f": {cause}"
        super().__init__(message)


class WiringError(BootstrapError):
    """Raised when post-registration wiring cannot complete or is misused."""


class StartFailed(BootstrapError):
    """Raised when the listener cannot bind or the app fails its startup."""

    def __init__(self, cause: Optional[BaseException] = None, detail: str = "listener did not start"):
        self.cause = cause
        message = detail
        if cause:
            message += f": {cause}"
        super().__init__(message)


class DuplicatePlugin(BootstrapError):
    """Raised when two plugins try to expose a capability under the same name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Plugin '{name}' is already registered")


class UnknownEventChannel(Exception):
    """Raised when publishing or subscribing to an undeclared event channel."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"Unknown event channel '{channel}'")
