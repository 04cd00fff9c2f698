"""Plugins installed into the API server during bootstrap."""

from dockyard.plugins.registry import Plugin
from dockyard.plugins.registry import PluginNamespace
from dockyard.plugins.registry import default_plugins
from dockyard.plugins.registry import register_plugins

__all__ = [
    "Plugin",
    "PluginNamespace",
    "default_plugins",
    "register_plugins",
]
