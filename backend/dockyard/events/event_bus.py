"""Server-scoped event channels for decoupled notifications."""

import logging
from typing import Any
from typing import Awaitable
from typing import Callable
from typing import Dict
from typing import Set

from dockyard.exceptions import UnknownEventChannel

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


class EventBus:
    """Named channels that must be declared before anyone publishes on them."""

    def __init__(self):
        """Initialize an event bus with no channels."""
        self._subscribers: Dict[str, Set[Handler]] = {}

    @property
    def channels(self) -> Set[str]:
        return set(self._subscribers)

    def register(self, channel: str) -> None:
        """Declare *channel*.  Declaring an existing channel is a no-op."""
        self._subscribers.setdefault(channel, set())
        logger.debug(f"Declared event channel {channel}")

    def _require(self, channel: str) -> Set[Handler]:
        try:
            return self._subscribers[channel]
        except KeyError:
            raise UnknownEventChannel(channel) from None

    async def publish(self, channel: str, data: Dict[str, Any]) -> None:
        """Publish an event to all subscribers of *channel*.

        Args:
            channel: A declared channel name
            data: Event payload data
        """
        subscribers = self._require(channel)

        logger.debug(f"Publishing event {channel} with data: {data}")

        for callback in list(subscribers):
            try:
                await callback(data)
            except Exception as e:
                logger.error(f"Error in event handler for {channel}: {str(e)}")

    def subscribe(self, channel: str, callback: Handler) -> None:
        """Subscribe to a declared channel.

        Args:
            channel: The channel to subscribe to
            callback: Async callback function to handle the event
        """
        self._require(channel).add(callback)
        logger.debug(f"Added subscriber for event {channel}")

    def unsubscribe(self, channel: str, callback: Handler) -> None:
        """Unsubscribe from a channel.

        Args:
            channel: The channel to unsubscribe from
            callback: The callback function to remove
        """
        if channel in self._subscribers:
            self._subscribers[channel].discard(callback)
            logger.debug(f"Removed subscriber for event {channel}")
