"""
Publisher interface for pushing created broadcasts to secondary systems.
"""

from abc import ABC, abstractmethod

from models.broadcast import BroadcastResult
from models.stream import StreamDefinition


class PublishError(Exception):
    """Publishing a broadcast to its target failed."""
    pass


class Publisher(ABC):
    """A publish target for created broadcasts."""

    name: str = "publisher"

    @abstractmethod
    def publish(self, broadcast: BroadcastResult, stream: StreamDefinition) -> None:
        """
        Publish ``broadcast`` created for ``stream``.

        Raises:
            PublishError: the target rejected or could not receive the content
        """
