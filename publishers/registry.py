"""
Resolution of publisher configurations into concrete publishers.
"""

import logging
import threading
from typing import Callable, Dict, Optional

from models.stream import PublisherConfig, StreamDefinition
from publishers.base import Publisher
from publishers.wordpress_publisher import WordPressPublisher
from utils.error_utils import ConfigurationError

logger = logging.getLogger(__name__)

# Publisher tag -> factory taking the tag's config
PUBLISHER_FACTORIES: Dict[str, Callable[..., Publisher]] = {
    WordPressPublisher.name: WordPressPublisher.from_config,
}


def resolve_publisher(config: PublisherConfig) -> Publisher:
    """
    Build the concrete publisher selected by ``config``.

    Raises:
        ConfigurationError: unknown publisher or invalid publisher settings
        PublishError: the target could not be reached or rejected the credentials
    """
    name, target_config = config.target()
    factory = PUBLISHER_FACTORIES.get(name)
    if factory is None:
        raise ConfigurationError(f"unknown publisher: {name}")
    return factory(target_config)


class PublisherResolver:
    """
    Lazily resolves and caches one publisher per publisher configuration.

    Failed resolutions are not cached, so the next fire tries again.
    """

    def __init__(self, factory: Callable[[PublisherConfig], Publisher] = resolve_publisher):
        self._factory = factory
        self._cache: Dict[PublisherConfig, Publisher] = {}
        self._lock = threading.Lock()

    def get(self, stream: StreamDefinition) -> Optional[Publisher]:
        if stream.publisher is None:
            return None

        with self._lock:
            publisher = self._cache.get(stream.publisher)
            if publisher is None:
                publisher = self._factory(stream.publisher)
                self._cache[stream.publisher] = publisher
                logger.debug(f"resolved {publisher.name} publisher for stream {stream.name}")
            return publisher
