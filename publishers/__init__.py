"""
Publish targets for created broadcasts.
"""

from .base import Publisher, PublishError
from .wordpress_publisher import WordPressPublisher
from .registry import PublisherResolver, resolve_publisher

__all__ = [
    "Publisher",
    "PublishError",
    "WordPressPublisher",
    "PublisherResolver",
    "resolve_publisher"
]
