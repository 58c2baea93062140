"""
Pydantic models for data validation and structure.
"""

from .credential import Credential, ClientConfig
from .stream import (
    ContentDetails,
    ThumbnailSet,
    WordPressConfig,
    PublisherConfig,
    StreamDefinition,
    StreamDefinitionSet
)
from .broadcast import BroadcastResult

__all__ = [
    "Credential",
    "ClientConfig",
    "ContentDetails",
    "ThumbnailSet",
    "WordPressConfig",
    "PublisherConfig",
    "StreamDefinition",
    "StreamDefinitionSet",
    "BroadcastResult"
]
