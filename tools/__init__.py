"""
Clients for the external APIs the scheduler drives.
"""

from .auth_tools import Authorizer, AuthenticatedTransport, AuthorizationError, create_authorizer
from .youtube_tools import YouTubeLiveClient, YouTubeAPIError
from .wordpress_tools import WordPressClient, WordPressError

__all__ = [
    "Authorizer",
    "AuthenticatedTransport",
    "AuthorizationError",
    "create_authorizer",
    "YouTubeLiveClient",
    "YouTubeAPIError",
    "WordPressClient",
    "WordPressError"
]
