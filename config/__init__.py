"""
Application configuration.
"""

from .settings import Settings, get_settings, YOUTUBE_SCOPE

__all__ = ["Settings", "get_settings", "YOUTUBE_SCOPE"]
