"""
YouTube Data API v3 live-broadcast client.
"""

import logging
from typing import Any, Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

# Setup logging
logger = logging.getLogger(__name__)

BROADCAST_PARTS = "snippet,status,contentDetails"


# Custom exceptions
class YouTubeAPIError(Exception):
    """Base YouTube API error."""
    pass


class YouTubeLiveClient:
    """Thin authenticated handle over the live-broadcast endpoints."""

    API_SERVICE_NAME = "youtube"
    API_VERSION = "v3"

    def __init__(self, transport=None, service=None):
        """
        Args:
            transport: ``AuthenticatedTransport`` supplying credentials and per-request HTTP
            service: prebuilt discovery resource (built from ``transport`` when omitted)
        """
        if service is None:
            if transport is None:
                raise ValueError("either a transport or a prebuilt service is required")
            service = build(
                self.API_SERVICE_NAME,
                self.API_VERSION,
                credentials=transport.credentials,
                cache_discovery=False
            )
            logger.info("YouTube API service created")

        self.transport = transport
        self.service = service

    def _execute(self, request) -> Dict[str, Any]:
        try:
            if self.transport is not None:
                return request.execute(http=self.transport.new_http())
            return request.execute()
        except HttpError as e:
            raise YouTubeAPIError(f"YouTube API request failed ({e.status_code}): {e.reason}") from e
        except (OSError, httplib2.HttpLib2Error, GoogleAuthError) as e:
            raise YouTubeAPIError(f"YouTube API request failed: {e}") from e

    def insert_broadcast(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Create a scheduled live broadcast."""
        request = self.service.liveBroadcasts().insert(part=BROADCAST_PARTS, body=body)
        return self._execute(request)

    def list_stream_keys(self) -> List[str]:
        """
        Return the ingestion stream names of every live stream the account owns.

        The result is a list of candidates: until a broadcast is bound to a
        stream the API cannot say which key that broadcast will use.
        """
        keys: List[str] = []
        page_token: Optional[str] = None

        while True:
            request = self.service.liveStreams().list(
                part="cdn",
                mine=True,
                maxResults=50,
                pageToken=page_token
            )
            response = self._execute(request)

            for item in response.get("items", []):
                stream_name = item.get("cdn", {}).get("ingestionInfo", {}).get("streamName")
                if stream_name:
                    keys.append(stream_name)

            page_token = response.get("nextPageToken")
            if not page_token:
                return keys

    def set_thumbnail(self, video_id: str, image_path: str) -> Dict[str, Any]:
        """Upload ``image_path`` as the thumbnail for ``video_id``."""
        try:
            media = MediaFileUpload(image_path)
        except (OSError, ValueError) as e:
            raise YouTubeAPIError(f"unable to read thumbnail {image_path}: {e}") from e

        request = self.service.thumbnails().set(videoId=video_id, media_body=media)
        return self._execute(request)
