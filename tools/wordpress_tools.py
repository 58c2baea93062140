"""
WordPress REST API (v2) client used by the WordPress publisher.
"""

import logging
from typing import Any, Dict, Optional

import httpx

# Setup logging
logger = logging.getLogger(__name__)

# REST collection for each publishable content kind
CONTENT_ENDPOINTS = {
    "page": "pages",
    "post": "posts",
}


# Custom exceptions
class WordPressError(Exception):
    """Base WordPress API error."""
    pass

class WordPressAuthError(WordPressError):
    """WordPress rejected the supplied credentials."""
    pass

class WordPressNotFoundError(WordPressError):
    """WordPress resource not found."""
    pass


class WordPressClient:
    """Synchronous WordPress REST client authenticated with an application password."""

    def __init__(
        self,
        host: str,
        username: str,
        app_token: str,
        port: Optional[int] = None,
        use_tls: bool = True,
        api_root: str = "/wp-json",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        scheme = "https" if use_tls else "http"
        netloc = f"{host}:{port}" if port else host
        self.base_url = f"{scheme}://{netloc}/{api_root.strip('/')}"
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=(username, app_token),
            timeout=timeout,
            transport=transport
        )

    def __enter__(self) -> "WordPressClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make an authenticated request and decode the JSON body."""
        try:
            response = self._client.request(method, path, json=json)
        except httpx.RequestError as e:
            logger.error(f"HTTP request to WordPress failed: {e}")
            raise WordPressError(f"Request failed: {e}") from e

        if response.status_code in (200, 201):
            return response.json()

        if response.status_code in (401, 403):
            raise WordPressAuthError(f"WordPress rejected the credentials ({response.status_code}): {response.text}")

        if response.status_code == 404:
            raise WordPressNotFoundError(f"WordPress resource not found: {path}")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise WordPressError(f"WordPress API error ({response.status_code}): {response.text}") from e
        return response.json()

    def me(self) -> Dict[str, Any]:
        """Return the authenticated user; used as an identity check."""
        return self._request("GET", "/wp/v2/users/me")

    def create_content(self, kind: str, title: str, content: str, status: str = "publish") -> Dict[str, Any]:
        """Create a new page or post."""
        return self._request(
            "POST",
            f"/wp/v2/{self._endpoint(kind)}",
            json={"title": title, "content": content, "status": status}
        )

    def update_content(self, kind: str, resource_id: int, content: str, title: Optional[str] = None) -> Dict[str, Any]:
        """Replace the content of an existing page or post."""
        body: Dict[str, Any] = {"content": content}
        if title:
            body["title"] = title
        return self._request("POST", f"/wp/v2/{self._endpoint(kind)}/{resource_id}", json=body)

    @staticmethod
    def _endpoint(kind: str) -> str:
        try:
            return CONTENT_ENDPOINTS[kind]
        except KeyError:
            raise ValueError(f"unsupported WordPress content kind: {kind}")
