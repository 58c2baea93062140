"""
Cached OAuth2 credential and client configuration models.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, validator

from utils.error_utils import ConfigurationError

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_REDIRECT_URI = "http://localhost"


class Credential(BaseModel):
    """Bearer access/refresh token pair as persisted in the secrets cache."""

    access_token: str = Field(..., alias="accessToken")
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    expiry: Optional[datetime] = None
    token_type: str = Field("Bearer", alias="tokenType")

    class Config:
        populate_by_name = True

    @validator('expiry')
    def normalize_expiry(cls, v):
        """Interpret naive timestamps as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def has_refresh_token(self) -> bool:
        return bool(self.refresh_token)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A credential without an expiry never expires."""
        if self.expiry is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expiry

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        """Usable means either still valid or refreshable."""
        return not self.is_expired(now) or self.has_refresh_token

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_google(cls, credentials) -> "Credential":
        """Build a record from ``google.oauth2.credentials.Credentials``."""
        return cls(
            access_token=credentials.token or "",
            refresh_token=credentials.refresh_token,
            expiry=credentials.expiry,
        )


class ClientConfig(BaseModel):
    """Application OAuth2 client identity, immutable once loaded."""

    client_id: str
    client_secret: str
    auth_uri: str = GOOGLE_AUTH_URI
    token_uri: str = GOOGLE_TOKEN_URI
    redirect_uris: List[str] = Field(default_factory=lambda: [DEFAULT_REDIRECT_URI])
    scopes: List[str] = Field(default_factory=list)
    section: str = "installed"

    class Config:
        frozen = True

    @property
    def redirect_uri(self) -> str:
        return self.redirect_uris[0] if self.redirect_uris else DEFAULT_REDIRECT_URI

    def to_client_secrets(self) -> dict:
        """Render back into Google's client-secrets layout."""
        return {
            self.section: {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": list(self.redirect_uris),
            }
        }

    @classmethod
    def from_file(cls, path: Optional[str], scopes: List[str]) -> "ClientConfig":
        """
        Parse a Google client-secrets JSON file.

        Raises:
            ConfigurationError: path missing, file unreadable, malformed JSON,
                or no ``installed``/``web`` section.
        """
        if not path:
            raise ConfigurationError(
                "oauth configuration file is required. specify --auth-config "
                "or use the environment variable YLS_AUTH_CONFIG"
            )

        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"unable to read oauth configuration from file {path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"unable to parse client secret file {path}: {e}") from e

        for section in ("installed", "web"):
            info = data.get(section) if isinstance(data, dict) else None
            if info:
                break
        else:
            raise ConfigurationError(f"client secret file {path} has no 'installed' or 'web' section")

        try:
            return cls(
                client_id=info["client_id"],
                client_secret=info["client_secret"],
                auth_uri=info.get("auth_uri", GOOGLE_AUTH_URI),
                token_uri=info.get("token_uri", GOOGLE_TOKEN_URI),
                redirect_uris=info.get("redirect_uris") or [DEFAULT_REDIRECT_URI],
                scopes=list(scopes),
                section=section,
            )
        except KeyError as e:
            raise ConfigurationError(f"client secret file {path} is missing {e}") from e
