"""
Stream definition models loaded from the user's YAML configuration.
"""

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, validator

from utils.error_utils import ConfigurationError

PRIVACY_LEVELS = ("public", "private", "unlisted")
THUMBNAIL_SIZES = ("default", "medium", "high", "standard", "maxres")
CONTENT_KINDS = ("page", "post")


class ContentDetails(BaseModel):
    """Content-detail flags applied to every created broadcast."""

    enable_closed_captions: bool = False
    closed_captions_type: str = "closedCaptionsDisabled"
    enable_auto_start: bool = False
    enable_auto_stop: bool = True
    enable_dvr: bool = True
    enable_embed: bool = True
    record_from_start: bool = True
    made_for_kids: bool = False

    class Config:
        frozen = True


class ThumbnailSet(BaseModel):
    """Local image paths, one per thumbnail size variant."""

    default: Optional[str] = None
    medium: Optional[str] = None
    high: Optional[str] = None
    standard: Optional[str] = None
    maxres: Optional[str] = None

    class Config:
        frozen = True

    def present(self) -> List[Tuple[str, str]]:
        """(size, path) pairs for every configured variant, in size order."""
        return [(size, getattr(self, size)) for size in THUMBNAIL_SIZES if getattr(self, size)]


class WordPressCredentials(BaseModel):
    username: str
    # An application password, not the user's login password
    app_token: str

    class Config:
        frozen = True


class WordPressConfig(BaseModel):
    """Settings for publishing a broadcast to a WordPress site."""

    host: str = Field(..., description="Host name of the WordPress site")
    port: Optional[int] = Field(None, ge=1, le=65535)
    use_tls: bool = True
    api_root: str = "/wp-json"
    credentials: WordPressCredentials
    existing_resource_id: Optional[int] = Field(
        None, description="Update this page/post instead of creating a new one per publish"
    )
    content_kind: str = Field("page", description="Kind of content to publish: page or post")
    status: str = "publish"
    content_template: str = Field(..., description="Jinja2 template rendered into the content body")

    class Config:
        frozen = True

    @validator('host')
    def validate_host(cls, v):
        """Host must be a bare host name."""
        v = v.strip()
        if not v or "/" in v:
            raise ValueError('host must be a bare host name such as "blog.example.com"')
        return v

    @validator('content_kind')
    def validate_content_kind(cls, v):
        v = v.strip().lower()
        if v not in CONTENT_KINDS:
            raise ValueError(f'content_kind must be one of: {list(CONTENT_KINDS)}')
        return v

    @validator('content_template')
    def validate_template(cls, v):
        if not v.strip():
            raise ValueError('content_template cannot be empty')
        return v


class PublisherConfig(BaseModel):
    """Tagged publisher selection: exactly one target key is set."""

    wordpress: Optional[WordPressConfig] = None

    class Config:
        frozen = True

    @validator('wordpress', always=True)
    def validate_single_target(cls, v, values):
        if v is None and not any(values.values()):
            raise ValueError('publisher must configure exactly one target (e.g. "wordpress")')
        return v

    def target(self) -> Tuple[str, BaseModel]:
        """Return the ``(tag, config)`` of the configured target."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is not None:
                return name, value
        raise ConfigurationError("publisher has no configured target")


class StreamDefinition(BaseModel):
    """A single recurring broadcast definition."""

    name: str = Field(..., description="Stream name, used to label jobs and logs")
    title: str = Field(..., description="Broadcast title")
    description: str = ""
    schedule: str = Field(..., description="Cron expression or @descriptor")
    start_delay: int = Field(0, ge=0, description="Seconds between job fire and scheduled start")
    privacy_level: str = "private"
    content_details: ContentDetails = Field(default_factory=ContentDetails)
    thumbnails: Optional[ThumbnailSet] = None
    publisher: Optional[PublisherConfig] = None

    class Config:
        frozen = True

    @validator('name', 'title')
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError('must not be empty')
        return v.strip()

    @validator('privacy_level')
    def validate_privacy_level(cls, v):
        """Validate privacy level."""
        if v.lower() not in PRIVACY_LEVELS:
            raise ValueError(f'privacy_level must be one of: {list(PRIVACY_LEVELS)}')
        return v.lower()

    def __str__(self) -> str:
        return self.name


class StreamDefinitionSet(BaseModel):
    """Ordered, non-empty list of stream definitions."""

    streams: List[StreamDefinition]

    @validator('streams')
    def validate_not_empty(cls, v):
        if not v:
            raise ValueError('must specify at least one stream configuration to proceed')
        return v

    def __iter__(self) -> Iterator[StreamDefinition]:
        return iter(self.streams)

    def __len__(self) -> int:
        return len(self.streams)

    def names(self) -> List[str]:
        return [s.name for s in self.streams]

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "StreamDefinitionSet":
        if not isinstance(data, dict):
            raise ConfigurationError("stream configuration must be a mapping with a 'streams' list")
        try:
            return cls(streams=data.get("streams") or [])
        except ValidationError as e:
            raise ConfigurationError(f"invalid stream configuration: {e}") from e

    @classmethod
    def from_file(cls, path: str) -> "StreamDefinitionSet":
        """Load stream definitions from a YAML file."""
        try:
            with open(Path(path).expanduser(), "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"unable to read stream configuration {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"unable to parse stream configuration {path}: {e}") from e

        return cls.from_dict(data)
