"""
Configuration management using Pydantic Settings.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings

from utils.logging_utils import StreamContextFilter

YOUTUBE_SCOPE = "https://www.googleapis.com/auth/youtube"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(stream)s] %(message)s'


class Settings(BaseSettings):
    """Application settings with validation."""

    # Authentication
    auth_config: Optional[str] = Field(
        None,
        description="Google OAuth2 client secrets (JSON), or a service-account key (JSON) in headless mode"
    )
    secrets_cache: str = Field(
        str(Path.home() / ".youtube_oauth2_credentials"),
        description="File used to cache OAuth2 access and refresh tokens"
    )
    headless: bool = Field(False, description="Authenticate with a service account instead of a console login")
    subject: Optional[str] = Field(None, description="Delegated subject for the service-account flow")
    scopes: List[str] = Field(default_factory=lambda: [YOUTUBE_SCOPE], description="OAuth2 scopes to request")

    # Streams
    stream_config: str = Field(
        str(Path.home() / ".yls.yaml"),
        description="YAML file describing the streams to schedule"
    )
    dry_run: bool = Field(False, description="Log intended broadcasts without creating them")
    publish: bool = Field(False, description="Publish created broadcasts using each stream's publisher")

    # Scheduling
    scheduler_max_workers: int = Field(10, ge=1, description="Maximum number of concurrent stream jobs")
    scheduler_misfire_grace_time: int = Field(60, ge=1, description="Seconds a late fire is still allowed to run")
    timezone: Optional[str] = Field(None, description="Scheduler timezone (defaults to the local zone)")

    # Remote calls
    http_timeout: float = Field(30.0, gt=0, description="Timeout in seconds for remote API calls")

    # Logging Configuration
    debug: bool = Field(False, description="Enable debug logging (noisy)")
    log_level: str = Field("INFO", description="Logging level")
    log_file: Optional[str] = Field(None, description="Optional log file path")

    class Config:
        env_prefix = "YLS_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @validator('log_level')
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v.upper()

    @validator('secrets_cache', 'stream_config')
    def expand_user_path(cls, v):
        """Expand ``~`` in file paths."""
        return str(Path(v).expanduser())

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level

    def setup_logging(self) -> None:
        """Setup logging configuration."""
        handlers = [logging.StreamHandler()]

        if self.log_file:
            # Create logs directory if it doesn't exist
            log_path = Path(self.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.log_file, encoding='utf-8'))

        context_filter = StreamContextFilter()
        for handler in handlers:
            handler.addFilter(context_filter)

        logging.basicConfig(
            level=getattr(logging, self.effective_log_level),
            format=LOG_FORMAT,
            handlers=handlers,
            force=True
        )

        # Set specific logger levels
        if not self.debug:
            logging.getLogger("googleapiclient").setLevel(logging.WARNING)
            logging.getLogger("httpx").setLevel(logging.WARNING)
            logging.getLogger("apscheduler").setLevel(logging.WARNING)

        logging.getLogger(__name__).debug("debug-mode has been enabled" if self.debug else "logging configured")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
