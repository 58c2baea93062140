"""
Publishes created broadcasts as WordPress pages or posts.
"""

import logging
from typing import Any, Callable, Dict, Optional

from jinja2 import Environment, StrictUndefined, TemplateError, TemplateSyntaxError

from models.broadcast import BroadcastResult
from models.stream import StreamDefinition, WordPressConfig
from publishers.base import Publisher, PublishError
from tools.wordpress_tools import CONTENT_ENDPOINTS, WordPressClient, WordPressError
from utils.error_utils import ConfigurationError

# Setup logging
logger = logging.getLogger(__name__)


def _default_client_factory(config: WordPressConfig) -> WordPressClient:
    return WordPressClient(
        host=config.host,
        port=config.port,
        use_tls=config.use_tls,
        api_root=config.api_root,
        username=config.credentials.username,
        app_token=config.credentials.app_token,
    )


class WordPressPublisher(Publisher):
    """Render a page template for each broadcast and create or update WordPress content."""

    name = "wordpress"

    def __init__(
        self,
        config: WordPressConfig,
        client_factory: Callable[[WordPressConfig], WordPressClient] = _default_client_factory
    ):
        """
        Validate the configuration and connect to WordPress.

        Raises:
            ConfigurationError: unsupported content kind or template syntax error
            PublishError: the identity check against WordPress failed
        """
        if config.content_kind not in CONTENT_ENDPOINTS:
            raise ConfigurationError(
                f"unsupported WordPress content kind '{config.content_kind}'. "
                f"must be one of: {sorted(CONTENT_ENDPOINTS)}"
            )

        self.config = config
        self.environment = Environment(autoescape=True, undefined=StrictUndefined)
        try:
            self.template = self.environment.from_string(config.content_template)
        except TemplateSyntaxError as e:
            raise ConfigurationError(f"invalid WordPress content template: {e}") from e

        self.client = client_factory(config)
        try:
            user = self.client.me()
        except WordPressError as e:
            self.client.close()
            raise PublishError(f"failed to instantiate a wordpress client: {e}") from e

        logger.debug(f"created wordpress client for {config.host} as user {user.get('name', config.credentials.username)}")

    @classmethod
    def from_config(cls, config: WordPressConfig) -> "WordPressPublisher":
        return cls(config)

    def build_context(self, broadcast: BroadcastResult, stream: StreamDefinition) -> Dict[str, Any]:
        broadcast_data = broadcast.model_dump()
        broadcast_data["share_url"] = broadcast.share_url
        broadcast_data["embed_url"] = broadcast.embed_url
        return {
            "broadcast": broadcast_data,
            "stream": stream.model_dump(),
            "stream_url_embed": f"https://youtube.com/embed/{broadcast.broadcast_id}?autoplay=0&livemonitor=1",
            "stream_url_share": broadcast.share_url,
        }

    def render(self, broadcast: BroadcastResult, stream: StreamDefinition) -> str:
        """Render the configured template for a broadcast."""
        context = self.build_context(broadcast, stream)
        try:
            content = self.template.render(**context)
        except TemplateError as e:
            raise PublishError(f"unable to render WordPress content template: {e}") from e

        logger.debug(f"templated page content for wordpress publisher: {content}")
        return content

    def publish(self, broadcast: BroadcastResult, stream: StreamDefinition) -> Optional[Dict[str, Any]]:
        content = self.render(broadcast, stream)
        kind = self.config.content_kind

        try:
            if self.config.existing_resource_id:
                logger.debug(f"updating existing {kind} {self.config.existing_resource_id} with new stream")
                return self.client.update_content(kind, self.config.existing_resource_id, content)

            logger.debug(f"creating new {kind} '{broadcast.title}' for stream publish")
            return self.client.create_content(kind, broadcast.title, content, status=self.config.status)
        except WordPressError as e:
            raise PublishError(f"unable to publish broadcast {broadcast.broadcast_id} to WordPress: {e}") from e
