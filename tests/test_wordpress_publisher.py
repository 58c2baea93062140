"""
Tests for the WordPress client and publisher, using httpx's mock transport.
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from models.broadcast import BroadcastResult
from models.stream import PublisherConfig, WordPressConfig
from publishers.base import PublishError
from publishers.registry import PublisherResolver, resolve_publisher
from publishers.wordpress_publisher import WordPressPublisher
from tools.wordpress_tools import WordPressAuthError, WordPressClient, WordPressError, WordPressNotFoundError
from utils.error_utils import ConfigurationError

from conftest import WORDPRESS_PUBLISHER, make_stream


class RecordingWordPress:
    """In-memory WordPress REST API that records every request."""

    def __init__(self, me_status: int = 200, write_status: int = 201):
        self.me_status = me_status
        self.write_status = write_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/users/me"):
            return httpx.Response(self.me_status, json={"id": 7, "name": "editor"})
        if request.method == "POST":
            body = json.loads(request.content)
            return httpx.Response(self.write_status, json={"id": 99, **body})
        return httpx.Response(404, json={"code": "rest_no_route"})

    def client_factory(self, config: WordPressConfig) -> WordPressClient:
        return WordPressClient(
            host=config.host,
            port=config.port,
            use_tls=config.use_tls,
            api_root=config.api_root,
            username=config.credentials.username,
            app_token=config.credentials.app_token,
            transport=httpx.MockTransport(self),
        )


def wordpress_config(**overrides) -> WordPressConfig:
    data = dict(WORDPRESS_PUBLISHER["wordpress"])
    data.update(overrides)
    return WordPressConfig(**data)


@pytest.fixture
def broadcast() -> BroadcastResult:
    return BroadcastResult(broadcast_id="abc123", title="Sunday <Service>", stream_keys=["key-1"])


class TestWordPressClient:

    def test_base_url_and_auth(self):
        server = RecordingWordPress()
        client = WordPressClient("blog.example.com", "editor", "secret", port=8443,
                                 transport=httpx.MockTransport(server))

        client.me()

        request = server.requests[0]
        assert str(request.url) == "https://blog.example.com:8443/wp-json/wp/v2/users/me"
        assert request.headers["authorization"].startswith("Basic ")

    def test_plain_http(self):
        client = WordPressClient("localhost", "u", "p", use_tls=False, transport=httpx.MockTransport(RecordingWordPress()))
        assert client.base_url == "http://localhost/wp-json"

    @pytest.mark.parametrize("status,error", [
        (401, WordPressAuthError),
        (403, WordPressAuthError),
        (404, WordPressNotFoundError),
        (500, WordPressError),
    ])
    def test_error_statuses(self, status, error):
        client = WordPressClient("blog.example.com", "u", "p",
                                 transport=httpx.MockTransport(lambda request: httpx.Response(status, text="nope")))
        with pytest.raises(error):
            client.me()

    def test_connection_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = WordPressClient("blog.example.com", "u", "p", transport=httpx.MockTransport(refuse))
        with pytest.raises(WordPressError):
            client.create_content("page", "t", "c")

    def test_unknown_kind(self):
        client = WordPressClient("blog.example.com", "u", "p", transport=httpx.MockTransport(RecordingWordPress()))
        with pytest.raises(ValueError):
            client.create_content("attachment", "t", "c")


class TestWordPressPublisher:

    def test_unknown_kind_fails_before_any_request(self):
        factory = MagicMock()
        with pytest.raises(ConfigurationError):
            WordPressPublisher(
                wordpress_config().model_copy(update={"content_kind": "attachment"}), client_factory=factory
            )
        factory.assert_not_called()

    def test_template_syntax_error_is_configuration_error(self):
        factory = MagicMock()
        with pytest.raises(ConfigurationError):
            WordPressPublisher(wordpress_config(content_template="{% if %}"), client_factory=factory)
        factory.assert_not_called()

    def test_identity_check_on_construction(self):
        server = RecordingWordPress()
        WordPressPublisher(wordpress_config(), client_factory=server.client_factory)

        assert [r.url.path for r in server.requests] == ["/wp-json/wp/v2/users/me"]

    def test_bad_credentials_fail_fast(self):
        server = RecordingWordPress(me_status=401)
        with pytest.raises(PublishError):
            WordPressPublisher(wordpress_config(), client_factory=server.client_factory)

    def test_creates_page_when_no_existing_resource(self, broadcast):
        server = RecordingWordPress()
        publisher = WordPressPublisher(wordpress_config(), client_factory=server.client_factory)

        publisher.publish(broadcast, make_stream())

        request = server.requests[-1]
        body = json.loads(request.content)
        assert request.method == "POST"
        assert request.url.path == "/wp-json/wp/v2/pages"
        assert body["title"] == "Sunday <Service>"
        assert body["status"] == "publish"
        # Rendered with autoescaping
        assert "<h1>Sunday &lt;Service&gt;</h1>" in body["content"]
        assert "https://youtube.com/live/abc123?feature=share" in body["content"]

    def test_updates_existing_post(self, broadcast):
        server = RecordingWordPress(write_status=200)
        config = wordpress_config(existing_resource_id=42, content_kind="post")
        publisher = WordPressPublisher(config, client_factory=server.client_factory)

        publisher.publish(broadcast, make_stream())

        request = server.requests[-1]
        assert request.url.path == "/wp-json/wp/v2/posts/42"
        assert "title" not in json.loads(request.content)

    def test_template_context(self, broadcast):
        server = RecordingWordPress()
        template = "{{ stream_url_embed }}|{{ stream.name }}|{% for key in broadcast.stream_keys %}{{ key }}{% endfor %}"
        publisher = WordPressPublisher(wordpress_config(content_template=template), client_factory=server.client_factory)

        content = publisher.render(broadcast, make_stream("evening"))

        assert content == "https://youtube.com/embed/abc123?autoplay=0&amp;livemonitor=1|evening|key-1"

    def test_template_can_use_broadcast_links(self, broadcast):
        server = RecordingWordPress()
        template = "{{ broadcast.share_url }}|{{ broadcast.embed_url }}"
        publisher = WordPressPublisher(wordpress_config(content_template=template), client_factory=server.client_factory)

        content = publisher.render(broadcast, make_stream())

        assert content == "https://youtube.com/live/abc123?feature=share|https://youtube.com/embed/abc123"

    def test_undefined_template_variable(self, broadcast):
        server = RecordingWordPress()
        publisher = WordPressPublisher(wordpress_config(content_template="{{ missing.value }}"),
                                       client_factory=server.client_factory)

        with pytest.raises(PublishError):
            publisher.publish(broadcast, make_stream())

    def test_remote_failure_is_publish_error(self, broadcast):
        server = RecordingWordPress(write_status=500)
        publisher = WordPressPublisher(wordpress_config(), client_factory=server.client_factory)

        with pytest.raises(PublishError):
            publisher.publish(broadcast, make_stream())


class TestPublisherResolver:

    def test_resolves_wordpress_by_tag(self, monkeypatch):
        server = RecordingWordPress()
        monkeypatch.setattr(
            "publishers.wordpress_publisher.WordPressClient",
            lambda **kwargs: WordPressClient(transport=httpx.MockTransport(server), **kwargs)
        )

        publisher = resolve_publisher(PublisherConfig(**WORDPRESS_PUBLISHER))

        assert isinstance(publisher, WordPressPublisher)
        assert str(server.requests[0].url) == "https://blog.example.com/wp-json/wp/v2/users/me"

    def test_caches_one_publisher_per_config(self):
        factory = MagicMock(side_effect=lambda config: MagicMock(name="publisher"))
        resolver = PublisherResolver(factory=factory)
        stream = make_stream(publisher=WORDPRESS_PUBLISHER)

        first = resolver.get(stream)
        second = resolver.get(make_stream("other", publisher=WORDPRESS_PUBLISHER))

        assert first is second
        factory.assert_called_once()

    def test_failures_are_not_cached(self):
        factory = MagicMock(side_effect=[PublishError("down"), MagicMock(name="publisher")])
        resolver = PublisherResolver(factory=factory)
        stream = make_stream(publisher=WORDPRESS_PUBLISHER)

        with pytest.raises(PublishError):
            resolver.get(stream)
        assert resolver.get(stream) is not None
        assert factory.call_count == 2

    def test_no_publisher_config(self, stream):
        factory = MagicMock()
        assert PublisherResolver(factory=factory).get(stream) is None
        factory.assert_not_called()
