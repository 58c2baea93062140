"""
Shared fixtures for the scheduler test suite.
"""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from models.credential import ClientConfig, Credential
from models.stream import StreamDefinition, StreamDefinitionSet
from storage.credential_store import CredentialStore

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

WORDPRESS_PUBLISHER = {
    "wordpress": {
        "host": "blog.example.com",
        "credentials": {"username": "editor", "app_token": "abcd efgh"},
        "content_template": "<h1>{{ broadcast.title }}</h1><a href=\"{{ stream_url_share }}\">watch</a>",
    }
}


def make_stream(name: str = "sunday-service", **overrides) -> StreamDefinition:
    data = {
        "name": name,
        "title": f"{name} live",
        "description": "weekly broadcast",
        "schedule": "0 9 * * sun",
        "start_delay": 600,
        "privacy_level": "unlisted",
    }
    data.update(overrides)
    return StreamDefinition(**data)


@pytest.fixture
def stream() -> StreamDefinition:
    return make_stream()


@pytest.fixture
def stream_set() -> StreamDefinitionSet:
    return StreamDefinitionSet(streams=[
        make_stream("s1", schedule="* * * * *"),
        make_stream("s2", schedule="0 0 * * *"),
    ])


@pytest.fixture
def credential_store() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def credential_path(tmp_path) -> str:
    return str(tmp_path / "oauth2_credentials.json")


@pytest.fixture
def credential() -> Credential:
    return Credential(
        access_token="ya29.access",
        refresh_token="1//refresh",
        expiry=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def client_secrets_file(tmp_path) -> str:
    path = tmp_path / "client_secret.json"
    path.write_text(json.dumps({
        "installed": {
            "client_id": "client-id.apps.googleusercontent.com",
            "client_secret": "client-secret",
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["urn:ietf:wg:oauth:2.0:oob", "http://localhost"],
        }
    }))
    return str(path)


@pytest.fixture
def client_config(client_secrets_file) -> ClientConfig:
    return ClientConfig.from_file(client_secrets_file, ["https://www.googleapis.com/auth/youtube"])


@pytest.fixture
def youtube_client() -> MagicMock:
    """Fake YouTube client returning a created broadcast and two candidate keys."""
    client = MagicMock()
    client.insert_broadcast.side_effect = lambda body: {
        "id": "abc123",
        "snippet": dict(body["snippet"]),
        "status": {
            "privacyStatus": body["status"]["privacyStatus"],
            "lifeCycleStatus": "created",
            "recordingStatus": "notRecording",
        },
    }
    client.list_stream_keys.return_value = ["key-1", "key-2"]
    client.set_thumbnail.side_effect = lambda video_id, path: {
        "items": [{"default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"}}]
    }
    return client
