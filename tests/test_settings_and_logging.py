"""
Tests for settings loading and logging helpers.
"""

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from config.settings import Settings
from utils.logging_utils import StreamContextFilter, logging_session, safe_log_text, stream_logger


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("YLS_DRY_RUN", raising=False)
        settings = Settings(_env_file=None)

        assert settings.secrets_cache.endswith(".youtube_oauth2_credentials")
        assert settings.stream_config.endswith(".yls.yaml")
        assert "~" not in settings.secrets_cache
        assert settings.scopes == ["https://www.googleapis.com/auth/youtube"]
        assert settings.scheduler_max_workers == 10
        assert not settings.dry_run

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("YLS_DRY_RUN", "true")
        monkeypatch.setenv("YLS_AUTH_CONFIG", "/etc/yls/client.json")

        settings = Settings(_env_file=None)

        assert settings.dry_run
        assert settings.auth_config == "/etc/yls/client.json"

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, log_level="chatty")

    def test_debug_overrides_log_level(self):
        settings = Settings(_env_file=None, log_level="warning", debug=True)
        assert settings.log_level == "WARNING"
        assert settings.effective_log_level == "DEBUG"


class TestLoggingHelpers:

    def test_filter_defaults_stream(self):
        record = logging.LogRecord("yls", logging.INFO, __file__, 1, "msg", None, None)
        assert StreamContextFilter().filter(record)
        assert record.stream == "-"

    def test_adapter_binds_stream(self, caplog):
        log = stream_logger(logging.getLogger("yls.test"), "sunday")

        with caplog.at_level(logging.INFO, logger="yls.test"):
            log.info("created broadcast")

        assert caplog.records[0].stream == "sunday"

    def test_safe_log_text(self):
        assert safe_log_text("Gottesdienst – live") == "Gottesdienst ? live"
        assert safe_log_text("") == ""

    def test_session_flushes_on_error(self):
        handler = logging.Handler()
        handler.flush = MagicMock()
        root = logging.getLogger()
        root.addHandler(handler)
        settings = SimpleNamespace(setup_logging=MagicMock())

        try:
            with pytest.raises(RuntimeError):
                with logging_session(settings):
                    raise RuntimeError("interrupted")
        finally:
            root.removeHandler(handler)

        settings.setup_logging.assert_called_once()
        handler.flush.assert_called()
