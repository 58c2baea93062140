"""
Logging helpers: per-stream context and process-wide logging lifecycle.
"""

import logging
from contextlib import contextmanager
from typing import Iterator


def safe_log_text(text: str) -> str:
    """
    Convert text to ASCII-safe format for logging to avoid encoding errors.
    
    Args:
        text: Input text that may contain Unicode characters
        
    Returns:
        ASCII-safe version of the text with Unicode characters replaced
    """
    if text:
        return text.encode('ascii', 'replace').decode('ascii')
    return text


class StreamContextFilter(logging.Filter):
    """Make sure every record carries a ``stream`` attribute for the formatter."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "stream"):
            record.stream = "-"
        return True


class StreamLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that binds the originating stream name to each record."""

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("stream", self.extra["stream"])
        kwargs["extra"] = extra
        return msg, kwargs


def stream_logger(logger: logging.Logger, stream_name: str) -> StreamLoggerAdapter:
    """Return an adapter for ``logger`` tagged with ``stream_name``."""
    return StreamLoggerAdapter(logger, {"stream": stream_name})


def flush_logging() -> None:
    """Flush every handler attached to the root logger."""
    for handler in logging.getLogger().handlers:
        try:
            handler.flush()
        except (OSError, ValueError):
            # closed streams during interpreter shutdown
            pass


@contextmanager
def logging_session(settings) -> Iterator[logging.Logger]:
    """
    Configure logging for the lifetime of the process.

    Handlers are flushed on every exit path, including exceptions and
    signal-triggered shutdown.
    """
    settings.setup_logging()
    try:
        yield logging.getLogger("yls")
    finally:
        flush_logging()
