"""
Utility functions for the live scheduler.
"""

from .logging_utils import safe_log_text, stream_logger, logging_session
from .error_utils import (
    ConfigurationError,
    ScheduleError,
    create_result_dict,
    handle_step_error
)

__all__ = [
    "safe_log_text",
    "stream_logger",
    "logging_session",
    "ConfigurationError",
    "ScheduleError",
    "create_result_dict",
    "handle_step_error"
]
