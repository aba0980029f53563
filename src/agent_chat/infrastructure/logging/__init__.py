"""
Structured logging infrastructure

structlog-based logging and error tracking
"""

from .structured_logger import (
    bind_request_context,
    clear_request_context,
    configure_structlog,
    get_logger,
    log_exception_silently,
)
from .error_tracker import track_error, get_error_stats, reset_error_stats

__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_structlog",
    "get_logger",
    "log_exception_silently",
    "track_error",
    "get_error_stats",
    "reset_error_stats",
]
