"""
Error tracking

Counts unexpected errors that reach the HTTP boundary. The health endpoint
reports the counts under metrics.errors.
"""

import threading
from collections import Counter, deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict

from .structured_logger import get_logger

logger = get_logger(__name__, component="ErrorTracker")

MAX_RECENT_ERRORS = 100
REPORTED_RECENT_ERRORS = 10


class ErrorTracker:
    """
    Per-type error counter with a bounded history

    Safe to call from worker threads; uvicorn runs sync dependencies in a
    thread pool.
    """

    def __init__(self, max_recent: int = MAX_RECENT_ERRORS):
        self._lock = threading.Lock()
        self._counts: Counter = Counter()
        self._recent: Deque[Dict[str, Any]] = deque(maxlen=max_recent)

    def record(self, error: Exception, context: str, **metadata: Any) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
            **metadata,
        }
        with self._lock:
            self._counts[entry["error_type"]] += 1
            self._recent.append(entry)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            recent = list(self._recent)[-REPORTED_RECENT_ERRORS:]
            return {
                "error_counts": dict(self._counts),
                "recent_errors": recent,
                "total_errors": sum(self._counts.values()),
            }

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._recent.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._recent)


_tracker = ErrorTracker()


def track_error(error: Exception, context: str, **metadata: Any) -> None:
    """
    Record an error and log it with its traceback

    Args:
        error: The exception
        context: Where it happened (e.g. "chat_request")
        **metadata: Extra fields stored with the entry (request_id, ...)

    Example:
        >>> try:
        ...     await chat_service.initiate_chat(message)
        ... except Exception as e:
        ...     track_error(e, "chat_request", request_id=request_id)
    """
    _tracker.record(error, context, **metadata)
    logger.error(
        "Unexpected error",
        error_type=type(error).__name__,
        error_message=str(error),
        context=context,
        exc_info=(type(error), error, error.__traceback__),
        **metadata,
    )


def get_error_stats() -> Dict[str, Any]:
    """
    Returns:
        error_counts (per type), recent_errors (last 10, oldest first) and
        total_errors
    """
    return _tracker.stats()


def reset_error_stats() -> None:
    _tracker.reset()
    logger.debug("Error statistics reset")
