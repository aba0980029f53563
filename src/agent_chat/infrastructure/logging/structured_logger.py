"""
Structured logging setup

structlog renders every event as one JSON (or console) line; stdlib logging
handlers route the lines to stderr and, optionally, rotating files.
Request-scoped fields (request_id) ride on contextvars.
"""

import logging
import logging.handlers
import traceback
from pathlib import Path
from typing import List, Optional, Union

import structlog
from structlog.processors import JSONRenderer
from structlog.stdlib import add_log_level

# Types allowed as bound context values
JSONSerializable = Union[str, int, float, bool, None, dict, list]

LOG_FILE_NAME = "agent-chat.log"
ERROR_LOG_FILE_NAME = "agent-chat-error.log"

MAIN_LOG_MAX_BYTES = 10 * 1024 * 1024
ERROR_LOG_MAX_BYTES = 5 * 1024 * 1024


def _build_processors(enable_json: bool) -> list:
    renderer = JSONRenderer() if enable_json else structlog.dev.ConsoleRenderer(colors=False)
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _build_handlers(log_dir: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_dir is None:
        return handlers

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    handlers.append(
        logging.handlers.RotatingFileHandler(
            log_path / LOG_FILE_NAME,
            maxBytes=MAIN_LOG_MAX_BYTES,
            backupCount=5,
            encoding="utf-8",
        )
    )

    errors_only = logging.handlers.RotatingFileHandler(
        log_path / ERROR_LOG_FILE_NAME,
        maxBytes=ERROR_LOG_MAX_BYTES,
        backupCount=3,
        encoding="utf-8",
    )
    errors_only.setLevel(logging.ERROR)
    handlers.append(errors_only)
    return handlers


def configure_structlog(
    log_dir: Optional[str] = None,
    log_level: str = "INFO",
    enable_json: bool = True,
) -> None:
    """
    Configure structlog and the root logger.

    Args:
        log_dir: Directory for agent-chat.log and agent-chat-error.log
                 (None: stderr only)
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        enable_json: JSON lines (False: key=value console lines)

    Example:
        >>> configure_structlog(log_level="INFO", enable_json=True)
        >>> logger = get_logger(__name__, component="ChatRouter")
        >>> logger.info("Chat request received", message_length=12)
    """
    structlog.configure(
        processors=_build_processors(enable_json),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
        handlers=_build_handlers(log_dir),
        force=True,
    )


def get_logger(name: str, **context: JSONSerializable) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (usually __name__)
        **context: Fields bound to every event (JSON-serializable values only),
                   e.g. component, circuit_name

    Example:
        >>> logger = get_logger(__name__, component="RateLimiter")
        >>> logger.warning("Rate limit exceeded", client_ip="10.0.0.1")
    """
    # initial values keep the proxy lazy, so module-level loggers pick up
    # the configuration applied later by configure_structlog()
    return structlog.get_logger(name, **context)


def bind_request_context(**fields: JSONSerializable) -> None:
    """Attach fields (request_id, ...) to every event logged in this task"""
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def log_exception_silently(
    logger: structlog.stdlib.BoundLogger,
    exception: Exception,
    message: str = "Runtime error occurred",
    **extra_context: JSONSerializable
) -> None:
    """
    Log an exception with its formatted traceback and carry on.

    Only for background loops (health sweep, limiter cleanup) that must keep
    running after a failed iteration.
    """
    logger.error(
        message,
        error_type=type(exception).__name__,
        error_message=str(exception),
        traceback="".join(
            traceback.format_exception(type(exception), exception, exception.__traceback__)
        ),
        **extra_context,
    )
