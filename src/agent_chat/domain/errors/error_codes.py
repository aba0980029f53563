"""Error code definitions

Every error the chat backend surfaces to a caller carries one of these codes.
The code decides the HTTP status and whether the caller may retry.
"""

from enum import Enum


class ErrorCode(Enum):
    """agent-chat error codes

    The value is the wire string placed in ``error.code`` of a response body.

    Categories:
        configuration: missing or invalid settings (not retryable)
        resilience: breaker open, rate limit, timeout
        agent: remote model failures
        request: invalid client input
    """

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Required credential or setting is missing/invalid"""

    CIRCUIT_BREAKER_OPEN = "CIRCUIT_BREAKER_OPEN"
    """Circuit breaker is failing fast"""

    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    """Client exceeded its request quota for the current window"""

    AGENT_TIMEOUT = "AGENT_TIMEOUT"
    """Remote agent call exceeded its deadline"""

    AGENT_RUN_FAILED = "AGENT_RUN_FAILED"
    """Remote agent returned an error"""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Request body failed validation"""

    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
    """Anything not classified above"""

    @property
    def status_code(self) -> int:
        """HTTP status for this code"""
        return _STATUS_CODES[self]

    @property
    def is_retryable(self) -> bool:
        """Whether the caller may retry later"""
        return self in _RETRYABLE


_STATUS_CODES = {
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.CIRCUIT_BREAKER_OPEN: 503,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.AGENT_TIMEOUT: 504,
    ErrorCode.AGENT_RUN_FAILED: 502,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.UNEXPECTED_ERROR: 500,
}

_RETRYABLE = frozenset({
    ErrorCode.CIRCUIT_BREAKER_OPEN,
    ErrorCode.AGENT_TIMEOUT,
    ErrorCode.AGENT_RUN_FAILED,
})
