"""
Domain exceptions.

Every failure the resilient core hands back to a caller is an ``AgentError``
subclass carrying an ``ErrorCode``. The HTTP layer maps the code to a status
and never has to inspect exception types itself.

Examples:
    >>> from agent_chat.domain.exceptions import CircuitOpenError
    >>> err = CircuitOpenError("anthropic")
    >>> err.status_code
    503
"""

from typing import Any, Dict, Optional

from .errors import ErrorCode


class AgentError(Exception):
    """Base exception for the chat backend

    Attributes:
        code: Error code (decides HTTP status and retryability)
        status_code: HTTP status to surface
        is_retryable: Whether the caller may retry later
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNEXPECTED_ERROR,
        status_code: Optional[int] = None,
        is_retryable: Optional[bool] = None,
    ):
        """
        Args:
            message: Error message
            code: Error code
            status_code: Overrides the code's default HTTP status
            is_retryable: Overrides the code's default retryability
        """
        self.code = code
        self.status_code = status_code if status_code is not None else code.status_code
        self.is_retryable = is_retryable if is_retryable is not None else code.is_retryable
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a dict (for logs and API responses)

        Returns:
            {"name", "code", "message", "status_code", "is_retryable"}
        """
        return {
            "name": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "status_code": self.status_code,
            "is_retryable": self.is_retryable,
        }


class ConfigurationError(AgentError):
    """Missing or invalid configuration; fatal to agent initialization"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR)


class CircuitOpenError(AgentError):
    """Raised when the circuit is OPEN (or a HALF_OPEN probe is already running)"""

    def __init__(self, circuit_name: str, message: Optional[str] = None):
        """
        Args:
            circuit_name: Circuit breaker name
            message: Error message (optional)
        """
        self.circuit_name = circuit_name
        super().__init__(
            message or f"Circuit '{circuit_name}' is OPEN. Try again later.",
            ErrorCode.CIRCUIT_BREAKER_OPEN,
        )


class RateLimitError(AgentError):
    """Client exceeded its quota for the current window"""

    def __init__(self, message: str, reset_time: float):
        """
        Args:
            message: Error message
            reset_time: Epoch seconds at which the window ends
        """
        self.reset_time = reset_time
        super().__init__(message, ErrorCode.RATE_LIMIT_EXCEEDED)


class AgentTimeoutError(AgentError):
    """Remote agent call exceeded its deadline"""

    def __init__(self, timeout: float, message: Optional[str] = None):
        self.timeout = timeout
        super().__init__(
            message or f"Agent run timed out after {timeout}s",
            ErrorCode.AGENT_TIMEOUT,
        )


class AgentRunError(AgentError):
    """Remote agent call failed"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message, ErrorCode.AGENT_RUN_FAILED)


class InvalidRequestError(AgentError):
    """Request body failed validation"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INVALID_REQUEST)


__all__ = [
    "AgentError",
    "ConfigurationError",
    "CircuitOpenError",
    "RateLimitError",
    "AgentTimeoutError",
    "AgentRunError",
    "InvalidRequestError",
    "ErrorCode",
]
