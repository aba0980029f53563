"""Error management module

Standardized error codes for agent-chat.
"""

from .error_codes import ErrorCode

__all__ = [
    "ErrorCode",
]
