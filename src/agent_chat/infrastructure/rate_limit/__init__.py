"""
Rate limiting infrastructure
"""

from .in_memory import InMemoryRateLimiter, get_client_identity

__all__ = [
    "InMemoryRateLimiter",
    "get_client_identity",
]
