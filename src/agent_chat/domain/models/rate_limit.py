"""
Rate limit models
"""

from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    """
    Counter for one (client identity, window index) pair

    Attributes:
        count: Requests admitted in this window
        reset_time: Epoch seconds at which the window ends
    """
    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitResult:
    """
    Outcome of a rate limit check

    Attributes:
        allowed: Whether the request is admitted
        remaining: Requests left in the window (after this one)
        reset_time: Epoch seconds at which the window ends
        limit: Max requests per window
    """
    allowed: bool
    remaining: int
    reset_time: float
    limit: int
