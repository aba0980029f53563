"""
Rate Limiter interface
"""

from abc import ABC, abstractmethod

from ..models.rate_limit import RateLimitResult


class IRateLimiter(ABC):
    """
    Rate Limiter interface

    Admits or rejects requests per client identity.
    """

    @abstractmethod
    async def check_limit(self, identifier: str) -> RateLimitResult:
        """
        Count a request and decide whether it is admitted

        Args:
            identifier: client identity (usually the IP address)

        Returns:
            RateLimitResult with allowed/remaining/reset_time
        """
        pass

    @abstractmethod
    async def reset(self, identifier: str) -> None:
        """
        Forget the identity's counter for the current window

        Args:
            identifier: client identity
        """
        pass
