"""
Web middleware
"""

from .rate_limit import RateLimitMiddleware

__all__ = ["RateLimitMiddleware"]
