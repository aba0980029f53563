"""
Domain interfaces package

Circuit Breaker, Retry Policy, Rate Limiter and Agent Manager contracts.
"""

from .agent_manager import IAgentManager
from .circuit_breaker import ICircuitBreaker
from .rate_limiter import IRateLimiter
from .retry_policy import IRetryPolicy

__all__ = [
    "IAgentManager",
    "ICircuitBreaker",
    "IRateLimiter",
    "IRetryPolicy",
]
