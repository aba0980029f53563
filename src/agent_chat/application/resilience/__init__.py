"""
Resilience package

Circuit Breaker and Retry Policy.
"""

from .circuit_breaker import CircuitBreaker
from .retry_policy import ExponentialBackoffRetryPolicy

__all__ = [
    "CircuitBreaker",
    "ExponentialBackoffRetryPolicy",
]
