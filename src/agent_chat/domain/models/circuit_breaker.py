"""
Circuit Breaker models

State and bookkeeping data for the circuit breaker pattern.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CircuitState(Enum):
    """Circuit Breaker state"""
    CLOSED = "closed"        # pass-through
    OPEN = "open"            # failing fast
    HALF_OPEN = "half_open"  # probing recovery


@dataclass
class CircuitBreakerState:
    """
    Current Circuit Breaker state

    Timestamps come from the breaker's monotonic clock, not wall time.

    Attributes:
        state: Circuit state (CLOSED, OPEN, HALF_OPEN)
        failure_count: Consecutive failures since the last success
        in_flight_probes: HALF_OPEN probes currently running
        last_failure_time: Clock reading of the last failure
        next_attempt_time: Clock reading after which OPEN admits a probe
    """
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    in_flight_probes: int = 0
    last_failure_time: Optional[float] = None
    next_attempt_time: Optional[float] = None

    def reset(self) -> None:
        """
        Clear counters and timestamps.

        The state field itself is switched by the CircuitBreaker.
        """
        self.failure_count = 0
        self.in_flight_probes = 0
        self.last_failure_time = None
        self.next_attempt_time = None
