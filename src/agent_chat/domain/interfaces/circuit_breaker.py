"""
Circuit Breaker interface
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine, Optional, TypeVar

from ..models.circuit_breaker import CircuitBreakerState


T = TypeVar("T")


class ICircuitBreaker(ABC):
    """
    Circuit Breaker interface

    Contract every circuit breaker implementation follows.
    """

    @property
    @abstractmethod
    def state(self) -> CircuitBreakerState:
        """
        Current Circuit Breaker state

        Returns:
            Current state snapshot
        """
        pass

    @abstractmethod
    def can_execute(self) -> bool:
        """
        Whether a call would be admitted right now

        Returns:
            True if CLOSED, if OPEN and the cool-down has elapsed, or if
            HALF_OPEN with no probe in flight
        """
        pass

    @abstractmethod
    async def execute(
        self,
        func: Callable[..., Coroutine[Any, Any, T]],
        *args: Any,
        **kwargs: Any
    ) -> T:
        """
        Run a function through the Circuit Breaker

        Args:
            func: async function to run
            *args: positional arguments
            **kwargs: keyword arguments

        Returns:
            The function's result

        Raises:
            CircuitOpenError: when the circuit rejects the call
            Exception: anything raised by func
        """
        pass

    @abstractmethod
    async def record_success(self, probe: bool = False) -> None:
        """
        Record a successful call

        Args:
            probe: the call was the HALF_OPEN recovery probe
        """
        pass

    @abstractmethod
    async def record_failure(self, error: Optional[Exception] = None, probe: bool = False) -> None:
        """
        Record a failed call

        Args:
            error: the exception raised (optional, for logging)
            probe: the call was the HALF_OPEN recovery probe
        """
        pass

    @abstractmethod
    async def reset(self) -> None:
        """
        Return the Circuit Breaker to CLOSED

        Mostly for tests and manual recovery.
        """
        pass
