"""
Retry Policy interface
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Coroutine, TypeVar


T = TypeVar("T")


class IRetryPolicy(ABC):
    """
    Retry Policy interface
    """

    @abstractmethod
    async def execute(
        self,
        func: Callable[..., Coroutine[Any, Any, T]],
        *args: Any,
        **kwargs: Any
    ) -> T:
        """
        Run a function with retries

        Args:
            func: async function to run
            *args: positional arguments
            **kwargs: keyword arguments

        Returns:
            The function's result

        Raises:
            Exception: the last error once attempts are exhausted, or a
                non-retryable error immediately
        """
        pass

    @abstractmethod
    def is_retryable(self, error: Exception) -> bool:
        """
        Whether the given error is worth another attempt

        Args:
            error: the exception raised

        Returns:
            True if retryable
        """
        pass
