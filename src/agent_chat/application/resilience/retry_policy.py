"""
Retry Policy implementation

Retries failed async calls with exponentially growing delays.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Coroutine, Optional, Tuple, Type, TypeVar

from ...domain.interfaces.retry_policy import IRetryPolicy
from ...domain.exceptions import CircuitOpenError, ConfigurationError
from ...infrastructure.logging import get_logger


logger = get_logger(__name__, component="RetryPolicy")

T = TypeVar("T")

DEFAULT_NON_RETRYABLE: Tuple[Type[BaseException], ...] = (
    ConfigurationError,
    CircuitOpenError,
)


class ExponentialBackoffRetryPolicy(IRetryPolicy):
    """
    Exponential Backoff retry policy

    Delay before retry i (1-indexed) is base_delay * 2^(i-1). A cap and a
    jitter fraction are available but disabled by default, so the sequence
    is deterministic: 1s, 2s, 4s, ...
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: Optional[float] = None,
        jitter: float = 0.0,
        non_retryable_exceptions: Optional[Tuple[Type[BaseException], ...]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            max_retries: Retries after the first attempt (total = max_retries + 1)
            base_delay: Delay before the first retry (seconds)
            max_delay: Upper bound on a single delay (None: no cap)
            jitter: Random extra delay as a fraction of the delay (0.0 ~ 1.0)
            non_retryable_exceptions: Errors propagated immediately
                (None: ConfigurationError, CircuitOpenError)
            sleep: Sleep coroutine (injectable for tests)
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if max_delay is not None and max_delay < base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if not 0 <= jitter <= 1:
            raise ValueError("jitter must be between 0.0 and 1.0")

        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self._sleep = sleep

        if non_retryable_exceptions is None:
            self.non_retryable_exceptions = DEFAULT_NON_RETRYABLE
        else:
            self.non_retryable_exceptions = non_retryable_exceptions

    @property
    def max_attempts(self) -> int:
        """Total attempts including the first one"""
        return self.max_retries + 1

    def is_retryable(self, error: Exception) -> bool:
        """
        Whether the given error is worth another attempt

        Args:
            error: The exception raised

        Returns:
            False for configured non-retryable types, True otherwise
        """
        return not isinstance(error, self.non_retryable_exceptions)

    def calculate_delay(self, retry: int) -> float:
        """
        Delay before the given retry

        delay = min(base_delay * 2^(retry-1), max_delay) + jitter

        Args:
            retry: Retry number (1 = first retry)

        Returns:
            Delay in seconds
        """
        delay = self.base_delay * (2 ** (retry - 1))

        if self.max_delay is not None:
            delay = min(delay, self.max_delay)

        if self.jitter:
            delay += delay * self.jitter * random.random()
        return delay

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
                non-retryable error immediately (both unchanged)
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                if not self.is_retryable(e):
                    logger.debug(
                        "Non-retryable error",
                        attempt=attempt,
                        error_type=type(e).__name__,
                    )
                    raise

                if attempt >= self.max_attempts:
                    logger.error(
                        "Retries exhausted",
                        attempt=attempt,
                        max_attempts=self.max_attempts,
                        error=str(e),
                    )
                    raise

                delay = self.calculate_delay(attempt)
                logger.warning(
                    "Attempt failed, retrying",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay=delay,
                    error=str(e),
                )
                await self._sleep(delay)
                continue

            if attempt > 1:
                logger.info(
                    "Retry succeeded",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                )
            return result

        raise RuntimeError("Unexpected retry loop exit")
