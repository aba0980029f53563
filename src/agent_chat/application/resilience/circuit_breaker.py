"""
Circuit Breaker implementation

Isolates the remote model dependency: after repeated failures calls are
rejected immediately until a cool-down has passed, then a single probe
decides whether the circuit closes again.
"""

import asyncio
import time
from typing import Any, Callable, Coroutine, Optional, TypeVar

from ...domain.interfaces.circuit_breaker import ICircuitBreaker
from ...domain.models.circuit_breaker import CircuitState, CircuitBreakerState
from ...domain.exceptions import CircuitOpenError
from ...infrastructure.logging import get_logger


logger = get_logger(__name__, component="CircuitBreaker")

T = TypeVar("T")


class CircuitBreaker(ICircuitBreaker):
    """
    Circuit Breaker implementation

    States:
        - CLOSED: normal operation, every call admitted
        - OPEN: failing, every call rejected until next_attempt_time
        - HALF_OPEN: recovery probe, one call admitted

    Transitions:
        CLOSED -> OPEN: failure_count >= failure_threshold
        OPEN -> HALF_OPEN: first call after next_attempt_time
        HALF_OPEN -> CLOSED: probe succeeds
        HALF_OPEN -> OPEN: probe fails (next_attempt_time moves forward)
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        timeout_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Circuit Breaker name (for logs and errors)
            failure_threshold: Consecutive failures that open the circuit
            timeout_seconds: Time the circuit stays OPEN (seconds)
            clock: Monotonic time source (injectable for tests)
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if timeout_seconds < 0:
            raise ValueError("timeout_seconds must not be negative")

        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._state = CircuitBreakerState(state=CircuitState.CLOSED)
        # never held while the wrapped call runs
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitBreakerState:
        """Current Circuit Breaker state"""
        return self._state

    def can_execute(self) -> bool:
        """
        Whether a call would be admitted right now

        Returns:
            Admission decision (does not change state)
        """
        if self._state.state == CircuitState.CLOSED:
            return True

        if self._state.state == CircuitState.OPEN:
            next_attempt = self._state.next_attempt_time
            return next_attempt is None or self._clock() >= next_attempt

        return self._state.in_flight_probes == 0

    async def _check_before_call(self) -> bool:
        """
        Admit or reject a call

        Returns:
            True if the admitted call is the HALF_OPEN probe

        Raises:
            CircuitOpenError: OPEN and cooling down, or a probe is in flight
        """
        async with self._lock:
            if not self.can_execute():
                if self._state.state == CircuitState.HALF_OPEN:
                    raise CircuitOpenError(
                        circuit_name=self.name,
                        message=f"Circuit '{self.name}' is HALF_OPEN and a recovery "
                                f"probe is running. Try again later."
                    )
                raise CircuitOpenError(circuit_name=self.name)

            if self._state.state == CircuitState.OPEN:
                self._state.state = CircuitState.HALF_OPEN
                logger.info(
                    "Circuit half-open",
                    circuit_name=self.name,
                    failure_count=self._state.failure_count,
                )

            if self._state.state == CircuitState.HALF_OPEN:
                self._state.in_flight_probes += 1
                return True

            return False

    def _release_probe(self) -> None:
        self._state.in_flight_probes = max(0, self._state.in_flight_probes - 1)

    def _open(self, now: float) -> None:
        previous = self._state.state
        self._state.state = CircuitState.OPEN
        self._state.next_attempt_time = now + self.timeout_seconds
        logger.error(
            "Circuit opened",
            circuit_name=self.name,
            previous_state=previous.value,
            failure_count=self._state.failure_count,
            timeout_seconds=self.timeout_seconds,
        )

    async def record_success(self, probe: bool = False) -> None:
        """
        Record a successful call

        Only the probe's own result moves HALF_OPEN to CLOSED. Calls admitted
        before the circuit opened change nothing once it has left CLOSED.

        Args:
            probe: the call was the HALF_OPEN recovery probe
        """
        async with self._lock:
            if probe:
                self._release_probe()
                if self._state.state == CircuitState.HALF_OPEN:
                    self._state.state = CircuitState.CLOSED
                    self._state.failure_count = 0
                    self._state.next_attempt_time = None
                    logger.info("Circuit closed", circuit_name=self.name)
                    return

            if self._state.state == CircuitState.CLOSED:
                self._state.failure_count = 0

    async def record_failure(self, error: Optional[Exception] = None, probe: bool = False) -> None:
        """
        Record a failed call

        Args:
            error: The exception raised (logged only)
            probe: the call was the HALF_OPEN recovery probe
        """
        async with self._lock:
            if probe:
                self._release_probe()
            elif self._state.state != CircuitState.CLOSED:
                # stale result of a call admitted before the circuit opened
                return

            now = self._clock()
            self._state.failure_count += 1
            self._state.last_failure_time = now

            logger.warning(
                "Circuit failure recorded",
                circuit_name=self.name,
                failure_count=self._state.failure_count,
                failure_threshold=self.failure_threshold,
                error=str(error) if error is not None else None,
            )

            if (
                probe and self._state.state == CircuitState.HALF_OPEN
            ) or self._state.failure_count >= self.failure_threshold:
                self._open(now)

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
            CircuitOpenError: the circuit rejected the call (func not invoked,
                no failure counted)
            Exception: anything raised by func, unchanged
        """
        is_probe = await self._check_before_call()

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            await self.record_failure(e, probe=is_probe)
            raise
        except BaseException:
            # cancelled: neither success nor failure
            if is_probe:
                self._release_probe()
            raise

        await self.record_success(probe=is_probe)
        return result

    async def reset(self) -> None:
        """
        Return the Circuit Breaker to CLOSED

        Mostly for tests and manual recovery.
        """
        async with self._lock:
            logger.info("Circuit reset", circuit_name=self.name)
            self._state.state = CircuitState.CLOSED
            self._state.reset()
