"""
Circuit Breaker unit tests

Checks the CLOSED / OPEN / HALF_OPEN transitions and call admission.
"""

import asyncio

import pytest
from structlog.testing import capture_logs

from agent_chat.application.resilience.circuit_breaker import CircuitBreaker
from agent_chat.domain.models.circuit_breaker import CircuitState
from agent_chat.domain.exceptions import CircuitOpenError

from mocks.agent_fakes import FakeClock


async def _fail():
    raise RuntimeError("boom")


async def _ok():
    return "ok"


async def _open_breaker(cb: CircuitBreaker, times: int) -> None:
    for _ in range(times):
        with pytest.raises(RuntimeError):
            await cb.execute(_fail)


class TestCircuitBreakerStateTransitions:
    """Circuit Breaker state transition tests"""

    @pytest.mark.asyncio
    async def test_opens_after_threshold_consecutive_failures(self):
        """
        CLOSED -> OPEN

        After `threshold` consecutive failures the breaker opens and the next
        call is rejected without invoking the function.
        """
        # Given: threshold=3, timeout=10s
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=3, timeout_seconds=10, clock=clock)

        # When: 3 failures
        await _open_breaker(cb, 3)

        # Then: OPEN, next_attempt_time = now + timeout
        assert cb.state.state == CircuitState.OPEN
        assert cb.state.failure_count == 3
        assert cb.state.next_attempt_time == clock.now + 10

        invoked = False

        async def tracked():
            nonlocal invoked
            invoked = True

        with pytest.raises(CircuitOpenError):
            await cb.execute(tracked)
        assert invoked is False
        # rejection is not counted as a failure
        assert cb.state.failure_count == 3

    @pytest.mark.asyncio
    async def test_stays_closed_below_threshold(self):
        """Failures below the threshold keep the breaker CLOSED"""
        cb = CircuitBreaker(name="test_cb", failure_threshold=3, clock=FakeClock())

        await _open_breaker(cb, 2)

        assert cb.state.state == CircuitState.CLOSED
        assert cb.can_execute() is True

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self):
        """A success in CLOSED zeroes the consecutive failure count"""
        cb = CircuitBreaker(name="test_cb", failure_threshold=3, clock=FakeClock())
        await _open_breaker(cb, 2)

        assert await cb.execute(_ok) == "ok"

        assert cb.state.failure_count == 0
        await _open_breaker(cb, 2)
        assert cb.state.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_probe_success_closes(self):
        """
        OPEN -> HALF_OPEN -> CLOSED

        After the timeout exactly one call is admitted; its success closes
        the breaker.
        """
        # Given: an OPEN breaker
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=2, timeout_seconds=10, clock=clock)
        await _open_breaker(cb, 2)
        assert cb.can_execute() is False

        # When: the timeout passes and a call succeeds
        clock.advance(10)
        assert cb.can_execute() is True
        result = await cb.execute(_ok)

        # Then: CLOSED with zero failures
        assert result == "ok"
        assert cb.state.state == CircuitState.CLOSED
        assert cb.state.failure_count == 0
        assert cb.state.in_flight_probes == 0

    @pytest.mark.asyncio
    async def test_half_open_probe_failure_reopens_with_fresh_deadline(self):
        """
        HALF_OPEN -> OPEN

        A failed probe re-opens the breaker with next_attempt_time measured
        from the probe failure.
        """
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=2, timeout_seconds=10, clock=clock)
        await _open_breaker(cb, 2)
        first_deadline = cb.state.next_attempt_time

        clock.advance(15)
        with pytest.raises(RuntimeError):
            await cb.execute(_fail)

        assert cb.state.state == CircuitState.OPEN
        assert cb.state.next_attempt_time == clock.now + 10
        assert cb.state.next_attempt_time > first_deadline

        with pytest.raises(CircuitOpenError):
            await cb.execute(_ok)

    @pytest.mark.asyncio
    async def test_half_open_admits_single_probe(self):
        """
        While a probe is running, concurrent callers are rejected
        """
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=1, timeout_seconds=5, clock=clock)
        await _open_breaker(cb, 1)
        clock.advance(5)

        release = asyncio.Event()

        async def slow_probe():
            await release.wait()
            return "probe"

        probe = asyncio.create_task(cb.execute(slow_probe))
        await asyncio.sleep(0)

        assert cb.state.state == CircuitState.HALF_OPEN
        assert cb.can_execute() is False
        with pytest.raises(CircuitOpenError):
            await cb.execute(_ok)

        release.set()
        assert await probe == "probe"
        assert cb.state.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_cancelled_probe_frees_slot(self):
        """A cancelled probe does not leave the breaker stuck in HALF_OPEN"""
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=1, timeout_seconds=5, clock=clock)
        await _open_breaker(cb, 1)
        clock.advance(5)

        probe = asyncio.create_task(cb.execute(asyncio.sleep, 60))
        await asyncio.sleep(0)
        probe.cancel()
        with pytest.raises(asyncio.CancelledError):
            await probe

        assert cb.state.in_flight_probes == 0
        assert await cb.execute(_ok) == "ok"


class TestCircuitBreakerStaleCalls:
    """Calls admitted while CLOSED that finish after the circuit opened"""

    @staticmethod
    async def _half_open_with_straggler(cb: CircuitBreaker, clock: FakeClock):
        """
        Start a call while CLOSED, open the circuit, then start the probe.

        Returns (straggler task, straggler gate, probe task, probe gate).
        """
        straggler_gate = asyncio.Event()
        probe_gate = asyncio.Event()

        async def straggler():
            await straggler_gate.wait()
            raise RuntimeError("late failure")

        async def probe():
            await probe_gate.wait()
            return "probe"

        straggler_task = asyncio.create_task(cb.execute(straggler))
        await asyncio.sleep(0)

        await _open_breaker(cb, 1)
        clock.advance(11)

        probe_task = asyncio.create_task(cb.execute(probe))
        await asyncio.sleep(0)
        assert cb.state.state == CircuitState.HALF_OPEN
        return straggler_task, straggler_gate, probe_task, probe_gate

    @pytest.mark.asyncio
    async def test_cancelled_straggler_keeps_probe_slot(self):
        """
        Cancelling a pre-open call does not let a second probe in
        """
        # Given: threshold=1, a straggler from CLOSED and a running probe
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=1, timeout_seconds=10, clock=clock)
        straggler, _, probe, probe_gate = await self._half_open_with_straggler(cb, clock)

        # When: the straggler is cancelled
        straggler.cancel()
        with pytest.raises(asyncio.CancelledError):
            await straggler

        # Then: the probe still owns the only slot
        assert cb.state.in_flight_probes == 1
        assert cb.can_execute() is False
        with pytest.raises(CircuitOpenError):
            await cb.execute(_ok)

        probe_gate.set()
        assert await probe == "probe"
        assert cb.state.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failed_straggler_does_not_override_probe(self):
        """
        A pre-open call failing during HALF_OPEN neither reopens the circuit
        nor stops the probe's success from closing it
        """
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=1, timeout_seconds=10, clock=clock)
        straggler, straggler_gate, probe, probe_gate = await self._half_open_with_straggler(cb, clock)

        # When: the straggler fails while the probe runs
        straggler_gate.set()
        with pytest.raises(RuntimeError, match="late failure"):
            await straggler

        # Then: still HALF_OPEN with the probe in flight
        assert cb.state.state == CircuitState.HALF_OPEN
        assert cb.state.in_flight_probes == 1

        # When: the probe succeeds
        probe_gate.set()
        assert await probe == "probe"

        # Then
        assert cb.state.state == CircuitState.CLOSED
        assert cb.state.failure_count == 0
        assert cb.state.in_flight_probes == 0

    @pytest.mark.asyncio
    async def test_straggler_success_while_open_keeps_failure_count(self):
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=1, timeout_seconds=10, clock=clock)
        gate = asyncio.Event()

        async def straggler():
            await gate.wait()
            return "late"

        task = asyncio.create_task(cb.execute(straggler))
        await asyncio.sleep(0)
        await _open_breaker(cb, 1)

        gate.set()
        assert await task == "late"

        assert cb.state.state == CircuitState.OPEN
        assert cb.state.failure_count == 1


class TestCircuitBreakerErrors:
    """Error propagation"""

    @pytest.mark.asyncio
    async def test_original_error_is_reraised(self):
        cb = CircuitBreaker(name="test_cb", clock=FakeClock())

        async def fails():
            raise ValueError("specific")

        with pytest.raises(ValueError, match="specific"):
            await cb.execute(fails)

    @pytest.mark.asyncio
    async def test_open_error_names_circuit(self):
        cb = CircuitBreaker(name="anthropic", failure_threshold=1, clock=FakeClock())
        await _open_breaker(cb, 1)

        with pytest.raises(CircuitOpenError) as exc_info:
            await cb.execute(_ok)

        assert exc_info.value.circuit_name == "anthropic"
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_arguments_are_forwarded(self):
        cb = CircuitBreaker(name="test_cb", clock=FakeClock())

        async def add(a, b, *, c=0):
            return a + b + c

        assert await cb.execute(add, 1, 2, c=3) == 6

    def test_invalid_threshold_rejected(self):
        with pytest.raises(ValueError):
            CircuitBreaker(name="test_cb", failure_threshold=0)


class TestCircuitBreakerReset:
    """Manual reset"""

    @pytest.mark.asyncio
    async def test_reset_returns_to_closed(self):
        cb = CircuitBreaker(name="test_cb", failure_threshold=1, clock=FakeClock())
        await _open_breaker(cb, 1)

        await cb.reset()

        assert cb.state.state == CircuitState.CLOSED
        assert cb.state.failure_count == 0
        assert cb.state.next_attempt_time is None
        assert await cb.execute(_ok) == "ok"


class TestCircuitBreakerLogging:
    """State transitions are logged"""

    @pytest.mark.asyncio
    async def test_transitions_emit_events(self):
        clock = FakeClock()
        cb = CircuitBreaker(name="test_cb", failure_threshold=1, timeout_seconds=1, clock=clock)

        with capture_logs() as logs:
            await _open_breaker(cb, 1)
            clock.advance(1)
            await cb.execute(_ok)

        events = [entry["event"] for entry in logs]
        assert "Circuit opened" in events
        assert "Circuit half-open" in events
        assert "Circuit closed" in events
