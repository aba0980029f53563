"""
ResilientAgentManager unit tests

Single-flight initialization, retry/breaker composition, health and
shutdown.
"""

import asyncio

import pytest

from agent_chat.application.agent import ResilientAgentManager
from agent_chat.application.resilience import CircuitBreaker, ExponentialBackoffRetryPolicy
from agent_chat.domain.exceptions import CircuitOpenError, ConfigurationError
from agent_chat.domain.models import CircuitState, HealthStatus
from agent_chat.infrastructure.llm import build_default_tools

from mocks.agent_fakes import CountingAgentFactory, FakeClock


class NoSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def make_manager(
    factory,
    api_key="test-key",
    tools_factory=build_default_tools,
    max_retries=3,
    threshold=5,
    clock=None,
    **kwargs,
) -> ResilientAgentManager:
    clock = clock or FakeClock()
    return ResilientAgentManager(
        agent_factory=factory,
        tools_factory=tools_factory,
        api_key=api_key,
        model="claude-3-5-haiku-latest",
        circuit_breaker=CircuitBreaker(name="anthropic", failure_threshold=threshold, clock=clock),
        retry_policy=ExponentialBackoffRetryPolicy(max_retries=max_retries, base_delay=0.1, sleep=NoSleep()),
        clock=clock,
        **kwargs,
    )


class TestSingleFlightInitialization:
    """get_agent() / initialize_agent()"""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_build(self):
        """
        50 concurrent get_agent() calls build the agent once and all
        receive the same handle
        """
        # Given: a factory that yields to the loop while building
        builds = {"count": 0}
        inner = CountingAgentFactory()

        async def slow_factory(config, api_key):
            builds["count"] += 1
            await asyncio.sleep(0.01)
            return inner(config, api_key)

        manager = make_manager(slow_factory)

        # When
        handles = await asyncio.gather(*(manager.get_agent() for _ in range(50)))

        # Then
        assert builds["count"] == 1
        assert all(handle is handles[0] for handle in handles)
        assert manager.is_initialized() is True

    @pytest.mark.asyncio
    async def test_cached_handle_returned(self, agent_factory):
        manager = make_manager(agent_factory)

        first = await manager.get_agent()
        second = await manager.get_agent()

        assert first is second
        assert agent_factory.calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_failure_then_retry_fresh(self):
        """All waiters see the single failure; the next call starts over"""
        factory = CountingAgentFactory(fail_times=100)
        manager = make_manager(factory, max_retries=0, threshold=100)

        results = await asyncio.gather(
            *(manager.get_agent() for _ in range(5)),
            return_exceptions=True,
        )

        assert factory.calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert manager.is_initialized() is False

        factory.fail_times = 0
        handle = await manager.get_agent()
        assert handle is not None
        assert factory.calls == 2


class TestInitializationResilience:
    """retry(breaker.execute(build))"""

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self):
        factory = CountingAgentFactory(fail_times=2)
        manager = make_manager(factory, max_retries=3)

        handle = await manager.get_agent()

        assert handle is not None
        assert factory.calls == 3
        assert manager.retry_policy._sleep.delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_missing_api_key_is_not_retried(self, agent_factory):
        manager = make_manager(agent_factory, api_key=None)

        with pytest.raises(ConfigurationError):
            await manager.get_agent()

        assert agent_factory.calls == 0
        assert manager.retry_policy._sleep.delays == []

    @pytest.mark.asyncio
    async def test_open_breaker_stops_retries(self):
        """Once the breaker opens, the remaining retries fail fast"""
        factory = CountingAgentFactory(fail_times=100)
        manager = make_manager(factory, max_retries=5, threshold=2)

        with pytest.raises(CircuitOpenError):
            await manager.get_agent()

        assert factory.calls == 2
        assert manager.circuit_breaker.state.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_runs_share_the_init_breaker(self, agent_factory):
        manager = make_manager(agent_factory)

        handle = await manager.get_agent()
        response = await handle.run("hello")

        assert response.data.message.content == "Hello!"
        assert manager.circuit_breaker.state.failure_count == 0


class TestHealth:
    """get_health()"""

    @pytest.mark.asyncio
    async def test_initializing_before_first_use(self, agent_factory):
        manager = make_manager(agent_factory)

        health = await manager.get_health()

        assert health.status == HealthStatus.INITIALIZING
        assert health.error == "Agent not initialized"

    @pytest.mark.asyncio
    async def test_healthy_after_initialization(self, agent_factory):
        manager = make_manager(agent_factory)
        await manager.get_agent()

        health = await manager.get_health()

        assert health.status == HealthStatus.HEALTHY
        assert health.error is None

    @pytest.mark.asyncio
    async def test_unhealthy_without_tools(self, agent_factory):
        manager = make_manager(agent_factory, tools_factory=lambda: [])
        await manager.get_agent()

        health = await manager.get_health()

        assert health.status == HealthStatus.UNHEALTHY
        assert health.error == "Agent has no tools"

    @pytest.mark.asyncio
    async def test_health_is_cached(self, agent_factory):
        clock = FakeClock()
        manager = make_manager(agent_factory, clock=clock)
        await manager.get_agent()

        first = await manager.get_health()
        manager._agent.config.tools.clear()
        clock.advance(10)
        cached = await manager.get_health()
        clock.advance(25)
        recomputed = await manager.get_health()

        assert cached is first
        assert recomputed.status == HealthStatus.UNHEALTHY

    @pytest.mark.asyncio
    async def test_initialization_invalidates_cached_report(self, agent_factory):
        manager = make_manager(agent_factory)

        assert (await manager.get_health()).status == HealthStatus.INITIALIZING
        await manager.get_agent()

        assert (await manager.get_health()).status == HealthStatus.HEALTHY


class TestShutdown:
    """start() / shutdown()"""

    @pytest.mark.asyncio
    async def test_shutdown_drops_handle_and_monitor(self, agent_factory):
        manager = make_manager(agent_factory)
        manager.start()
        first = await manager.get_agent()

        await manager.shutdown()

        assert manager.is_initialized() is False
        assert manager._monitor_task is None

        second = await manager.get_agent()
        assert second is not first
        assert agent_factory.calls == 2

    @pytest.mark.asyncio
    async def test_shutdown_detaches_inflight_initialization(self):
        release = asyncio.Event()
        inner = CountingAgentFactory()

        async def blocked_factory(config, api_key):
            await release.wait()
            return inner(config, api_key)

        manager = make_manager(blocked_factory)
        pending = asyncio.create_task(manager.get_agent())
        await asyncio.sleep(0)

        await manager.shutdown()
        release.set()
        await pending

        # the detached result is not cached
        assert manager.is_initialized() is False

    @pytest.mark.asyncio
    async def test_monitor_logs_unhealthy(self, agent_factory):
        from structlog.testing import capture_logs

        manager = make_manager(
            agent_factory,
            tools_factory=lambda: [],
            health_check_interval=0.01,
            health_cache_seconds=0,
        )
        await manager.get_agent()

        with capture_logs() as logs:
            manager.start()
            await asyncio.sleep(0.05)
            await manager.shutdown()

        assert any(entry["event"] == "Agent health check failed" for entry in logs)
