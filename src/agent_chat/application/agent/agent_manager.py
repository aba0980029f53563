"""
Resilient Agent Manager

Owns the single remote agent handle of the process:
- lazy, single-flight initialization (retry around circuit breaker)
- cached health reports and a periodic health sweep
- shutdown that drops the handle so the next request starts over
"""

import asyncio
import inspect
import time
from typing import Callable, Optional, Tuple

from ...domain.exceptions import ConfigurationError
from ...domain.interfaces.agent_manager import IAgentManager
from ...domain.interfaces.circuit_breaker import ICircuitBreaker
from ...domain.interfaces.retry_policy import IRetryPolicy
from ...domain.models import AgentConfig, AgentHealth, HealthStatus
from ...infrastructure.logging import get_logger, log_exception_silently
from ..ports import AgentFactory, ToolsFactory
from ..resilience import CircuitBreaker, ExponentialBackoffRetryPolicy
from .agent_handle import AgentHandle

logger = get_logger(__name__, component="AgentManager")

HEALTH_CACHE_SECONDS = 30.0
HEALTH_CHECK_INTERVAL_SECONDS = 5 * 60.0


def _now_ms() -> int:
    return int(time.time() * 1000)


class ResilientAgentManager(IAgentManager):
    """
    Resilient Agent Manager

    Initialization runs as retry(breaker.execute(build)); every caller that
    arrives while it is in flight awaits the same task. Agent runs go
    through the same breaker via AgentHandle.

    Example:
        >>> manager = ResilientAgentManager(
        ...     agent_factory=create_anthropic_agent,
        ...     tools_factory=build_default_tools,
        ...     api_key="sk-ant-...",
        ...     model="claude-3-5-haiku-latest",
        ... )
        >>> agent = await manager.get_agent()
        >>> response = await agent.run("Hello")
    """

    def __init__(
        self,
        agent_factory: AgentFactory,
        tools_factory: ToolsFactory,
        api_key: Optional[str],
        model: str,
        max_tokens: int = 1024,
        system_prompt: Optional[str] = None,
        run_timeout: Optional[float] = None,
        circuit_breaker: Optional[ICircuitBreaker] = None,
        retry_policy: Optional[IRetryPolicy] = None,
        health_cache_seconds: float = HEALTH_CACHE_SECONDS,
        health_check_interval: float = HEALTH_CHECK_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            agent_factory: Builds the remote agent from config and API key
            tools_factory: Builds the tool set
            api_key: Anthropic API key (validated at initialization)
            model: Model identifier
            max_tokens: Max tokens per model response
            system_prompt: System prompt (optional)
            run_timeout: Per-call deadline for agent runs (None: no deadline)
            circuit_breaker: Breaker shared by init and runs (default: 5 / 60s)
            retry_policy: Retry policy for init (default: 3 retries, 1s base)
            health_cache_seconds: How long a health report is reused
            health_check_interval: Period of the background health sweep
            clock: Monotonic time source
        """
        self._agent_factory = agent_factory
        self._tools_factory = tools_factory
        self._api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.run_timeout = run_timeout

        self.circuit_breaker = circuit_breaker or CircuitBreaker(name="anthropic")
        self.retry_policy = retry_policy or ExponentialBackoffRetryPolicy()

        self._health_cache_seconds = health_cache_seconds
        self._health_check_interval = health_check_interval
        self._clock = clock

        self._agent: Optional[AgentHandle] = None
        self._init_task: Optional["asyncio.Task[AgentHandle]"] = None
        self._last_health: Optional[Tuple[float, AgentHealth]] = None
        self._monitor_task: Optional[asyncio.Task] = None

    # ==================== Lifecycle ====================

    def start(self) -> None:
        """Start the periodic health sweep (requires a running loop)"""
        if self._monitor_task is not None and not self._monitor_task.done():
            return
        self._monitor_task = asyncio.create_task(self._monitor_health())
        logger.info("Health monitor started", interval_seconds=self._health_check_interval)

    async def shutdown(self) -> None:
        """
        Stop the health sweep and drop the handle

        An initialization still in flight is detached; its result is not
        cached. The next get_agent() initializes from scratch.
        """
        logger.info("Shutting down agent manager")

        if self._monitor_task is not None:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            self._monitor_task = None

        self._agent = None
        self._init_task = None
        self._last_health = None

        logger.info("Agent manager shutdown complete")

    # ==================== Agent ====================

    async def get_agent(self) -> AgentHandle:
        """
        Return the agent, initializing it on first use

        Returns:
            The shared AgentHandle

        Raises:
            ConfigurationError: API key missing
            CircuitOpenError: breaker rejected initialization
            Exception: last build error once retries are exhausted
        """
        if self._agent is not None:
            return self._agent
        return await self.initialize_agent()

    async def initialize_agent(self) -> AgentHandle:
        """
        Build the agent, or join the build already in flight

        Returns:
            The shared AgentHandle
        """
        if self._agent is not None:
            return self._agent

        if self._init_task is None:
            task = asyncio.create_task(self._initialize())
            task.add_done_callback(self._consume_init_result)
            self._init_task = task

        # a cancelled caller must not cancel the shared attempt
        return await asyncio.shield(self._init_task)

    def is_initialized(self) -> bool:
        return self._agent is not None

    async def _initialize(self) -> AgentHandle:
        current = asyncio.current_task()
        try:
            handle = await self.retry_policy.execute(self.circuit_breaker.execute, self._build)
            if self._init_task is current:
                self._agent = handle
                self._last_health = None
            return handle
        finally:
            if self._init_task is current:
                self._init_task = None

    @staticmethod
    def _consume_init_result(task: "asyncio.Task[AgentHandle]") -> None:
        # mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _build(self) -> AgentHandle:
        logger.info("Initializing agent", model=self.model)
        start_time = time.perf_counter()

        try:
            if not self._api_key:
                raise ConfigurationError("ANTHROPIC_API_KEY is not configured")

            config = AgentConfig(
                model=self.model,
                tools=self._tools_factory(),
                max_tokens=self.max_tokens,
                system_prompt=self.system_prompt,
            )

            agent = self._agent_factory(config, self._api_key)
            if inspect.isawaitable(agent):
                agent = await agent

            handle = AgentHandle(
                agent=agent,
                circuit_breaker=self.circuit_breaker,
                config=config,
                run_timeout=self.run_timeout,
            )
        except Exception as e:
            logger.error(
                "Agent initialization failed",
                duration_ms=round((time.perf_counter() - start_time) * 1000),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        logger.info(
            "Agent initialized",
            duration_ms=round((time.perf_counter() - start_time) * 1000),
            model=self.model,
            tools_count=len(config.tools),
        )
        return handle

    # ==================== Health ====================

    async def get_health(self) -> AgentHealth:
        """
        Health of the agent

        Reports are reused for health_cache_seconds; a change of handle
        (initialization, shutdown) invalidates the cached report.

        Returns:
            AgentHealth
        """
        now = self._clock()
        if self._last_health is not None:
            computed_at, health = self._last_health
            if now - computed_at < self._health_cache_seconds:
                return health

        health = self._compute_health()
        self._last_health = (now, health)
        return health

    def _compute_health(self) -> AgentHealth:
        checked_at = _now_ms()

        if self._agent is None:
            return AgentHealth(
                status=HealthStatus.INITIALIZING,
                last_health_check=checked_at,
                error="Agent not initialized",
            )

        try:
            has_run = callable(getattr(self._agent, "run", None))
            has_tools = len(self._agent.tools) > 0
        except Exception as e:
            return AgentHealth(
                status=HealthStatus.UNHEALTHY,
                last_health_check=checked_at,
                error=str(e) or type(e).__name__,
            )

        if has_run and has_tools:
            return AgentHealth(status=HealthStatus.HEALTHY, last_health_check=checked_at)

        return AgentHealth(
            status=HealthStatus.UNHEALTHY,
            last_health_check=checked_at,
            error="Agent has no callable run()" if not has_run else "Agent has no tools",
        )

    async def _monitor_health(self) -> None:
        while True:
            await asyncio.sleep(self._health_check_interval)
            try:
                health = await self.get_health()
                if health.status == HealthStatus.UNHEALTHY:
                    logger.warning("Agent health check failed", health=health.to_dict())
            except Exception as e:
                log_exception_silently(logger, e, "Health check error")
