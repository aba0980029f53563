"""
Application container

Composition root: builds one agent manager, one rate limiter and one
analytics aggregator per process from AppConfig and owns their background
tasks.
"""

import time
from typing import Optional

from ..infrastructure.config import AppConfig
from ..infrastructure.llm import build_default_tools, create_anthropic_agent
from ..infrastructure.logging import get_logger
from ..infrastructure.rate_limit import InMemoryRateLimiter
from .agent import ResilientAgentManager
from .analytics import AnalyticsAggregator
from .chat_service import ChatService
from .ports import AgentFactory, ToolsFactory
from .resilience import CircuitBreaker, ExponentialBackoffRetryPolicy

logger = get_logger(__name__, component="AppContainer")


class AppContainer:
    """
    Application container

    Example:
        >>> container = AppContainer(load_app_config())
        >>> await container.start()
        >>> result = await container.chat_service.initiate_chat("Hi")
        >>> await container.shutdown()
    """

    def __init__(
        self,
        config: AppConfig,
        agent_factory: Optional[AgentFactory] = None,
        tools_factory: Optional[ToolsFactory] = None,
        rate_limiter: Optional[InMemoryRateLimiter] = None,
    ):
        """
        Args:
            config: Application configuration
            agent_factory: Remote agent factory (default: Anthropic)
            tools_factory: Tool set factory (default: greet)
            rate_limiter: Rate limiter (default: built from config)
        """
        self.config = config

        self.circuit_breaker = CircuitBreaker(
            name="anthropic",
            failure_threshold=config.circuit_breaker_threshold,
            timeout_seconds=config.circuit_breaker_timeout,
        )
        self.retry_policy = ExponentialBackoffRetryPolicy(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay,
        )
        self.agent_manager = ResilientAgentManager(
            agent_factory=agent_factory or create_anthropic_agent,
            tools_factory=tools_factory or build_default_tools,
            api_key=config.api_key,
            model=config.model,
            max_tokens=config.max_tokens,
            system_prompt=config.system_prompt,
            run_timeout=config.agent_run_timeout,
            circuit_breaker=self.circuit_breaker,
            retry_policy=self.retry_policy,
        )
        self.chat_service = ChatService(self.agent_manager)
        self.rate_limiter = rate_limiter or InMemoryRateLimiter(
            max_requests=config.rate_limit_requests,
            window_seconds=config.rate_limit_window,
        )
        self.analytics = AnalyticsAggregator()
        self.started_at = time.time()

    async def start(self) -> None:
        """Start background sweeps (health monitor, limiter cleanup)"""
        self.agent_manager.start()
        self.rate_limiter.start()
        logger.info(
            "Application started",
            environment=self.config.environment,
            model=self.config.model,
        )

    async def shutdown(self) -> None:
        """Stop background sweeps and drop the agent"""
        logger.info("Application shutting down")
        await self.rate_limiter.stop()
        await self.agent_manager.shutdown()
        logger.info("Application shutdown complete")
