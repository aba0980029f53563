"""
Domain models
"""

from .agent import (
    AgentConfig,
    AgentHealth,
    AgentMessage,
    AgentResponse,
    AgentRunData,
    AgentTool,
    ChatResult,
    HealthStatus,
    MessageContent,
    ToolCall,
)
from .analytics import AggregateMetrics, AnalyticsData, TokenUsage
from .circuit_breaker import CircuitBreakerState, CircuitState
from .rate_limit import RateLimitEntry, RateLimitResult

__all__ = [
    "AgentConfig",
    "AgentHealth",
    "AgentMessage",
    "AgentResponse",
    "AgentRunData",
    "AgentTool",
    "ChatResult",
    "HealthStatus",
    "MessageContent",
    "ToolCall",
    "AggregateMetrics",
    "AnalyticsData",
    "TokenUsage",
    "CircuitBreakerState",
    "CircuitState",
    "RateLimitEntry",
    "RateLimitResult",
]
