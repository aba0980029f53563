"""
Analytics models
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class TokenUsage:
    """Estimated token usage of one exchange"""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass
class AnalyticsData:
    """
    Per-request analytics

    Attributes:
        request_id: Request ID
        token_usage: Estimated tokens
        response_time: Agent run duration (ms)
        tools_used: Tool names invoked by the model
        model: Model identifier
        timestamp: ISO 8601 timestamp
        cost: Estimated cost (USD)
    """
    request_id: str
    token_usage: TokenUsage
    response_time: float
    model: str
    timestamp: str
    cost: float
    tools_used: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenUsage": self.token_usage.to_dict(),
            "responseTime": self.response_time,
            "toolsUsed": list(self.tools_used),
            "model": self.model,
            "timestamp": self.timestamp,
            "cost": self.cost,
            "requestId": self.request_id,
        }


@dataclass
class AggregateMetrics:
    """Process-wide analytics totals"""
    total_requests: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    average_response_time: float = 0.0
    error_count: int = 0
    last_reset: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRequests": self.total_requests,
            "totalTokens": self.total_tokens,
            "totalCost": round(self.total_cost, 6),
            "averageResponseTime": round(self.average_response_time, 2),
            "errorCount": self.error_count,
            "lastReset": self.last_reset,
        }
