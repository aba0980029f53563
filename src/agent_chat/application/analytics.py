"""
Request analytics

Token estimates, cost estimates, timing checkpoints and process-wide
aggregation for chat requests. Token counts are approximations (about four
characters per token), not tokenizer output.
"""

import math
import random
import string
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from ..domain.models import AggregateMetrics, AnalyticsData, TokenUsage
from ..infrastructure.logging import get_logger

logger = get_logger(__name__, component="Analytics")

DEFAULT_PRICING_MODEL = "claude-3-5-haiku"

# USD per 1K tokens
MODEL_PRICING: Dict[str, Dict[str, float]] = {
    "claude-3-5-haiku": {"prompt": 0.0008, "completion": 0.004},
    "claude-3-5-sonnet": {"prompt": 0.003, "completion": 0.015},
    "claude-sonnet-4-5": {"prompt": 0.003, "completion": 0.015},
    "claude-opus-4-1": {"prompt": 0.015, "completion": 0.075},
    "claude-3-haiku": {"prompt": 0.00025, "completion": 0.00125},
}

METRICS_RESET_SECONDS = 24 * 60 * 60

_BASE36 = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return int(time.time() * 1000)


def estimate_tokens(text: Optional[str]) -> int:
    """
    Estimate the token count of a text

    ceil(len / 4) plus 10% overhead (rounded up).

    Examples:
        >>> estimate_tokens("Hello, world")
        4
        >>> estimate_tokens("")
        0
    """
    if not text:
        return 0

    base_tokens = math.ceil(len(text) / 4)
    overhead = math.ceil(base_tokens * 0.1)
    return base_tokens + overhead


def estimate_tokens_for_messages(messages: Iterable[Mapping[str, str]]) -> int:
    """
    Estimate prompt tokens of a conversation

    10 tokens when a system message is present, then 4 + content + 3 per
    message.

    Args:
        messages: {"role", "content"} mappings

    Returns:
        Estimated prompt tokens
    """
    messages = list(messages)
    prompt_tokens = 0

    if any(message.get("role") == "system" for message in messages):
        prompt_tokens += 10

    for message in messages:
        prompt_tokens += 4
        prompt_tokens += estimate_tokens(message.get("content", ""))
        prompt_tokens += 3

    return prompt_tokens


def get_model_pricing(model: str) -> Dict[str, float]:
    """
    Pricing for a model identifier

    Matches on the longest known prefix, so dated or ``-latest`` identifiers
    resolve to their family. Unknown models use the default model's pricing.
    """
    matches = [name for name in MODEL_PRICING if model.startswith(name)]
    if not matches:
        return MODEL_PRICING[DEFAULT_PRICING_MODEL]
    return MODEL_PRICING[max(matches, key=len)]


def calculate_cost(prompt_tokens: int, completion_tokens: int, model: str = DEFAULT_PRICING_MODEL) -> float:
    """
    Estimated cost in USD, rounded to 6 decimal places

    Args:
        prompt_tokens: Input tokens
        completion_tokens: Output tokens
        model: Model identifier

    Returns:
        Cost (USD)
    """
    pricing = get_model_pricing(model)
    prompt_cost = (prompt_tokens / 1000) * pricing["prompt"]
    completion_cost = (completion_tokens / 1000) * pricing["completion"]
    return round(prompt_cost + completion_cost, 6)


def generate_analytics_data(
    request_id: str,
    message: str,
    response: str,
    response_time: float,
    tools_used: Optional[List[str]] = None,
    model: str = DEFAULT_PRICING_MODEL,
) -> AnalyticsData:
    """
    Build per-request analytics

    Args:
        request_id: Request ID
        message: User message
        response: Agent reply text
        response_time: Agent run duration (ms)
        tools_used: Tool names invoked
        model: Model identifier

    Returns:
        AnalyticsData
    """
    prompt_tokens = estimate_tokens(message)
    completion_tokens = estimate_tokens(response)

    return AnalyticsData(
        request_id=request_id,
        token_usage=TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
        response_time=response_time,
        tools_used=list(tools_used or []),
        model=model,
        timestamp=datetime.now(timezone.utc).isoformat(),
        cost=calculate_cost(prompt_tokens, completion_tokens, model),
    )


def create_request_id() -> str:
    """req-<epoch ms>-<9 random base36 chars>"""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"req-{_now_ms()}-{suffix}"


class PerformanceTracker:
    """
    Named timing checkpoints within one request (milliseconds)

    Example:
        >>> tracker = PerformanceTracker()
        >>> tracker.checkpoint("validation_complete")
        >>> tracker.get_duration("validation_complete")
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock
        self._start_time = clock()
        self._checkpoints: Dict[str, float] = {}

    def _ms(self, seconds: float) -> float:
        return round(seconds * 1000, 3)

    def checkpoint(self, name: str) -> None:
        self._checkpoints[name] = self._clock()

    def get_duration(self, from_checkpoint: Optional[str] = None) -> float:
        """
        Time elapsed since a checkpoint (or since start)

        Unknown checkpoint names count from start.
        """
        start = self._start_time
        if from_checkpoint is not None:
            start = self._checkpoints.get(from_checkpoint, self._start_time)
        return self._ms(self._clock() - start)

    def get_checkpoint_duration(self, from_checkpoint: str, to_checkpoint: str) -> float:
        """Time between two checkpoints, 0 if either is missing"""
        if from_checkpoint not in self._checkpoints or to_checkpoint not in self._checkpoints:
            return 0
        return self._ms(self._checkpoints[to_checkpoint] - self._checkpoints[from_checkpoint])

    def get_all_checkpoints(self) -> Dict[str, float]:
        """Offset of every checkpoint from start"""
        return {
            name: self._ms(at - self._start_time)
            for name, at in self._checkpoints.items()
        }

    def reset(self) -> None:
        self._start_time = self._clock()
        self._checkpoints.clear()


class AnalyticsAggregator:
    """
    Process-wide request totals

    The average response time covers successful requests only. Totals reset
    themselves once they are older than 24 hours.
    """

    def __init__(
        self,
        reset_interval: float = METRICS_RESET_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            reset_interval: Age (seconds) after which totals start over
            clock: Monotonic time source
        """
        self._reset_interval = reset_interval
        self._clock = clock
        self._reset_state()

    def _reset_state(self) -> None:
        self._metrics = AggregateMetrics(last_reset=_now_ms())
        self._success_count = 0
        self._started_at = self._clock()

    def _maybe_expire(self) -> None:
        if self._clock() - self._started_at >= self._reset_interval:
            self.reset()

    def record_request(self, analytics: AnalyticsData, success: bool = True) -> None:
        """
        Add one request to the totals

        Args:
            analytics: Per-request analytics
            success: Whether the request succeeded
        """
        self._maybe_expire()
        metrics = self._metrics

        metrics.total_requests += 1
        metrics.total_tokens += analytics.token_usage.total_tokens
        metrics.total_cost += analytics.cost

        if success:
            self._success_count += 1
            metrics.average_response_time += (
                analytics.response_time - metrics.average_response_time
            ) / self._success_count
        else:
            metrics.error_count += 1

        logger.debug(
            "Analytics recorded",
            request_id=analytics.request_id,
            success=success,
            total_requests=metrics.total_requests,
            total_tokens=metrics.total_tokens,
            total_cost=round(metrics.total_cost, 6),
            average_response_time=round(metrics.average_response_time),
        )

    def get_metrics(self) -> AggregateMetrics:
        """Snapshot of the totals"""
        self._maybe_expire()
        metrics = self._metrics
        return AggregateMetrics(
            total_requests=metrics.total_requests,
            total_tokens=metrics.total_tokens,
            total_cost=metrics.total_cost,
            average_response_time=metrics.average_response_time,
            error_count=metrics.error_count,
            last_reset=metrics.last_reset,
        )

    def reset(self) -> None:
        logger.info("Resetting analytics metrics", previous_metrics=self._metrics.to_dict())
        self._reset_state()


def log_analytics(
    aggregator: AnalyticsAggregator,
    analytics: AnalyticsData,
    success: bool = True,
) -> None:
    """Record a request in the aggregator and log its analytics"""
    aggregator.record_request(analytics, success)

    logger.info(
        "Request analytics",
        request_id=analytics.request_id,
        success=success,
        prompt_tokens=analytics.token_usage.prompt_tokens,
        completion_tokens=analytics.token_usage.completion_tokens,
        total_tokens=analytics.token_usage.total_tokens,
        response_time=analytics.response_time,
        cost=analytics.cost,
        model=analytics.model,
        tools_used=analytics.tools_used,
    )
