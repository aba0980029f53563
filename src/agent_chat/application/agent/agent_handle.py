"""
Agent handle

Wraps a remote agent so every run goes through the shared circuit breaker,
honors a per-call deadline and returns plain-string content.
"""

import asyncio
import time
from typing import Any, List, Optional

from ...domain.exceptions import AgentTimeoutError
from ...domain.interfaces.circuit_breaker import ICircuitBreaker
from ...domain.models import (
    AgentConfig,
    AgentMessage,
    AgentResponse,
    AgentRunData,
    AgentTool,
    MessageContent,
)
from ...infrastructure.logging import get_logger
from ..ports import IRemoteAgent

logger = get_logger(__name__, component="AgentHandle")


def _part_text(part: Any) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, dict):
        text = part.get("text")
    else:
        text = getattr(part, "text", None)
    return text if isinstance(text, str) else ""


def flatten_content(content: MessageContent) -> str:
    """
    Collapse message content into a plain string

    - str: returned unchanged
    - sequence of parts: text of every text part, in order (dicts or SDK
      block objects with a ``text`` attribute; other parts are skipped)
    - None: ""

    flatten_content(flatten_content(x)) == flatten_content(x).

    Examples:
        >>> flatten_content([{"type": "text", "text": "a"}, {"type": "text", "text": "b"}])
        'ab'
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        return "".join(_part_text(part) for part in content)
    return str(content)


class AgentHandle:
    """
    Handle to the initialized remote agent

    Attributes:
        config: Config the agent was built with
    """

    def __init__(
        self,
        agent: IRemoteAgent,
        circuit_breaker: ICircuitBreaker,
        config: AgentConfig,
        run_timeout: Optional[float] = None,
    ):
        """
        Args:
            agent: Remote agent
            circuit_breaker: Breaker shared with agent initialization
            config: Agent config
            run_timeout: Per-call deadline in seconds (None: no deadline)
        """
        self._agent = agent
        self._circuit_breaker = circuit_breaker
        self.config = config
        self.run_timeout = run_timeout

    @property
    def tools(self) -> List[AgentTool]:
        return self._agent.tools

    async def run(self, message: str) -> AgentResponse:
        """
        Run the agent on one message

        Args:
            message: User message

        Returns:
            AgentResponse whose message content and result are strings

        Raises:
            CircuitOpenError: breaker rejected the call
            AgentTimeoutError: deadline exceeded
            Exception: remote failure, unchanged
        """
        return await self._circuit_breaker.execute(self._run_once, message)

    async def _run_once(self, message: str) -> AgentResponse:
        start_time = time.perf_counter()

        try:
            if self.run_timeout:
                raw = await asyncio.wait_for(self._agent.run(message), timeout=self.run_timeout)
            else:
                raw = await self._agent.run(message)
        except asyncio.TimeoutError:
            logger.error(
                "Agent run timed out",
                timeout=self.run_timeout,
                message_length=len(message),
            )
            raise AgentTimeoutError(self.run_timeout)
        except Exception as e:
            logger.error(
                "Agent run failed",
                duration_ms=round((time.perf_counter() - start_time) * 1000),
                message_length=len(message),
                error=str(e),
            )
            raise

        logger.info(
            "Agent run completed",
            duration_ms=round((time.perf_counter() - start_time) * 1000),
            message_length=len(message),
        )
        return self._normalize(raw)

    @staticmethod
    def _normalize(raw: AgentRunData) -> AgentResponse:
        message = AgentMessage(
            role=raw.message.role,
            content=flatten_content(raw.message.content),
            tool_calls=list(raw.message.tool_calls),
        )
        return AgentResponse(
            data=AgentRunData(
                message=message,
                result=flatten_content(raw.result),
                state=raw.state,
            ),
            success=True,
        )
