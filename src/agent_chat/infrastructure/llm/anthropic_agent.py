"""
Anthropic tool-use agent

AnthropicToolAgent implements IRemoteAgent on top of the Anthropic Messages
API: it sends the user message with the registered tools, executes any
tool calls the model requests and loops until the model answers.
"""

from typing import Any, Dict, List, Optional

from anthropic import APIError, AsyncAnthropic

from ...application.ports import IRemoteAgent
from ...domain.exceptions import AgentRunError
from ...domain.models import AgentConfig, AgentMessage, AgentRunData, AgentTool, ToolCall
from ..logging import get_logger
from .tools import execute_tool

logger = get_logger(__name__, component="AnthropicToolAgent")

DEFAULT_MAX_TOOL_ROUNDS = 5


class AnthropicToolAgent(IRemoteAgent):
    """
    Tool-calling agent backed by the Anthropic Messages API

    Each run is independent: no conversation history is kept between runs.
    """

    def __init__(
        self,
        client: AsyncAnthropic,
        config: AgentConfig,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ):
        """
        Args:
            client: Anthropic async client
            config: Model, tools and sampling settings
            max_tool_rounds: Max tool-use round trips per run
        """
        self._client = client
        self.config = config
        self.max_tool_rounds = max_tool_rounds

    @property
    def tools(self) -> List[AgentTool]:
        return self.config.tools

    def _tool_definitions(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.input_schema(),
            }
            for tool in self.config.tools
        ]

    def _request_kwargs(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "messages": messages,
        }
        if self.config.tools:
            kwargs["tools"] = self._tool_definitions()
        if self.config.system_prompt:
            kwargs["system"] = self.config.system_prompt
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        return kwargs

    async def run(self, message: str) -> AgentRunData:
        """
        Run one exchange

        Args:
            message: User message

        Returns:
            AgentRunData with the final content blocks (unflattened), the
            tool calls made along the way and usage in ``state``

        Raises:
            AgentRunError: the API call failed
        """
        messages: List[Dict[str, Any]] = [{"role": "user", "content": message}]
        tool_calls: List[ToolCall] = []
        input_tokens = 0
        output_tokens = 0
        response = None

        for round_number in range(self.max_tool_rounds + 1):
            try:
                response = await self._client.messages.create(**self._request_kwargs(messages))
            except APIError as e:
                raise AgentRunError(f"Anthropic API call failed: {e}", original_error=e) from e

            input_tokens += response.usage.input_tokens
            output_tokens += response.usage.output_tokens

            if response.stop_reason != "tool_use":
                break

            if round_number == self.max_tool_rounds:
                # no request left to carry tool results back to the model
                logger.warning("Tool round limit reached", max_tool_rounds=self.max_tool_rounds)
                break

            tool_results = []
            for block in response.content:
                if block.type != "tool_use":
                    continue
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=dict(block.input)))
                output, is_error = await execute_tool(self.config.tools, block.name, block.input)
                tool_results.append({
                    "type": "tool_result",
                    "tool_use_id": block.id,
                    "content": output,
                    "is_error": is_error,
                })

            messages.append({"role": "assistant", "content": response.content})
            messages.append({"role": "user", "content": tool_results})

        content = list(response.content) if response is not None else []

        return AgentRunData(
            message=AgentMessage(role="assistant", content=content, tool_calls=tool_calls),
            result=content,
            state={
                "stopReason": response.stop_reason if response is not None else None,
                "usage": {"inputTokens": input_tokens, "outputTokens": output_tokens},
            },
        )


def create_anthropic_agent(
    config: AgentConfig,
    api_key: str,
    client: Optional[AsyncAnthropic] = None,
) -> AnthropicToolAgent:
    """
    Agent factory used by ResilientAgentManager

    Args:
        config: Agent config
        api_key: Anthropic API key
        client: Pre-built client (optional)

    Returns:
        AnthropicToolAgent
    """
    return AnthropicToolAgent(client or AsyncAnthropic(api_key=api_key), config)
