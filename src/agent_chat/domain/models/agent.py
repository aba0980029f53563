"""
Agent domain models

Tool definitions, agent responses and health reports exchanged between the
agent manager, the chat service and the HTTP layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel


class HealthStatus(Enum):
    """Agent health status"""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    INITIALIZING = "initializing"


@dataclass
class AgentHealth:
    """
    Agent health report

    Attributes:
        status: Health status
        last_health_check: Epoch milliseconds when the status was computed
        error: Observed error (optional)
    """
    status: HealthStatus
    last_health_check: int
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status.value,
            "lastHealthCheck": self.last_health_check,
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class AgentTool:
    """
    A callable tool registered with the agent

    Attributes:
        name: Tool name exposed to the model
        description: What the tool does
        parameters: Pydantic model validating the tool input
        execute: Function run with the validated parameters
    """
    name: str
    description: str
    parameters: Type[BaseModel]
    execute: Callable[[BaseModel], Union[str, Awaitable[str]]]

    def input_schema(self) -> Dict[str, Any]:
        """JSON schema of the tool input"""
        return self.parameters.model_json_schema()


@dataclass
class AgentConfig:
    """
    Agent configuration

    Attributes:
        model: Model identifier
        tools: Registered tools
        max_tokens: Max tokens per model response
        system_prompt: System prompt (optional)
        temperature: Sampling temperature (optional)
    """
    model: str
    tools: List[AgentTool] = field(default_factory=list)
    max_tokens: int = 1024
    system_prompt: Optional[str] = None
    temperature: Optional[float] = None


@dataclass
class ToolCall:
    """A tool invocation requested by the model"""
    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "function": {"name": self.name, "arguments": self.arguments}}


# str, or a sequence of content parts (dicts or SDK block objects)
MessageContent = Union[str, List[Any], None]


@dataclass
class AgentMessage:
    """
    A message produced by the agent

    ``content`` is a plain string once the message has passed through
    AgentHandle.run(); before that it may be a list of content parts.
    """
    role: str
    content: MessageContent
    tool_calls: List[ToolCall] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["toolCalls"] = [call.to_dict() for call in self.tool_calls]
        return data


@dataclass
class AgentRunData:
    """Payload of an agent run"""
    message: AgentMessage
    result: MessageContent = None
    state: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": self.message.to_dict(), "result": self.result}
        if self.state is not None:
            data["state"] = self.state
        return data


@dataclass
class AgentResponse:
    """
    Normalized agent response

    Attributes:
        data: Run payload with flattened string content
        success: Whether the run completed
        error: Error message (optional)
    """
    data: AgentRunData
    success: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"data": self.data.to_dict(), "success": self.success}
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class ChatResult:
    """
    Result of a chat exchange

    Attributes:
        content: Flattened reply text
        tools_used: Names of tools the model invoked
        response: Full normalized agent response
    """
    content: str
    tools_used: List[str]
    response: AgentResponse
