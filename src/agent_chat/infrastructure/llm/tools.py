"""
Agent tools

Tools registered with the remote agent and the helper that runs them on
model-provided input.
"""

import inspect
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from ...domain.models import AgentTool
from ..logging import get_logger

logger = get_logger(__name__, component="AgentTools")


class GreetParams(BaseModel):
    """Input of the greet tool"""
    name: str = Field(..., min_length=1, description="Name of the person to greet")


def greet(params: GreetParams) -> str:
    return f"Hello, {params.name}! How can I help you today?"


def build_default_tools() -> List[AgentTool]:
    """
    Build the tool set registered with a new agent

    Returns:
        [greet]
    """
    return [
        AgentTool(
            name="greet",
            description="Greets a user with their name",
            parameters=GreetParams,
            execute=greet,
        ),
    ]


def find_tool(tools: List[AgentTool], name: str) -> Optional[AgentTool]:
    for tool in tools:
        if tool.name == name:
            return tool
    return None


async def execute_tool(
    tools: List[AgentTool],
    name: str,
    arguments: Dict[str, Any],
) -> Tuple[str, bool]:
    """
    Validate the input and run a tool

    Unknown tools and invalid input are reported back to the model rather
    than raised, so the model can correct itself.

    Args:
        tools: Registered tools
        name: Tool name requested by the model
        arguments: Raw tool input

    Returns:
        (output text, is_error)
    """
    tool = find_tool(tools, name)
    if tool is None:
        logger.warning("Unknown tool requested", tool_name=name)
        return f"Unknown tool: {name}", True

    try:
        params = tool.parameters.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid tool input", tool_name=name, error=str(e))
        return f"Invalid input for {name}: {e}", True

    result = tool.execute(params)
    if inspect.isawaitable(result):
        result = await result

    logger.debug("Tool executed", tool_name=name)
    return str(result), False
