"""
Remote model infrastructure

Anthropic Messages API agent and its tools.
"""

from .anthropic_agent import AnthropicToolAgent, create_anthropic_agent
from .tools import GreetParams, build_default_tools, execute_tool, greet

__all__ = [
    "AnthropicToolAgent",
    "create_anthropic_agent",
    "GreetParams",
    "build_default_tools",
    "execute_tool",
    "greet",
]
