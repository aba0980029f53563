"""
Application ports

Interfaces implemented by the infrastructure layer.
"""

from .agent_port import AgentFactory, IRemoteAgent, ToolsFactory

__all__ = [
    "AgentFactory",
    "IRemoteAgent",
    "ToolsFactory",
]
