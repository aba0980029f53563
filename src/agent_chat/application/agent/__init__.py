"""
Agent lifecycle

AgentHandle (breaker-guarded runs) and ResilientAgentManager.
"""

from .agent_handle import AgentHandle, flatten_content
from .agent_manager import ResilientAgentManager

__all__ = [
    "AgentHandle",
    "ResilientAgentManager",
    "flatten_content",
]
