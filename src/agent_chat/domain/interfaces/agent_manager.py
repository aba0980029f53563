"""
Agent Manager interface
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..models.agent import AgentHealth

if TYPE_CHECKING:
    from ...application.agent.agent_handle import AgentHandle


class IAgentManager(ABC):
    """
    Agent Manager interface

    Owns exactly one remote agent handle per process.
    """

    @abstractmethod
    async def get_agent(self) -> "AgentHandle":
        """
        Return the agent, initializing it on first use

        Returns:
            The shared AgentHandle
        """
        pass

    @abstractmethod
    async def initialize_agent(self) -> "AgentHandle":
        """
        Build the agent (or join the in-flight build)

        Returns:
            The shared AgentHandle

        Raises:
            ConfigurationError: credentials missing
            CircuitOpenError: breaker rejected the attempt
            Exception: last remote error once retries are exhausted
        """
        pass

    @abstractmethod
    def is_initialized(self) -> bool:
        """True iff a cached handle exists"""
        pass

    @abstractmethod
    async def get_health(self) -> AgentHealth:
        """
        Health of the agent (cached for a short period)

        Returns:
            AgentHealth
        """
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        """Stop background work and drop the cached handle"""
        pass
