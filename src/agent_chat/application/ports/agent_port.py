"""
Agent port (interface)

IRemoteAgent: the remote model agent the manager builds and wraps
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Union

from ...domain.models import AgentConfig, AgentRunData, AgentTool


class IRemoteAgent(ABC):
    """
    Remote agent interface

    Implemented in the infrastructure layer (Anthropic SDK, fakes in tests).
    The application layer depends only on this interface.
    """

    @property
    @abstractmethod
    def tools(self) -> List[AgentTool]:
        """Tools registered with the agent"""
        pass

    @abstractmethod
    async def run(self, message: str) -> AgentRunData:
        """
        Run the agent on one user message

        Args:
            message: User message

        Returns:
            Raw run payload; message content may still be a list of parts

        Raises:
            AgentRunError: remote call failed
        """
        pass


# Builds a remote agent from its config and API key (sync or async)
AgentFactory = Callable[[AgentConfig, str], Union[IRemoteAgent, Awaitable[IRemoteAgent]]]

# Builds the tool set registered with a new agent
ToolsFactory = Callable[[], List[AgentTool]]
