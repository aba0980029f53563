"""
Chat use case

ChatService: sends one user message to the managed agent.
"""

from ..domain.exceptions import InvalidRequestError
from ..domain.interfaces.agent_manager import IAgentManager
from ..domain.models import ChatResult
from ..infrastructure.logging import get_logger
from .agent import flatten_content

logger = get_logger(__name__, component="ChatService")


class ChatService:
    """
    Chat use case

    Example:
        >>> service = ChatService(agent_manager)
        >>> result = await service.initiate_chat("Hello, my name is Ada")
        >>> result.content
        'Hello, Ada! How can I help you today?'
    """

    def __init__(self, agent_manager: IAgentManager):
        self._agent_manager = agent_manager

    async def initiate_chat(self, message: str) -> ChatResult:
        """
        Run one chat exchange

        Args:
            message: User message

        Returns:
            ChatResult(content, tools_used, response)

        Raises:
            InvalidRequestError: empty message
            ConfigurationError / CircuitOpenError / AgentTimeoutError /
                AgentRunError: from initialization or the run
        """
        if not message or not message.strip():
            raise InvalidRequestError("Message must not be empty")

        agent = await self._agent_manager.get_agent()
        response = await agent.run(message)

        tools_used = [call.name for call in response.data.message.tool_calls]
        logger.debug("Chat completed", tools_used=tools_used)

        return ChatResult(
            content=flatten_content(response.data.message.content),
            tools_used=tools_used,
            response=response,
        )
