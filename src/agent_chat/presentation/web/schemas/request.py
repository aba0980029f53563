"""
Web API request schemas

Pydantic models used by the FastAPI endpoints.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_MESSAGE_LENGTH = 10000


class ChatRequest(BaseModel):
    """Chat request schema"""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(
        ...,
        description="User message",
        min_length=1,
        max_length=MAX_MESSAGE_LENGTH,
    )
    user_id: Optional[str] = Field(None, alias="userId", description="Caller's user ID")
    session_id: Optional[str] = Field(None, alias="sessionId", description="Conversation ID")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Reject whitespace-only messages"""
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v
