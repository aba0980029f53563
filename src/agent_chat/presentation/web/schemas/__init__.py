"""
Web API schemas
"""

from .request import ChatRequest, MAX_MESSAGE_LENGTH

__all__ = ["ChatRequest", "MAX_MESSAGE_LENGTH"]
