"""
Web presentation layer

FastAPI app exposing the chat and health endpoints.
"""

from .app import create_app

__all__ = ["create_app"]
