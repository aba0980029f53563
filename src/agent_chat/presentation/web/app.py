"""FastAPI app - agent chat backend"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ... import __version__
from ...application.container import AppContainer
from ...infrastructure.config import AppConfig, load_app_config
from ...infrastructure.logging import get_logger
from .middleware import RateLimitMiddleware
from .routers import chat_router, health_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan

    Starts the container's background sweeps and shuts the agent down on exit.
    """
    container: AppContainer = app.state.container

    if not container.config.api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; chat requests will fail")

    await container.start()

    yield

    await container.shutdown()


def create_app(
    config: Optional[AppConfig] = None,
    container: Optional[AppContainer] = None,
) -> FastAPI:
    """
    Build the FastAPI app

    Args:
        config: Application config (default: load_app_config())
        container: Pre-built container (tests inject fakes here)

    Returns:
        FastAPI app with routers, CORS and rate limiting
    """
    if container is None:
        container = AppContainer(config or load_app_config())

    app = FastAPI(title="Agent Chat", version=__version__, lifespan=lifespan)
    app.state.container = container

    app.add_middleware(RateLimitMiddleware, rate_limiter=container.rate_limiter, paths=("/api/chat",))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat_router)
    app.include_router(health_router)

    return app
