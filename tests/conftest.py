"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path
from typing import List, Optional

import pytest
from fastapi import FastAPI

# Add src directory to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

# Environment setup
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from agent_chat.application.container import AppContainer  # noqa: E402
from agent_chat.domain.models import AgentTool  # noqa: E402
from agent_chat.infrastructure.config import AppConfig  # noqa: E402
from agent_chat.infrastructure.llm import build_default_tools  # noqa: E402
from agent_chat.presentation.web import create_app  # noqa: E402

from mocks.agent_fakes import CountingAgentFactory, FakeClock  # noqa: E402


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def agent_factory() -> CountingAgentFactory:
    return CountingAgentFactory()


@pytest.fixture
def app_config() -> AppConfig:
    """AppConfig for tests (fake key, one quick retry, 5 requests per minute)"""
    return AppConfig(
        api_key="test-key",
        environment="test",
        retry_base_delay=0.0,
        max_retries=1,
        agent_run_timeout=None,
        rate_limit_requests=5,
        rate_limit_window=60.0,
    )


@pytest.fixture
def default_tools() -> List[AgentTool]:
    return build_default_tools()


@pytest.fixture
def project_root_path() -> Path:
    """Get project root path."""
    return project_root


@pytest.fixture
def app_factory(app_config):
    """
    Build a FastAPI app around a container with a fake agent

    Extra keyword arguments go to AppContainer (agent_factory,
    tools_factory, rate_limiter).
    """
    def _build(config: Optional[AppConfig] = None, **container_kwargs) -> FastAPI:
        container_kwargs.setdefault("agent_factory", CountingAgentFactory())
        container = AppContainer(config or app_config, **container_kwargs)
        return create_app(container=container)

    return _build
