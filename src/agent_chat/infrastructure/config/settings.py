"""
Application settings

AppConfig: typed view of the environment, validated once at start-up.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ...domain.exceptions import ConfigurationError
from ..logging import get_logger
from .env_utils import (
    parse_bool_env,
    parse_float_env,
    parse_int_env,
    parse_list_env,
    parse_str_env,
)

logger = get_logger(__name__, component="ConfigLoader")

ENVIRONMENTS = ("development", "production", "test")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_MODEL = "claude-3-5-haiku-latest"
DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly, helpful assistant. Answer concisely and use the "
    "available tools when they fit the request."
)


@dataclass
class AppConfig:
    """
    Application configuration

    Timeouts and windows are in seconds.
    """
    # Agent
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_tokens: int = 1024
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    agent_run_timeout: Optional[float] = 60.0

    # Resilience
    max_retries: int = 3
    retry_base_delay: float = 1.0
    circuit_breaker_threshold: int = 5
    circuit_breaker_timeout: float = 60.0

    # Rate limiting
    rate_limit_requests: int = 100
    rate_limit_window: float = 60.0

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None
    log_json: bool = False

    # Web
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    def validate(self) -> None:
        """
        Check value ranges

        Raises:
            ConfigurationError: A value is out of range
        """
        errors = []

        if self.environment not in ENVIRONMENTS:
            errors.append(f"APP_ENV must be one of {', '.join(ENVIRONMENTS)}")
        if self.log_level not in LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        if self.max_tokens < 1:
            errors.append("AGENT_MAX_TOKENS must be at least 1")
        if self.agent_run_timeout is not None and self.agent_run_timeout < 0:
            errors.append("AGENT_RUN_TIMEOUT must not be negative")
        if self.max_retries < 0:
            errors.append("MAX_RETRIES must not be negative")
        if self.retry_base_delay < 0:
            errors.append("RETRY_BASE_DELAY must not be negative")
        if self.circuit_breaker_threshold < 1:
            errors.append("CIRCUIT_BREAKER_THRESHOLD must be at least 1")
        if self.circuit_breaker_timeout < 0:
            errors.append("CIRCUIT_BREAKER_TIMEOUT must not be negative")
        if self.rate_limit_requests < 1:
            errors.append("RATE_LIMIT_REQUESTS must be at least 1")
        if self.rate_limit_window <= 0:
            errors.append("RATE_LIMIT_WINDOW must be positive")
        if not 0 < self.port < 65536:
            errors.append("WEB_PORT must be between 1 and 65535")

        if errors:
            raise ConfigurationError(f"Invalid configuration: {', '.join(errors)}")


def load_app_config(env_file: Optional[Path] = None) -> AppConfig:
    """
    Build AppConfig from the environment

    A .env file (env_file, or one in the current directory) is loaded first
    without overriding variables already set.

    Args:
        env_file: Explicit .env path (optional)

    Returns:
        Validated AppConfig

    Raises:
        ConfigurationError: A value is malformed or out of range
    """
    if env_file is not None:
        load_dotenv(dotenv_path=env_file)
    else:
        cwd_dotenv = Path.cwd() / ".env"
        if cwd_dotenv.exists():
            load_dotenv(dotenv_path=cwd_dotenv)
            logger.debug("Loaded .env", path=str(cwd_dotenv))

    environment = parse_str_env("APP_ENV", "development").lower()

    run_timeout = parse_float_env("AGENT_RUN_TIMEOUT", 60.0)

    config = AppConfig(
        api_key=parse_str_env("ANTHROPIC_API_KEY", None),
        model=parse_str_env("AGENT_MODEL", DEFAULT_MODEL),
        max_tokens=parse_int_env("AGENT_MAX_TOKENS", 1024),
        system_prompt=parse_str_env("AGENT_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
        agent_run_timeout=run_timeout if run_timeout > 0 else None,
        max_retries=parse_int_env("MAX_RETRIES", 3),
        retry_base_delay=parse_float_env("RETRY_BASE_DELAY", 1.0),
        circuit_breaker_threshold=parse_int_env("CIRCUIT_BREAKER_THRESHOLD", 5),
        circuit_breaker_timeout=parse_float_env("CIRCUIT_BREAKER_TIMEOUT", 60.0),
        rate_limit_requests=parse_int_env("RATE_LIMIT_REQUESTS", 100),
        rate_limit_window=parse_float_env("RATE_LIMIT_WINDOW", 60.0),
        log_level=parse_str_env("LOG_LEVEL", "INFO").upper(),
        log_dir=parse_str_env("LOG_DIR", None),
        log_json=parse_bool_env("LOG_JSON", default=environment == "production"),
        environment=environment,
        host=parse_str_env("WEB_HOST", "127.0.0.1"),
        port=parse_int_env("WEB_PORT", 8000),
        allowed_origins=parse_list_env("WEB_ALLOWED_ORIGINS", ["*"]),
    )
    config.validate()

    if not config.api_key:
        logger.warning(
            "ANTHROPIC_API_KEY is not set; agent initialization will fail until it is provided"
        )

    return config
