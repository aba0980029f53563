"""
agent-chat command line

serve: run the HTTP API with uvicorn
chat:  send one message to the agent from the terminal
"""

import asyncio
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from ...application.analytics import PerformanceTracker, calculate_cost, estimate_tokens
from ...application.container import AppContainer
from ...domain.exceptions import AgentError
from ...infrastructure.config import load_app_config
from ...infrastructure.logging import configure_structlog, get_logger

logger = get_logger(__name__)
console = Console()


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str]):
    """
    Resilient chatbot backend

    \b
    Examples:
        agent-chat serve --port 8000
        agent-chat chat "Hi, my name is Ada"
    """
    config = load_app_config()
    if log_level:
        config.log_level = log_level.upper()
        config.validate()

    configure_structlog(
        log_dir=config.log_dir,
        log_level=config.log_level,
        enable_json=config.log_json,
    )
    ctx.obj = config


@main.command()
@click.option("--host", default=None, help="Bind address (default: WEB_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: WEB_PORT)")
@click.pass_obj
def serve(config, host: Optional[str], port: Optional[int]):
    """Run the HTTP API"""
    import uvicorn

    from ..web.app import create_app

    host = host or config.host
    port = port or config.port

    console.print(f"[bold]Agent Chat[/bold] http://{host}:{port}")
    if not config.api_key:
        console.print("[yellow]ANTHROPIC_API_KEY is not set; chat requests will fail[/yellow]")

    uvicorn.run(create_app(config), host=host, port=port, log_level=config.log_level.lower())


async def _chat_once(config, message: str):
    container = AppContainer(config)
    try:
        tracker = PerformanceTracker()
        result = await container.chat_service.initiate_chat(message)
        return result, tracker.get_duration()
    finally:
        await container.shutdown()


@main.command()
@click.argument("message", type=str)
@click.pass_obj
def chat(config, message: str):
    """Send MESSAGE to the agent and print the reply"""
    try:
        result, duration = asyncio.run(_chat_once(config, message))
    except AgentError as e:
        console.print(f"[red]{e.code.value}: {e.message}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)

    console.print(Panel(result.content or "(empty reply)", title="assistant"))

    prompt_tokens = estimate_tokens(message)
    completion_tokens = estimate_tokens(result.content)
    cost = calculate_cost(prompt_tokens, completion_tokens, config.model)
    tools = ", ".join(result.tools_used) or "none"
    console.print(
        f"[dim]{duration:.0f} ms | tools: {tools} | "
        f"~{prompt_tokens + completion_tokens} tokens | ~${cost:.6f}[/dim]"
    )


if __name__ == "__main__":
    main()
