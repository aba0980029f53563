"""
Health Check API router

GET /api/health: detailed status for humans and dashboards
HEAD /api/health: status code only, for load balancers
"""

import os
import platform
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from .... import __version__
from ....application.container import AppContainer
from ....domain.models import AgentHealth, HealthStatus
from ....infrastructure.logging import get_error_stats, get_logger
from ..dependencies import get_container

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["health"])

NO_CACHE_HEADERS = {"Cache-Control": "no-cache, no-store, must-revalidate"}


def determine_overall_status(agent_health: AgentHealth) -> str:
    """
    healthy agent -> healthy, initializing -> degraded, otherwise unhealthy
    """
    if agent_health.status == HealthStatus.HEALTHY:
        return "healthy"
    if agent_health.status == HealthStatus.INITIALIZING:
        return "degraded"
    return "unhealthy"


def _environment(container: AppContainer) -> Dict[str, str]:
    return {
        "appEnv": container.config.environment,
        "platform": platform.system().lower(),
        "arch": platform.machine(),
        "pythonVersion": platform.python_version(),
    }


def _metrics(container: AppContainer) -> Dict[str, Any]:
    cpu = os.times()
    breaker = container.circuit_breaker.state
    return {
        "cpuUsage": {"user": cpu.user, "system": cpu.system},
        "analytics": container.analytics.get_metrics().to_dict(),
        "circuitBreaker": {
            "state": breaker.state.value,
            "failureCount": breaker.failure_count,
        },
        "errors": get_error_stats(),
    }


@router.get("/health")
async def health_check(
    metrics: bool = Query(False, description="Include process metrics"),
    container: AppContainer = Depends(get_container),
) -> JSONResponse:
    """
    Service status

    Args:
        metrics: Include metrics (always included outside production)
        container: AppContainer (Depends)

    Returns:
        JSONResponse: 200 for healthy/degraded, 503 for unhealthy

    Example:
        GET /api/health?metrics=true
        Response: {
            "status": "degraded",
            "services": {"agent": {"status": "initializing", ...}},
            ...
        }
    """
    now_ms = int(time.time() * 1000)
    base = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": now_ms - int(container.started_at * 1000),
        "version": __version__,
        "environment": _environment(container),
    }

    try:
        agent_health = await container.agent_manager.get_health()
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        agent_health = AgentHealth(
            status=HealthStatus.UNHEALTHY,
            last_health_check=now_ms,
            error=str(e) or "Unknown error",
        )

    overall = determine_overall_status(agent_health)
    body: Dict[str, Any] = {
        "status": overall,
        **base,
        "services": {"agent": agent_health.to_dict()},
    }

    if metrics or not container.config.is_production:
        body["metrics"] = _metrics(container)

    logger.info(
        "Health check completed",
        status=overall,
        agent_status=agent_health.status.value,
    )

    return JSONResponse(
        body,
        status_code=503 if overall == "unhealthy" else 200,
        headers=NO_CACHE_HEADERS,
    )


@router.head("/health")
async def health_probe(container: AppContainer = Depends(get_container)) -> Response:
    """200 if the agent is healthy, 503 otherwise"""
    try:
        agent_health = await container.agent_manager.get_health()
    except Exception as e:
        logger.error("Health probe failed", error=str(e))
        return Response(status_code=503, headers=NO_CACHE_HEADERS)

    status_code = 200 if agent_health.status == HealthStatus.HEALTHY else 503
    return Response(status_code=status_code, headers=NO_CACHE_HEADERS)
