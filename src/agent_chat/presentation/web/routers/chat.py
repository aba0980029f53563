"""
Chat API router

POST /api/chat: one exchange with the agent, returned with analytics.
"""

import json
from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ....application.analytics import (
    PerformanceTracker,
    create_request_id,
    generate_analytics_data,
    log_analytics,
)
from ....application.container import AppContainer
from ....domain.exceptions import AgentError
from ....domain.errors import ErrorCode
from ....infrastructure.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    track_error,
)
from ..dependencies import get_container
from ..schemas import ChatRequest

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["chat"])


def _invalid_request(details: List[Any], request_id: str) -> JSONResponse:
    return JSONResponse(
        {"error": "Invalid request", "details": details, "requestId": request_id},
        status_code=400,
        headers={"X-Request-ID": request_id},
    )


def _error_response(
    error: AgentError,
    request_id: str,
    production: bool,
    name: Optional[str] = None,
) -> JSONResponse:
    body: dict = {
        "error": {
            "message": "An error occurred" if production else error.message,
            "code": error.code.value,
            "requestId": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }
    if not production:
        body["name"] = name or type(error).__name__

    logger.error(
        "Request failed",
        error=error.message,
        error_code=error.code.value,
        status_code=error.status_code,
    )

    return JSONResponse(
        body,
        status_code=error.status_code,
        headers={"X-Request-ID": request_id},
    )


def _record_failure(
    container: AppContainer,
    request_id: str,
    message: Optional[str],
    duration: float,
) -> None:
    if message is None:
        return
    failed = generate_analytics_data(
        request_id,
        message,
        "",
        duration,
        [],
        container.config.model,
    )
    log_analytics(container.analytics, failed, success=False)


@router.post("/chat")
async def chat(
    request: Request,
    container: AppContainer = Depends(get_container),
) -> JSONResponse:
    """
    Send a message to the agent

    Args:
        request: Raw request (body parsed here so invalid JSON maps to 400)
        container: AppContainer (Depends)

    Returns:
        JSONResponse: {response: {data, message}, requestId, processingTime}

    Example:
        POST /api/chat
        Body: {"message": "Hi, I'm Ada"}
        Response: {
            "response": {
                "data": {...},
                "message": {"role": "assistant", "content": "...", "analytics": {...}}
            },
            "requestId": "req-1718000000000-k3j5h2g8d",
            "processingTime": 812.4
        }
    """
    request_id = create_request_id()
    tracker = PerformanceTracker()
    production = container.config.is_production
    bind_request_context(request_id=request_id)
    message: Optional[str] = None

    try:
        tracker.checkpoint("parse-start")
        try:
            body = await request.json()
        except ValueError:
            logger.warning("Malformed request body")
            return _invalid_request([{"msg": "Request body must be valid JSON"}], request_id)

        try:
            chat_request = ChatRequest.model_validate(body)
        except ValidationError as e:
            details = json.loads(e.json(include_url=False))
            logger.warning("Invalid request body", errors=details)
            return _invalid_request(details, request_id)

        message = chat_request.message
        logger.info(
            "Chat request received",
            message_length=len(message),
            user_id=chat_request.user_id,
            session_id=chat_request.session_id,
        )
        tracker.checkpoint("parse-end")

        tracker.checkpoint("agent-run-start")
        result = await container.chat_service.initiate_chat(message)
        tracker.checkpoint("agent-run-end")

        response_time = tracker.get_duration("agent-run-start")

        analytics = generate_analytics_data(
            request_id,
            message,
            result.content,
            response_time,
            result.tools_used,
            container.config.model,
        )

        data = result.response.data.to_dict()
        payload = {
            "response": {
                "data": data,
                "message": {**data["message"], "analytics": analytics.to_dict()},
            },
            "requestId": request_id,
            "processingTime": tracker.get_duration(),
        }

        logger.info(
            "Chat response sent",
            response_time=response_time,
            tools_used=len(result.tools_used),
            total_tokens=analytics.token_usage.total_tokens,
            cost=analytics.cost,
        )
        log_analytics(container.analytics, analytics, success=True)

        return JSONResponse(
            payload,
            headers={
                "X-Request-ID": request_id,
                "X-Processing-Time": str(round(response_time)),
            },
        )

    except AgentError as e:
        _record_failure(container, request_id, message, tracker.get_duration())
        return _error_response(e, request_id, production)

    except Exception as e:
        track_error(e, "chat_request", request_id=request_id)
        _record_failure(container, request_id, message, tracker.get_duration())
        unexpected = AgentError(
            "An unexpected error occurred",
            ErrorCode.UNEXPECTED_ERROR,
            status_code=500,
            is_retryable=False,
        )
        return _error_response(unexpected, request_id, production, name=type(e).__name__)

    finally:
        clear_request_context()
