"""
Rate limit middleware

Admits or rejects requests on rate-limited paths before the handler runs
and stamps X-RateLimit-* headers on the response.
"""

import math
import time
from datetime import datetime, timezone
from typing import Callable, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from ....domain.interfaces.rate_limiter import IRateLimiter
from ....domain.models import RateLimitResult
from ....infrastructure.logging import get_logger
from ....infrastructure.rate_limit import get_client_identity

logger = get_logger(__name__, component="RateLimitMiddleware")


def _rate_limit_headers(result: RateLimitResult) -> dict:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        # epoch milliseconds
        "X-RateLimit-Reset": str(int(result.reset_time * 1000)),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limit middleware

    If the limiter itself fails the request is let through.
    """

    def __init__(
        self,
        app: ASGIApp,
        rate_limiter: IRateLimiter,
        paths: Sequence[str] = ("/api/chat",),
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            app: ASGI app
            rate_limiter: Rate limiter
            paths: Path prefixes subject to rate limiting
            clock: Wall-clock time source (for Retry-After)
        """
        super().__init__(app)
        self._rate_limiter = rate_limiter
        self._paths = tuple(paths)
        self._clock = clock

    def _applies_to(self, request: Request) -> bool:
        return request.url.path.startswith(self._paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._applies_to(request):
            return await call_next(request)

        try:
            identity = get_client_identity(request.headers)
            result = await self._rate_limiter.check_limit(identity)
        except Exception as e:
            logger.error("Rate limiting middleware error", error=str(e))
            return await call_next(request)

        if not result.allowed:
            retry_after = max(0, math.ceil(result.reset_time - self._clock()))
            logger.warning(
                "Rate limit exceeded",
                client_ip=identity,
                limit=result.limit,
                reset_time=datetime.fromtimestamp(result.reset_time, tz=timezone.utc).isoformat(),
            )
            return JSONResponse(
                {
                    "error": "Rate limit exceeded",
                    "message": f"Too many requests. Try again in {retry_after} seconds.",
                    "retryAfter": retry_after,
                },
                status_code=429,
                headers={"Retry-After": str(retry_after), **_rate_limit_headers(result)},
            )

        response = await call_next(request)
        response.headers.update(_rate_limit_headers(result))
        return response
