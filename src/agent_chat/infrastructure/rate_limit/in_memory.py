"""
In-memory rate limiter

Fixed-window request counting per client identity. State lives in process
memory only: it is lost on restart and not shared between processes.
"""

import asyncio
import base64
import math
import time
from typing import Callable, Dict, Mapping, Optional

from ...domain.interfaces.rate_limiter import IRateLimiter
from ...domain.models import RateLimitEntry, RateLimitResult
from ..logging import get_logger, log_exception_silently

logger = get_logger(__name__, component="RateLimiter")

DEFAULT_CLEANUP_INTERVAL = 60.0


class InMemoryRateLimiter(IRateLimiter):
    """
    Fixed-window rate limiter

    The window of a request is floor(now / window_seconds); each
    (identity, window) pair gets its own counter, so a new window always
    starts at zero. Windows are aligned to the epoch, not to the first
    request.

    Example:
        >>> limiter = InMemoryRateLimiter(max_requests=5, window_seconds=60)
        >>> result = await limiter.check_limit("10.0.0.1")
        >>> result.allowed, result.remaining
        (True, 4)
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            max_requests: Requests allowed per identity per window
            window_seconds: Window length (seconds)
            cleanup_interval: Period of the expired-entry sweep (seconds)
            clock: Wall-clock time source in epoch seconds
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._entries)

    def _window(self, now: float) -> int:
        return math.floor(now / self.window_seconds)

    def _key(self, identifier: str, window: int) -> str:
        return f"{identifier}:{window}"

    async def check_limit(self, identifier: str) -> RateLimitResult:
        """
        Count a request and decide whether it is admitted

        Rejected requests are not counted.

        Args:
            identifier: Client identity

        Returns:
            RateLimitResult; remaining is the quota left after this request
        """
        now = self._clock()
        window = self._window(now)
        key = self._key(identifier, window)

        entry = self._entries.get(key)
        if entry is None:
            entry = RateLimitEntry(count=0, reset_time=(window + 1) * self.window_seconds)
        elif now > entry.reset_time:
            entry.count = 0
            entry.reset_time = (window + 1) * self.window_seconds

        allowed = entry.count < self.max_requests
        if allowed:
            entry.count += 1
            self._entries[key] = entry

        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, self.max_requests - entry.count) if allowed else 0,
            reset_time=entry.reset_time,
            limit=self.max_requests,
        )

    async def reset(self, identifier: str) -> None:
        """Forget the identity's counter for the current window"""
        key = self._key(identifier, self._window(self._clock()))
        self._entries.pop(key, None)

    def cleanup(self) -> int:
        """
        Remove entries whose window has ended

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.reset_time]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug(
                "Cleaned up expired rate limit entries",
                cleaned_count=len(expired),
                total_entries=len(self._entries),
            )
        return len(expired)

    # ==================== Background sweep ====================

    def start(self) -> None:
        """Start the periodic cleanup (requires a running loop)"""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop(self) -> None:
        """Cancel the periodic cleanup"""
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                self.cleanup()
            except Exception as e:
                log_exception_silently(logger, e, "Rate limit cleanup failed")


def get_client_identity(headers: Mapping[str, str], clock: Callable[[], float] = time.time) -> str:
    """
    Derive the rate-limit identity of a request

    Priority: x-forwarded-for (first address) > x-real-ip > x-client-ip.
    Without any of them the identity falls back to a weak token: the first
    16 base64 characters of user agent + epoch milliseconds. Only 12 input
    bytes survive the truncation, so for typical user agents the token is a
    user-agent prefix shared by every such client.

    Args:
        headers: Request headers (case-insensitive mapping, lowercase keys)
        clock: Time source for the fallback token

    Returns:
        Identity string
    """
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip

    client_ip = headers.get("x-client-ip")
    if client_ip:
        return client_ip

    user_agent = headers.get("user-agent") or "unknown"
    entropy = str(int(clock() * 1000))
    return base64.b64encode((user_agent + entropy).encode("utf-8")).decode("ascii")[:16]
