"""Request logging and in-memory rate limiting."""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass

import structlog
from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware

from caseload.config import RateLimitConfig

logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        logger.info(
            "request.completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response


@dataclass
class _Window:
    started: float
    count: int = 0


class RateLimiter:
    """Fixed-window request counter keyed by client address.

    Used as a FastAPI dependency; raises 429 once a client exceeds
    ``max_requests`` within ``window_seconds``.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        message: str = "Too many requests from this IP, please try again later.",
        enabled: bool = True,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self.enabled = enabled
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_prune = 0.0

    def hit(self, key: str, now: float | None = None) -> float | None:
        """Count one request.

        Returns:
            Seconds until the window resets when the limit is exceeded,
            otherwise None
        """
        now = time.monotonic() if now is None else now
        with self._lock:
            if now - self._last_prune >= self.window_seconds:
                self._prune(now)
            window = self._windows.get(key)
            if window is None or now - window.started >= self.window_seconds:
                window = _Window(started=now)
                self._windows[key] = window
            window.count += 1
            if window.count > self.max_requests:
                return self.window_seconds - (now - window.started)
        return None

    def _prune(self, now: float) -> None:
        """Drop windows that have already expired (lock held)."""
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._last_prune = now

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    async def __call__(self, request: Request) -> None:
        if not self.enabled:
            return
        key = request.client.host if request.client else "unknown"
        retry_after = self.hit(key)
        if retry_after is None:
            return

        seconds = max(math.ceil(retry_after), 1)
        logger.warning("rate_limit.exceeded", client=key, path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": "Too many requests", "message": self.message, "retryAfter": seconds},
            headers={"Retry-After": str(seconds)},
        )


def build_limiters(config: RateLimitConfig) -> tuple[RateLimiter, RateLimiter]:
    """Create the general API limiter and the strict one for costly endpoints."""
    api = RateLimiter(
        max_requests=config.max_requests,
        window_seconds=config.window_seconds,
        enabled=config.enabled,
    )
    strict = RateLimiter(
        max_requests=config.strict_max_requests,
        window_seconds=config.window_seconds,
        message="Too many requests for this operation, please try again later.",
        enabled=config.enabled,
    )
    return api, strict
