# ============================================================================
# FILE: musicvault/core/middleware.py
# ============================================================================
import logging
import time
from typing import Dict, List

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from musicvault.core.exceptions import ErrorCode, error_response

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"


class LoginRateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding-window limit on login attempts, keyed by client IP"""

    def __init__(self, app: ASGIApp, max_attempts: int = 5, window_seconds: int = 900):
        super().__init__(app)
        self.max_attempts = max_attempts
        self.window = window_seconds
        self._hits: Dict[str, List[float]] = {}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "POST" or request.url.path != LOGIN_PATH:
            return await call_next(request)

        key = self._client_ip(request)
        now = time.monotonic()
        cutoff = now - self.window
        self._prune(cutoff)
        hits = self._hits.setdefault(key, [])

        if len(hits) >= self.max_attempts:
            logger.warning(f"Login rate limit exceeded for {key}")
            return error_response(
                429,
                ErrorCode.RATE_LIMIT_EXCEEDED,
                "Too many login attempts. Please try again later.",
                headers={"Retry-After": str(self.window)},
            )

        hits.append(now)
        return await call_next(request)

    def _prune(self, cutoff: float) -> None:
        """Drop attempts older than the window and forget clients with none left"""
        for key in list(self._hits):
            recent = [t for t in self._hits[key] if t > cutoff]
            if recent:
                self._hits[key] = recent
            else:
                del self._hits[key]

    @staticmethod
    def _client_ip(request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"
