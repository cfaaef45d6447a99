"""Rate limiting middleware for the calculator API."""

import logging
import re
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0

_SESSION_CREATE_PATH = re.compile(r"^/api/calculators/[^/]+/sessions/?$")
_EXEMPT_PATHS = {"/api/health"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding-window limiter, one window per client and bucket.

    Every request counts against the client's general bucket. Creating a
    session also counts against a smaller "sessions" bucket, since each one
    keeps a live calculator in memory.
    """

    _PRUNE_EVERY = 300.0

    def __init__(self, app, requests_per_minute: int = 120, session_requests_per_minute: int = 20):
        super().__init__(app)
        self.limits = {"all": requests_per_minute, "sessions": session_requests_per_minute}
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_prune = time.monotonic()

    @staticmethod
    def client_id(request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _allow(self, key: str, limit: int, now: float) -> bool:
        hits = self._hits[key]
        while hits and hits[0] <= now - WINDOW_SECONDS:
            hits.popleft()
        if len(hits) >= limit:
            return False
        hits.append(now)
        return True

    def _prune(self, now: float) -> None:
        if now - self._last_prune < self._PRUNE_EVERY:
            return
        self._last_prune = now
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= now - WINDOW_SECONDS]:
            del self._hits[key]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        now = time.monotonic()
        self._prune(now)
        client = self.client_id(request)

        buckets = ["all"]
        if request.method == "POST" and _SESSION_CREATE_PATH.match(request.url.path):
            buckets.insert(0, "sessions")

        for bucket in buckets:
            if not self._allow(f"{client}:{bucket}", self.limits[bucket], now):
                logger.warning("Rate limit hit for %s (%s)", client, bucket)
                detail = (
                    "Too many calculator sessions created. Please wait before trying again."
                    if bucket == "sessions"
                    else "Rate limit exceeded. Please wait before trying again."
                )
                return JSONResponse(status_code=429, content={"detail": detail})

        return await call_next(request)
