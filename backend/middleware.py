"""Request middleware: IP-keyed rate limiting and security headers.

The limiter keys on the client address only. Users sharing an address
(NAT, office proxy) share a quota.
"""

import logging
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    """Allow at most ``max_requests`` per key within any ``window_seconds`` span."""

    def __init__(self, max_requests: int = 100, window_seconds: float = 15 * 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> bool:
        """Record a request for ``key``; False when it is over the limit."""
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def _sweep(self, cutoff: float) -> None:
        # Drop callers whose newest hit has left the window.
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests under ``prefix`` once the caller's IP is over quota.

    The limiter lives on ``app.state.rate_limiter`` so it can be swapped.
    """

    def __init__(self, app, prefix: str = "/api/"):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next) -> Response:
        limiter = getattr(request.app.state, "rate_limiter", None)
        if limiter is not None and request.url.path.startswith(self.prefix):
            key = request.client.host if request.client else "unknown"
            if not limiter.hit(key):
                logger.warning("Rate limit exceeded for %s", key)
                return JSONResponse(
                    status_code=429,
                    content={"success": False, "error": "Too many requests, please try again later."},
                )
        return await call_next(request)


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
