"""
Rate Limiting Middleware
Sliding-window limits per client for logins and money-moving endpoints
"""
from time import monotonic
from typing import Callable, Dict, Optional, Tuple
import threading
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from dentalcare.core.config import settings

logger = logging.getLogger(__name__)

# path prefix -> (requests, window seconds); first match wins
DEFAULT_LIMITS = {
    '/api/v1/auth/login': (5, 60),
    '/api/v1/auth/users': (10, 300),
    '/api/v1/billing/payments': (30, 60),
    '/api/v1/billing/invoices': (60, 60),
    '/api/v1/expenses': (30, 60),
    '/api/v1/inventory/orders': (30, 60),
}


class RateLimiter:
    """Thread-safe in-memory limiter; counts are per process"""

    # how many counted requests between sweeps of idle buckets
    SWEEP_EVERY = 1000

    def __init__(self, limits: Optional[Dict[str, Tuple[int, int]]] = None,
                 default: Tuple[int, int] = (100, 60), clock: Callable[[], float] = monotonic):
        self.limits = dict(DEFAULT_LIMITS if limits is None else limits)
        self.default = default
        self.clock = clock
        self._requests: Dict[str, list] = {}
        self._windows: Dict[str, int] = {}
        self._hits = 0
        self._lock = threading.Lock()

    def bucket_for(self, path: str) -> Tuple[str, Tuple[int, int]]:
        """The matched path prefix and its limit; unlisted paths share one bucket"""
        for prefix, limit in self.limits.items():
            if path.startswith(prefix):
                return prefix, limit
        return '*', self.default

    def limit_for(self, path: str) -> Tuple[int, int]:
        return self.bucket_for(path)[1]

    @property
    def bucket_count(self) -> int:
        return len(self._requests)

    def _sweep(self, now: float):
        for key in list(self._requests):
            if not self._requests[key] or self._requests[key][-1] <= now - self._windows[key]:
                del self._requests[key]
                del self._windows[key]

    def hit(self, path: str, method: str, client_key: str) -> Tuple[bool, Optional[Dict]]:
        """Record one request; returns (allowed, info for the X-RateLimit headers)"""
        # Only writes count
        if method in ('GET', 'HEAD', 'OPTIONS'):
            return True, None

        prefix, (limit, window) = self.bucket_for(path)
        key = f"{prefix}:{client_key}"
        now = self.clock()

        with self._lock:
            self._hits += 1
            if self._hits % self.SWEEP_EVERY == 0:
                self._sweep(now)

            recent = [t for t in self._requests.get(key, ()) if t > now - window]

            if len(recent) >= limit:
                self._requests[key] = recent
                self._windows[key] = window
                retry_after = max(1, int(recent[0] + window - now))
                logger.warning(f"Rate limit exceeded for {key}: {len(recent)}/{limit}")
                return False, {'limit': limit, 'remaining': 0, 'reset': retry_after,
                               'retry_after': retry_after}

            recent.append(now)
            self._requests[key] = recent
            self._windows[key] = window
            return True, {'limit': limit, 'remaining': limit - len(recent), 'reset': window}


def client_key(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    elif request.client:
        ip = request.client.host
    else:
        ip = "unknown"

    auth_header = request.headers.get("Authorization", "")
    user = auth_header[7:15] if auth_header.startswith("Bearer ") else "anonymous"
    return f"{ip}:{user}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or RateLimiter()

    async def dispatch(self, request: Request, call_next):
        if not settings.RATE_LIMIT_ENABLED or not request.url.path.startswith('/api/'):
            return await call_next(request)

        allowed, info = self.limiter.hit(request.url.path, request.method, client_key(request))
        if not allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={'detail': 'Too many requests. Please try again later.',
                         'retry_after': info['retry_after']},
                headers={
                    'Retry-After': str(info['retry_after']),
                    'X-RateLimit-Limit': str(info['limit']),
                    'X-RateLimit-Remaining': '0',
                },
            )

        response = await call_next(request)
        if info:
            response.headers['X-RateLimit-Limit'] = str(info['limit'])
            response.headers['X-RateLimit-Remaining'] = str(info['remaining'])
            response.headers['X-RateLimit-Reset'] = str(info['reset'])
        return response
