"""Redis-based rate limiting middleware.

Limits the public endpoints (storefront tracking, OAuth callback) per client
IP and the admin API per session token, using Redis INCR + EXPIRE.
Falls back to in-memory dict when Redis is unavailable.
"""
import hashlib
import logging
import time
from collections import defaultdict

from fastapi import Request, status
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

# In-memory fallback when Redis is not available
_memory_store: dict[str, list[float]] = defaultdict(list)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware with configurable limits per endpoint pattern.

    Tracking beacons: 120 requests per minute per IP (a page view plus clicks).
    OAuth callback: 10 requests per minute per IP.
    Default: 60 requests per minute per caller.
    """

    # Endpoint pattern -> (limit, window_seconds)
    LIMITS: dict[str, tuple[int, int]] = {
        "/api/event": (120, 60),
        "/api/track": (120, 60),
        "/instagram/callback": (10, 60),
        "/api/v1/instagram/sync": (10, 60),
        "default": (60, 60),
    }

    async def dispatch(self, request: Request, call_next) -> Response:
        # Skip rate limiting for health checks, docs, preflights and webhooks
        path = request.url.path
        if path in ("/health", "/docs", "/redoc", "/openapi.json") or path.startswith("/webhooks/"):
            return await call_next(request)
        if request.method == "OPTIONS":
            return await call_next(request)

        caller = self._get_caller_identifier(request)
        limit, window = self._get_limit(path)

        is_allowed = await self._check_limit(request, caller, path, limit, window)
        if not is_allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "type": "about:blank",
                    "title": "Too Many Requests",
                    "status": 429,
                    "detail": "Rate limit exceeded. Please try again later.",
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Window"] = f"{window}s"

        return response

    def _get_caller_identifier(self, request: Request) -> str:
        """Session token digest for admin calls, client IP otherwise."""
        auth = request.headers.get("authorization", "")
        if auth.startswith("Bearer "):
            digest = hashlib.sha256(auth[7:].encode()).hexdigest()[:16]
            return f"token:{digest}"

        client = request.client
        ip = client.host if client else "unknown"
        return f"ip:{ip}"

    def _get_limit(self, path: str) -> tuple[int, int]:
        for pattern, limit in self.LIMITS.items():
            if pattern != "default" and path.startswith(pattern):
                return limit
        return self.LIMITS["default"]

    async def _check_limit(
        self, request: Request, caller: str, path: str, limit: int, window: int
    ) -> bool:
        """Check if request is within rate limit. Tries Redis first, falls back to in-memory."""
        redis = getattr(request.app.state, "redis", None)
        if redis is not None:
            try:
                return await check_rate_limit_redis(redis, caller, path, limit, window)
            except RedisError as exc:
                logger.warning("Redis rate limit check failed, using in-memory window: %s", exc)

        key = f"ratelimit:{caller}:{path}"
        now = time.time()
        _memory_store[key] = [t for t in _memory_store[key] if t > now - window]
        if len(_memory_store[key]) >= limit:
            return False
        _memory_store[key].append(now)
        return True


async def check_rate_limit_redis(
    redis_client, caller: str, endpoint: str, limit: int = 60, window: int = 60
) -> bool:
    """Redis-based rate limit check.

    Args:
        redis_client: redis.asyncio client
        caller: Caller identifier
        endpoint: API endpoint path
        limit: Max requests per window
        window: Time window in seconds

    Returns:
        True if allowed, False if rate limited
    """
    key = f"ratelimit:{caller}:{endpoint}"
    current = await redis_client.incr(key)
    if current == 1:
        await redis_client.expire(key, window)
    return current <= limit
