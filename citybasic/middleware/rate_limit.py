"""
Redis-backed sliding window rate limiter at the edge.

This is a coarse per-client guard in front of the per-action limits in
citybasic.ratelimit (one comment a minute, ten votes per five seconds...).

Tiers:
  - Anonymous: settings.rate_limit_anon_per_min (default 10 req/min)
  - Authenticated: settings.rate_limit_auth_per_min (default 60 req/min)

Reads (GET/HEAD) of the public content and sitemap are not counted; crawlers
hit those and they are served from flat files.
"""

import hashlib
import logging
import time
from typing import Callable

from fastapi import Request, Response
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from citybasic.auth.deps import ACCESS_TOKEN_COOKIE
from citybasic.config import settings
from citybasic.errors import error_body

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/health",)
PUBLIC_READ_PREFIXES = ("/api/cities", "/api/sitemap")
WINDOW_S = 60.0


def _get_rate_limit(is_authenticated: bool) -> tuple[int, str]:
    """Return (limit_per_min, tier_name) for the caller's auth state."""
    if is_authenticated:
        return settings.rate_limit_auth_per_min, "auth"
    return settings.rate_limit_anon_per_min, "anon"


def _get_client_key(request: Request) -> tuple[str, bool]:
    """
    Extract client identifier and whether they look authenticated.

    Tokens are not verified here (that costs a round trip to the auth
    backend); a session token only moves the caller into the higher tier,
    keyed by a digest of the token so rotating junk tokens buys nothing
    beyond one bucket each. The per-action limits still apply to real users.
    """
    header = request.headers.get("authorization", "")
    token = header[7:].strip() if header.lower().startswith("bearer ") else ""
    token = token or request.cookies.get(ACCESS_TOKEN_COOKIE, "")
    if token:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:24]
        return f"token:{digest}", True

    client_ip = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    return f"ip:{client_ip}", False


def _is_exempt(request: Request) -> bool:
    path = request.url.path
    if path in EXEMPT_PATHS:
        return True
    if request.method in ("GET", "HEAD") and path.startswith(PUBLIC_READ_PREFIXES):
        return True
    return request.method == "OPTIONS"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding window rate limiter backed by Redis sorted sets."""

    def __init__(self, app, redis_client=None):
        super().__init__(app)
        self.redis = redis_client

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.redis is None or _is_exempt(request):
            return await call_next(request)

        client_key, is_authenticated = _get_client_key(request)
        limit, tier = _get_rate_limit(is_authenticated)
        window_key = f"ratelimit:{tier}:{client_key}"

        now = time.time()
        window_start = now - WINDOW_S

        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(window_key, 0, window_start)
            pipe.zcard(window_key)
            pipe.zadd(window_key, {f"{now}:{id(request)}": now})
            pipe.expire(window_key, int(WINDOW_S * 2))
            results = await pipe.execute()
        except RedisError as exc:
            # Redis went away after startup; let traffic through
            logger.warning("edge_rate_limit_unavailable error=%s", exc)
            return await call_next(request)

        current_count = results[1]

        headers = {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(max(0, limit - current_count - 1)),
            "X-RateLimit-Reset": str(int(now + WINDOW_S)),
        }

        if current_count >= limit:
            headers["Retry-After"] = str(int(WINDOW_S))
            logger.info("edge_rate_limited key=%s tier=%s", client_key, tier)
            return JSONResponse(
                status_code=429,
                content=error_body(
                    "RATE_LIMITED",
                    f"Rate limit exceeded. Max {limit} requests per minute for {tier} tier.",
                    getattr(request.state, "request_id", ""),
                ),
                headers=headers,
            )

        response = await call_next(request)
        for key, value in headers.items():
            response.headers[key] = value
        return response
