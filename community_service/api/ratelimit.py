"""Rate limiting as a route dependency.

Only routes that declare ``require_rate_limit()`` are limited, so the
probes and /metrics never are.  The bucket key is the caller's user id
when a bearer token is present, otherwise the client IP.  X-RateLimit-*
headers are copied onto every response of a limited route.
"""

from __future__ import annotations

import logging

import jwt as pyjwt
from fastapi import HTTPException, Request, Response, status

from community_service.core.metrics import RATE_LIMIT_HITS
from community_service.db.redis import redis_pool
from community_service.services.rate_limiter import (
    DEFAULT_CONFIG,
    InMemoryRateLimiter,
    RateLimitConfig,
    RateLimiter,
    RedisRateLimiter,
)

logger = logging.getLogger(__name__)

_rate_limiter: RateLimiter
if redis_pool is not None:
    _rate_limiter = RedisRateLimiter(redis_pool)
else:
    _rate_limiter = InMemoryRateLimiter()


def require_rate_limit(config: RateLimitConfig = DEFAULT_CONFIG):
    """Dependency factory.

    Usage::

        @router.put("/...", dependencies=[Depends(require_rate_limit())])
    """

    async def _check(request: Request, response: Response) -> None:
        key = _build_key(request)
        result = await _rate_limiter.check(key, config)

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)

        if not result.allowed:
            RATE_LIMIT_HITS.labels(
                key_type="user" if key.startswith("user:") else "ip"
            ).inc()
            logger.warning("Rate limit exceeded key=%s", key)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded",
                headers={
                    "Retry-After": str(int(result.retry_after) + 1),
                    "X-RateLimit-Limit": str(result.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

    return _check


def _build_key(request: Request) -> str:
    # unverified; require_user checks the signature
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        try:
            claims = pyjwt.decode(
                auth_header[7:], options={"verify_signature": False}
            )
        except pyjwt.InvalidTokenError:
            claims = {}
        sub = claims.get("sub")
        if sub:
            return f"user:{sub}"

    client_ip = request.client.host if request.client else "unknown"
    return f"ip:{client_ip}"
