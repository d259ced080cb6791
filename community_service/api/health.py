"""Liveness and readiness probes.

/health answers as long as the process can serve a request and reports the
state of each backing service.  /ready returns 503 while the database is
unreachable so the load balancer stops routing here; Redis is only
reported, since the rate limiter can run per process without it.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from community_service.db.engine import engine, ping_database
from community_service.db.redis import ping_redis

router = APIRouter(tags=["health"])


async def _checks() -> dict[str, str]:
    checks: dict[str, str] = {}

    if engine is None:
        checks["database"] = "in_memory"
    else:
        checks["database"] = "ok" if await ping_database() else "down"

    redis_ok = await ping_redis()
    if redis_ok is None:
        checks["redis"] = "not_configured"
    else:
        checks["redis"] = "ok" if redis_ok else "degraded"

    return checks


@router.get("/health")
async def health() -> dict:
    """Always 200; ``status`` is "degraded" when any backing service is down."""
    checks = await _checks()
    healthy = all(v in ("ok", "in_memory", "not_configured") for v in checks.values())
    return {"status": "ok" if healthy else "degraded", "checks": checks}


@router.get("/ready")
async def ready() -> JSONResponse:
    checks = await _checks()
    if checks["database"] == "down":
        return JSONResponse(status_code=503, content={"ready": False, "checks": checks})
    return JSONResponse(status_code=200, content={"ready": True, "checks": checks})
