from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from community_service.api.communities import router as communities_router
from community_service.api.errors import install_error_handlers
from community_service.api.health import router as health_router
from community_service.api.memberships import router as memberships_router
from community_service.api.metrics_endpoint import router as metrics_router
from community_service.core.config import SETTINGS
from community_service.core.logging import setup_logging
from community_service.db.engine import lifespan_db
from community_service.db.redis import lifespan_redis
from community_service.middleware.metrics import MetricsMiddleware
from community_service.middleware.request_context import (
    RequestContextMiddleware,
    install_filter,
)

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
for _handler in logging.getLogger().handlers:
    install_filter(_handler)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # torn down in reverse order
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="community-service",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

# Last added runs first: RequestContext -> Metrics -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

install_error_handlers(app)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(communities_router)
app.include_router(memberships_router)

logger.info(
    "community-service started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
