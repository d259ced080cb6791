"""HTTP mapping for service errors.

Every ServiceError becomes ``{"detail", "code", "data"}`` with the status
from ``_STATUS``; database failures become a bare 500 without internals.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from community_service.services.errors import (
    AlreadyExistsError,
    CapacityExceededError,
    CodeMismatchError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS: dict[type[ServiceError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    CodeMismatchError: status.HTTP_403_FORBIDDEN,
    CapacityExceededError: status.HTTP_403_FORBIDDEN,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AlreadyExistsError: status.HTTP_409_CONFLICT,
}


def status_for(exc: ServiceError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS:
            return _STATUS[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        code = status_for(exc)
        logger.warning(
            "%s %s refused: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code,
            extra={"code": exc.code, "status_code": code},
        )
        return JSONResponse(
            status_code=code,
            content={"detail": exc.message, "code": exc.code, "data": exc.data},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        logger.exception(
            "Database error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "internal error", "code": "internal", "data": {}},
        )
