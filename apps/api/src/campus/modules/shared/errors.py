"""
Service Errors

Base exception raised by service layers, and the handler that renders it
in the same shape as the routers' ``HTTPException`` details:
``{"detail": {"error": CODE, "message": text}}``.
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(ServiceError):
    def __init__(self, entity: str, entity_id: str | None = None):
        message = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(
            message=message,
            error_code=f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
        )


class ConflictError(ServiceError):
    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class ForbiddenError(ServiceError):
    def __init__(self, message: str = "You do not have access to this resource.", error_code: str = "FORBIDDEN"):
        super().__init__(message=message, error_code=error_code, status_code=403)


class InvalidRequestError(ServiceError):
    def __init__(self, message: str, error_code: str = "INVALID_REQUEST"):
        super().__init__(message=message, error_code=error_code, status_code=400)


def to_http_exception(e: ServiceError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"Service error {exc.error_code}: {exc.message}")
    else:
        logger.info(f"Service error {exc.error_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"error": exc.error_code, "message": exc.message}},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": {"error": "INTERNAL_ERROR", "message": "An unexpected error occurred."}},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
