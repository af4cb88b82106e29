"""Global exception handlers for consistent error responses.

Usage:
    from libs.common.error_handler import add_exception_handlers

    app = FastAPI()
    add_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from libs.common.errors import AppError, TransientStoreError
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


def _error_response(status_code: int, detail: str, code: str, **extra) -> JSONResponse:
    content = {"detail": detail, "code": code}
    content.update({k: v for k, v in extra.items() if v})
    response = JSONResponse(status_code=status_code, content=content)
    request_id = get_request_id()
    if request_id:
        response.headers["X-Request-ID"] = request_id
    return response


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        "Request rejected",
        extra={
            "extra_fields": {
                "error_code": exc.code,
                "error": exc.message,
                "status_code": exc.status_code,
            }
        },
    )
    return _error_response(
        exc.status_code, exc.message, exc.code, context=exc.details or None
    )


async def store_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    logger.error(
        "Data store failure",
        extra={"extra_fields": {"error": str(exc.orig) if exc.orig else str(exc)}},
    )
    return _error_response(
        TransientStoreError.status_code,
        "The data store is temporarily unavailable. Please try again.",
        TransientStoreError.code,
    )


async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """A constraint rejected the write. Reported as a conflict, not a retryable 503."""
    logger.warning(
        "Constraint violation",
        extra={"extra_fields": {"error": str(exc.orig) if exc.orig else str(exc)}},
    )
    return _error_response(
        409,
        "This change conflicts with existing data.",
        "CONFLICT",
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register domain and data store error handlers on ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, store_error_handler)
    app.add_exception_handler(DBAPIError, store_error_handler)
