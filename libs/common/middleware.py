"""Request logging for the team portal services.

Every request gets an ``X-Request-ID`` (taken from the caller or generated)
that is bound to the log context and echoed on the response. One line is
logged when the request finishes, tagged with the authenticated user and,
on access code endpoints, the action taken (``generate``, ``redeem:athlete``,
``preview:coach``...). Health checks and auth hook deliveries only log when
they fail.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""

import time
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

QUIET_PATH_PREFIXES = ("/health", "/internal/auth-hooks")


def access_code_action(path: str) -> Optional[str]:
    """Name the access code action behind ``path``, or None for other routes."""
    parts = [p for p in path.split("/") if p]
    if not parts or parts[0] != "access-codes":
        return None
    if len(parts) == 1:
        return "generate"
    if parts[1] in ("redeem", "preview") and len(parts) == 3:
        return f"{parts[1]}:{parts[2]}"
    return parts[1]


def request_log_fields(
    request: Request, status_code: int, duration_ms: float
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }
    # Set by get_current_user once the token has been verified
    user = getattr(request.state, "user", None)
    if user is not None:
        fields["user_id"] = user.user_id
    action = access_code_action(request.url.path)
    if action:
        fields["access_code_action"] = action
    return fields


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                extra={
                    "extra_fields": request_log_fields(
                        request, 500, (time.perf_counter() - start) * 1000
                    )
                },
            )
            raise
        else:
            fields = request_log_fields(
                request, response.status_code, (time.perf_counter() - start) * 1000
            )
            if response.status_code >= 500:
                logger.error("Request completed", extra={"extra_fields": fields})
            elif response.status_code >= 400:
                logger.warning("Request completed", extra={"extra_fields": fields})
            elif not request.url.path.startswith(QUIET_PATH_PREFIXES):
                logger.info("Request completed", extra={"extra_fields": fields})

            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI) -> None:
    """Configure logging and install request logging on ``app``."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
