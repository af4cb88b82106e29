"""Domain error taxonomy shared by all services.

Services raise these; ``libs.common.error_handler`` turns them into JSON
responses. Each error carries an HTTP status and a stable machine code.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base exception for domain errors surfaced to the user."""

    status_code: int = 400
    code: str = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class AlreadyUsedError(AppError):
    """The access code has already been consumed.

    ``used_by`` is the recorded consumer and ``grant`` the code metadata read
    during validation; both are ``None`` when the caller lost the race at the
    conditional update.
    """

    status_code = 409
    code = "ALREADY_USED"

    def __init__(
        self,
        message: str = "This code has already been used",
        *,
        used_by: Optional[str] = None,
        grant: Any = None,
    ):
        super().__init__(message)
        self.used_by = used_by
        self.grant = grant


class RoleMismatchError(AppError):
    status_code = 403
    code = "ROLE_MISMATCH"


class PermissionDeniedError(AppError):
    status_code = 403
    code = "PERMISSION_DENIED"


class InputValidationError(AppError):
    """Malformed input rejected before any database call."""

    status_code = 422
    code = "VALIDATION_ERROR"


class TransientStoreError(AppError):
    """Database or network failure that may succeed on retry."""

    status_code = 503
    code = "TRANSIENT_STORE_ERROR"

    def __init__(
        self,
        message: str = "The data store is temporarily unavailable",
        *,
        resumable: bool = False,
    ):
        super().__init__(message, details={"resumable": resumable})
        self.resumable = resumable
