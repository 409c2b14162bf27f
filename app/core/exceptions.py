"""
Global exception handling for the application.
Every failure is converted to the API envelope: {success, message, errors?, data?}.
"""

from typing import Any, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Any = None,
        data: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details
        self.data = data
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input. `details` is a list of field-level messages."""
    def __init__(self, message: str = "Validation failed", details: Any = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class VerificationRequiredError(ValidationError):
    """User has not completed the verification steps a workflow step needs."""
    def __init__(self, missing: list[str]):
        super().__init__(
            f"Verification required: {', '.join(missing)}",
            details=missing,
        )


class ConflictError(AppError):
    """Uniqueness violation."""
    def __init__(self, message: str = "Resource already exists", details: Any = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class AuthError(AppError):
    """Authentication failure. Messages are deliberately generic."""
    def __init__(self, message: str = "Unauthorized", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message, status_code)


class OtpCooldownError(AppError):
    """A code was sent too recently to this number."""
    def __init__(self, remaining_seconds: int):
        super().__init__(
            "Code sending period has not expired yet",
            status.HTTP_400_BAD_REQUEST,
            data={"RemainingTime": remaining_seconds},
        )


class UpstreamError(AppError):
    """Email, SMS or identity provider failure."""
    def __init__(self, message: str = "Upstream service error", details: Any = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Entity not found", details: Any = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class ForbiddenError(AppError):
    """Authorization failure error."""
    def __init__(self, message: str = "Forbidden", details: Any = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class IntegrityCheckError(ForbiddenError):
    def __init__(self):
        super().__init__("Integrity check failed.")


def _envelope(message: str, errors: Any = None, data: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    content: dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    if data is not None:
        content["data"] = data
    return content


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "Request rejected",
        path=request.url.path,
        error_type=exc.__class__.__name__,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(exc.message, exc.details, exc.data),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", path=request.url.path, errors=errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope("Validation failed", errors),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unexpected error occurred", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope("An unexpected error occurred. Please try again later."),
    )


def setup_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, global_exception_handler)
