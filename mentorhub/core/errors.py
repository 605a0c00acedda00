"""
Error handling configuration

Typed failures surfaced to callers and the FastAPI exception handlers that
render them as {"error": {"code", "message", "details"}}.
"""

from contextlib import contextmanager
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mentorhub.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base exception class for application errors"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "internal",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(AppError):
    """Caller identity missing or invalid"""

    def __init__(self, message: str = "Authentication required.", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="unauthenticated",
            details=details,
        )


class InvalidArgumentError(AppError):
    """Missing or malformed fields, self-targeting"""

    def __init__(self, message: str = "Invalid argument.", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            code="invalid-argument",
            details=details,
        )


class PermissionDeniedError(AppError):
    """Caller is not allowed to perform the operation"""

    def __init__(self, message: str = "Permission denied.", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            code="permission-denied",
            details=details,
        )


class NotFoundError(AppError):
    """Resource not found error"""

    def __init__(self, message: str = "Resource not found.", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            code="not-found",
            details=details,
        )


class AlreadyExistsError(AppError):
    """Duplicate request or relationship already in place"""

    def __init__(self, message: str = "Already exists.", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            code="already-exists",
            details=details,
        )


class InternalError(AppError):
    """Unexpected store or network failure"""

    def __init__(self, message: str = "Internal error.", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="internal",
            details=details,
        )


def require_caller(caller_id: Optional[str]) -> str:
    """Return the caller uid or raise AuthenticationError."""
    if not caller_id or not isinstance(caller_id, str):
        raise AuthenticationError()
    return caller_id


def require_id(value: Any, message: str) -> str:
    """Return a non-blank string id or raise InvalidArgumentError."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(message)
    return value


def _error_body(code: str, message: str, details: Optional[Dict] = None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or {}}}


async def app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle custom application exceptions"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "app.error",
        error_code=exc.code,
        status_code=exc.status_code,
        message=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle standard FastAPI HTTP exceptions"""
    logger.warning(
        "http.error",
        status_code=exc.status_code,
        detail=str(exc.detail),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http-error", str(exc.detail)),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request schema violations as invalid-argument"""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.warning(
        "request.invalid",
        error_count=len(errors),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "invalid-argument", "Request validation failed.", {"errors": errors}
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.exception(
        "app.unhandled",
        error=str(exc),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal", "An unexpected error occurred."),
    )


@contextmanager
def internal_errors(operation: str, message: str, **context):
    """Re-raise AppError unchanged; log anything else and surface it as InternalError."""
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.error(f"{operation}.failed", error=str(exc), **context)
        raise InternalError(message) from exc
