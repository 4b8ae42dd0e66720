# strategy_hub/utils/error_handler.py
"""
Centralized error handling utilities.
Provides user-friendly error messages and consistent error responses.

Every error leaves the API as {"success": false, "error": <message>} with an
optional "details" object. Internals (stack traces, raw database errors) are
logged and never returned.
"""
from typing import Dict, Any, List, Optional
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import logging

logger = logging.getLogger(__name__)


class UserFriendlyError(Exception):
    """Exception with user-friendly message."""
    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailedError(UserFriendlyError):
    """Malformed or out-of-range input. `details` maps field -> messages."""
    def __init__(self, details: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class AuthenticationRequiredError(UserFriendlyError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class PermissionDeniedError(UserFriendlyError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class NotFoundError(UserFriendlyError):
    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found", status.HTTP_404_NOT_FOUND)
        self.resource = resource


class BusinessRuleError(UserFriendlyError):
    """A well-formed request that breaks a business rule (e.g. rating a private strategy)."""
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class RateLimitExceededError(UserFriendlyError):
    def __init__(self, retry_after: int, message: str = "Too many requests"):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS)
        self.retry_after = retry_after


class ConfigurationError(UserFriendlyError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class UpstreamServiceError(UserFriendlyError):
    """A dependency (database, text-generation service) failed."""
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(status_code: int, message: str, details: Optional[Dict[str, Any]] = None,
                   headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {"success": False, "error": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def handle_database_error(e: Exception, operation: str = "database operation") -> HTTPException:
    """
    Handle database errors and return user-friendly HTTPException.

    Args:
        e: The exception that occurred
        operation: Description of the operation that failed

    Returns:
        HTTPException with user-friendly message
    """
    if isinstance(e, IntegrityError):
        error_msg = str(e.orig) if hasattr(e, 'orig') else str(e)

        if "duplicate key" in error_msg.lower() or "unique constraint" in error_msg.lower():
            return HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="This record already exists. Please check for duplicates."
            )
        elif "foreign key" in error_msg.lower():
            return HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid reference. The related record does not exist."
            )
        else:
            return HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Database constraint violation. Please check your input."
            )

    elif isinstance(e, SQLAlchemyError):
        logger.error(f"Database error during {operation}: {e}", exc_info=True)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error occurred. Please try again later."
        )

    else:
        logger.error(f"Unexpected error during {operation}: {e}", exc_info=True)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later."
        )


def field_errors_from_pydantic(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Collapse pydantic error entries into {field: [messages]}.
    Every invalid field is reported, not just the first.
    """
    details: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc) or "_root"
        details.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return details


def register_error_handlers(app: FastAPI) -> None:
    """Register the error-to-HTTP mapping on the application."""

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limited(_request: Request, exc: RateLimitExceededError) -> JSONResponse:
        return error_response(
            exc.status_code,
            exc.message,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(UserFriendlyError)
    async def handle_user_friendly(_request: Request, exc: UserFriendlyError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.details or None)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            field_errors_from_pydantic(exc.errors()),
        )

    @app.exception_handler(HTTPException)
    async def handle_http_exception(_request: Request, exc: HTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
        http_exc = handle_database_error(exc)
        return error_response(http_exc.status_code, http_exc.detail)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred. Please try again later.",
        )
