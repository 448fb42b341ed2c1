"""
Error Handling Middleware

Provides consistent, informative error responses across the API and a
small exception hierarchy shared by the services.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details unless debug)
- Short user-facing messages on every service exception

Usage:
    from neurolex.middleware.error_handling import ErrorHandlingMiddleware, ServiceError

    # Add middleware to app
    app.add_middleware(ErrorHandlingMiddleware)

    # Raise custom exceptions
    raise NotFoundError("Term abc not found")

Exception handling hierarchy:
    - HTTPException: Re-raised for FastAPI's built-in handler
    - ServiceError: Custom exceptions → structured JSON response
    - Exception: Catch-all for unexpected errors → sanitized response
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


# =============================================================================
# Error Response Schema
# =============================================================================


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str  # Error code (e.g., "not_found")
    message: str  # Human-readable message
    error_id: str  # For log correlation
    details: Optional[dict] = None  # Additional context (sanitized)
    timestamp: datetime


# =============================================================================
# Custom Exceptions
# =============================================================================


class ServiceError(Exception):
    """
    Base exception for service errors.

    Provides consistent error handling with:
    - HTTP status code
    - Error code for categorization
    - A short user-facing message (safe to show in the UI)
    - Optional details for debugging

    Example:
        raise ServiceError("Database connection failed", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"
    default_user_message: str = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
        user_message: str = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details
        self.user_message = user_message or self.default_user_message


class LLMError(ServiceError):
    """
    LLM provider error.

    Raised when LLM API calls fail or return unusable output
    (rate limits, timeouts, malformed JSON, invalid grades).
    """

    status_code = 502
    error_code = "llm_error"
    default_user_message = "The AI service is unavailable right now."


class ConfigurationError(ServiceError):
    """
    Missing or invalid configuration.

    Raised when an AI feature is requested without credentials or while
    AI is disabled in the profile.
    """

    status_code = 503
    error_code = "configuration_error"
    default_user_message = "AI is not configured. Add an API key in settings."


class StorageError(ServiceError):
    """
    Persistence error.

    Raised when reading or writing the study database fails.
    """

    status_code = 500
    error_code = "storage_error"
    default_user_message = "Failed to synchronize study data."


class ValidationError(ServiceError):
    """
    Data validation error.

    Raised when input data fails validation.
    """

    status_code = 422
    error_code = "validation_error"
    default_user_message = "The request was invalid."


class NotFoundError(ServiceError):
    """
    Resource not found error.

    Raised when a requested resource doesn't exist.
    """

    status_code = 404
    error_code = "not_found"
    default_user_message = "The requested item no longer exists."


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches unhandled exceptions
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details unless debug is on
    """

    def __init__(self, app, debug: bool = False):
        """
        Initialize middleware.

        Args:
            app: FastAPI/Starlette application
            debug: Whether to include stack traces in responses
        """
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any errors."""
        error_id = str(uuid4())[:8]

        try:
            response = await call_next(request)
            return response

        except HTTPException:
            # Let FastAPI handle HTTP exceptions
            raise

        except ServiceError as e:
            logger.error(
                f"[{error_id}] {e.error_code}: {e.message}",
                extra={
                    "error_id": error_id,
                    "error_code": e.error_code,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            return service_error_response(e, error_id=error_id, debug=self.debug)

        except Exception as e:
            logger.error(
                f"[{error_id}] Unhandled error: {type(e).__name__}: {e}",
                extra={
                    "error_id": error_id,
                    "path": request.url.path,
                    "method": request.method,
                    "traceback": traceback.format_exc(),
                },
            )

            content = {
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "error_id": error_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

            if self.debug:
                content["details"] = {
                    "exception": type(e).__name__,
                    "message": str(e),
                    "traceback": traceback.format_exc(),
                }

            return JSONResponse(status_code=500, content=content)


# =============================================================================
# Setup Function
# =============================================================================


def setup_error_handling(app: FastAPI, debug: bool = False) -> None:
    """
    Configure error handling on the FastAPI app.

    Registers an exception handler for ServiceError (raised inside route
    handlers) and the catch-all middleware for everything else.

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """

    async def _handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        error_id = str(uuid4())[:8]
        logger.warning(f"[{error_id}] {exc.error_code}: {exc.message} ({request.url.path})")
        return service_error_response(exc, error_id=error_id, debug=debug)

    app.add_exception_handler(ServiceError, _handle_service_error)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Helper Functions
# =============================================================================


def service_error_response(
    error: ServiceError,
    error_id: Optional[str] = None,
    debug: bool = False,
) -> JSONResponse:
    """
    Build the standardized JSON response for a ServiceError.

    The message field carries the user-facing message; the internal
    message is only included in details when debug is on.
    """
    details = None
    if debug:
        details = {"internal_message": error.message, **(error.details or {})}

    body = ErrorResponse(
        error=error.error_code,
        message=error.user_message,
        error_id=error_id or str(uuid4())[:8],
        details=details,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=error.status_code, content=body.model_dump(mode="json"))
