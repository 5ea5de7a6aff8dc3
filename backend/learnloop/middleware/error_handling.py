"""
Error Handling Middleware

Provides consistent, informative error responses across the API.

Features:
- Standardized error response format
- Correlation IDs for log tracking
- Sanitized responses (hides internal details in production)
- Custom exception classes for different error types

Usage:
    from learnloop.middleware.error_handling import ServiceError, NotFoundError

    # Add middleware to app
    setup_error_handling(app, debug=settings.DEBUG)

    # Raise custom exceptions from services
    raise NotFoundError(f"Learning path for template {template_id} not found")

Exception flow:
    Request → ErrorHandlingMiddleware.dispatch()
                  │
                  └─ try:
                        await call_next(request)  ← entire app runs here
                             │
                             └─ raise SomeException  ← bubbles up
                     except ServiceError:  ← structured JSON response
                     except Exception:     ← sanitized 500 response

    HTTPException is handled by FastAPI's built-in handler before it
    reaches this middleware.
"""

import functools
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

    error: str  # Error code (e.g., "internal_server_error")
    message: str  # Human-readable message
    error_id: str  # For log correlation
    details: Optional[dict] = None
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
    - Optional details for debugging

    Example:
        raise ServiceError("Database connection failed", status_code=503)
    """

    status_code: int = 500
    error_code: str = "service_error"

    def __init__(
        self,
        message: str,
        status_code: int = None,
        error_code: str = None,
        details: dict = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details


class LLMError(ServiceError):
    """
    LLM provider error.

    Raised when LLM API calls fail or return unusable output.
    """

    status_code = 502
    error_code = "llm_error"


class ValidationError(ServiceError):
    """Raised when input data fails validation."""

    status_code = 422
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """Raised when a requested resource doesn't exist."""

    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """
    State conflict error.

    Raised when an operation cannot be applied to the resource's current
    state, e.g. completing a tutor session twice.
    """

    status_code = 409
    error_code = "conflict"


class ApiKeyRequiredError(ServiceError):
    """Raised when an operation needs a stored provider API key the user lacks."""

    status_code = 400
    error_code = "api_key_required"


class RateLimitError(ServiceError):
    """Raised when client exceeds rate limits."""

    status_code = 429
    error_code = "rate_limit_exceeded"


# =============================================================================
# Error Handling Middleware
# =============================================================================


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    - Catches unhandled exceptions
    - Logs with correlation ID
    - Returns consistent error format
    - Hides internal details in production
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
        error_id = str(uuid4())[:8]

        try:
            return await call_next(request)

        except HTTPException:
            raise

        except ServiceError as e:
            log = logger.error if e.status_code >= 500 else logger.warning
            log(
                f"[{error_id}] {e.error_code}: {e.message}",
                extra={
                    "error_id": error_id,
                    "error_code": e.error_code,
                    "path": request.url.path,
                    "method": request.method,
                    "details": e.details,
                },
            )

            return JSONResponse(
                status_code=e.status_code,
                content={
                    "error": e.error_code,
                    "message": e.message,
                    "error_id": error_id,
                    "details": e.details if self.debug else None,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )

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

    Args:
        app: FastAPI application instance
        debug: Whether to include stack traces in responses
    """
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    logger.info(f"Error handling middleware enabled (debug={debug})")


# =============================================================================
# Endpoint Decorator
# =============================================================================


def handle_endpoint_errors(operation_name: str):
    """
    Decorator for route handlers that normalizes unexpected failures.

    HTTPException and ServiceError pass through untouched so FastAPI and
    ErrorHandlingMiddleware can render them. Any other exception is logged
    with the operation name and re-raised as a ServiceError (500).

    Must sit below the router decorator so FastAPI sees the wrapped
    signature (functools.wraps keeps it intact for dependency injection).

    Example:
        @router.get("/today")
        @handle_endpoint_errors("Get today's streak")
        async def get_today(...):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except (HTTPException, ServiceError):
                raise
            except Exception as e:
                logger.exception(f"{operation_name} failed: {e}")
                raise ServiceError(
                    f"{operation_name} failed",
                    details={"exception": type(e).__name__},
                ) from e

        return wrapper

    return decorator


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 500,
    details: dict = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error_code: Error code for categorization
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional details

    Returns:
        JSONResponse with standardized error format
    """
    error_id = str(uuid4())[:8]

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "message": message,
            "error_id": error_id,
            "details": details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
