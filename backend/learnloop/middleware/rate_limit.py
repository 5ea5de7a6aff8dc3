"""
Rate Limiting Middleware

Prevents abuse and ensures fair resource usage using SlowAPI.

LLM calls are billed to the user's own API key, so LLM-heavy endpoints
are limited per user rather than per IP wherever the caller identifies
itself.

Usage:
    from learnloop.middleware.rate_limit import limiter
    from learnloop.enums import RateLimitType
    from learnloop.config import settings

    @router.post("/curriculum")
    @limiter.limit(settings.get_rate_limit(RateLimitType.LLM_HEAVY))
    async def generate_curriculum(request: Request, ...):
        ...

Rate limit configurations (from settings):
- DEFAULT: General API endpoints (100/minute)
- LLM_HEAVY: Endpoints that call LLMs (10/minute)
- AUTH: Onboarding/account creation (5/minute)
- ANALYTICS: Streak and history endpoints (30/minute)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from learnloop.config import settings
from learnloop.enums import RateLimitType
from learnloop.middleware.error_handling import RateLimitError, create_error_response

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-ID"


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.

    Prefers the caller's user id, then the X-Forwarded-For header if
    behind a proxy, then the direct IP address.

    Args:
        request: FastAPI request object

    Returns:
        "user:<id>" or the client IP address
    """
    user_id = request.headers.get(USER_ID_HEADER)
    if user_id:
        return f"user:{user_id.strip()}"

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the chain is the original client
        return forwarded_for.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMITING_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render RateLimitExceeded in the standard error body."""
    logger.warning(
        f"Rate limit exceeded for {get_client_identifier(request)} on {request.url.path}"
    )
    return create_error_response(
        error_code=RateLimitError.error_code,
        message=f"Rate limit exceeded: {exc.detail}",
        status_code=RateLimitError.status_code,
    )


def setup_rate_limiting(app: FastAPI, enabled: bool = True) -> None:
    """
    Configure rate limiting on the FastAPI app.

    The limiter is always attached to app.state because route decorators
    look it up there; `enabled` only controls whether limits are enforced.

    Args:
        app: FastAPI application instance
        enabled: Whether to enable rate limiting
    """
    limiter.enabled = enabled
    app.state.limiter = limiter

    if not enabled:
        logger.info("Rate limiting disabled")
        return

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info("Rate limiting enabled")


def get_rate_limit(rate_limit_type: RateLimitType) -> str:
    """
    Get rate limit string for an endpoint type.

    Args:
        rate_limit_type: RateLimitType enum value

    Returns:
        Rate limit string (e.g., "100/minute")
    """
    return settings.get_rate_limit(rate_limit_type)


def limit_llm(func):
    """Decorator for LLM-heavy endpoints."""
    return limiter.limit(get_rate_limit(RateLimitType.LLM_HEAVY))(func)


def limit_auth(func):
    """Decorator for onboarding endpoints."""
    return limiter.limit(get_rate_limit(RateLimitType.AUTH))(func)


def limit_analytics(func):
    """Decorator for streak and history endpoints."""
    return limiter.limit(get_rate_limit(RateLimitType.ANALYTICS))(func)
