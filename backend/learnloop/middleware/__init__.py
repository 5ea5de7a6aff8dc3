"""
Middleware Package

Provides FastAPI middleware for:
- Rate limiting
- Error handling

Rate limiting usage:
    from learnloop.middleware import limit_llm

    @router.post("/chat")
    @limit_llm
    async def chat(request: Request, ...):
        ...
"""

from learnloop.middleware.rate_limit import (
    get_rate_limit,
    limit_analytics,
    limit_auth,
    limit_llm,
    limiter,
    setup_rate_limiting,
)
from learnloop.middleware.error_handling import (
    ApiKeyRequiredError,
    ConflictError,
    ErrorHandlingMiddleware,
    LLMError,
    NotFoundError,
    RateLimitError,
    ServiceError,
    ValidationError,
    handle_endpoint_errors,
    setup_error_handling,
)

__all__ = [
    "setup_rate_limiting",
    "limiter",
    "get_rate_limit",
    "limit_llm",
    "limit_auth",
    "limit_analytics",
    "ErrorHandlingMiddleware",
    "setup_error_handling",
    "handle_endpoint_errors",
    "ServiceError",
    "LLMError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ApiKeyRequiredError",
    "RateLimitError",
]
