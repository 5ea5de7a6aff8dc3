"""
API-related enums.

Defines enums for rate limiting, API key providers, and LLM operations.
"""

from enum import Enum


class RateLimitType(str, Enum):
    """
    Rate limit categories for different endpoint types.

    Each category has a corresponding rate limit configured in settings.
    Usage:
        from learnloop.enums import RateLimitType
        from learnloop.config import settings

        limit = settings.get_rate_limit(RateLimitType.LLM_HEAVY)
    """

    # General API endpoints
    DEFAULT = "default"

    # Endpoints that call LLMs (expensive, and billed to the user's key)
    LLM_HEAVY = "llm_heavy"

    # Onboarding/account creation
    AUTH = "auth"

    # Streak and history endpoints
    ANALYTICS = "analytics"


class ApiKeyProvider(str, Enum):
    """
    LLM providers a user can store an API key for.

    Only OPENAI is used for completions today; the others can be stored
    so the key form accepts everything the onboarding UI offers.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE_AI = "google_ai"
    COHERE = "cohere"

    @property
    def key_format_hint(self) -> str:
        """Prefix a well-formed key for this provider starts with."""
        return {
            ApiKeyProvider.OPENAI: "sk-...",
            ApiKeyProvider.ANTHROPIC: "sk-ant-...",
            ApiKeyProvider.GOOGLE_AI: "AIza...",
            ApiKeyProvider.COHERE: "co-...",
        }[self]


class LLMOperation(str, Enum):
    """
    Operation types for LLM calls.

    Used for both:
    1. Model selection: LLMClient picks the configured model per operation
    2. Usage attribution: operations are attached to LLMUsage records
    """

    DASHBOARD_CHAT = "dashboard_chat"
    TUTOR_RESPONSE = "tutor_response"
    CURRICULUM_GENERATION = "curriculum_generation"
