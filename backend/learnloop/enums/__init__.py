"""
Centralized enum definitions for the application.

All enums are organized by domain:
- api.py: Rate limit categories, API key providers, LLM operations
- learning.py: Chat roles, lesson status, difficulty, onboarding steps

Usage:
    from learnloop.enums import LessonStatus, RateLimitType

    # Or import from specific module
    from learnloop.enums.learning import OnboardingStep
"""

from learnloop.enums.api import ApiKeyProvider, LLMOperation, RateLimitType
from learnloop.enums.learning import (
    DifficultyLevel,
    LessonStatus,
    MessageRole,
    OnboardingAction,
    OnboardingStep,
    ProfileRole,
)

__all__ = [
    # API
    "ApiKeyProvider",
    "LLMOperation",
    "RateLimitType",
    # Learning
    "DifficultyLevel",
    "LessonStatus",
    "MessageRole",
    "OnboardingAction",
    "OnboardingStep",
    "ProfileRole",
]
