"""Services package for profiles, API keys, the chat assistant and learning."""

from learnloop.services.api_keys import ApiKeyService
from learnloop.services.onboarding import OnboardingWizard, ProfileService

__all__ = [
    "ApiKeyService",
    "OnboardingWizard",
    "ProfileService",
]
