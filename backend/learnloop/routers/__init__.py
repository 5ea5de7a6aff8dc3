"""API Routers package."""

from learnloop.routers import api_keys as api_keys_router
from learnloop.routers import assistant as assistant_router
from learnloop.routers import health as health_router
from learnloop.routers import learning as learning_router
from learnloop.routers import onboarding as onboarding_router
from learnloop.routers import streaks as streaks_router

__all__ = [
    "health_router",
    "onboarding_router",
    "api_keys_router",
    "assistant_router",
    "streaks_router",
    "learning_router",
]
