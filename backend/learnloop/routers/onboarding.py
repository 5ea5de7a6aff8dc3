"""
Onboarding and Profile API Router

Endpoints:
    POST  /api/onboarding/step  - Apply one wizard action (next/back)
    GET   /api/profile          - Get own profile
    PATCH /api/profile          - Update own profile

The wizard is stateless on the server: the client sends the step it is on,
the action and everything entered so far. The profile is written when the
user leaves the profile step.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.base import get_db
from learnloop.dependencies import get_current_user_id
from learnloop.middleware.error_handling import handle_endpoint_errors
from learnloop.middleware.rate_limit import limit_auth
from learnloop.models.profile import (
    OnboardingStepRequest,
    OnboardingStepResponse,
    ProfileResponse,
    ProfileUpdate,
)
from learnloop.services.onboarding import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["onboarding"])


# =============================================================================
# Dependency Injection
# =============================================================================


async def get_profile_service(db: AsyncSession = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


# =============================================================================
# Onboarding Endpoints
# =============================================================================


@router.post("/onboarding/step", response_model=OnboardingStepResponse)
@limit_auth
@handle_endpoint_errors("Onboarding step")
async def onboarding_step(
    request: Request,
    body: OnboardingStepRequest,
    user_id: str = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
) -> OnboardingStepResponse:
    """
    Move the onboarding wizard forward or back.

    Validation problems come back in `errors` with the step unchanged.

    Raises:
        HTTPException 409: If the email belongs to another account.
    """
    return await service.apply_step(user_id, body)


# =============================================================================
# Profile Endpoints
# =============================================================================


@router.get("/profile", response_model=ProfileResponse)
@handle_endpoint_errors("Get profile")
async def get_profile(
    user_id: str = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Raises:
        HTTPException 404: If onboarding has not been completed.
    """
    return await service.get_profile(user_id)


@router.patch("/profile", response_model=ProfileResponse)
@handle_endpoint_errors("Update profile")
async def update_profile(
    update: ProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return await service.update_profile(user_id, update)
