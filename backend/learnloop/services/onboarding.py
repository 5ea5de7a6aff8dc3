"""
Onboarding and Profile Service

The onboarding wizard walks a new user through four steps:

    welcome → account → profile → final

The client owns the form data and sends it with every step request;
OnboardingWizard validates the step being left and decides where to go.
Leaving the profile step creates the user's Profile. The password is
validated for strength only; credentials belong to the auth provider and
are never stored here.

Usage:
    wizard = OnboardingWizard(step=OnboardingStep.ACCOUNT, data=form_data)
    errors = wizard.next_step()

    service = ProfileService(db)
    response = await service.apply_step(user_id, request)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.models import Profile
from learnloop.enums.learning import OnboardingAction, OnboardingStep, ProfileRole
from learnloop.middleware.error_handling import ConflictError, NotFoundError
from learnloop.models.profile import (
    OnboardingData,
    OnboardingStepRequest,
    OnboardingStepResponse,
    ProfileResponse,
    ProfileUpdate,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8

STEPS: list[OnboardingStep] = list(OnboardingStep)


def validate_account(data: OnboardingData) -> dict[str, str]:
    """Validate the account step. Returns field -> message for each problem."""
    errors = {}
    if not data.email or not EMAIL_PATTERN.match(data.email):
        errors["email"] = "Please enter a valid email address"
    if not data.password or len(data.password) < MIN_PASSWORD_LENGTH:
        errors["password"] = (
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return errors


def validate_profile(data: OnboardingData) -> dict[str, str]:
    """Validate the profile step."""
    errors = {}
    if not data.full_name:
        errors["full_name"] = "Please enter your name"
    if data.role not in {role.value for role in ProfileRole}:
        errors["role"] = "Please choose a role"
    return errors


VALIDATORS = {
    OnboardingStep.ACCOUNT: validate_account,
    OnboardingStep.PROFILE: validate_profile,
}


@dataclass
class OnboardingWizard:
    """
    Explicit state of the onboarding wizard.

    Moving forward validates the current step first; moving backward never
    validates. Both directions are clamped at the ends.
    """

    step: OnboardingStep = OnboardingStep.WELCOME
    data: OnboardingData = field(default_factory=OnboardingData)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def index(self) -> int:
        return STEPS.index(self.step)

    @property
    def is_last_step(self) -> bool:
        return self.index == len(STEPS) - 1

    def update(self, data: OnboardingData) -> None:
        """Merge in the fields the client explicitly sent."""
        self.data = self.data.model_copy(update=data.model_dump(exclude_unset=True))

    def validate_current_step(self) -> dict[str, str]:
        validator = VALIDATORS.get(self.step)
        return validator(self.data) if validator else {}

    def next_step(self) -> dict[str, str]:
        """
        Advance one step if the current step is valid.

        Returns:
            Validation errors; empty if the wizard moved (or was already
            on the last step).
        """
        self.errors = self.validate_current_step()
        if not self.errors and not self.is_last_step:
            self.step = STEPS[self.index + 1]
        return self.errors

    def prev_step(self) -> None:
        self.errors = {}
        if self.index > 0:
            self.step = STEPS[self.index - 1]


class ProfileService:
    """Service for onboarding and profile management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_profile_record(self, user_id: str) -> Optional[Profile]:
        return await self.db.get(Profile, user_id)

    async def get_profile(self, user_id: str) -> ProfileResponse:
        """
        Raises:
            NotFoundError: If the user has not finished onboarding.
        """
        profile = await self.get_profile_record(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return ProfileResponse.model_validate(profile)

    async def create_profile(self, user_id: str, data: OnboardingData) -> Profile:
        """
        Create (or refresh) the user's profile from onboarding data.

        Re-running onboarding updates the existing profile.

        Raises:
            ConflictError: If the email belongs to another user's profile.
        """
        email = data.email.lower()
        result = await self.db.execute(select(Profile).where(Profile.email == email))
        owner = result.scalars().first()
        if owner is not None and owner.id != user_id:
            raise ConflictError("An account with this email already exists")

        profile = await self.get_profile_record(user_id)
        if profile is None:
            profile = Profile(id=user_id, email=email)
            self.db.add(profile)
        else:
            profile.email = email

        profile.full_name = data.full_name
        profile.company = data.company or None
        profile.role = data.role

        await self.db.flush()
        await self.db.refresh(profile)
        logger.info(f"Profile saved for user {user_id} ({profile.role})")
        return profile

    async def update_profile(
        self, user_id: str, update: ProfileUpdate
    ) -> ProfileResponse:
        """
        Apply a partial update to the user's profile.

        Raises:
            NotFoundError: If the user has no profile.
        """
        profile = await self.get_profile_record(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")

        for name, value in update.model_dump(exclude_unset=True).items():
            if name == "role" and value is not None:
                value = ProfileRole(value).value
            setattr(profile, name, value)

        await self.db.flush()
        await self.db.refresh(profile)
        return ProfileResponse.model_validate(profile)

    async def apply_step(
        self, user_id: str, request: OnboardingStepRequest
    ) -> OnboardingStepResponse:
        """
        Apply one wizard action and persist the profile when it completes.

        Validation problems are returned in the response (the step does not
        change) rather than raised, so the client can show them inline.
        """
        wizard = OnboardingWizard(step=request.step)
        wizard.update(request.data)
        leaving = wizard.step

        if request.action == OnboardingAction.BACK:
            wizard.prev_step()
            errors: dict[str, str] = {}
        else:
            errors = wizard.next_step()

        profile = None
        if (
            request.action == OnboardingAction.NEXT
            and not errors
            and leaving == OnboardingStep.PROFILE
        ):
            # The account step was validated earlier but the client could
            # have changed the data since.
            errors = validate_account(wizard.data)
            if errors:
                wizard.step = OnboardingStep.ACCOUNT
                wizard.errors = errors
            else:
                record = await self.create_profile(user_id, wizard.data)
                profile = ProfileResponse.model_validate(record)

        if profile is None and wizard.step == OnboardingStep.FINAL:
            record = await self.get_profile_record(user_id)
            if record is not None:
                profile = ProfileResponse.model_validate(record)

        return OnboardingStepResponse(
            step=wizard.step,
            step_number=wizard.index + 1,
            total_steps=len(STEPS),
            title=wizard.step.title,
            errors=errors,
            completed=wizard.step == OnboardingStep.FINAL,
            profile=profile,
        )
