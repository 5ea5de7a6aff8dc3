"""
Account API Models (Pydantic)

Request/response schemas for onboarding, the user profile and stored
LLM provider API keys.

ARCHITECTURE NOTE:
    There is a corresponding SQLAlchemy file: learnloop/db/models.py
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from learnloop.enums import (
    ApiKeyProvider,
    OnboardingAction,
    OnboardingStep,
    ProfileRole,
)
from learnloop.models.base import StrictRequest, StrictResponse


# ===========================================
# Onboarding
# ===========================================


class OnboardingData(StrictRequest):
    """
    Form data collected across the onboarding steps.

    Every field is optional because the wizard fills it in step by step.
    The password is only validated; it is never stored.
    """

    email: str = ""
    password: str = ""
    full_name: str = ""
    company: Optional[str] = None
    role: str = ""


class OnboardingStepRequest(StrictRequest):
    """
    Request to move the onboarding wizard one step.

    The client sends the step it is currently showing, the direction and
    the form data gathered so far.
    """

    step: OnboardingStep = OnboardingStep.WELCOME
    action: OnboardingAction = OnboardingAction.NEXT
    data: OnboardingData = Field(default_factory=OnboardingData)


class OnboardingStepResponse(BaseModel):
    """
    Wizard state after applying the requested action.

    If validation of the current step failed, `step` is unchanged and
    `errors` maps field names to messages for inline display.
    """

    step: OnboardingStep
    step_number: int = Field(..., ge=1, description="1-based position of step")
    total_steps: int
    title: str
    errors: dict[str, str] = Field(default_factory=dict)
    completed: bool = False
    profile: Optional[ProfileResponse] = None


# ===========================================
# Profile
# ===========================================


class ProfileResponse(StrictResponse):
    """User profile as stored."""

    id: str
    email: str
    full_name: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(StrictRequest):
    """Partial profile update. Fields left out are not changed."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    company: Optional[str] = Field(None, max_length=200)
    role: Optional[ProfileRole] = None

    @field_validator("full_name", "role", mode="before")
    @classmethod
    def reject_null(cls, value):
        # Onboarding requires both; they may be changed but not cleared
        if value is None:
            raise ValueError("may not be null")
        return value


# ===========================================
# API Keys
# ===========================================


class ApiKeySaveRequest(StrictRequest):
    """Request to store (or replace) the key for one provider."""

    api_key: str = Field(..., min_length=1, max_length=500)
    key_name: Optional[str] = Field(None, max_length=200)


class ApiKeyInfo(BaseModel):
    """
    A stored API key as shown to its owner.

    The key itself is never returned; `masked_key` shows only its
    first and last characters.
    """

    provider: ApiKeyProvider
    key_name: str
    masked_key: str
    key_format_hint: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ApiKeyListResponse(BaseModel):
    keys: list[ApiKeyInfo]
    total: int


OnboardingStepResponse.model_rebuild()
