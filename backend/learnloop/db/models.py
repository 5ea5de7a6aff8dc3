"""
SQLAlchemy Database Models for Accounts

These models define the user-facing account tables.

Tables:
- profiles: One row per user, created at the end of onboarding
- api_keys: Per-user LLM provider API keys (one per provider)

ARCHITECTURE NOTE:
    Identity itself lives with the external auth provider; profiles.id is the
    user id that provider hands out and every other table keys on it.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from learnloop.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class Profile(Base):
    """
    User profile captured by the onboarding wizard.

    Attributes:
        id: User id (UUID string) issued by the auth provider.
        email: Email address used at sign-up. Unique.
        full_name: Display name from the profile step.
        company: Optional company name.
        role: Self-described role (developer, designer, founder, ...).
        created_at: When the profile was created.
        updated_at: Last profile edit.
    """

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(200))
    company: Mapped[Optional[str]] = mapped_column(String(200))
    role: Mapped[Optional[str]] = mapped_column(String(50))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )


class ApiKey(Base):
    """
    A user's API key for an LLM provider.

    The key is stored base64-encoded in `encrypted_key`. That is an encoding,
    not encryption: see learnloop.services.api_keys.

    Attributes:
        id: Primary key.
        user_id: Owning user.
        provider: Provider slug (see ApiKeyProvider).
        key_name: Human label, e.g. "OpenAI API Key".
        encrypted_key: Encoded key material.
        is_active: Inactive keys are kept but never used for calls.
    """

    __tablename__ = "api_keys"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_api_keys_user_provider"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    provider: Mapped[str] = mapped_column(String(50))
    key_name: Mapped[str] = mapped_column(String(200))
    encrypted_key: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )
