"""
API Key Service

Stores each user's LLM provider keys, one per provider.

Keys are stored base64-encoded. That is an encoding, not encryption:
anyone with database access can read them. encode_api_key/decode_api_key
are the only places that know the storage format, so a real secret store
can replace them without touching callers.

Usage:
    service = ApiKeyService(db)
    await service.save_key(user_id, ApiKeyProvider.OPENAI, "sk-...")
    key = await service.get_decoded_key(user_id, ApiKeyProvider.OPENAI)
"""

import base64
import binascii
import logging
from typing import Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.models import ApiKey
from learnloop.enums.api import ApiKeyProvider
from learnloop.middleware.error_handling import NotFoundError, ValidationError
from learnloop.models.profile import ApiKeyInfo, ApiKeyListResponse

logger = logging.getLogger(__name__)

DEFAULT_KEY_NAMES = {
    ApiKeyProvider.OPENAI: "OpenAI API Key",
    ApiKeyProvider.ANTHROPIC: "Anthropic API Key",
    ApiKeyProvider.GOOGLE_AI: "Google AI API Key",
    ApiKeyProvider.COHERE: "Cohere API Key",
}


def encode_api_key(raw_key: str) -> str:
    """Encode a key for storage."""
    return base64.b64encode(raw_key.encode("utf-8")).decode("ascii")


def decode_api_key(stored_key: str) -> str:
    """
    Decode a stored key.

    Raises:
        ValueError: If the stored value is not valid base64.
    """
    try:
        return base64.b64decode(stored_key.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError) as e:
        raise ValueError("Stored API key is not valid base64") from e


def mask_api_key(raw_key: str) -> str:
    """
    Mask a key for display: first 3 and last 4 characters.

    Short keys are masked entirely.

    Example:
        >>> mask_api_key("sk-abcdefghijklmnop")
        'sk-...mnop'
    """
    if len(raw_key) <= 8:
        return "*" * len(raw_key)
    return f"{raw_key[:3]}...{raw_key[-4:]}"


class ApiKeyService:
    """Service for storing and retrieving users' provider keys."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_record(
        self, user_id: str, provider: ApiKeyProvider
    ) -> Optional[ApiKey]:
        result = await self.db.execute(
            select(ApiKey).where(
                ApiKey.user_id == user_id,
                ApiKey.provider == provider.value,
            )
        )
        return result.scalars().first()

    @staticmethod
    def _to_info(record: ApiKey) -> ApiKeyInfo:
        provider = ApiKeyProvider(record.provider)
        try:
            masked = mask_api_key(decode_api_key(record.encrypted_key))
        except ValueError:
            masked = "(unreadable)"
        return ApiKeyInfo(
            provider=provider,
            key_name=record.key_name,
            masked_key=masked,
            key_format_hint=provider.key_format_hint,
            is_active=record.is_active,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    async def save_key(
        self,
        user_id: str,
        provider: Union[ApiKeyProvider, str],
        raw_key: str,
        key_name: Optional[str] = None,
    ) -> ApiKeyInfo:
        """
        Store the user's key for a provider, replacing any existing one.

        Raises:
            ValidationError: If the key is empty.
        """
        provider = ApiKeyProvider(provider)
        raw_key = raw_key.strip()
        if not raw_key:
            raise ValidationError("API key must not be empty")

        record = await self._get_record(user_id, provider)
        if record is None:
            record = ApiKey(
                user_id=user_id,
                provider=provider.value,
                key_name=key_name or DEFAULT_KEY_NAMES[provider],
                encrypted_key=encode_api_key(raw_key),
                is_active=True,
            )
            self.db.add(record)
        else:
            record.encrypted_key = encode_api_key(raw_key)
            record.is_active = True
            if key_name:
                record.key_name = key_name

        await self.db.flush()
        await self.db.refresh(record)
        logger.info(f"Saved {provider.value} API key for user {user_id}")
        return self._to_info(record)

    async def list_keys(self, user_id: str) -> ApiKeyListResponse:
        """List the user's keys, masked."""
        result = await self.db.execute(
            select(ApiKey).where(ApiKey.user_id == user_id).order_by(ApiKey.provider)
        )
        keys = [self._to_info(record) for record in result.scalars().all()]
        return ApiKeyListResponse(keys=keys, total=len(keys))

    async def get_decoded_key(
        self,
        user_id: str,
        provider: Union[ApiKeyProvider, str] = ApiKeyProvider.OPENAI,
    ) -> Optional[str]:
        """
        Get the user's usable key for a provider.

        Returns None when there is no active key or it cannot be decoded.
        """
        provider = ApiKeyProvider(provider)
        record = await self._get_record(user_id, provider)
        if record is None or not record.is_active:
            return None
        try:
            return decode_api_key(record.encrypted_key)
        except ValueError:
            logger.warning(f"Unreadable {provider.value} API key for user {user_id}")
            return None

    async def delete_key(
        self, user_id: str, provider: Union[ApiKeyProvider, str]
    ) -> None:
        """
        Delete the user's key for a provider.

        Raises:
            NotFoundError: If no key is stored for the provider.
        """
        provider = ApiKeyProvider(provider)
        result = await self.db.execute(
            delete(ApiKey).where(
                ApiKey.user_id == user_id,
                ApiKey.provider == provider.value,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(f"No {provider.value} API key stored")
        logger.info(f"Deleted {provider.value} API key for user {user_id}")
