"""
API Keys Router

Users bring their own LLM provider keys. Keys are only ever returned
masked.

Endpoints:
    GET    /api/api-keys             - List stored keys (masked)
    PUT    /api/api-keys/{provider}  - Save or replace a provider key
    DELETE /api/api-keys/{provider}  - Delete a provider key
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.base import get_db
from learnloop.dependencies import get_current_user_id
from learnloop.enums.api import ApiKeyProvider
from learnloop.middleware.error_handling import handle_endpoint_errors
from learnloop.models.base import SuccessResponse
from learnloop.models.profile import ApiKeyInfo, ApiKeyListResponse, ApiKeySaveRequest
from learnloop.services.api_keys import ApiKeyService

router = APIRouter(prefix="/api/api-keys", tags=["api-keys"])


async def get_api_key_service(db: AsyncSession = Depends(get_db)) -> ApiKeyService:
    return ApiKeyService(db)


@router.get("", response_model=ApiKeyListResponse)
@handle_endpoint_errors("List API keys")
async def list_api_keys(
    user_id: str = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyListResponse:
    return await service.list_keys(user_id)


@router.put("/{provider}", response_model=ApiKeyInfo)
@handle_endpoint_errors("Save API key")
async def save_api_key(
    provider: ApiKeyProvider,
    request: ApiKeySaveRequest,
    user_id: str = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyInfo:
    """
    Save the key for a provider, replacing any existing one.

    Raises:
        HTTPException 422: If the key is blank or the provider is unknown.
    """
    return await service.save_key(user_id, provider, request.api_key, request.key_name)


@router.delete("/{provider}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete API key")
async def delete_api_key(
    provider: ApiKeyProvider,
    user_id: str = Depends(get_current_user_id),
    service: ApiKeyService = Depends(get_api_key_service),
) -> SuccessResponse:
    """
    Raises:
        HTTPException 404: If no key is stored for the provider.
    """
    await service.delete_key(user_id, provider)
    return SuccessResponse(message=f"Deleted {provider.value} API key")
