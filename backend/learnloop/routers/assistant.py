"""
Assistant API Router

Exposes the dashboard chat assistant via REST API.

Endpoints:
    POST   /api/assistant/chat                            - Send message to assistant
    GET    /api/assistant/conversations                   - List conversations
    GET    /api/assistant/conversations/{id}              - Get conversation with messages
    PATCH  /api/assistant/conversations/{id}              - Rename conversation
    DELETE /api/assistant/conversations/{id}              - Delete conversation
    DELETE /api/assistant/conversations/{id}/messages     - Clear conversation messages
    DELETE /api/assistant/conversations                   - Delete all conversations

Models are defined in learnloop.models.assistant.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.base import get_db
from learnloop.dependencies import get_current_user_id
from learnloop.middleware.error_handling import handle_endpoint_errors
from learnloop.middleware.rate_limit import limit_llm
from learnloop.models.assistant import (
    ChatRequest,
    ChatResponse,
    ConversationDetail,
    ConversationListResponse,
    ConversationUpdateRequest,
    ConversationUpdateResponse,
    DeleteResponse,
)
from learnloop.services.assistant import AssistantService
from learnloop.services.llm import get_llm_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assistant", tags=["assistant"])


# =============================================================================
# Dependency Injection
# =============================================================================


async def get_assistant_service(
    db: AsyncSession = Depends(get_db),
) -> AssistantService:
    """
    Get assistant service with all dependencies.

    Args:
        db: Async database session from FastAPI dependency injection.

    Returns:
        Configured AssistantService instance.
    """
    return AssistantService(db, get_llm_client())


# =============================================================================
# Chat Endpoints
# =============================================================================


@router.post("/chat", response_model=ChatResponse)
@limit_llm
@handle_endpoint_errors("Chat")
async def send_message(
    request: Request,
    chat_request: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    service: AssistantService = Depends(get_assistant_service),
) -> ChatResponse:
    """
    Send a message to the AI assistant and get a response.

    A successful reply counts toward the daily streak; the updated streak
    is returned with the reply.

    Args:
        request: Incoming request (used for rate limiting).
        chat_request: Chat request with message and optional conversation_id.
        user_id: Acting user from the X-User-ID header.
        service: Injected assistant service.

    Returns:
        ChatResponse with conversation_id, response, and streak.

    Raises:
        HTTPException 400: If the user has no OpenAI key.
        HTTPException 404: If specified conversation not found.
    """
    return await service.chat(
        user_id,
        message=chat_request.message,
        conversation_id=chat_request.conversation_id,
    )


# =============================================================================
# Conversation Endpoints
# =============================================================================


@router.get("/conversations", response_model=ConversationListResponse)
@handle_endpoint_errors("Get conversations")
async def get_conversations(
    limit: int = Query(20, ge=1, le=100, description="Max conversations to return"),
    offset: int = Query(0, ge=0, description="Number to skip for pagination"),
    user_id: str = Depends(get_current_user_id),
    service: AssistantService = Depends(get_assistant_service),
) -> ConversationListResponse:
    """
    Get paginated list of the user's conversations.

    Args:
        limit: Maximum conversations to return (1-100).
        offset: Number to skip for pagination.
        user_id: Acting user.
        service: Injected assistant service.

    Returns:
        ConversationListResponse with conversations and total count.
    """
    return await service.get_conversations(user_id, limit=limit, offset=offset)


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
@handle_endpoint_errors("Get conversation")
async def get_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AssistantService = Depends(get_assistant_service),
) -> ConversationDetail:
    """
    Get a specific conversation with all its messages.

    Raises:
        HTTPException 404: If conversation not found.
    """
    return await service.get_conversation(user_id, conversation_id)


@router.delete("/conversations/{conversation_id}", response_model=DeleteResponse)
@handle_endpoint_errors("Delete conversation")
async def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AssistantService = Depends(get_assistant_service),
) -> DeleteResponse:
    """
    Delete a conversation and all its messages.

    Raises:
        HTTPException 404: If conversation not found.
    """
    await service.delete_conversation(user_id, conversation_id)
    return DeleteResponse(success=True, deleted_id=conversation_id)


@router.patch(
    "/conversations/{conversation_id}", response_model=ConversationUpdateResponse
)
@handle_endpoint_errors("Rename conversation")
async def rename_conversation(
    conversation_id: str,
    request: ConversationUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: AssistantService = Depends(get_assistant_service),
) -> ConversationUpdateResponse:
    """
    Rename a conversation.

    Raises:
        HTTPException 404: If conversation not found.
    """
    return await service.rename_conversation(user_id, conversation_id, request.title)


@router.delete(
    "/conversations/{conversation_id}/messages", response_model=DeleteResponse
)
@handle_endpoint_errors("Clear messages")
async def clear_conversation_messages(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    service: AssistantService = Depends(get_assistant_service),
) -> DeleteResponse:
    """
    Clear all messages from a conversation, keeping the conversation.

    Raises:
        HTTPException 404: If conversation not found.
    """
    count = await service.clear_conversation_messages(user_id, conversation_id)
    return DeleteResponse(success=True, cleared_count=count)


@router.delete("/conversations", response_model=DeleteResponse)
@handle_endpoint_errors("Clear all conversations")
async def clear_all_conversations(
    user_id: str = Depends(get_current_user_id),
    service: AssistantService = Depends(get_assistant_service),
) -> DeleteResponse:
    """Delete all of the user's conversations and messages."""
    count = await service.clear_all_conversations(user_id)
    return DeleteResponse(success=True, cleared_count=count)
