"""
Assistant Service

Dashboard chat with the user's own OpenAI key. Every successful reply
counts as a qualifying activity for the daily streak.

Usage:
    service = AssistantService(db, llm_client)
    response = await service.chat(user_id, "Explain recursion", conversation_id=None)
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from learnloop.db.models_assistant import ChatMessage, Conversation
from learnloop.enums.api import ApiKeyProvider, LLMOperation
from learnloop.enums.learning import MessageRole
from learnloop.middleware.error_handling import ApiKeyRequiredError, NotFoundError
from learnloop.models.assistant import (
    ChatResponse,
    ConversationDetail,
    ConversationListResponse,
    ConversationUpdateResponse,
)
from learnloop.services.api_keys import ApiKeyService
from learnloop.services.assistant.conversation_manager import ConversationManager
from learnloop.services.learning.streak_tracking import StreakTrackingService
from learnloop.services.llm.client import LLMClient

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

CHAT_ERROR_MESSAGE = (
    "Sorry, there was an error processing your message. Please check your API key."
)
MISSING_KEY_MESSAGE = "Please add your OpenAI API key to start chatting."


# =============================================================================
# Service Implementation
# =============================================================================


class AssistantService:
    """
    Service for dashboard chat and conversation management.

    Attributes:
        db: Async database session for conversation persistence.
        llm: LLM client for chat completions.

    Example:
        >>> service = AssistantService(db, llm_client)
        >>> response = await service.chat(user_id, message="What is ML?")
        >>> print(response.response, response.streak.current_streak)
    """

    def __init__(self, db: AsyncSession, llm_client: LLMClient) -> None:
        self.db = db
        self.llm = llm_client

        self._conversation_manager = ConversationManager(db)
        self._api_keys = ApiKeyService(db)
        self._streaks = StreakTrackingService(db)

    @property
    def conversation_manager(self) -> ConversationManager:
        """Access to conversation manager for CRUD operations."""
        return self._conversation_manager

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @staticmethod
    def _history(conversation: Conversation) -> list[dict[str, str]]:
        """Role-tagged messages of a conversation in LLM API format."""
        return [
            {"role": msg.role.value, "content": msg.content}
            for msg in conversation.messages
        ]

    async def _generate_response(
        self,
        user_id: str,
        api_key: str,
        messages: list[dict[str, str]],
    ) -> Optional[str]:
        """
        Ask the LLM for the next assistant turn.

        Returns:
            The reply text, or None if the call failed.
        """
        try:
            response, _ = await self.llm.complete(
                operation=LLMOperation.DASHBOARD_CHAT,
                messages=messages,
                api_key=api_key,
                user_id=user_id,
            )
        except Exception as e:
            logger.error(f"Chat completion failed for user {user_id}: {e}")
            return None

        if not response:
            logger.warning(f"Empty chat completion for user {user_id}")
            return None
        return str(response)

    async def _add_message(
        self,
        conversation: Conversation,
        role: MessageRole,
        content: str,
    ) -> ChatMessage:
        return await self._conversation_manager.add_message(conversation, role, content)

    # =========================================================================
    # Chat Methods
    # =========================================================================

    async def chat(
        self,
        user_id: str,
        message: str,
        conversation_id: Optional[str] = None,
    ) -> ChatResponse:
        """
        Send a message to the assistant and get a response.

        The whole conversation so far plus the new message is sent to the
        LLM. On success the reply is stored and the daily streak is updated;
        on failure a fixed error reply is stored and the streak is left alone.

        Args:
            user_id: Acting user.
            message: User's message text.
            conversation_id: Existing conversation UUID, or None to create new.

        Returns:
            ChatResponse with the reply and today's streak status.

        Raises:
            ApiKeyRequiredError: If the user has no active OpenAI key.
            NotFoundError: If conversation_id is given but not found.
        """
        api_key = await self._api_keys.get_decoded_key(user_id, ApiKeyProvider.OPENAI)
        if not api_key:
            raise ApiKeyRequiredError(MISSING_KEY_MESSAGE)

        if conversation_id:
            conversation = await self._conversation_manager.get_conversation_by_id(
                user_id, conversation_id
            )
            if not conversation:
                raise NotFoundError(f"Conversation not found: {conversation_id}")
        else:
            conversation = await self._conversation_manager.create_conversation(
                user_id, message
            )

        await self._add_message(conversation, MessageRole.USER, message)

        reply = await self._generate_response(
            user_id, api_key, self._history(conversation)
        )
        success = reply is not None
        await self._add_message(
            conversation, MessageRole.ASSISTANT, reply if success else CHAT_ERROR_MESSAGE
        )

        if success:
            streak = await self._streaks.record_activity(user_id)
        else:
            streak = await self._streaks.get_today_status(user_id)

        return ChatResponse(
            conversation_id=conversation.conversation_uuid,
            response=reply if success else CHAT_ERROR_MESSAGE,
            success=success,
            streak=streak,
        )

    # =========================================================================
    # Conversation Management (delegated to ConversationManager)
    # =========================================================================

    async def get_conversations(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> ConversationListResponse:
        return await self._conversation_manager.get_conversations(user_id, limit, offset)

    async def get_conversation(
        self, user_id: str, conversation_id: str
    ) -> ConversationDetail:
        """
        Raises:
            NotFoundError: If the conversation does not exist for this user.
        """
        detail = await self._conversation_manager.get_conversation(user_id, conversation_id)
        if detail is None:
            raise NotFoundError(f"Conversation not found: {conversation_id}")
        return detail

    async def rename_conversation(
        self, user_id: str, conversation_id: str, title: str
    ) -> ConversationUpdateResponse:
        updated = await self._conversation_manager.rename_conversation(
            user_id, conversation_id, title
        )
        if updated is None:
            raise NotFoundError(f"Conversation not found: {conversation_id}")
        return updated

    async def delete_conversation(self, user_id: str, conversation_id: str) -> None:
        deleted = await self._conversation_manager.delete_conversation(
            user_id, conversation_id
        )
        if not deleted:
            raise NotFoundError(f"Conversation not found: {conversation_id}")

    async def clear_conversation_messages(
        self, user_id: str, conversation_id: str
    ) -> int:
        cleared = await self._conversation_manager.clear_conversation_messages(
            user_id, conversation_id
        )
        if cleared is None:
            raise NotFoundError(f"Conversation not found: {conversation_id}")
        return cleared

    async def clear_all_conversations(self, user_id: str) -> int:
        return await self._conversation_manager.clear_all_conversations(user_id)
