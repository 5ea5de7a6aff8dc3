"""
Conversation Manager

Handles CRUD operations for dashboard conversations and messages.
Every query is scoped to the owning user; another user's conversation
behaves exactly like a missing one.

Usage:
    manager = ConversationManager(db)
    conversations = await manager.get_conversations(user_id, limit=20)
    conversation = await manager.get_conversation(user_id, conversation_id)
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from learnloop.config.settings import settings
from learnloop.db.models_assistant import ChatMessage, Conversation
from learnloop.enums.learning import MessageRole
from learnloop.models.assistant import (
    ConversationDetail,
    ConversationListResponse,
    ConversationSummary,
    ConversationUpdateResponse,
)

logger = logging.getLogger(__name__)


def make_title(first_message: str) -> str:
    """Derive a conversation title from its first message."""
    max_len = settings.ASSISTANT_MAX_TITLE_LENGTH
    title = first_message[:max_len].strip()
    if len(first_message) > max_len:
        title += "..."
    return title or "New Conversation"


class ConversationManager:
    """
    Manager for conversation persistence operations.

    Handles creating, reading, updating, and deleting conversations
    and their associated messages.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the conversation manager.

        Args:
            db: SQLAlchemy async database session.
        """
        self.db = db

    # =========================================================================
    # Internal Helper Methods
    # =========================================================================

    async def create_conversation(self, user_id: str, first_message: str) -> Conversation:
        """
        Create a new conversation titled after its first message.

        Returns:
            The new Conversation with its (empty) messages loaded.
        """
        conversation = Conversation(
            user_id=user_id,
            conversation_uuid=str(uuid.uuid4()),
            title=make_title(first_message),
        )
        self.db.add(conversation)
        await self.db.flush()

        # Load messages now to avoid lazy loading in async code
        await self.db.refresh(conversation, attribute_names=["messages"])
        return conversation

    async def get_conversation_by_id(
        self, user_id: str, conversation_id: str
    ) -> Optional[Conversation]:
        """
        Get one of the user's conversations by UUID with messages loaded.

        Returns:
            Conversation with messages, or None if not found.
        """
        result = await self.db.execute(
            select(Conversation)
            .options(selectinload(Conversation.messages))
            .where(
                Conversation.conversation_uuid == conversation_id,
                Conversation.user_id == user_id,
            )
        )
        return result.scalars().first()

    async def add_message(
        self,
        conversation: Conversation,
        role: MessageRole,
        content: str,
    ) -> ChatMessage:
        """
        Add a message to an existing conversation.

        Also bumps the conversation's updated_at timestamp.
        """
        message = ChatMessage(
            message_uuid=str(uuid.uuid4()),
            conversation_id=conversation.id,
            role=role,
            content=content,
        )
        self.db.add(message)
        conversation.updated_at = datetime.now(timezone.utc)

        await self.db.flush()
        await self.db.refresh(message)
        await self.db.refresh(conversation, attribute_names=["messages"])

        return message

    # =========================================================================
    # Public Conversation Management Methods
    # =========================================================================

    async def get_conversations(
        self,
        user_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> ConversationListResponse:
        """
        Get a page of the user's conversations, most recently updated first.

        Args:
            user_id: Owning user.
            limit: Maximum conversations to return.
            offset: Number to skip for pagination.

        Returns:
            ConversationListResponse with the page and the user's total count.
        """
        limit = limit or settings.ASSISTANT_DEFAULT_PAGE_LIMIT

        count_result = await self.db.execute(
            select(func.count())
            .select_from(Conversation)
            .where(Conversation.user_id == user_id)
        )
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(Conversation)
            .options(selectinload(Conversation.messages))
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.updated_at.desc())
            .offset(offset)
            .limit(limit)
        )
        conversations = result.scalars().all()

        return ConversationListResponse(
            conversations=[ConversationSummary.from_db_record(c) for c in conversations],
            total=total,
        )

    async def get_conversation(
        self, user_id: str, conversation_id: str
    ) -> Optional[ConversationDetail]:
        conversation = await self.get_conversation_by_id(user_id, conversation_id)
        if not conversation:
            return None
        return ConversationDetail.from_db_record(conversation)

    async def delete_conversation(self, user_id: str, conversation_id: str) -> bool:
        """
        Delete a conversation and all its messages.

        Returns:
            True if deleted, False if not found.
        """
        result = await self.db.execute(
            delete(Conversation).where(
                Conversation.conversation_uuid == conversation_id,
                Conversation.user_id == user_id,
            )
        )
        return result.rowcount > 0

    async def clear_conversation_messages(
        self, user_id: str, conversation_id: str
    ) -> Optional[int]:
        """
        Clear all messages from a conversation, keeping the conversation.

        Returns:
            Number of messages deleted, or None if the conversation was not found.
        """
        conversation = await self.get_conversation_by_id(user_id, conversation_id)
        if not conversation:
            return None

        result = await self.db.execute(
            delete(ChatMessage).where(ChatMessage.conversation_id == conversation.id)
        )
        return result.rowcount

    async def clear_all_conversations(self, user_id: str) -> int:
        """Delete all of the user's conversations. Returns how many."""
        result = await self.db.execute(
            delete(Conversation).where(Conversation.user_id == user_id)
        )
        return result.rowcount

    async def rename_conversation(
        self,
        user_id: str,
        conversation_id: str,
        title: str,
    ) -> Optional[ConversationUpdateResponse]:
        """
        Rename a conversation.

        Returns:
            ConversationUpdateResponse, or None if not found.
        """
        conversation = await self.get_conversation_by_id(user_id, conversation_id)
        if not conversation:
            return None

        conversation.title = title
        conversation.updated_at = datetime.now(timezone.utc)
        await self.db.flush()

        return ConversationUpdateResponse(
            id=conversation.conversation_uuid,
            title=conversation.title,
            updated_at=conversation.updated_at,
        )
