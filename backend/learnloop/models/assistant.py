"""
Assistant API Models (Pydantic)

Request/response schemas for the dashboard chat assistant:
- Chat messages and replies (with the streak they produced)
- Conversation listing, detail, rename and delete

Usage:
    from learnloop.models.assistant import (
        ChatRequest,
        ChatResponse,
        ConversationListResponse,
    )

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Literal, TYPE_CHECKING

from pydantic import BaseModel, Field

from learnloop.models.base import StrictRequest
from learnloop.models.learning import StreakStatus

if TYPE_CHECKING:
    from learnloop.db.models_assistant import ChatMessage, Conversation


# =============================================================================
# Chat Models
# =============================================================================


class ChatRequest(StrictRequest):
    """
    Request to send a message to the dashboard assistant.

    Attributes:
        conversation_id: Existing conversation ID (null to start new conversation)
        message: User message content

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    conversation_id: Optional[str] = Field(
        None, description="Conversation ID (null to start new conversation)"
    )
    message: str = Field(..., min_length=1, max_length=10000)


class ChatResponse(BaseModel):
    """
    Response from the dashboard assistant.

    Attributes:
        conversation_id: The conversation this message belongs to
        response: Assistant's reply, or the failure text when the call failed
        success: False when the LLM call failed
        streak: Today's activity status after this message
    """

    conversation_id: str
    response: str
    success: bool = True
    streak: StreakStatus


# =============================================================================
# Conversation Models
# =============================================================================


class MessageInfo(BaseModel):
    """A single message in a conversation."""

    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime

    @classmethod
    def from_db_record(cls, record: ChatMessage) -> MessageInfo:
        """
        Create a MessageInfo from a database ChatMessage record.

        Args:
            record: SQLAlchemy ChatMessage record from the database

        Returns:
            MessageInfo instance with data from the database record
        """
        return cls(
            id=record.message_uuid,
            role=record.role.value,
            content=record.content,
            timestamp=record.created_at,
        )


class ConversationSummary(BaseModel):
    """
    Summary of a conversation for list views.

    Attributes:
        id: Conversation unique identifier
        title: Conversation title (derived from the first message or user-set)
        created_at: When the conversation started
        updated_at: When the conversation was last updated
        message_count: Number of messages in the conversation
    """

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    message_count: int

    @classmethod
    def from_db_record(cls, record: Conversation) -> ConversationSummary:
        return cls(
            id=record.conversation_uuid,
            title=record.title,
            created_at=record.created_at,
            updated_at=record.updated_at,
            message_count=len(record.messages) if record.messages else 0,
        )


class ConversationListResponse(BaseModel):
    conversations: list[ConversationSummary]
    total: int


class ConversationDetail(BaseModel):
    """Full conversation with all messages in chronological order."""

    id: str
    title: str
    created_at: datetime
    messages: list[MessageInfo]

    @classmethod
    def from_db_record(cls, record: Conversation) -> ConversationDetail:
        """
        Create a ConversationDetail from a database Conversation record.

        The record should have its messages relationship loaded.
        """
        messages = [MessageInfo.from_db_record(msg) for msg in (record.messages or [])]
        return cls(
            id=record.conversation_uuid,
            title=record.title,
            created_at=record.created_at,
            messages=messages,
        )


class ConversationUpdateRequest(StrictRequest):
    """
    Request to rename a conversation.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    title: str = Field(..., min_length=1, max_length=200)


class ConversationUpdateResponse(BaseModel):
    id: str
    title: str
    updated_at: datetime


class DeleteResponse(BaseModel):
    """
    Generic deletion response.

    Attributes:
        success: Whether the deletion was successful
        deleted_id: ID of the deleted resource (optional)
        cleared_count: Number of items cleared (optional)
    """

    success: bool
    deleted_id: Optional[str] = None
    cleared_count: Optional[int] = None
