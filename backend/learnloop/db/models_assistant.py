"""
SQLAlchemy Database Models for the Dashboard Assistant

Tables:
- chat_conversations: Dashboard chat conversations, one owner each
- chat_messages: Individual messages within conversations

Every message a user sends through the dashboard chat is persisted here
together with the assistant's reply (or the failure text shown instead).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learnloop.db.base import Base
from learnloop.enums.learning import MessageRole


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class Conversation(Base):
    """
    Dashboard chat conversation.

    Attributes:
        id: Primary key, auto-incrementing integer identifier.
        user_id: Owning user. Conversations are only visible to their owner.
        conversation_uuid: Public identifier used in API responses.
        title: Derived from the first message, or user-set. Max 200 characters.
        created_at: When the conversation was started.
        updated_at: Timestamp of the last message.
        messages: Messages ordered by creation time.
    """

    __tablename__ = "chat_conversations"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), index=True)

    conversation_uuid: Mapped[str] = mapped_column(
        String(36), unique=True, index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), default="New Conversation")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    messages: Mapped[list[ChatMessage]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ChatMessage.created_at",
    )


class ChatMessage(Base):
    """
    A single message in a dashboard conversation.

    Attributes:
        message_uuid: Public identifier used in API responses.
        conversation_id: Parent conversation.
        role: USER or ASSISTANT.
        content: Message text.
    """

    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    message_uuid: Mapped[str] = mapped_column(
        String(36), unique=True, index=True, nullable=False
    )
    conversation_id: Mapped[int] = mapped_column(
        ForeignKey("chat_conversations.id", ondelete="CASCADE"),
        index=True,
    )

    role: Mapped[MessageRole] = mapped_column(SQLEnum(MessageRole), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    conversation: Mapped[Conversation] = relationship(back_populates="messages")
