"""
Unit Tests for Assistant Service

Tests for AssistantService functionality:
- Chat with the user's own key and the whole conversation as history
- Streak updates only for successful replies
- Conversation CRUD operations scoped to the user
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest

from learnloop.db.models_assistant import ChatMessage, Conversation
from learnloop.enums.api import LLMOperation
from learnloop.enums.learning import MessageRole
from learnloop.middleware.error_handling import ApiKeyRequiredError, NotFoundError
from learnloop.models.learning import StreakStatus
from learnloop.services.assistant.conversation_manager import make_title
from learnloop.services.assistant.service import (
    CHAT_ERROR_MESSAGE,
    AssistantService,
)


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def sample_conversation(user_id: str) -> Conversation:
    """Create a sample conversation for testing."""
    conv = Conversation(
        id=1,
        user_id=user_id,
        conversation_uuid=str(uuid.uuid4()),
        title="Test Conversation",
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    conv.messages = []
    return conv


@pytest.fixture
def mock_conversation_manager(sample_conversation: Conversation) -> MagicMock:
    """ConversationManager double that appends messages in memory."""
    manager = MagicMock()

    async def add_message(conversation, role, content):
        message = ChatMessage(
            message_uuid=str(uuid.uuid4()),
            conversation_id=conversation.id,
            role=role,
            content=content,
            created_at=datetime.now(timezone.utc),
        )
        conversation.messages.append(message)
        return message

    manager.add_message = AsyncMock(side_effect=add_message)
    manager.create_conversation = AsyncMock(return_value=sample_conversation)
    manager.get_conversation_by_id = AsyncMock(return_value=sample_conversation)
    manager.get_conversation = AsyncMock(return_value=None)
    manager.rename_conversation = AsyncMock(return_value=None)
    manager.delete_conversation = AsyncMock(return_value=False)
    manager.clear_conversation_messages = AsyncMock(return_value=None)
    manager.clear_all_conversations = AsyncMock(return_value=3)
    return manager


@pytest.fixture
def mock_streaks(today: date) -> MagicMock:
    streaks = MagicMock()
    streaks.record_activity = AsyncMock(
        return_value=StreakStatus(
            date=today, message_count=1, current_streak=5, is_active_today=True
        )
    )
    streaks.get_today_status = AsyncMock(return_value=StreakStatus(date=today))
    return streaks


@pytest.fixture
def mock_api_keys() -> MagicMock:
    api_keys = MagicMock()
    api_keys.get_decoded_key = AsyncMock(return_value="sk-user-key")
    return api_keys


@pytest.fixture
def service(
    mock_db_session: AsyncMock,
    mock_llm_client: MagicMock,
    mock_conversation_manager: MagicMock,
    mock_streaks: MagicMock,
    mock_api_keys: MagicMock,
) -> AssistantService:
    """Create an AssistantService with all mocked dependencies."""
    svc = AssistantService(mock_db_session, mock_llm_client)
    # Pre-set mocked internal services to avoid database queries
    svc._conversation_manager = mock_conversation_manager
    svc._streaks = mock_streaks
    svc._api_keys = mock_api_keys
    return svc


# =============================================================================
# Chat Tests
# =============================================================================


class TestChat:
    """Tests for the chat method."""

    async def test_chat_creates_new_conversation(
        self,
        service: AssistantService,
        mock_conversation_manager: MagicMock,
        user_id: str,
    ) -> None:
        """chat() creates a conversation titled after the first message."""
        result = await service.chat(user_id, "Hello, assistant!")

        mock_conversation_manager.create_conversation.assert_awaited_once_with(
            user_id, "Hello, assistant!"
        )
        assert result.response == "Test response"
        assert result.success is True

    async def test_chat_sends_whole_history_with_user_key(
        self,
        service: AssistantService,
        mock_llm_client: MagicMock,
        sample_conversation: Conversation,
        user_id: str,
    ) -> None:
        """The LLM sees every earlier turn plus the new message, no system prompt."""
        sample_conversation.messages = [
            ChatMessage(role=MessageRole.USER, content="Hi"),
            ChatMessage(role=MessageRole.ASSISTANT, content="Hello!"),
        ]

        await service.chat(
            user_id, "Follow-up", conversation_id=sample_conversation.conversation_uuid
        )

        kwargs = mock_llm_client.complete.call_args.kwargs
        assert kwargs["operation"] == LLMOperation.DASHBOARD_CHAT
        assert kwargs["api_key"] == "sk-user-key"
        assert kwargs["messages"] == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "Follow-up"},
        ]

    async def test_successful_reply_updates_streak(
        self,
        service: AssistantService,
        mock_streaks: MagicMock,
        user_id: str,
    ) -> None:
        result = await service.chat(user_id, "Hello")

        mock_streaks.record_activity.assert_awaited_once_with(user_id)
        assert result.streak.current_streak == 5
        assert result.streak.is_active_today is True

    async def test_failed_reply_stores_error_and_skips_streak(
        self,
        service: AssistantService,
        mock_llm_client: MagicMock,
        mock_streaks: MagicMock,
        sample_conversation: Conversation,
        user_id: str,
    ) -> None:
        mock_llm_client.complete = AsyncMock(side_effect=Exception("401 invalid key"))

        result = await service.chat(user_id, "Hello")

        assert result.success is False
        assert result.response == CHAT_ERROR_MESSAGE
        assert sample_conversation.messages[-1].content == CHAT_ERROR_MESSAGE
        mock_streaks.record_activity.assert_not_awaited()
        mock_streaks.get_today_status.assert_awaited_once_with(user_id)

    async def test_empty_reply_counts_as_failure(
        self,
        service: AssistantService,
        mock_llm_client: MagicMock,
        mock_streaks: MagicMock,
        user_id: str,
    ) -> None:
        mock_llm_client.complete = AsyncMock(return_value=("", MagicMock()))

        result = await service.chat(user_id, "Hello")

        assert result.success is False
        mock_streaks.record_activity.assert_not_awaited()

    async def test_chat_without_key_raises(
        self,
        service: AssistantService,
        mock_api_keys: MagicMock,
        mock_llm_client: MagicMock,
        user_id: str,
    ) -> None:
        mock_api_keys.get_decoded_key = AsyncMock(return_value=None)

        with pytest.raises(ApiKeyRequiredError):
            await service.chat(user_id, "Hello")
        mock_llm_client.complete.assert_not_awaited()

    async def test_chat_raises_for_unknown_conversation(
        self,
        service: AssistantService,
        mock_conversation_manager: MagicMock,
        user_id: str,
    ) -> None:
        mock_conversation_manager.get_conversation_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="Conversation not found"):
            await service.chat(user_id, "Hello", conversation_id="nonexistent-uuid")


# =============================================================================
# Conversation Management Tests
# =============================================================================


class TestConversationManagement:
    """Tests for conversation CRUD wrappers."""

    async def test_get_missing_conversation_raises(
        self, service: AssistantService, user_id: str
    ) -> None:
        with pytest.raises(NotFoundError):
            await service.get_conversation(user_id, "missing")

    async def test_rename_missing_conversation_raises(
        self, service: AssistantService, user_id: str
    ) -> None:
        with pytest.raises(NotFoundError):
            await service.rename_conversation(user_id, "missing", "New title")

    async def test_delete_missing_conversation_raises(
        self, service: AssistantService, user_id: str
    ) -> None:
        with pytest.raises(NotFoundError):
            await service.delete_conversation(user_id, "missing")

    async def test_clear_missing_conversation_raises(
        self, service: AssistantService, user_id: str
    ) -> None:
        with pytest.raises(NotFoundError):
            await service.clear_conversation_messages(user_id, "missing")

    async def test_clear_all(self, service: AssistantService, user_id: str) -> None:
        assert await service.clear_all_conversations(user_id) == 3


class TestMakeTitle:
    """Tests for conversation titles."""

    def test_short_message(self) -> None:
        assert make_title("What is recursion?") == "What is recursion?"

    def test_long_message_is_truncated(self) -> None:
        title = make_title("x" * 80)

        assert title == "x" * 50 + "..."

    def test_blank_message(self) -> None:
        assert make_title("   ") == "New Conversation"
