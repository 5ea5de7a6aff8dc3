"""
Unit Tests for the LLM Client

Tests for LLMClient with litellm.acompletion patched out:
- Operation-based model and token budget selection
- The user's key is passed through per call
- JSON mode parsing
- Usage extraction
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from tenacity import wait_none

from learnloop.config import settings
from learnloop.enums.api import LLMOperation
from learnloop.services.llm.client import LLMClient, get_llm_client, reset_llm_client
from learnloop.services.llm.usage import extract_provider


def _response(content: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=8, total_tokens=20),
        id="chatcmpl-1",
        _hidden_params={"response_cost": 0.0001},
    )


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Retries keep their count but skip the backoff sleeps."""
    monkeypatch.setattr(LLMClient.complete.retry, "wait", wait_none())


class TestModelSelection:
    """Tests for per-operation configuration."""

    def test_models(self) -> None:
        client = LLMClient()

        assert client.get_model_for_operation(LLMOperation.DASHBOARD_CHAT) == settings.CHAT_MODEL
        assert client.get_model_for_operation("tutor_response") == settings.TUTOR_MODEL
        assert client.get_model_for_operation("unknown") == settings.CHAT_MODEL

    def test_max_tokens(self) -> None:
        client = LLMClient()

        assert client.get_max_tokens_for_operation(LLMOperation.DASHBOARD_CHAT) == 500
        assert client.get_max_tokens_for_operation(LLMOperation.TUTOR_RESPONSE) == 600
        assert client.get_max_tokens_for_operation("unknown") == settings.CHAT_MAX_TOKENS


class TestComplete:
    """Tests for LLMClient.complete."""

    async def test_passes_user_key_and_budget(self) -> None:
        client = LLMClient()
        with patch(
            "learnloop.services.llm.client.acompletion",
            new=AsyncMock(return_value=_response("Hello!")),
        ) as mock_acompletion:
            content, usage = await client.complete(
                operation=LLMOperation.DASHBOARD_CHAT,
                messages=[{"role": "user", "content": "Hi"}],
                api_key="sk-user-key",
                user_id="user-1",
            )

        assert content == "Hello!"
        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["api_key"] == "sk-user-key"
        assert kwargs["model"] == settings.CHAT_MODEL
        assert kwargs["max_tokens"] == 500
        assert kwargs["temperature"] == settings.LLM_TEMPERATURE
        assert "response_format" not in kwargs
        assert usage.total_tokens == 20
        assert usage.user_id == "user-1"
        assert usage.operation == "dashboard_chat"

    async def test_json_mode_parses(self) -> None:
        client = LLMClient()
        with patch(
            "learnloop.services.llm.client.acompletion",
            new=AsyncMock(return_value=_response('{"title": "Rust"}')),
        ) as mock_acompletion:
            content, _ = await client.complete(
                operation=LLMOperation.CURRICULUM_GENERATION,
                messages=[{"role": "user", "content": "Make a curriculum"}],
                json_mode=True,
                temperature=0.4,
            )

        assert content == {"title": "Rust"}
        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.4
        assert "api_key" not in kwargs

    async def test_failure_is_retried_then_raised(self) -> None:
        client = LLMClient()
        mock_acompletion = AsyncMock(side_effect=RuntimeError("provider down"))
        with patch("learnloop.services.llm.client.acompletion", new=mock_acompletion):
            with pytest.raises(RuntimeError, match="provider down"):
                await client.complete(
                    operation=LLMOperation.TUTOR_RESPONSE,
                    messages=[{"role": "user", "content": "Hi"}],
                )

        assert mock_acompletion.await_count == 3


class TestHelpers:
    """Tests for module helpers."""

    def test_extract_provider(self) -> None:
        assert extract_provider("openai/gpt-3.5-turbo") == "openai"

    def test_singleton(self) -> None:
        reset_llm_client()
        assert get_llm_client() is get_llm_client()
        reset_llm_client()
