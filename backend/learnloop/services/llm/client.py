"""
Chat-completion client built on LiteLLM.

LiteLLM provides a unified interface to LLM providers using the format
"provider/model-name". Key features:
- Operation-based model selection via the LLMOperation enum
- Per-call API keys (every call is made with the user's own stored key)
- Usage reporting via LLMUsage
- Automatic retries with exponential backoff

See: https://docs.litellm.ai/

Usage:
    from learnloop.enums import LLMOperation
    from learnloop.services.llm import get_llm_client

    client = get_llm_client()

    response, usage = await client.complete(
        operation=LLMOperation.TUTOR_RESPONSE,
        messages=[{"role": "system", "content": "..."}, ...],
        api_key=user_key,
    )
"""

import json
import logging
import os
import time
from typing import Any, Optional, Union

import litellm
from litellm import acompletion
from tenacity import retry, stop_after_attempt, wait_exponential

from learnloop.config.settings import settings
from learnloop.enums.api import LLMOperation
from learnloop.services.llm.usage import (
    LLMUsage,
    create_error_usage,
    extract_usage_from_response,
)

logger = logging.getLogger(__name__)

# Drop unsupported params instead of erroring
litellm.drop_params = True
if settings.DEBUG:
    os.environ["LITELLM_LOG"] = "DEBUG"


class LLMClient:
    """
    LLM client with operation-based model selection and usage reporting.

    Each operation has a configured model and token budget; callers can
    override either per call.

    Attributes:
        MODELS: Operation -> model mapping from settings
        MAX_TOKENS: Operation -> default max_tokens from settings
    """

    MODELS = {
        LLMOperation.DASHBOARD_CHAT: settings.CHAT_MODEL,
        LLMOperation.TUTOR_RESPONSE: settings.TUTOR_MODEL,
        LLMOperation.CURRICULUM_GENERATION: settings.CURRICULUM_MODEL,
    }

    MAX_TOKENS = {
        LLMOperation.DASHBOARD_CHAT: settings.CHAT_MAX_TOKENS,
        LLMOperation.TUTOR_RESPONSE: settings.TUTOR_MAX_TOKENS,
        LLMOperation.CURRICULUM_GENERATION: settings.CURRICULUM_MAX_TOKENS,
    }

    def get_model_for_operation(self, operation: Union[LLMOperation, str]) -> str:
        """
        Get the configured model for a specific operation.

        Args:
            operation: LLMOperation enum value

        Returns:
            Model identifier in LiteLLM format (provider/model-name)
        """
        if isinstance(operation, str):
            try:
                operation = LLMOperation(operation)
            except ValueError:
                logger.warning(f"Unknown operation type: {operation}, using chat model")
                return settings.CHAT_MODEL
        return self.MODELS.get(operation, settings.CHAT_MODEL)

    def get_max_tokens_for_operation(self, operation: Union[LLMOperation, str]) -> int:
        try:
            return self.MAX_TOKENS[LLMOperation(operation)]
        except (KeyError, ValueError):
            return settings.CHAT_MAX_TOKENS

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def complete(
        self,
        operation: Union[LLMOperation, str],
        messages: list[dict],
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        model: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> tuple[Union[str, Any], LLMUsage]:
        """
        Generate a completion using the configured model for the operation.

        Args:
            operation: LLMOperation specifying the operation type.
                Used for model selection, token budget and attribution.
            messages: Chat messages in OpenAI format
                [{"role": "user", "content": "..."}, ...]
            api_key: Provider API key to call with (the user's stored key)
            temperature: Sampling temperature (defaults to LLM_TEMPERATURE)
            max_tokens: Maximum tokens in response (defaults per operation)
            json_mode: Request structured JSON output and parse response as JSON.
                Returns parsed dict/list. JSONDecodeError triggers retry.
            model: Optional model override (bypasses operation-based selection)
            user_id: User id for usage attribution

        Returns:
            Tuple of (response_text or parsed JSON if json_mode, LLMUsage)

        Raises:
            json.JSONDecodeError: If json_mode=True and response is not valid JSON
                after all retries
            Exception: If completion fails after retries
        """
        model = model or self.get_model_for_operation(operation)
        operation_name = operation.value if isinstance(operation, LLMOperation) else operation

        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": settings.LLM_TEMPERATURE if temperature is None else temperature,
            "max_tokens": max_tokens or self.get_max_tokens_for_operation(operation),
        }
        if api_key:
            kwargs["api_key"] = api_key
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        start_time = time.perf_counter()

        try:
            response = await acompletion(**kwargs)
            latency_ms = int((time.perf_counter() - start_time) * 1000)

            usage = extract_usage_from_response(
                response=response,
                model=model,
                latency_ms=latency_ms,
                operation=operation_name,
                user_id=user_id,
            )
            logger.debug(f"LLM completion [{model}] {usage} latency={latency_ms}ms")

            content = response.choices[0].message.content

            if json_mode:
                # JSONDecodeError will trigger @retry
                content = json.loads(content)

            return content, usage

        except json.JSONDecodeError:
            logger.warning(f"JSON decode error, will retry (model={model})")
            raise
        except Exception as e:
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            logger.error(f"LLM completion failed: {e} (model={model})")
            usage = create_error_usage(
                model=model,
                latency_ms=latency_ms,
                error_message=str(e),
                operation=operation_name,
                user_id=user_id,
            )
            logger.debug(f"Failed call: {usage}")
            raise


# Singleton instance
_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """
    Get or create singleton LLM client.

    Returns:
        Shared LLMClient instance
    """
    global _client
    if _client is None:
        _client = LLMClient()
    return _client


def reset_llm_client():
    """Reset the singleton client (useful for testing)."""
    global _client
    _client = None
