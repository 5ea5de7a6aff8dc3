"""
LLM Service Module

Provides a single chat-completion interface via LiteLLM with
operation-based model selection and per-user API keys.

Key Components:
- client.py: LLMClient with async completion and retries
- usage.py: LLMUsage records built from LiteLLM responses

Usage:
    from learnloop.enums import LLMOperation
    from learnloop.services.llm import get_llm_client

    client = get_llm_client()
    response, usage = await client.complete(
        operation=LLMOperation.DASHBOARD_CHAT,
        messages=[{"role": "user", "content": "Hello"}],
        api_key=user_key,
    )
"""

from learnloop.services.llm.client import (
    LLMClient,
    get_llm_client,
    reset_llm_client,
)
from learnloop.services.llm.usage import LLMUsage

__all__ = [
    "LLMClient",
    "LLMUsage",
    "get_llm_client",
    "reset_llm_client",
]
