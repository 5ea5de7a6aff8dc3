"""
Assistant Service Package

Dashboard chat assistant:
- service: AssistantService with chat and conversation methods
- conversation_manager: ConversationManager for conversation CRUD

Usage:
    from learnloop.services.assistant import AssistantService

    service = AssistantService(db, llm_client)
    response = await service.chat(user_id, message)
"""

from learnloop.services.assistant.service import AssistantService
from learnloop.services.assistant.conversation_manager import ConversationManager

__all__ = ["AssistantService", "ConversationManager"]
