"""LLM clients - moderation and chat completion over the OpenAI API."""

from kb_chat.llm.openai_clients import (
    DEFAULT_MODERATION_MODEL,
    OpenAIChatModel,
    OpenAIModeration,
    create_openai_client,
)

__all__ = [
    "DEFAULT_MODERATION_MODEL",
    "OpenAIChatModel",
    "OpenAIModeration",
    "create_openai_client",
]
