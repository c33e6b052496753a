"""
OpenAI-backed moderation and chat-completion clients.

Both wrap a single shared AsyncOpenAI instance created by create_openai_client.
That client carries an explicit timeout and max_retries=0: a hung upstream
call fails the request instead of hanging it, and the completion call is
never retried automatically.
"""

from __future__ import annotations

import logging

from openai import AsyncOpenAI

from kb_chat.core.protocols import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_MODERATION_MODEL = "omni-moderation-latest"


def create_openai_client(api_key: str, timeout_seconds: float = 30.0) -> AsyncOpenAI:
    """Create the AsyncOpenAI client shared by embeddings, moderation and chat."""
    return AsyncOpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)


class OpenAIModeration:
    """Moderation check using the OpenAI moderations endpoint."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODERATION_MODEL):
        self._client = client
        self.model = model

    async def is_flagged(self, text: str) -> bool:
        response = await self._client.moderations.create(model=self.model, input=text)
        if not response.results:
            return False
        result = response.results[0]
        if result.flagged:
            logger.info("Moderation flagged content (model=%s)", self.model)
        return bool(result.flagged)


class OpenAIChatModel:
    """Chat-completion client returning only the first choice's text."""

    def __init__(self, client: AsyncOpenAI):
        self._client = client

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        response = await self._client.chat.completions.create(
            model=model,
            messages=[m.to_dict() for m in messages],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
