"""
Chat orchestrator - turns one conversation into one model reply.

PIPELINE (fixed order):
-----------------------
1. validate     conversation must be a non-empty list of role-tagged messages
2. extract      latest `user` message content ("" when there is none)
3. moderation   best-effort; flagged content rejects the request (403)
4. retrieval    best-effort; embed -> load all vectors -> rank (K=3, T=0.65)
5. compose      fixed system prompt + retrieved document blocks
6. assemble     composed system message replaces any caller system message
7. complete     chat completion, low temperature, bounded length
8. return       reply text

Only steps 1, 3 (flagged) and 7 produce errors. Steps 3 and 4 degrade through
best_effort when their services fail.

Every collaborator is passed into the constructor, so tests run the whole
pipeline against fakes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kb_chat.chat.fallback import best_effort
from kb_chat.chat.prompts import build_system_prompt
from kb_chat.core.errors import ModelCallError, ModerationRejectedError, ValidationError
from kb_chat.core.protocols import (
    ROLES,
    ChatMessage,
    ChatModel,
    ChatReply,
    DocumentStore,
    EmbeddingProvider,
    ModerationProvider,
    ScoredMatch,
)
from kb_chat.observability import get_config as get_observability_config
from kb_chat.observability import get_tracer
from kb_chat.observability.attributes import (
    CHAT_MODERATION_FLAGGED,
    CHAT_REPLY_CHARS,
    CHAT_STEP_DEGRADED,
    GEN_AI_COMPLETION,
    chat_request_attributes,
    retrieval_attributes,
)
from kb_chat.retrieval.similarity import DEFAULT_MIN_SCORE, DEFAULT_TOP_K, rank_documents

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from kb_chat.config import Settings
    from kb_chat.observability.tracer import TracerProtocol

logger = logging.getLogger(__name__)


@dataclass
class RetrievalSettings:
    """How many documents to inject and how similar they must be."""

    top_k: int = DEFAULT_TOP_K
    min_score: float = DEFAULT_MIN_SCORE


@dataclass
class CompletionSettings:
    """Sampling parameters for the chat-completion call."""

    temperature: float = 0.2
    max_tokens: int = 1200


def normalize_messages(raw: Any) -> list[ChatMessage]:
    """
    Validate caller-supplied messages.

    Accepts ChatMessage instances or mappings with `role` and `content`.

    Raises:
        ValidationError: not a non-empty list of valid role-tagged messages
    """
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise ValidationError("messages must be an array")
    if not raw:
        raise ValidationError("messages must not be empty")

    messages: list[ChatMessage] = []
    for i, item in enumerate(raw):
        if isinstance(item, ChatMessage):
            messages.append(item)
            continue
        if not isinstance(item, Mapping):
            raise ValidationError(f"messages[{i}] must be an object with role and content")
        role = item.get("role")
        content = item.get("content")
        if role not in ROLES:
            raise ValidationError(f"messages[{i}].role must be one of {', '.join(ROLES)}")
        if not isinstance(content, str):
            raise ValidationError(f"messages[{i}].content must be a string")
        messages.append(ChatMessage(role=role, content=content))
    return messages


def latest_user_content(messages: list[ChatMessage]) -> str:
    """Content of the most recent user message, or "" if there is none."""
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""


def assemble_messages(system_prompt: str, messages: list[ChatMessage]) -> list[ChatMessage]:
    """Put the composed system prompt first and drop caller system messages."""
    return [ChatMessage(role="system", content=system_prompt)] + [
        m for m in messages if m.role != "system"
    ]


class ChatOrchestrator:
    """Sequences moderation, retrieval, prompt composition and completion."""

    def __init__(
        self,
        embeddings: EmbeddingProvider,
        moderation: ModerationProvider,
        chat_model: ChatModel,
        store: DocumentStore,
        default_model: str = "gpt-4",
        retrieval: RetrievalSettings | None = None,
        completion: CompletionSettings | None = None,
        tracer: TracerProtocol | None = None,
    ):
        self._embeddings = embeddings
        self._moderation = moderation
        self._chat_model = chat_model
        self._store = store
        self.default_model = default_model
        self.retrieval = retrieval or RetrievalSettings()
        self.completion = completion or CompletionSettings()
        self._tracer = tracer

    @property
    def tracer(self) -> TracerProtocol:
        return self._tracer or get_tracer()

    async def reply(self, messages: Any, model: str | None = None) -> ChatReply:
        """
        Produce the assistant's reply to a conversation.

        Raises:
            ValidationError: malformed conversation
            ModerationRejectedError: latest user message was flagged
            ModelCallError: the completion call failed
        """
        conversation = normalize_messages(messages)
        model = model or self.default_model
        content = latest_user_content(conversation)

        attrs = chat_request_attributes(
            model=model,
            message_count=len(conversation),
            temperature=self.completion.temperature,
            max_tokens=self.completion.max_tokens,
        )
        with self.tracer.start_span("chat.reply", attributes=attrs) as span:
            if await self._is_flagged(content):
                span.mark_error("moderation flagged")
                raise ModerationRejectedError("Content flagged by moderation")

            matches = await self._retrieve(content)
            system_prompt = build_system_prompt(matches)
            final_messages = assemble_messages(system_prompt, conversation)

            text = await self._complete(final_messages, model)
            span.set_attribute(CHAT_REPLY_CHARS, len(text))
            if get_observability_config().capture_llm_content:
                span.set_attribute(GEN_AI_COMPLETION, text)
            span.mark_ok()

        return ChatReply(reply=text, model=model, matches=matches)

    async def _is_flagged(self, content: str) -> bool:
        with self.tracer.start_span("chat.moderation") as span:
            flagged = await best_effort(
                "Moderation check",
                lambda: self._moderation.is_flagged(content),
                fallback=False,
                on_fallback=lambda e: span.set_attribute(CHAT_STEP_DEGRADED, True),
            )
            span.set_attribute(CHAT_MODERATION_FLAGGED, flagged)
        return flagged

    async def _retrieve(self, content: str) -> list[ScoredMatch]:
        with self.tracer.start_span("chat.retrieval") as span:
            return await best_effort(
                "RAG retrieval",
                lambda: self._rank(content, span),
                fallback=[],
                on_fallback=lambda e: span.set_attribute(CHAT_STEP_DEGRADED, True),
            )

    async def _rank(self, content: str, span: Any) -> list[ScoredMatch]:
        query = await self._embeddings.embed(content)
        documents = await self._store.all_with_embeddings()
        matches = rank_documents(
            query,
            documents,
            limit=self.retrieval.top_k,
            threshold=self.retrieval.min_score,
        )
        span.set_attributes(retrieval_attributes(
            matches,
            candidate_count=len(documents),
            top_k=self.retrieval.top_k,
            min_score=self.retrieval.min_score,
        ))
        logger.debug(
            "Retrieved %d of %d documents (ids=%s)",
            len(matches), len(documents), [m.document.id for m in matches],
        )
        return matches

    async def _complete(self, messages: list[ChatMessage], model: str) -> str:
        with self.tracer.start_span("chat.completion") as span:
            try:
                return await self._chat_model.complete(
                    messages,
                    model=model,
                    temperature=self.completion.temperature,
                    max_tokens=self.completion.max_tokens,
                )
            except Exception as e:
                logger.error("Chat completion failed (model=%s): %s", model, e)
                span.mark_error(str(e), exception=e)
                raise ModelCallError("Internal server error", details=str(e)) from e


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_orchestrator(
    settings: Settings,
    client: AsyncOpenAI,
    store: DocumentStore,
    embeddings: EmbeddingProvider | None = None,
) -> ChatOrchestrator:
    """
    Wire the production orchestrator around a shared AsyncOpenAI client.

    Args:
        settings: Application settings
        client: Shared AsyncOpenAI client
        store: Document store used for retrieval
        embeddings: Embedding provider (created from client if omitted)
    """
    from kb_chat.embeddings import OpenAIEmbeddings
    from kb_chat.llm import OpenAIChatModel, OpenAIModeration

    return ChatOrchestrator(
        embeddings=embeddings or OpenAIEmbeddings(client, model=settings.embedding_model),
        moderation=OpenAIModeration(client, model=settings.moderation_model),
        chat_model=OpenAIChatModel(client),
        store=store,
        default_model=settings.chat_model,
        retrieval=RetrievalSettings(top_k=settings.top_k, min_score=settings.min_score),
        completion=CompletionSettings(
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        ),
    )
