"""
Semantic Conventions for Span Attributes

Defines attribute keys following OpenTelemetry GenAI conventions
plus custom namespaces for chat and retrieval steps.

Reference: https://opentelemetry.io/docs/specs/semconv/gen-ai/
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kb_chat.core.protocols import ScoredMatch

# ---------------------------------------------------------------------------
# GENAI NAMESPACE (OTel standard)
# ---------------------------------------------------------------------------

GEN_AI_SYSTEM = "gen_ai.system"  # "openai"
GEN_AI_REQUEST_MODEL = "gen_ai.request.model"  # "gpt-4"
GEN_AI_REQUEST_TEMPERATURE = "gen_ai.request.temperature"
GEN_AI_REQUEST_MAX_TOKENS = "gen_ai.request.max_tokens"

# Reply text (optional, controlled by PHOENIX_CAPTURE_LLM_CONTENT)
GEN_AI_COMPLETION = "gen_ai.completion"


# ---------------------------------------------------------------------------
# CHAT NAMESPACE (custom)
# ---------------------------------------------------------------------------

CHAT_MESSAGE_COUNT = "chat.message_count"
CHAT_STEP_DEGRADED = "chat.step.degraded"  # bool, best-effort step fell back
CHAT_MODERATION_FLAGGED = "chat.moderation.flagged"  # bool
CHAT_REPLY_CHARS = "chat.reply_chars"


# ---------------------------------------------------------------------------
# RAG NAMESPACE (custom)
# ---------------------------------------------------------------------------

RAG_CANDIDATE_COUNT = "rag.candidate_count"
RAG_RETRIEVED_DOC_COUNT = "rag.retrieved_doc_count"
RAG_RETRIEVED_DOC_IDS = "rag.retrieved_doc_ids"
RAG_TOP_SCORE = "rag.top_score"
RAG_TOP_K = "rag.top_k"
RAG_MIN_SCORE = "rag.min_score"


# ---------------------------------------------------------------------------
# HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def chat_request_attributes(
    model: str,
    message_count: int,
    temperature: float,
    max_tokens: int,
) -> dict:
    """Create attributes dict for a chat request span."""
    return {
        GEN_AI_SYSTEM: "openai",
        GEN_AI_REQUEST_MODEL: model,
        GEN_AI_REQUEST_TEMPERATURE: temperature,
        GEN_AI_REQUEST_MAX_TOKENS: max_tokens,
        CHAT_MESSAGE_COUNT: message_count,
    }


def retrieval_attributes(
    matches: list[ScoredMatch],
    candidate_count: int,
    top_k: int,
    min_score: float,
) -> dict:
    """Create attributes dict for a retrieval span."""
    attrs = {
        RAG_CANDIDATE_COUNT: candidate_count,
        RAG_RETRIEVED_DOC_COUNT: len(matches),
        RAG_RETRIEVED_DOC_IDS: [m.document.id for m in matches],
        RAG_TOP_K: top_k,
        RAG_MIN_SCORE: min_score,
    }
    if matches:
        attrs[RAG_TOP_SCORE] = matches[0].score
    return attrs
