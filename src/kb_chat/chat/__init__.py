"""
Chat module - the retrieval-augmented request pipeline.

- ChatOrchestrator: moderation -> retrieval -> prompt -> completion
- best_effort(): degrade-gracefully combinator for secondary steps
- build_system_prompt(): fixed prompt plus retrieved context
- get_orchestrator(): production wiring from Settings
"""

from kb_chat.chat.fallback import best_effort
from kb_chat.chat.orchestrator import (
    ChatOrchestrator,
    CompletionSettings,
    RetrievalSettings,
    assemble_messages,
    get_orchestrator,
    latest_user_content,
    normalize_messages,
)
from kb_chat.chat.prompts import (
    CONTEXT_INSTRUCTION,
    SYSTEM_PROMPT_PARTS,
    build_system_prompt,
    compose_context,
    format_match,
)

__all__ = [
    "best_effort",
    "ChatOrchestrator",
    "CompletionSettings",
    "RetrievalSettings",
    "assemble_messages",
    "get_orchestrator",
    "latest_user_content",
    "normalize_messages",
    "CONTEXT_INSTRUCTION",
    "SYSTEM_PROMPT_PARTS",
    "build_system_prompt",
    "compose_context",
    "format_match",
]
