"""
System prompt and retrieved-context formatting.

The system prompt is fixed; retrieved documents are appended as clearly
delimited blocks so the model can cite them by number.
"""

from __future__ import annotations

from kb_chat.core.protocols import ScoredMatch

SYSTEM_PROMPT_PARTS: tuple[str, ...] = (
    "You are an extremely capable, safe, and concise AI assistant. Help the user solve "
    "problems across many domains: programming, writing, math, planning, troubleshooting, "
    "and general knowledge. When appropriate:",
    "- Ask clarifying questions before assuming.",
    "- Provide step-by-step plans, example code, and explanation in simple terms.",
    "- If an answer requires external resources or current events beyond your knowledge, "
    "say so and offer a plan to find the info.",
    "- If multiple reasonable options exist, list them with pros/cons.",
    "- Keep answers factual, avoid hallucinations, and cite the provided documents when "
    "they are used.",
)

CONTEXT_INSTRUCTION = (
    "The following documents were retrieved from the user's knowledge base and may be "
    "relevant. Use them to inform your answer and cite them inline when referenced:"
)

UNTITLED = "untitled"


def format_match(index: int, match: ScoredMatch) -> str:
    """Render one retrieved document as a numbered block (1-based index)."""
    title = match.document.title or UNTITLED
    header = f"--- DOCUMENT {index} ({title}, score={match.score:.3f}) ---"
    return f"{header}\n{match.document.content}"


def compose_context(matches: list[ScoredMatch]) -> str:
    """Join all retrieved blocks; empty string when nothing was retrieved."""
    return "\n\n".join(format_match(i, m) for i, m in enumerate(matches, start=1))


def build_system_prompt(matches: list[ScoredMatch]) -> str:
    """Build the system prompt, appending retrieved context when present."""
    parts = list(SYSTEM_PROMPT_PARTS)
    context = compose_context(matches)
    if context:
        parts.append(f"{CONTEXT_INSTRUCTION}\n{context}")
    return "\n\n".join(parts)
