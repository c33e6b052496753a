"""Unit Tests for system prompt composition."""

from kb_chat.chat.prompts import (
    CONTEXT_INSTRUCTION,
    SYSTEM_PROMPT_PARTS,
    build_system_prompt,
    compose_context,
    format_match,
)
from kb_chat.core.protocols import ScoredMatch
from kb_chat.retrieval.document import Document


def _match(doc_id, score, title=None, content="body"):
    return ScoredMatch(document=Document(id=doc_id, title=title, content=content), score=score)


class TestFormatMatch:
    def test_header_has_title_and_rounded_score(self):
        block = format_match(1, _match(9, 0.87654, title="Runbook", content="Step one."))

        assert block == "--- DOCUMENT 1 (Runbook, score=0.877) ---\nStep one."

    def test_missing_title_is_untitled(self):
        assert format_match(2, _match(3, 0.7)).startswith("--- DOCUMENT 2 (untitled, score=0.700) ---")

    def test_full_content_included(self):
        content = "x" * 5000
        assert format_match(1, _match(1, 0.9, content=content)).endswith(content)


class TestComposeContext:
    def test_blocks_numbered_and_separated(self):
        context = compose_context([_match(5, 0.9, title="A"), _match(6, 0.8, title="B")])

        first, second = context.split("\n\n")
        assert first.startswith("--- DOCUMENT 1 (A,")
        assert second.startswith("--- DOCUMENT 2 (B,")

    def test_empty_without_matches(self):
        assert compose_context([]) == ""


class TestBuildSystemPrompt:
    def test_behavior_norms_always_present(self):
        prompt = build_system_prompt([])

        for part in SYSTEM_PROMPT_PARTS:
            assert part in prompt
        assert "Ask clarifying questions" in prompt
        assert "cite the provided documents" in prompt

    def test_no_context_block_without_matches(self):
        assert CONTEXT_INSTRUCTION not in build_system_prompt([])

    def test_context_appended_after_norms(self):
        prompt = build_system_prompt([_match(1, 0.9, title="Runbook")])

        assert prompt.index(SYSTEM_PROMPT_PARTS[-1]) < prompt.index(CONTEXT_INSTRUCTION)
        assert prompt.endswith("--- DOCUMENT 1 (Runbook, score=0.900) ---\nbody")
