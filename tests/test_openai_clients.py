"""
Unit Tests for the OpenAI-backed providers

The AsyncOpenAI client is replaced with MagicMock/AsyncMock objects shaped
like the SDK responses.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from kb_chat.core.protocols import ChatMessage, EmbeddingProvider
from kb_chat.embeddings import OpenAIEmbeddings
from kb_chat.llm import OpenAIChatModel, OpenAIModeration, create_openai_client


@pytest.fixture
def client():
    client = MagicMock()
    client.embeddings.create = AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])
    )
    client.moderations.create = AsyncMock(
        return_value=SimpleNamespace(results=[SimpleNamespace(flagged=False)])
    )
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Sure, here is how."))]
        )
    )
    return client


# ---------------------------------------------------------------------------
# EMBEDDINGS
# ---------------------------------------------------------------------------


class TestOpenAIEmbeddings:
    def test_embed_returns_vector(self, client):
        embeddings = OpenAIEmbeddings(client)

        vector = asyncio.run(embeddings.embed("hello"))

        np.testing.assert_allclose(vector, [0.1, 0.2, 0.3], rtol=1e-6)
        client.embeddings.create.assert_awaited_once_with(
            input="hello", model="text-embedding-3-large"
        )

    def test_model_name(self, client):
        embeddings = OpenAIEmbeddings(client, model="text-embedding-3-small")

        assert embeddings.model == "text-embedding-3-small"
        assert isinstance(embeddings, EmbeddingProvider)

    def test_errors_propagate(self, client):
        client.embeddings.create.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            asyncio.run(OpenAIEmbeddings(client).embed("hello"))


# ---------------------------------------------------------------------------
# MODERATION
# ---------------------------------------------------------------------------


class TestOpenAIModeration:
    def test_not_flagged(self, client):
        moderation = OpenAIModeration(client)

        assert asyncio.run(moderation.is_flagged("hello")) is False
        client.moderations.create.assert_awaited_once_with(
            model="omni-moderation-latest", input="hello"
        )

    def test_flagged(self, client):
        client.moderations.create.return_value = SimpleNamespace(
            results=[SimpleNamespace(flagged=True)]
        )

        assert asyncio.run(OpenAIModeration(client).is_flagged("bad")) is True

    def test_no_results_is_not_flagged(self, client):
        client.moderations.create.return_value = SimpleNamespace(results=[])

        assert asyncio.run(OpenAIModeration(client).is_flagged("hello")) is False


# ---------------------------------------------------------------------------
# CHAT COMPLETION
# ---------------------------------------------------------------------------


class TestOpenAIChatModel:
    def test_complete_returns_first_choice(self, client):
        model = OpenAIChatModel(client)
        messages = [ChatMessage("system", "prompt"), ChatMessage("user", "question")]

        reply = asyncio.run(model.complete(messages, model="gpt-4", temperature=0.2, max_tokens=1200))

        assert reply == "Sure, here is how."
        client.chat.completions.create.assert_awaited_once_with(
            model="gpt-4",
            messages=[
                {"role": "system", "content": "prompt"},
                {"role": "user", "content": "question"},
            ],
            temperature=0.2,
            max_tokens=1200,
        )

    def test_no_choices_is_empty_string(self, client):
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        reply = asyncio.run(OpenAIChatModel(client).complete([], "gpt-4", 0.2, 10))

        assert reply == ""

    def test_null_content_is_empty_string(self, client):
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=None))]
        )

        reply = asyncio.run(OpenAIChatModel(client).complete([], "gpt-4", 0.2, 10))

        assert reply == ""


class TestCreateOpenAIClient:
    def test_timeout_and_no_retries(self):
        client = create_openai_client("sk-test", timeout_seconds=7.0)

        assert client.timeout == 7.0
        assert client.max_retries == 0
