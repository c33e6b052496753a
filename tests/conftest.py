"""
Shared test doubles.

Every collaborator of the orchestrator and the stores has a fake here, so
no test touches the network.
"""

import numpy as np
import pytest

from kb_chat.core.protocols import ChatMessage
from kb_chat.retrieval.document import Document
from kb_chat.retrieval.store import InMemoryDocumentStore


class FakeEmbeddings:
    """Returns fixed vectors per text; unknown texts get `default`."""

    def __init__(self, vectors=None, default=(0.0, 0.0, 1.0), error=None):
        self.vectors = vectors or {}
        self.default = default
        self.error = error
        self.calls: list[str] = []

    @property
    def model(self) -> str:
        return "fake-embedding"

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return np.array(self.vectors.get(text, self.default), dtype=np.float64)


class FakeModeration:
    def __init__(self, flagged=False, error=None):
        self.flagged = flagged
        self.error = error
        self.calls: list[str] = []

    async def is_flagged(self, text: str) -> bool:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.flagged


class FakeChatModel:
    def __init__(self, reply="Hello from the model", error=None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings(
        vectors={
            "How do I rotate the API keys?": (1.0, 0.0, 0.0),
            "What is for lunch?": (0.0, 1.0, 0.0),
        }
    )


@pytest.fixture
def fake_moderation():
    return FakeModeration()


@pytest.fixture
def fake_chat_model():
    return FakeChatModel()


@pytest.fixture
def seeded_store(fake_embeddings):
    """In-memory store with three documents at known angles to (1, 0, 0)."""
    store = InMemoryDocumentStore(fake_embeddings)
    store.insert_document(Document(
        id=1,
        title="Key rotation runbook",
        content="Rotate keys every 90 days using the vault CLI.",
        embedding=np.array([1.0, 0.0, 0.0]),
    ))
    store.insert_document(Document(
        id=2,
        title=None,
        content="Vault access requires an on-call approval.",
        embedding=np.array([0.8, 0.6, 0.0]),
    ))
    store.insert_document(Document(
        id=3,
        title="Cafeteria menu",
        content="Tacos on Tuesday.",
        embedding=np.array([0.0, 1.0, 0.0]),
    ))
    return store
