"""
Core protocols defining contracts for the chat backend.

All infrastructure components implement these protocols, so the orchestrator
receives its collaborators explicitly instead of reaching for module-level
clients. Tests substitute fakes for every one of them.

PATTERN:
--------
- Protocol defines the contract
- Production implementation talks to OpenAI / SQLite
- Test double keeps unit tests offline and fast
- Factory function wires the production graph from Settings
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from kb_chat.retrieval.document import Document, DocumentSummary


Role = Literal["system", "user", "assistant"]
ROLES: tuple[str, ...] = ("system", "user", "assistant")


# ---------------------------------------------------------------------------
# CONVERSATION TYPES
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChatMessage:
    """One role-tagged message of a conversation."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ScoredMatch:
    """A stored document paired with its similarity to the query vector."""

    document: Document
    score: float


@dataclass
class ChatReply:
    """Result of one orchestrated chat turn."""

    reply: str
    model: str
    matches: list[ScoredMatch] = field(default_factory=list)


# ---------------------------------------------------------------------------
# EMBEDDING PROVIDER PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Contract for embedding generation.

    Implementations:
    - OpenAIEmbeddings (production)
    - FakeEmbeddings in tests/conftest.py
    """

    @property
    def model(self) -> str:
        """Name of the embedding model; recorded next to stored vectors."""
        ...

    async def embed(self, text: str) -> np.ndarray:
        """Generate embedding for a single text."""
        ...


# ---------------------------------------------------------------------------
# MODERATION / CHAT MODEL PROTOCOLS
# ---------------------------------------------------------------------------


@runtime_checkable
class ModerationProvider(Protocol):
    """Contract for the content-safety check run before every chat turn."""

    async def is_flagged(self, text: str) -> bool:
        """Return True when the text violates the provider's policy."""
        ...


@runtime_checkable
class ChatModel(Protocol):
    """Contract for the chat-completion call."""

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return the text of the first choice, or an empty string."""
        ...


# ---------------------------------------------------------------------------
# DOCUMENT STORE PROTOCOL
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentStore(Protocol):
    """
    Contract for document persistence.

    Implementations:
    - SQLiteDocumentStore (production, single local file)
    - InMemoryDocumentStore (testing/development)
    """

    def create_schema(self) -> None:
        """Create tables if needed."""
        ...

    def close(self) -> None:
        """Release resources held by the store."""
        ...

    async def add(self, content: str, title: str | None = None) -> int:
        """Embed and store a document, returning its new identifier."""
        ...

    async def list_documents(self) -> list[DocumentSummary]:
        """List documents newest-first with truncated content."""
        ...

    async def all_with_embeddings(self) -> list[Document]:
        """Return every document with its embedding, in storage order."""
        ...

    async def count(self) -> int:
        """Number of stored documents."""
        ...
