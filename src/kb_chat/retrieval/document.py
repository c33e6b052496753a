"""
Document model for the retrieval system.

Single responsibility: Define the structure of documents
stored in document stores.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

DEFAULT_PREVIEW_CHARS = 800


@dataclass
class Document:
    """
    A stored document with its embedding.

    This is the internal representation handed to the ranker.
    For listings, we convert to DocumentSummary, which never carries
    the full content or the vector.
    """
    id: int
    title: str | None
    content: str
    embedding: np.ndarray | None = None
    embedding_model: str | None = None
    created_at: str | None = None

    def to_summary(self, preview_chars: int = DEFAULT_PREVIEW_CHARS) -> DocumentSummary:
        return DocumentSummary(
            id=self.id,
            title=self.title,
            snippet=self.content[:preview_chars],
            created_at=self.created_at,
        )


@dataclass
class DocumentSummary:
    """Listing view of a document: content truncated, no embedding."""
    id: int
    title: str | None
    snippet: str
    created_at: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "snippet": self.snippet,
            "created_at": self.created_at,
        }
