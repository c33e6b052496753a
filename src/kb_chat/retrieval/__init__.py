"""
Retrieval module - document storage and similarity ranking for RAG.

This module provides:
- Document / DocumentSummary: The document models
- DocumentStoreConfig: Configuration for stores
- SQLiteDocumentStore: Single-file production store
- InMemoryDocumentStore: Testing/development store
- get_document_store(): Factory function
- cosine_similarity() / rank_documents(): Brute-force ranking
"""

from kb_chat.retrieval.document import (
    DEFAULT_PREVIEW_CHARS,
    Document,
    DocumentSummary,
)
from kb_chat.retrieval.similarity import (
    DEFAULT_MIN_SCORE,
    DEFAULT_TOP_K,
    cosine_similarity,
    rank_documents,
)
from kb_chat.retrieval.store import (
    DocumentStoreConfig,
    SQLiteDocumentStore,
    InMemoryDocumentStore,
    get_document_store,
    validate_content,
)

__all__ = [
    # Documents
    "DEFAULT_PREVIEW_CHARS",
    "Document",
    "DocumentSummary",
    # Ranking
    "DEFAULT_MIN_SCORE",
    "DEFAULT_TOP_K",
    "cosine_similarity",
    "rank_documents",
    # Stores
    "DocumentStoreConfig",
    "SQLiteDocumentStore",
    "InMemoryDocumentStore",
    "get_document_store",
    "validate_content",
]
