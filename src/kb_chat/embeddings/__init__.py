"""
Embeddings module - text embedding generation.

The EmbeddingProvider protocol lives in kb_chat.core; OpenAIEmbeddings is the
production implementation. Tests inject their own fakes.
"""

from kb_chat.embeddings.openai_embeddings import (
    DEFAULT_EMBEDDING_MODEL,
    OpenAIEmbeddings,
)

__all__ = [
    "DEFAULT_EMBEDDING_MODEL",
    "OpenAIEmbeddings",
]
