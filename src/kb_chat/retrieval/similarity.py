"""
Similarity ranking - brute-force cosine search over stored vectors.

Pure functions, no I/O: given a query vector and the stored documents,
score every document and keep the best few above a threshold.

SCALING LIMIT:
--------------
This is a linear scan, O(N * D) per query for N documents of dimension D.
Fine for tens to low thousands of documents; anything larger needs an
approximate-nearest-neighbor index, which is out of scope here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from kb_chat.core.protocols import ScoredMatch
from kb_chat.retrieval.document import Document

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3
DEFAULT_MIN_SCORE = 0.65


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """
    Cosine similarity between two vectors of equal length.

    Returns 0.0 when either vector has zero magnitude: a vector with no
    direction is treated as similar to nothing.

    Raises:
        ValueError: if the vectors differ in shape
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vector shapes differ: {va.shape} vs {vb.shape}")

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def _as_vector(doc: Document, dims: int) -> np.ndarray | None:
    """Coerce a stored embedding, or None if it cannot be compared."""
    if doc.embedding is None:
        logger.warning("Skipping document %s: no embedding stored", doc.id)
        return None
    try:
        vector = np.asarray(doc.embedding, dtype=np.float64)
    except (TypeError, ValueError):
        logger.warning("Skipping document %s: malformed embedding", doc.id)
        return None
    if vector.ndim != 1 or vector.shape[0] != dims:
        # Written by a different embedding model
        logger.warning(
            "Skipping document %s: embedding has shape %s, query has %d dims (model=%s)",
            doc.id, vector.shape, dims, doc.embedding_model,
        )
        return None
    if not np.all(np.isfinite(vector)):
        logger.warning("Skipping document %s: embedding contains non-finite values", doc.id)
        return None
    return vector


def rank_documents(
    query: Sequence[float] | np.ndarray,
    documents: Iterable[Document],
    limit: int = DEFAULT_TOP_K,
    threshold: float = DEFAULT_MIN_SCORE,
) -> list[ScoredMatch]:
    """
    Rank documents by cosine similarity to the query vector.

    Candidates are sorted by score descending; equal scores keep storage
    order. The first `limit` candidates are taken and only those scoring
    strictly above `threshold` are returned.

    Documents with missing, malformed or mismatched-dimension embeddings
    are skipped one at a time and logged.

    Args:
        query: Query embedding
        documents: Stored documents, in storage order
        limit: Maximum number of matches (K)
        threshold: Minimum score, exclusive (T)

    Returns:
        At most `limit` ScoredMatch objects, best first
    """
    query_vec = np.asarray(query, dtype=np.float64)
    if query_vec.ndim != 1 or query_vec.shape[0] == 0:
        raise ValueError("Query vector must be a non-empty one-dimensional sequence")
    if limit <= 0:
        return []

    scored: list[ScoredMatch] = []
    for doc in documents:
        vector = _as_vector(doc, query_vec.shape[0])
        if vector is None:
            continue
        scored.append(ScoredMatch(document=doc, score=cosine_similarity(query_vec, vector)))

    # list.sort is stable, reverse=True included
    scored.sort(key=lambda match: match.score, reverse=True)

    return [match for match in scored[:limit] if match.score > threshold]
