"""
Document store implementations.

Pattern: Protocol -> Production impl -> Test double -> Factory

This module contains:
1. DocumentStoreConfig - Configuration dataclass
2. SQLiteDocumentStore - single-file SQLite store (production)
3. InMemoryDocumentStore - In-memory store (testing/development)
4. get_document_store() - Factory function

SQLite calls are blocking, so the async methods push them onto a worker
thread with asyncio.to_thread. Each call opens its own connection; nothing
is shared between threads. The embedding is computed BEFORE the insert
transaction starts, so a failed embedding or a failed insert never leaves a
partially written row behind.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import numpy as np

from kb_chat.core.errors import ConfigurationError, StoreError, ValidationError
from kb_chat.core.protocols import EmbeddingProvider
from kb_chat.retrieval.document import DEFAULT_PREVIEW_CHARS, Document, DocumentSummary

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------


@dataclass
class DocumentStoreConfig:
    """Configuration for the document store."""

    db_path: str = "data/kb.sqlite"
    table_name: str = "documents"
    preview_chars: int = DEFAULT_PREVIEW_CHARS


def validate_content(content: object) -> str:
    """Reject missing, non-text or empty document content."""
    if not isinstance(content, str) or not content:
        raise ValidationError("content is required")
    return content


def _normalize_title(title: object) -> str | None:
    if title is None:
        return None
    if not isinstance(title, str):
        raise ValidationError("title must be a string")
    return title or None


def _require_embeddings(embeddings: EmbeddingProvider | None) -> EmbeddingProvider:
    if embeddings is None:
        raise ConfigurationError("Server not configured with OPENAI_API_KEY")
    return embeddings


async def _embed(embeddings: EmbeddingProvider, content: str) -> np.ndarray:
    try:
        return await embeddings.embed(content)
    except Exception as e:
        logger.error("Embedding failed for new document: %s", e)
        raise StoreError("failed to add document", details=str(e)) from e


def _parse_embedding(raw: str | None, doc_id: int) -> np.ndarray | None:
    """Decode a JSON-encoded vector; None for rows that cannot be decoded."""
    if raw is None:
        return None
    try:
        values = json.loads(raw)
        return np.asarray(values, dtype=np.float64)
    except (json.JSONDecodeError, TypeError, ValueError):
        logger.warning("Document %s has a malformed embedding column", doc_id)
        return None


def _utc_timestamp() -> str:
    # Same format as SQLite's CURRENT_TIMESTAMP
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# SQLITE STORE (Production)
# ---------------------------------------------------------------------------


class SQLiteDocumentStore:
    """
    SQLite document store.

    Dependencies are INJECTED, not created internally.
    This enables testing with mock embeddings.

    Table layout:
        id INTEGER PRIMARY KEY, title TEXT, content TEXT,
        embedding TEXT (JSON array), embedding_model TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    """

    def __init__(
        self,
        config: DocumentStoreConfig,
        embeddings: EmbeddingProvider | None,
    ):
        """
        Initialize with injected dependencies.

        Args:
            config: Store configuration
            embeddings: Embedding provider (None when no API key is configured;
                reads still work, add() raises ConfigurationError)
        """
        self.config = config
        self._embeddings = embeddings
        self._path = Path(config.db_path)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def close(self) -> None:
        """No-op: connections are closed per call."""
        pass

    def create_schema(self) -> None:
        """Create the documents table, migrating files written without embedding_model."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        table = self.config.table_name
        with self._connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY,
                    title TEXT,
                    content TEXT,
                    embedding TEXT,
                    embedding_model TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            columns = {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}
            if "embedding_model" not in columns:
                logger.info("Adding embedding_model column to %s", table)
                conn.execute(f"ALTER TABLE {table} ADD COLUMN embedding_model TEXT")
            conn.commit()

    async def add(self, content: str, title: str | None = None) -> int:
        """Embed content and insert it in a single transaction."""
        content = validate_content(content)
        title = _normalize_title(title)
        embeddings = _require_embeddings(self._embeddings)

        embedding = await _embed(embeddings, content)
        doc_id = await asyncio.to_thread(
            self._insert, title, content, embedding, embeddings.model
        )
        logger.info("Stored document %d (%d chars)", doc_id, len(content))
        return doc_id

    def _insert(
        self,
        title: str | None,
        content: str,
        embedding: np.ndarray,
        embedding_model: str,
    ) -> int:
        encoded = json.dumps([float(x) for x in embedding])
        try:
            with self._connection() as conn:
                with conn:
                    cursor = conn.execute(
                        f"INSERT INTO {self.config.table_name} "
                        "(title, content, embedding, embedding_model) VALUES (?, ?, ?, ?)",
                        (title, content, encoded, embedding_model),
                    )
                return int(cursor.lastrowid)
        except sqlite3.Error as e:
            raise StoreError("failed to add document", details=str(e)) from e

    async def list_documents(self) -> list[DocumentSummary]:
        return await asyncio.to_thread(self._select_summaries)

    def _select_summaries(self) -> list[DocumentSummary]:
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT id, title, substr(content, 1, ?) AS snippet, created_at "
                f"FROM {self.config.table_name} ORDER BY created_at DESC, id DESC",
                (self.config.preview_chars,),
            ).fetchall()
        return [
            DocumentSummary(
                id=row["id"],
                title=row["title"],
                snippet=row["snippet"] or "",
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def all_with_embeddings(self) -> list[Document]:
        return await asyncio.to_thread(self._select_all)

    def _select_all(self) -> list[Document]:
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT id, title, content, embedding, embedding_model, created_at "
                f"FROM {self.config.table_name} ORDER BY id ASC"
            ).fetchall()
        return [
            Document(
                id=row["id"],
                title=row["title"],
                content=row["content"] or "",
                embedding=_parse_embedding(row["embedding"], row["id"]),
                embedding_model=row["embedding_model"],
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def count(self) -> int:
        return await asyncio.to_thread(self._count)

    def _count(self) -> int:
        with self._connection() as conn:
            (total,) = conn.execute(
                f"SELECT COUNT(*) FROM {self.config.table_name}"
            ).fetchone()
        return int(total)


# ---------------------------------------------------------------------------
# IN-MEMORY STORE (Testing/Development)
# ---------------------------------------------------------------------------


class InMemoryDocumentStore:
    """
    In-memory document store for development/testing.

    Implements the same interface as SQLiteDocumentStore without touching disk.
    """

    def __init__(
        self,
        embeddings: EmbeddingProvider | None,
        preview_chars: int = DEFAULT_PREVIEW_CHARS,
    ):
        self._embeddings = embeddings
        self._preview_chars = preview_chars
        self._documents: list[Document] = []
        self._next_id = 1

    def close(self) -> None:
        """No-op for in-memory store."""
        pass

    def create_schema(self) -> None:
        """No-op for in-memory store."""
        pass

    def insert_document(self, doc: Document) -> None:
        """Insert a pre-embedded document (seeding and tests)."""
        if doc.created_at is None:
            doc.created_at = _utc_timestamp()
        self._documents.append(doc)
        self._next_id = max(self._next_id, doc.id + 1)

    async def add(self, content: str, title: str | None = None) -> int:
        content = validate_content(content)
        title = _normalize_title(title)
        embeddings = _require_embeddings(self._embeddings)

        embedding = await _embed(embeddings, content)
        doc = Document(
            id=self._next_id,
            title=title,
            content=content,
            embedding=np.asarray(embedding, dtype=np.float64),
            embedding_model=embeddings.model,
            created_at=_utc_timestamp(),
        )
        self.insert_document(doc)
        return doc.id

    async def list_documents(self) -> list[DocumentSummary]:
        ordered = sorted(
            self._documents,
            key=lambda d: (d.created_at or "", d.id),
            reverse=True,
        )
        return [doc.to_summary(self._preview_chars) for doc in ordered]

    async def all_with_embeddings(self) -> list[Document]:
        return list(self._documents)

    async def count(self) -> int:
        return len(self._documents)


# ---------------------------------------------------------------------------
# FACTORY FUNCTION
# ---------------------------------------------------------------------------


def get_document_store(
    embeddings: EmbeddingProvider | None,
    config: DocumentStoreConfig | None = None,
    in_memory: bool = False,
) -> SQLiteDocumentStore | InMemoryDocumentStore:
    """
    Factory function to get the appropriate document store.

    Args:
        embeddings: Embedding provider used by add()
        config: Store configuration (uses defaults if not provided)
        in_memory: Use the in-memory store (tests/development)

    Returns:
        DocumentStore implementation
    """
    config = config or DocumentStoreConfig()
    if in_memory:
        return InMemoryDocumentStore(embeddings, preview_chars=config.preview_chars)
    return SQLiteDocumentStore(config, embeddings)
