"""
Application settings loaded from environment variables.

Environment Variables:
    OPENAI_API_KEY: Credential for embeddings, moderation and chat
    OPENAI_MODEL: Default chat model (default: gpt-4)
    EMBEDDING_MODEL: Embedding model (default: text-embedding-3-large)
    MODERATION_MODEL: Moderation model (default: omni-moderation-latest)
    OPENAI_TIMEOUT_SECONDS: Timeout for every OpenAI call (default: 30)
    HOST / PORT: Bind address (default: 0.0.0.0:3000)
    KB_CHAT_DB_PATH: SQLite file (default: data/kb.sqlite)
    KB_CHAT_STATIC_DIR: Optional front-end directory served at /
    RAG_TOP_K / RAG_MIN_SCORE: Retrieval limits (default: 3 / 0.65)
    LOG_LEVEL: Logging level name (default: info)
    GITHUB_ACTIONS, APP_ENV / ENV: Mark a strict (CI/production) environment

In a strict environment a missing OPENAI_API_KEY aborts startup. Elsewhere it
is only a warning and /chat answers 500 until the key is provided.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from kb_chat.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from LOG_LEVEL (or an explicit level name)."""
    level_name = (level or os.environ.get("LOG_LEVEL", "info")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


@dataclass
class Settings:
    """Runtime configuration for the server, CLI and orchestrator."""

    api_key: str | None = None
    chat_model: str = "gpt-4"
    embedding_model: str = "text-embedding-3-large"
    moderation_model: str = "omni-moderation-latest"
    timeout_seconds: float = 30.0
    host: str = "0.0.0.0"
    port: int = 3000
    db_path: str = "data/kb.sqlite"
    static_dir: str | None = None
    top_k: int = 3
    min_score: float = 0.65
    temperature: float = 0.2
    max_tokens: int = 1200
    strict: bool = False

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        env_name = (os.environ.get("APP_ENV") or os.environ.get("ENV") or "").lower()
        strict = os.environ.get("GITHUB_ACTIONS") == "true" or env_name == "production"
        try:
            return cls(
                api_key=os.environ.get("OPENAI_API_KEY") or None,
                chat_model=os.environ.get("OPENAI_MODEL") or "gpt-4",
                embedding_model=os.environ.get("EMBEDDING_MODEL") or "text-embedding-3-large",
                moderation_model=os.environ.get("MODERATION_MODEL") or "omni-moderation-latest",
                timeout_seconds=float(os.environ.get("OPENAI_TIMEOUT_SECONDS", "30")),
                host=os.environ.get("HOST", "0.0.0.0"),
                port=int(os.environ.get("PORT", "3000")),
                db_path=os.environ.get("KB_CHAT_DB_PATH", "data/kb.sqlite"),
                static_dir=os.environ.get("KB_CHAT_STATIC_DIR") or None,
                top_k=int(os.environ.get("RAG_TOP_K", "3")),
                min_score=float(os.environ.get("RAG_MIN_SCORE", "0.65")),
                strict=strict,
            )
        except ValueError as e:
            raise ConfigurationError("Invalid numeric setting in environment", details=str(e)) from e


def check_credentials(settings: Settings) -> None:
    """
    Verify the OpenAI credential is present.

    Raises:
        ConfigurationError: key missing in a CI/production environment
    """
    if settings.has_api_key:
        return
    if settings.strict:
        raise ConfigurationError(
            "OPENAI_API_KEY is not set. In CI/production this is required. "
            "Add it as a repository secret or set it in the deployment environment."
        )
    logger.warning(
        "OPENAI_API_KEY is not set. Set it in your .env file for local development; "
        "chat and document creation will fail until it is provided."
    )
