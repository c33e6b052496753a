"""
Core module - shared protocols, types and errors for the entire system.

USAGE:
------
from kb_chat.core import DocumentStore, EmbeddingProvider

class MyStore:
    '''Implements DocumentStore protocol.'''
    ...
"""

from kb_chat.core.errors import (
    KBChatError,
    ValidationError,
    ModerationRejectedError,
    ConfigurationError,
    ModelCallError,
    StoreError,
)
from kb_chat.core.protocols import (
    # Protocols
    EmbeddingProvider,
    ModerationProvider,
    ChatModel,
    DocumentStore,
    # Data classes
    ChatMessage,
    ChatReply,
    ScoredMatch,
    ROLES,
)

__all__ = [
    # Errors
    "KBChatError",
    "ValidationError",
    "ModerationRejectedError",
    "ConfigurationError",
    "ModelCallError",
    "StoreError",
    # Protocols
    "EmbeddingProvider",
    "ModerationProvider",
    "ChatModel",
    "DocumentStore",
    # Data classes
    "ChatMessage",
    "ChatReply",
    "ScoredMatch",
    "ROLES",
]
