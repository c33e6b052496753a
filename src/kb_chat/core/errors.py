"""
Error taxonomy for the chat backend.

Every error the HTTP surface reports maps to exactly one of these classes.
The status code lives on the class so the server can translate any
KBChatError into a response without a lookup table.

CLASSES:
--------
- ValidationError          client sent missing/malformed input      -> 400
- ModerationRejectedError  moderation flagged the user's content     -> 403
- ConfigurationError       server is missing a credential or setting -> 500
- ModelCallError           the chat-completion call itself failed    -> 500
- StoreError               persisting or embedding a document failed -> 500

Best-effort steps (moderation check, retrieval) never raise these; their
failures are logged and swallowed by kb_chat.chat.fallback.best_effort.
"""

from __future__ import annotations


class KBChatError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to the JSON error body returned by the API."""
        body: dict = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(KBChatError):
    """Caller-supplied input is missing or malformed."""

    status_code = 400


class ModerationRejectedError(KBChatError):
    """Moderation flagged the latest user message."""

    status_code = 403


class ConfigurationError(KBChatError):
    """Required configuration (usually OPENAI_API_KEY) is absent."""

    status_code = 500


class ModelCallError(KBChatError):
    """The chat-completion request failed. Not retried."""

    status_code = 500


class StoreError(KBChatError):
    """A document could not be embedded or persisted."""

    status_code = 500
