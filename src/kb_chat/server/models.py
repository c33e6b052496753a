"""Request and response bodies for the HTTP API."""

from typing import Any

from pydantic import BaseModel, Field


class AddDocumentRequest(BaseModel):
    """Body of POST /documents.

    `content` is left untyped so a missing or non-string value reaches the
    store's own validation and produces the API's 400 error body.
    """

    title: str | None = None
    content: Any = None


class AddDocumentResponse(BaseModel):
    ok: bool = True
    id: int


class DocumentSummaryModel(BaseModel):
    id: int
    title: str | None = None
    snippet: str
    created_at: str | None = None


class ListDocumentsResponse(BaseModel):
    data: list[DocumentSummaryModel] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """Body of POST /chat. `messages` is validated by the orchestrator."""

    messages: Any = None
    model: str | None = None


class ChatResponse(BaseModel):
    reply: str


class HealthResponse(BaseModel):
    status: str = "ok"
    documents: int
    api_key_configured: bool
