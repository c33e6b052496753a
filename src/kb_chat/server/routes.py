"""Document and chat routers."""

import logging

from fastapi import APIRouter, Request

from kb_chat.core.errors import ConfigurationError, KBChatError, ModelCallError, StoreError
from kb_chat.server.models import (
    AddDocumentRequest,
    AddDocumentResponse,
    ChatRequest,
    ChatResponse,
    HealthResponse,
    ListDocumentsResponse,
)

logger = logging.getLogger(__name__)

document_router = APIRouter(tags=["Documents"])
chat_router = APIRouter(tags=["Chat"])
health_router = APIRouter(tags=["Health"])


@document_router.post("/documents", status_code=201, response_model=AddDocumentResponse)
async def add_document(request: Request, body: AddDocumentRequest) -> AddDocumentResponse:
    """Embed and store a knowledge-base document.

    Raises:
        ValidationError: 400 if content is missing, empty or not a string.
        StoreError: 500 if embedding or persisting the document failed.
    """
    store = request.app.state.store
    try:
        doc_id = await store.add(body.content, title=body.title)
    except KBChatError:
        raise
    except Exception as e:
        logger.exception("Error adding document")
        raise StoreError("failed to add document", details=str(e)) from e
    return AddDocumentResponse(id=doc_id)


@document_router.get("/documents", response_model=ListDocumentsResponse)
async def list_documents(request: Request) -> ListDocumentsResponse:
    """List stored documents newest-first with content truncated to a snippet."""
    try:
        summaries = await request.app.state.store.list_documents()
    except Exception as e:
        logger.exception("Error listing documents")
        raise StoreError("failed to list documents") from e
    return ListDocumentsResponse(data=[s.to_dict() for s in summaries])


@chat_router.post("/chat", response_model=ChatResponse)
async def chat(request: Request, body: ChatRequest) -> ChatResponse:
    """Answer a conversation with moderation and knowledge-base retrieval.

    Raises:
        ConfigurationError: 500 if no OpenAI credential is configured.
        ValidationError: 400 if messages is missing or malformed.
        ModerationRejectedError: 403 if the latest user message was flagged.
        ModelCallError: 500 on any other failure.
    """
    orchestrator = request.app.state.orchestrator
    if orchestrator is None:
        raise ConfigurationError("Server not configured with OPENAI_API_KEY")

    try:
        result = await orchestrator.reply(body.messages, model=body.model)
    except KBChatError:
        raise
    except Exception as e:
        logger.exception("Server error")
        raise ModelCallError("Internal server error", details=str(e)) from e

    logger.info(
        "Chat reply (model=%s, context_docs=%d, chars=%d)",
        result.model, len(result.matches), len(result.reply),
    )
    return ChatResponse(reply=result.reply)


@health_router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Report document count and whether a credential is configured."""
    return HealthResponse(
        documents=await request.app.state.store.count(),
        api_key_configured=request.app.state.settings.has_api_key,
    )
