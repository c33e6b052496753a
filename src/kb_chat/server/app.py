"""FastAPI application factory for the knowledge-base chat API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from kb_chat import __version__
from kb_chat.chat.orchestrator import ChatOrchestrator, get_orchestrator
from kb_chat.config import Settings, check_credentials
from kb_chat.core.errors import KBChatError
from kb_chat.core.protocols import DocumentStore
from kb_chat.embeddings import OpenAIEmbeddings
from kb_chat.llm import create_openai_client
from kb_chat.observability import init_tracing, shutdown_tracing
from kb_chat.retrieval.store import DocumentStoreConfig, get_document_store
from kb_chat.server.routes import chat_router, document_router, health_router

logger = logging.getLogger(__name__)


async def _handle_app_error(request: Request, exc: KBChatError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else "request body must be a JSON object"
    return JSONResponse(status_code=400, content={"error": message})


def create_app(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
    orchestrator: ChatOrchestrator | None = None,
) -> FastAPI:
    """
    Build the application with explicitly constructed dependencies.

    Anything not passed in is created from settings. Without an API key the
    app still starts (unless settings.strict), serves document listings and
    answers /chat with a configuration error.

    Raises:
        ConfigurationError: OPENAI_API_KEY missing in a strict environment
    """
    settings = settings or Settings.from_env()
    check_credentials(settings)

    client = None
    if settings.has_api_key and (store is None or orchestrator is None):
        client = create_openai_client(settings.api_key, timeout_seconds=settings.timeout_seconds)
    embeddings = OpenAIEmbeddings(client, model=settings.embedding_model) if client else None

    if store is None:
        store = get_document_store(embeddings, DocumentStoreConfig(db_path=settings.db_path))
    if orchestrator is None and client is not None:
        orchestrator = get_orchestrator(settings, client, store, embeddings=embeddings)
    store.create_schema()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage application startup and shutdown."""
        init_tracing()
        logger.info("Knowledge-base chat API ready.")
        yield
        if client is not None:
            await client.close()
        store.close()
        shutdown_tracing()
        logger.info("Knowledge-base chat API shut down.")

    app = FastAPI(
        title="KB Chat",
        description="Retrieval-augmented chat over a small local knowledge base.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(KBChatError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)

    app.include_router(document_router)
    app.include_router(chat_router)
    app.include_router(health_router)

    if settings.static_dir:
        static_path = Path(settings.static_dir)
        if static_path.is_dir():
            app.mount("/", StaticFiles(directory=static_path, html=True), name="static")
        else:
            logger.warning("Static directory %s does not exist; front-end not served", static_path)

    return app


def run(settings: Settings | None = None) -> None:
    """Start the server with uvicorn."""
    import uvicorn

    settings = settings or Settings.from_env()
    app = create_app(settings)
    logger.info(f"AI chat server listening on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
