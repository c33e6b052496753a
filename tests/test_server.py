"""
HTTP Tests for the FastAPI surface

The app is built with create_app() and injected fakes; TestClient drives it
in-process.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeChatModel, FakeEmbeddings, FakeModeration
from kb_chat.chat.orchestrator import ChatOrchestrator
from kb_chat.config import Settings
from kb_chat.observability import NoOpTracer
from kb_chat.retrieval.store import DocumentStoreConfig, SQLiteDocumentStore


QUESTION = "How do I rotate the API keys?"


# ---------------------------------------------------------------------------
# FIXTURES
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path):
    return Settings(api_key="sk-test", db_path=str(tmp_path / "kb.sqlite"))


@pytest.fixture
def store(settings, fake_embeddings):
    return SQLiteDocumentStore(DocumentStoreConfig(db_path=settings.db_path), fake_embeddings)


def _client(settings, store, embeddings, moderation, chat_model):
    from kb_chat.server.app import create_app

    orchestrator = ChatOrchestrator(
        embeddings=embeddings,
        moderation=moderation,
        chat_model=chat_model,
        store=store,
        default_model="gpt-test",
        tracer=NoOpTracer(),
    )
    return TestClient(create_app(settings, store=store, orchestrator=orchestrator))


@pytest.fixture
def client(settings, store, fake_embeddings, fake_moderation, fake_chat_model):
    return _client(settings, store, fake_embeddings, fake_moderation, fake_chat_model)


# ---------------------------------------------------------------------------
# DOCUMENTS
# ---------------------------------------------------------------------------


class TestDocumentsEndpoint:
    """POST/GET /documents."""

    def test_add_document(self, client):
        response = client.post("/documents", json={"title": "Runbook", "content": "Rotate keys."})

        assert response.status_code == 201
        body = response.json()
        assert body["ok"] is True
        assert isinstance(body["id"], int)

    def test_add_without_title(self, client):
        response = client.post("/documents", json={"content": "No title here."})

        assert response.status_code == 201

    @pytest.mark.parametrize(
        "payload",
        [{}, {"content": ""}, {"content": 123}, {"title": "only a title"}],
    )
    def test_add_invalid_content_is_client_error(self, client, payload):
        response = client.post("/documents", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "content is required"}
        assert client.get("/documents").json() == {"data": []}

    def test_add_non_json_body_is_client_error(self, client):
        response = client.post(
            "/documents", content="not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_add_embedding_failure_is_server_error(self, settings, fake_moderation, fake_chat_model):
        embeddings = FakeEmbeddings(error=RuntimeError("embedding quota exceeded"))
        store = SQLiteDocumentStore(DocumentStoreConfig(db_path=settings.db_path), embeddings)
        client = _client(settings, store, embeddings, fake_moderation, fake_chat_model)

        response = client.post("/documents", json={"content": "text"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "failed to add document",
            "details": "embedding quota exceeded",
        }

    def test_list_newest_first_with_snippet(self, client):
        client.post("/documents", json={"title": "Old", "content": "old content"})
        new_id = client.post("/documents", json={"title": "New", "content": "y" * 1200}).json()["id"]

        response = client.get("/documents")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data[0]["id"] == new_id
        assert data[0]["title"] == "New"
        assert len(data[0]["snippet"]) == 800
        assert set(data[0]) == {"id", "title", "snippet", "created_at"}
        assert data[1]["title"] == "Old"


# ---------------------------------------------------------------------------
# CHAT
# ---------------------------------------------------------------------------


class TestChatEndpoint:
    """POST /chat."""

    def test_chat_reply(self, client):
        response = client.post("/chat", json={"messages": [{"role": "user", "content": QUESTION}]})

        assert response.status_code == 200
        assert response.json() == {"reply": "Hello from the model"}

    def test_chat_uses_stored_documents(self, client, fake_chat_model):
        client.post("/documents", json={"title": "Keys", "content": QUESTION})

        client.post("/chat", json={"messages": [{"role": "user", "content": QUESTION}]})

        system = fake_chat_model.calls[0]["messages"][0].content
        assert "--- DOCUMENT 1 (Keys, score=1.000) ---" in system

    def test_chat_model_override(self, client, fake_chat_model):
        client.post(
            "/chat",
            json={"messages": [{"role": "user", "content": "hi"}], "model": "gpt-custom"},
        )

        assert fake_chat_model.calls[0]["model"] == "gpt-custom"

    @pytest.mark.parametrize("payload", [{}, {"messages": "hi"}, {"messages": {"role": "user"}}])
    def test_messages_must_be_array(self, client, payload):
        response = client.post("/chat", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "messages must be an array"}

    def test_no_user_message_still_replies(self, client):
        response = client.post(
            "/chat", json={"messages": [{"role": "system", "content": "be brief"}]}
        )

        assert response.status_code == 200
        assert response.json()["reply"] == "Hello from the model"

    def test_flagged_content_is_forbidden(self, settings, store, fake_embeddings, fake_chat_model):
        client = _client(
            settings, store, fake_embeddings, FakeModeration(flagged=True), fake_chat_model
        )

        response = client.post("/chat", json={"messages": [{"role": "user", "content": "bad"}]})

        assert response.status_code == 403
        assert response.json() == {"error": "Content flagged by moderation"}
        assert fake_chat_model.calls == []

    def test_retrieval_failure_still_replies(self, settings, store, fake_moderation, fake_chat_model):
        embeddings = FakeEmbeddings(error=ConnectionError("embedding service down"))
        client = _client(settings, store, embeddings, fake_moderation, fake_chat_model)

        response = client.post("/chat", json={"messages": [{"role": "user", "content": QUESTION}]})

        assert response.status_code == 200
        assert response.json() == {"reply": "Hello from the model"}

    def test_model_failure_is_server_error(self, settings, store, fake_embeddings, fake_moderation):
        client = _client(
            settings, store, fake_embeddings, fake_moderation,
            FakeChatModel(error=RuntimeError("upstream 502")),
        )

        response = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "details": "upstream 502"}

    def test_missing_credentials_is_server_error(self, tmp_path, fake_embeddings):
        from kb_chat.server.app import create_app

        settings = Settings(api_key=None, db_path=str(tmp_path / "kb.sqlite"))
        store = SQLiteDocumentStore(DocumentStoreConfig(db_path=settings.db_path), fake_embeddings)
        client = TestClient(create_app(settings, store=store))

        response = client.post("/chat", json={"messages": [{"role": "user", "content": "hi"}]})

        assert response.status_code == 500
        assert response.json() == {"error": "Server not configured with OPENAI_API_KEY"}


# ---------------------------------------------------------------------------
# HEALTH / APP
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    def test_health_reports_document_count(self, client):
        client.post("/documents", json={"content": "one"})

        response = client.get("/health")

        assert response.json() == {"status": "ok", "documents": 1, "api_key_configured": True}

    def test_health_reports_missing_key_even_with_injected_orchestrator(
        self, tmp_path, store, fake_embeddings, fake_moderation, fake_chat_model
    ):
        settings = Settings(api_key=None, db_path=str(tmp_path / "kb.sqlite"))
        client = _client(settings, store, fake_embeddings, fake_moderation, fake_chat_model)

        body = client.get("/health").json()

        assert body["api_key_configured"] is False


class TestCreateApp:
    def test_strict_environment_without_key_aborts(self, tmp_path):
        from kb_chat.core.errors import ConfigurationError
        from kb_chat.server.app import create_app

        settings = Settings(api_key=None, db_path=str(tmp_path / "kb.sqlite"), strict=True)

        with pytest.raises(ConfigurationError):
            create_app(settings)

    def test_builds_production_dependencies(self, settings):
        from kb_chat.server.app import create_app

        app = create_app(settings)

        assert isinstance(app.state.orchestrator, ChatOrchestrator)
        assert isinstance(app.state.store, SQLiteDocumentStore)

    def test_serves_static_front_end(self, tmp_path, store, fake_embeddings, fake_moderation, fake_chat_model):
        static = tmp_path / "public"
        static.mkdir()
        (static / "index.html").write_text("<h1>KB Chat</h1>")
        settings = Settings(api_key="sk-test", db_path=str(tmp_path / "kb.sqlite"), static_dir=str(static))
        client = _client(settings, store, fake_embeddings, fake_moderation, fake_chat_model)

        assert "KB Chat" in client.get("/").text
        assert client.get("/documents").status_code == 200
