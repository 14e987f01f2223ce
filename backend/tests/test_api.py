"""Tests for the users and agent REST API."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeAgentGateway
from errors import UpstreamError
from models.conversation import Conversation


# ---------------------------------------------------------------------------
# Override the database and agent dependencies for tests
# ---------------------------------------------------------------------------

@pytest.fixture
def app(db, gateway):
    """Create a test FastAPI app with DB and agent overridden."""
    from main import app as _app
    from database import get_db
    from services.agent import get_agent_gateway

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    _app.dependency_overrides[get_db] = _override_get_db
    _app.dependency_overrides[get_agent_gateway] = lambda: gateway
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


def _register(client, email="alice@example.com", password="secret123"):
    return client.post("/users", json={"email": email, "password": password})


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUsersAPI:
    def test_register_login_scenario(self, client):
        resp = _register(client)
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "alice@example.com"
        assert set(body) == {"id", "email"}

        resp = client.post("/users/login", json={"email": "alice@example.com", "password": "wrong"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid email or password"}

        resp = client.post("/users/login", json={"email": "alice@example.com", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.json() == {"id": body["id"], "email": "alice@example.com"}

    def test_login_unknown_email(self, client):
        resp = client.post("/users/login", json={"email": "nobody@example.com", "password": "secret123"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid email or password"}

    def test_register_invalid_email(self, client):
        resp = _register(client, email="not-an-email")
        assert resp.status_code == 400
        assert "email" in resp.json()["error"]

    def test_register_short_password(self, client):
        resp = _register(client, password="12345")
        assert resp.status_code == 400
        assert "password" in resp.json()["error"]

    def test_register_missing_body_field(self, client):
        resp = client.post("/users", json={"email": "alice@example.com"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_register_duplicate(self, client):
        assert _register(client).status_code == 201
        resp = _register(client)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Email already registered"}

    def test_list_users(self, client):
        _register(client)
        _register(client, email="bob@example.com")
        resp = client.get("/users")
        assert resp.status_code == 200
        assert sorted(u["email"] for u in resp.json()) == ["alice@example.com", "bob@example.com"]
        assert all(set(u) == {"id", "email"} for u in resp.json())

    def test_update_user(self, client):
        user_id = _register(client).json()["id"]
        resp = client.put(f"/users/{user_id}", json={"password": "brand-new"})
        assert resp.status_code == 200
        assert resp.json() == {"id": user_id, "email": "alice@example.com"}

        login = client.post("/users/login", json={"email": "alice@example.com", "password": "brand-new"})
        assert login.status_code == 200

    def test_update_email(self, client):
        user_id = _register(client).json()["id"]
        resp = client.put(f"/users/{user_id}", json={"email": "alice@new.example.com"})
        assert resp.status_code == 200
        assert resp.json()["email"] == "alice@new.example.com"

    def test_update_missing_user(self, client):
        resp = client.put("/users/nope", json={"password": "brand-new"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}

    def test_update_invalid_password(self, client):
        user_id = _register(client).json()["id"]
        resp = client.put(f"/users/{user_id}", json={"password": "123"})
        assert resp.status_code == 400

    def test_delete_user_cascades(self, client, db):
        user_id = _register(client).json()["id"]
        client.post("/agent/ask", json={"userId": user_id, "question": "one"})
        client.post("/agent/conversations/new", json={"userId": user_id})

        resp = client.delete(f"/users/{user_id}")
        assert resp.status_code == 200
        assert resp.json() == {"message": "User deleted along with 2 conversation(s)"}
        assert client.get(f"/agent/conversations/{user_id}").json() == []
        assert db.query(Conversation).count() == 0

    def test_delete_missing_user(self, client):
        resp = client.delete("/users/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "User not found"}


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class TestAgentAPI:
    def test_ask_scenario(self, client):
        resp = client.post("/agent/ask", json={"userId": "u1", "question": "Who is the president of France?"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["answer"] == "Emmanuel Macron"
        assert body["conversationId"]

        resp = client.get("/agent/conversations/u1")
        assert resp.status_code == 200
        convs = resp.json()
        assert len(convs) == 1
        conv = convs[0]
        assert conv["id"] == body["conversationId"]
        assert conv["user"] == "u1"
        assert conv["summary"] == "Who is the president of France?..."
        assert conv["messages"] == [{"question": "Who is the president of France?", "answer": "Emmanuel Macron"}]
        assert "createdAt" in conv and "updatedAt" in conv

    def test_ask_with_conversation_id_appends(self, client, conversation):
        resp = client.post(
            "/agent/ask",
            json={"userId": conversation.user_id, "question": "And Germany?", "conversationId": conversation.id},
        )
        assert resp.status_code == 200
        assert resp.json()["conversationId"] == conversation.id

        convs = client.get(f"/agent/conversations/{conversation.user_id}").json()
        assert len(convs) == 1
        assert len(convs[0]["messages"]) == 2

    def test_ask_with_unknown_conversation_id_creates_new(self, client):
        resp = client.post("/agent/ask", json={"userId": "u1", "question": "q", "conversationId": "bogus"})
        assert resp.status_code == 200
        assert resp.json()["conversationId"] != "bogus"

    @pytest.mark.parametrize(
        "payload",
        [
            {"userId": "u1"},
            {"question": "hello"},
            {"userId": "u1", "question": ""},
            {"userId": "", "question": "hello"},
        ],
    )
    def test_ask_validation(self, client, gateway, payload):
        resp = client.post("/agent/ask", json=payload)
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert gateway.questions == []

    def test_ask_upstream_failure(self, app, db):
        from services.agent import get_agent_gateway

        app.dependency_overrides[get_agent_gateway] = lambda: FakeAgentGateway(error=UpstreamError("agent timed out"))
        resp = TestClient(app).post("/agent/ask", json={"userId": "u1", "question": "q"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "agent timed out"}
        assert db.query(Conversation).count() == 0

    @pytest.fixture
    def unconfigured_client(self, app, monkeypatch):
        """Client running the real lazy gateway with no OpenAI key set."""
        import services.agent as agent_mod
        from config import settings

        monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
        monkeypatch.setattr(agent_mod, "_gateway", agent_mod.LazyAgentGateway())
        app.dependency_overrides.pop(agent_mod.get_agent_gateway)
        return TestClient(app)

    @pytest.mark.parametrize("path", ["/agent/ask", "/agent/weather/Paris", "/agent/local/alice"])
    def test_invalid_body_is_400_without_api_key(self, unconfigured_client, path):
        resp = unconfigured_client.post(path, json={"question": "hello"})
        assert resp.status_code == 400
        assert "userId" in resp.json()["error"]

    def test_missing_api_key_is_500_on_valid_ask(self, unconfigured_client, db):
        resp = unconfigured_client.post("/agent/ask", json={"userId": "u1", "question": "q"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "OPENAI_API_KEY is not configured"}
        assert db.query(Conversation).count() == 0

    def test_new_conversation(self, client):
        resp = client.post("/agent/conversations/new", json={"userId": "u1"})
        assert resp.status_code == 201
        conv_id = resp.json()["conversationId"]

        convs = client.get("/agent/conversations/u1").json()
        assert [c["id"] for c in convs] == [conv_id]
        assert convs[0]["summary"] == ""
        assert convs[0]["messages"] == []

    def test_new_conversation_requires_user(self, client):
        resp = client.post("/agent/conversations/new", json={})
        assert resp.status_code == 400

    def test_asks_go_to_newest_conversation(self, client):
        client.post("/agent/ask", json={"userId": "u1", "question": "first"})
        new_id = client.post("/agent/conversations/new", json={"userId": "u1"}).json()["conversationId"]

        resp = client.post("/agent/ask", json={"userId": "u1", "question": "second"})
        assert resp.json()["conversationId"] == new_id

        convs = client.get("/agent/conversations/u1").json()
        assert [c["id"] for c in convs][0] == new_id
        assert [m["question"] for m in convs[0]["messages"]] == ["second"]

    def test_conversations_for_unknown_user_is_empty(self, client):
        resp = client.get("/agent/conversations/nobody")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_weather(self, client, gateway):
        gateway.answer = "Paris: ☀️ +25°C"
        resp = client.post("/agent/weather/Paris", json={"userId": "u1"})
        assert resp.status_code == 200
        assert resp.json()["answer"] == "Paris: ☀️ +25°C"
        assert gateway.questions == ["What is the weather in Paris?"]

        conv = client.get("/agent/conversations/u1").json()[0]
        assert conv["id"] == resp.json()["conversationId"]
        assert conv["messages"][0]["question"] == "What is the weather in Paris?"

    def test_local_lookup_appends_to_latest(self, client, gateway, conversation):
        resp = client.post("/agent/local/alice", json={"userId": conversation.user_id})
        assert resp.status_code == 200
        assert resp.json()["conversationId"] == conversation.id
        assert gateway.questions == ["Fetch info for user alice"]

    def test_weather_requires_user(self, client):
        resp = client.post("/agent/weather/Paris", json={})
        assert resp.status_code == 400


class TestHealth:
    def test_health_ok(self, client, monkeypatch):
        import main

        monkeypatch.setattr(main, "SessionLocal", lambda: _FakeSession())
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["database"] is True

    def test_health_db_down(self, client, monkeypatch):
        import main

        def _down():
            raise ConnectionError("DB down")

        monkeypatch.setattr(main, "SessionLocal", _down)
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "degraded", "database": False, "version": main.__version__}


class _FakeSession:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, *args, **kwargs):
        return None
