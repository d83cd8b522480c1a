from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from anymo_backend.database.core.funcs import create_chat
from anymo_backend.enrichment.analyzers import AnalysisUnavailableError
from anymo_backend.enrichment.pipeline import EnrichmentPipeline
from anymo_backend.enrichment.reformatter import StructuredReformatter
from anymo_backend.main import app

T0 = datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc)


def _ticking_clock():
    ticks = count()
    return lambda: T0 + timedelta(seconds=next(ticks))


@pytest.fixture
def install(fake_analyzer):
    """Attach a pipeline (and optionally a reformatter) built from fakes to the app."""

    def _install(risk=None, sentiment=None, insert_record=create_chat, reformatter=None):
        app.state.pipeline = EnrichmentPipeline(
            risk_analyzer=risk or fake_analyzer("suicide risk", result=55),
            sentiment_analyzer=sentiment or fake_analyzer("sentiment", result="positive"),
            insert_record=insert_record,
            clock=_ticking_clock(),
            concurrent=False,
        )
        if reformatter is not None:
            app.state.reformatter = reformatter

    yield _install

    for attr in ("pipeline", "reformatter"):
        if hasattr(app.state, attr):
            delattr(app.state, attr)


@pytest.fixture
def client():
    return TestClient(app)


def test_create_chat_with_successful_enrichment(install, client) -> None:
    install()
    response = client.post("/chats", json={"text": "How are you feeling?@@Better.", "startWithDoctor": True})

    assert response.status_code == 201
    body = response.json()
    assert body["riskScore"] == 55
    assert body["memo"] == "Sentiment: positive"
    assert body["startWithDoctor"] is True
    assert body["text"] == "How are you feeling?@@Better."
    assert isinstance(body["id"], int)
    assert "createdAt" in body


def test_create_chat_defaults_when_enrichment_fails(install, client, fake_analyzer) -> None:
    down = AnalysisUnavailableError("down", attempts=3, last_status=503)
    install(risk=fake_analyzer("suicide risk", error=down), sentiment=fake_analyzer("sentiment", error=down))

    response = client.post("/chats", json={"text": "hello"})

    assert response.status_code == 201
    body = response.json()
    assert (body["riskScore"], body["memo"], body["startWithDoctor"]) == (0, "", False)


def test_create_chat_keeps_caller_values_when_enrichment_fails(install, client, fake_analyzer) -> None:
    down = AnalysisUnavailableError("down", attempts=3)
    install(risk=fake_analyzer("suicide risk", error=down), sentiment=fake_analyzer("sentiment", error=down))

    body = client.post("/chats", json={"text": "hello", "riskScore": 7, "memo": "note"}).json()

    assert (body["riskScore"], body["memo"]) == (7, "note")
    stored = client.get(f"/chats/{body['id']}").json()
    assert (stored["riskScore"], stored["memo"]) == (7, "note")


@pytest.mark.parametrize("payload", [{}, {"text": ""}, {"memo": "only a memo"}])
def test_create_chat_requires_text(install, client, payload) -> None:
    install()
    response = client.post("/chats", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "text field is required"}
    assert client.get("/chats").json() == []


def test_create_chat_rejects_malformed_body(install, client) -> None:
    install()
    response = client.post("/chats", json={"text": "hi", "riskScore": "very high"})
    assert response.status_code == 400
    assert "riskScore" in response.json()["error"]

    response = client.post("/chats", content="{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_create_chat_store_failure_returns_500(install, client) -> None:
    def broken_insert(**fields):
        raise OperationalError("INSERT INTO chats", {}, Exception("database is down"))

    install(insert_record=broken_insert)
    response = client.post("/chats", json={"text": "hello"})

    assert response.status_code == 500
    assert "database is down" in response.json()["error"]


def test_list_chats_newest_first(install, client) -> None:
    install()
    ids = [client.post("/chats", json={"text": f"chat {n}"}).json()["id"] for n in range(3)]

    response = client.get("/chats")

    assert response.status_code == 200
    assert [chat["id"] for chat in response.json()] == list(reversed(ids))


def test_get_unknown_chat_is_404(client) -> None:
    response = client.get("/chats/4242")
    assert response.status_code == 404
    assert response.json() == {"error": "Chat not found"}


def test_non_integer_id_is_400(client) -> None:
    response = client.get("/chats/abc")
    assert response.status_code == 400
    assert "chat_id" in response.json()["error"]


def test_update_only_memo(install, client) -> None:
    install()
    created = client.post("/chats", json={"text": "hello", "startWithDoctor": True}).json()

    response = client.put(f"/chats/{created['id']}", json={"memo": "reviewed"})

    assert response.status_code == 200
    updated = response.json()
    assert updated["memo"] == "reviewed"
    for field in ("id", "text", "riskScore", "startWithDoctor", "createdAt"):
        assert updated[field] == created[field]


def test_update_ignores_null_fields(install, client) -> None:
    install()
    created = client.post("/chats", json={"text": "hello"}).json()

    updated = client.put(f"/chats/{created['id']}", json={"text": None, "riskScore": 90}).json()

    assert updated["text"] == "hello"
    assert updated["riskScore"] == 90


def test_update_unknown_chat_is_404(client) -> None:
    response = client.put("/chats/4242", json={"memo": "x"})
    assert response.status_code == 404
    assert response.json() == {"error": "Chat not found"}


def test_delete_then_get(install, client) -> None:
    install()
    created = client.post("/chats", json={"text": "hello"}).json()

    response = client.delete(f"/chats/{created['id']}")
    assert response.status_code == 200
    assert response.json() == {"message": "Chat deleted successfully"}

    assert client.get(f"/chats/{created['id']}").status_code == 404
    assert client.delete(f"/chats/{created['id']}").status_code == 404


@pytest.mark.parametrize("path", ["/processChat", "/analyze"])
def test_process_chat(install, client, fake_chat_model, path) -> None:
    model = fake_chat_model('{"updatedText": "Hi, I am Dr. Kim.@@Hello.", "startWithDoctor": true}')
    install(reformatter=StructuredReformatter(chat_model=model))

    response = client.post(
        path,
        json={"createdAt": "2025-02-01T12:00:00Z", "text": "Hi, I am Dr. Kim. Hello.", "memo": "intake"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "createdAt": "2025-02-01T12:00:00Z",
        "text": "Hi, I am Dr. Kim.@@Hello.",
        "memo": "intake",
        "startWithDoctor": True,
    }
    assert client.get("/chats").json() == []


def test_process_chat_llm_failure_is_500(install, client, fake_chat_model) -> None:
    install(reformatter=StructuredReformatter(chat_model=fake_chat_model("not json at all")))

    response = client.post("/processChat", json={"text": "Hello"})

    assert response.status_code == 500
    assert response.json()["error"].startswith("LLM processing error:")


def test_process_chat_requires_text(install, client, fake_chat_model) -> None:
    install(reformatter=StructuredReformatter(chat_model=fake_chat_model("{}")))
    response = client.post("/processChat", json={"memo": "x"})
    assert response.status_code == 400


def test_health_ok(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health_reports_database_failure(client, monkeypatch) -> None:
    def broken_ping():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr("anymo_backend.main.ping_database", broken_ping)
    response = client.get("/health")

    assert response.status_code == 500
    assert response.json()["status"] == "error"
    assert "connection refused" in response.json()["message"]


def test_create_chat_rejects_text_that_is_not_utf8(install, client) -> None:
    install()
    # "\ud800" is a lone surrogate: valid JSON escape, invalid UTF-8
    response = client.post(
        "/chats",
        content=b'{"text": "hello \\ud800"}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert "not valid UTF-8" in response.json()["error"]
    assert client.get("/chats").json() == []


@pytest.mark.parametrize(
    "payload",
    [
        {"text": "hi", "riskScore": "7"},
        {"text": "hi", "startWithDoctor": "yes"},
        {"text": "hi", "riskScore": True},
    ],
)
def test_create_chat_rejects_loosely_typed_fields(install, client, payload) -> None:
    install()
    response = client.post("/chats", json=payload)
    assert response.status_code == 400
    assert client.get("/chats").json() == []


def test_update_rejects_loosely_typed_fields(install, client) -> None:
    install()
    created = client.post("/chats", json={"text": "hello"}).json()

    response = client.put(f"/chats/{created['id']}", json={"riskScore": "90"})

    assert response.status_code == 400
    assert client.get(f"/chats/{created['id']}").json()["riskScore"] == created["riskScore"]


def test_unexpected_failure_still_has_error_body(install) -> None:
    def full_disk_insert(**fields):
        raise RuntimeError("disk full")

    install(insert_record=full_disk_insert)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/chats", json={"text": "hello"})

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"error": "disk full"}
