from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from controller.controller_dependencies import (
    get_auth_service,
    get_persistence,
    get_provider_layer,
)
from core.gemini_client import GeminiAdapter
from core.provider_adapter import ProviderAdapterLayer
from main import app
from model.account import DatabaseConfig
from repository.local_store import FileLocalStore
from repository.persistence import PersistenceFacade
from repository.remote_database import RemoteDatabase
from service.activity_service import ActivityService
from service.auth_service import AuthService

VERDICT = {
    "complianceScore": 55,
    "discrepancies": [
        {
            "field": "Price",
            "referenceValue": "$500,000",
            "foundValue": "$450,000",
            "severity": "CRITICAL",
            "description": "Price differs",
            "suggestion": "Use $500,000",
        }
    ],
}


# -----------------------------
# Test doubles
# -----------------------------
class UnreachableRemote(RemoteDatabase):
    async def ping(self) -> bool:
        return False


def gemini_handler(request: httpx.Request) -> httpx.Response:
    if request.method == "GET":
        if request.headers.get("x-goog-api-key") == "bad":
            return httpx.Response(
                400,
                json={"error": {"message": "API key not valid.", "details": [{"reason": "API_KEY_INVALID"}]}},
            )
        return httpx.Response(200, json={"models": []})
    return httpx.Response(
        200, json={"candidates": [{"content": {"parts": [{"text": json.dumps(VERDICT)}]}}]}
    )


async def no_images(ref):
    return None


@pytest.fixture
def client(tmp_path: Path):
    facade = PersistenceFacade(
        DatabaseConfig(),
        FileLocalStore(tmp_path),
        history_limit=50,
        log_limit=100,
        remote_factory=lambda cfg: UnreachableRemote(),
    )
    auth = AuthService(facade, ActivityService(facade))
    gemini = GeminiAdapter(api_url="https://gemini.test/models", transport=httpx.MockTransport(gemini_handler))
    layer = ProviderAdapterLayer(adapters={"GEMINI": gemini}, image_loader=no_images)

    app.dependency_overrides[get_persistence] = lambda: facade
    app.dependency_overrides[get_auth_service] = lambda: auth
    app.dependency_overrides[get_provider_layer] = lambda: layer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def analyze_body(api_key: str = "g-key") -> dict:
    return {
        "reference": {"content": "Price: $500,000"},
        "targets": [{"id": "t1", "content": "Price: $450,000"}, {"url": "not-a-url"}],
        "llm": {"provider": "GEMINI", "apiKey": api_key},
        "projectName": "Marina Heights",
    }


def test_healthz(client: TestClient):
    r = client.get("/api/v1/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_validate_api_key(client: TestClient):
    ok = client.post("/api/v1/validate-api-key", json={"provider": "GEMINI", "apiKey": "good"})
    bad = client.post("/api/v1/validate-api-key", json={"provider": "GEMINI", "apiKey": "bad"})

    assert ok.status_code == 200 and ok.json() == {"ok": True}
    assert bad.status_code == 401


def test_full_flow_register_analyze_history(client: TestClient):
    r = client.post("/api/v1/auth/register", json={"email": "ana@example.com", "name": "Ana"})
    assert r.status_code == 201
    user = r.json()["user"]
    assert client.get("/api/v1/auth/me").json()["user"]["id"] == user["id"]

    r = client.post("/api/v1/analyze", json=analyze_body())
    assert r.status_code == 200
    body = r.json()
    assert [p["status"] for p in body["results"]] == ["NON_COMPLIANT", "ERROR"]
    assert body["results"][0]["discrepancies"][0]["id"] == "t1-d-0"
    assert body["saved"] is True
    assert body["summary"] == {"compliant": 0, "total": 2, "averageScore": 28, "criticalIssues": 1}

    history = client.get("/api/v1/history").json()["sessions"]
    assert [s["id"] for s in history] == [body["sessionId"]]
    assert history[0]["projectName"] == "Marina Heights"

    r = client.post(
        "/api/v1/logs/feedback", json={"discrepancyId": "t1-d-0", "isAccurate": False, "details": "price"}
    )
    assert r.json() == {"ok": True}
    actions = [l["action"] for l in client.get("/api/v1/logs", params={"userId": user["id"]}).json()["logs"]]
    assert "FEEDBACK_REJECTED" in actions and "ANALYSIS_RUN" in actions

    assert client.delete(f"/api/v1/history/{body['sessionId']}").status_code == 200
    assert client.get("/api/v1/history").json()["sessions"] == []


def test_analyze_without_key_is_missing_credential(client: TestClient):
    r = client.post("/api/v1/analyze", json=analyze_body(api_key=""))
    assert r.status_code == 400
    assert r.json()["ok"] is False
    assert r.json()["error"] == "MissingCredential"


def test_anonymous_analyze_is_not_saved(client: TestClient):
    r = client.post("/api/v1/analyze", json=analyze_body())
    assert r.status_code == 200
    assert r.json()["saved"] is False


def test_auth_errors(client: TestClient):
    r = client.post("/api/v1/auth/login", json={"email": "ghost@example.com"})
    assert r.status_code == 404
    assert r.json()["error"] == "UserNotFound"

    client.post("/api/v1/auth/register", json={"email": "ana@example.com", "name": "Ana"})
    r = client.post("/api/v1/auth/register", json={"email": "ana@example.com", "name": "Ana"})
    assert r.status_code == 409
    assert r.json()["error"] == "UserExists"


def test_history_requires_a_user(client: TestClient):
    assert client.get("/api/v1/history").status_code == 401
    assert client.get("/api/v1/history", params={"userId": "u1"}).status_code == 401
    assert client.get("/api/v1/logs").status_code == 401


def test_other_users_history_cannot_be_read_or_cleared(client: TestClient):
    alice = client.post(
        "/api/v1/auth/register", json={"email": "alice@example.com", "name": "Alice"}
    ).json()["user"]
    session_id = client.post("/api/v1/analyze", json=analyze_body()).json()["sessionId"]
    client.post("/api/v1/auth/logout")

    # anonymous caller naming Alice
    assert client.get("/api/v1/history", params={"userId": alice["id"]}).status_code == 401
    assert client.delete("/api/v1/history", params={"userId": alice["id"]}).status_code == 401
    assert client.get("/api/v1/logs", params={"userId": alice["id"]}).status_code == 401
    assert client.delete(f"/api/v1/history/{session_id}").status_code == 401

    # a different logged-in user naming Alice
    client.post("/api/v1/auth/register", json={"email": "bob@example.com", "name": "Bob"})
    assert client.get("/api/v1/history", params={"userId": alice["id"]}).status_code == 403
    assert client.delete("/api/v1/history", params={"userId": alice["id"]}).status_code == 403
    assert client.post("/api/v1/analyze", json={**analyze_body(), "userId": alice["id"]}).status_code == 403
    # deleting a session owned by Alice is a silent no-op for Bob
    assert client.delete(f"/api/v1/history/{session_id}").status_code == 200
    assert alice["id"] not in {l["userId"] for l in client.get("/api/v1/logs").json()["logs"]}
    client.post("/api/v1/auth/logout")

    client.post("/api/v1/auth/login", json={"email": "alice@example.com"})
    assert [s["id"] for s in client.get("/api/v1/history").json()["sessions"]] == [session_id]


def test_resolve_inline_content(client: TestClient):
    r = client.post("/api/v1/resolve-content", json={"descriptor": {"content": "hello"}})
    assert r.json() == {"content": "hello", "screenshot": None, "scraped": False}

    r = client.post("/api/v1/resolve-content", json={"descriptor": {"url": "ftp://nope"}})
    assert r.status_code == 422
    assert r.json()["error"] == "InvalidUrl"


def test_database_settings_never_echo_the_key(client: TestClient):
    assert client.get("/api/v1/settings/database").json() == {
        "url": "",
        "configured": False,
        "mode": "local",
    }

    r = client.put(
        "/api/v1/settings/database",
        json={"url": "https://project.supabase.test", "key": "secret-key"},
    )
    assert r.status_code == 200
    assert r.json() == {"url": "https://project.supabase.test", "configured": True, "mode": "local"}
    assert "secret-key" not in r.text
