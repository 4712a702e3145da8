"""
tests/test_api_routes.py -- Integration tests for the auth and task routes.

These tests exercise the full stack: FastAPI routing -> bearer dependency ->
token validation -> ownership guard -> store -> response serialization.

Coverage:
  - register: 201, duplicate 409, bad input 422 with field detail
  - login: 200 with token + expires_at, wrong password and unknown email
    both 401 with the same body
  - protected routes: 401 for missing, malformed, and expired tokens
  - the alice/bob scenario: bob's attempts on alice's task are 404
  - failure safety net: an internal error becomes a generic 500

Fixtures used (from conftest.py):
  - api_client: (client, account_store, task_store)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from auth.tokens import get_token_service
from conftest import bearer, register_and_login


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class TestRegister:
    def test_register_then_duplicate(self, api_client) -> None:
        client, _, _ = api_client
        body = {"email": "alice@example.com", "password": "pw123456"}
        first = client.post("/api/v1/auth/register", json=body)
        assert first.status_code == 201, first.text
        assert first.json()["email"] == "alice@example.com"

        again = client.post("/api/v1/auth/register", json={"email": "ALICE@example.com", "password": "pw123456"})
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "conflict"

    def test_register_short_password_reports_field(self, api_client) -> None:
        client, _, _ = api_client
        resp = client.post("/api/v1/auth/register", json={"email": "short@example.com", "password": "pw"})
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "validation_error"
        assert error["fields"][0]["field"] == "password"

    def test_register_bad_email_reports_field(self, api_client) -> None:
        client, _, _ = api_client
        resp = client.post("/api/v1/auth/register", json={"email": "not-an-email", "password": "pw123456"})
        assert resp.status_code == 422
        assert resp.json()["error"]["fields"][0]["field"] == "email"

    def test_register_missing_body_field(self, api_client) -> None:
        client, _, _ = api_client
        resp = client.post("/api/v1/auth/register", json={"email": "nopw@example.com"})
        assert resp.status_code == 422
        assert any(f["field"] == "password" for f in resp.json()["error"]["fields"])


class TestLogin:
    def test_login_returns_token_and_expiry(self, api_client) -> None:
        client, _, _ = api_client
        client.post("/api/v1/auth/register", json={"email": "login@example.com", "password": "pw123456"})
        before = datetime.now(timezone.utc)
        resp = client.post("/api/v1/auth/login", json={"email": "login@example.com", "password": "pw123456"})
        assert resp.status_code == 200, resp.text
        assert resp.headers["Cache-Control"] == "no-store"

        data = resp.json()
        assert data["token_type"] == "bearer"
        expected = before + get_token_service().duration
        assert abs((_parse_ts(data["expires_at"]) - expected).total_seconds()) < 5

    def test_wrong_password_and_unknown_email_look_the_same(self, api_client) -> None:
        client, _, _ = api_client
        client.post("/api/v1/auth/register", json={"email": "same@example.com", "password": "pw123456"})
        wrong = client.post("/api/v1/auth/login", json={"email": "same@example.com", "password": "bad-password"})
        unknown = client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "pw123456"})

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json()
        assert wrong.json()["error"]["code"] == "bad_credentials"

    def test_me_reflects_token(self, api_client) -> None:
        client, _, _ = api_client
        token = register_and_login(client, "me@example.com", "pw123456")
        resp = client.get("/api/v1/auth/me", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json()["email"] == "me@example.com"


class TestAuthRequired:
    def test_no_token(self, api_client) -> None:
        client, _, _ = api_client
        resp = client.get("/api/v1/tasks")
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_malformed_token(self, api_client) -> None:
        client, _, _ = api_client
        resp = client.get("/api/v1/tasks", headers=bearer("garbage"))
        assert resp.status_code == 401

    def test_wrong_scheme(self, api_client) -> None:
        client, _, _ = api_client
        resp = client.get("/api/v1/tasks", headers={"Authorization": "Basic YWxpY2U6cHc="})
        assert resp.status_code == 401

    def test_expired_token(self, api_client) -> None:
        client, account_store, _ = api_client
        client.post("/api/v1/auth/register", json={"email": "old@example.com", "password": "pw123456"})
        account = account_store.get_by_email("old@example.com")
        issued = get_token_service().issue(account, now=datetime.now(timezone.utc) - timedelta(days=2))
        resp = client.get("/api/v1/tasks", headers=bearer(issued.token))
        assert resp.status_code == 401

    def test_all_rejections_share_one_body(self, api_client) -> None:
        client, _, _ = api_client
        missing = client.get("/api/v1/tasks").json()
        malformed = client.get("/api/v1/tasks", headers=bearer("a.b.c")).json()
        assert missing == malformed

    def test_auth_runs_before_body_validation(self, api_client) -> None:
        client, _, _ = api_client
        resp = client.post("/api/v1/tasks", json={"title": ""})
        assert resp.status_code == 401


class TestTaskScenario:
    def test_alice_and_bob(self, api_client: tuple[TestClient, object, object]) -> None:
        client, account_store, _ = api_client
        alice_token = register_and_login(client, "alice.scenario@example.com", "pw123456")
        bob_token = register_and_login(client, "bob.scenario@example.com", "pw123456")
        alice = account_store.get_by_email("alice.scenario@example.com")

        created = client.post("/api/v1/tasks", json={"title": "buy milk"}, headers=bearer(alice_token))
        assert created.status_code == 201, created.text
        task = created.json()
        assert task["owner_id"] == alice.id
        assert task["done"] is False
        task_url = f"/api/v1/tasks/{task['id']}"

        # Bob cannot see, change, or delete it -- and cannot tell it exists.
        missing_url = "/api/v1/tasks/999999"
        for method, kwargs in (
            ("get", {}),
            ("put", {"json": {"title": "hijacked", "done": True}}),
            ("delete", {}),
        ):
            foreign = client.request(method.upper(), task_url, headers=bearer(bob_token), **kwargs)
            missing = client.request(method.upper(), missing_url, headers=bearer(bob_token), **kwargs)
            assert foreign.status_code == missing.status_code == 404
            assert foreign.json() == missing.json()

        assert client.get("/api/v1/tasks", headers=bearer(bob_token)).json() == []

        # Alice still sees it untouched, then deletes it.
        listed = client.get("/api/v1/tasks", headers=bearer(alice_token)).json()
        assert [t["title"] for t in listed] == ["buy milk"]

        assert client.delete(task_url, headers=bearer(alice_token)).status_code == 204
        assert client.get(task_url, headers=bearer(alice_token)).status_code == 404

    def test_owner_update(self, api_client) -> None:
        client, _, _ = api_client
        token = register_and_login(client, "updater@example.com", "pw123456")
        task = client.post("/api/v1/tasks", json={"title": "write report"}, headers=bearer(token)).json()

        resp = client.put(f"/api/v1/tasks/{task['id']}", json={"title": "write report v2", "done": True}, headers=bearer(token))
        assert resp.status_code == 200, resp.text
        assert resp.json()["title"] == "write report v2"
        assert resp.json()["done"] is True

    def test_owner_id_in_body_is_ignored(self, api_client) -> None:
        client, account_store, _ = api_client
        token = register_and_login(client, "sneaky@example.com", "pw123456")
        me = account_store.get_by_email("sneaky@example.com")
        resp = client.post("/api/v1/tasks", json={"title": "mine", "owner_id": me.id + 1000}, headers=bearer(token))
        assert resp.status_code == 201
        assert resp.json()["owner_id"] == me.id

    def test_id_beyond_integer_range_is_not_found(self, api_client) -> None:
        client, _, _ = api_client
        token = register_and_login(client, "bigid@example.com", "pw123456")
        url = "/api/v1/tasks/99999999999999999999"
        for method, kwargs in (
            ("GET", {}),
            ("PUT", {"json": {"title": "nope", "done": True}}),
            ("DELETE", {}),
        ):
            resp = client.request(method, url, headers=bearer(token), **kwargs)
            assert resp.status_code == 404, (method, resp.text)
            assert resp.json()["error"]["code"] == "not_found"

    def test_title_validation(self, api_client) -> None:
        client, _, _ = api_client
        token = register_and_login(client, "titles@example.com", "pw123456")
        for title in ("", "   ", "x" * 101):
            resp = client.post("/api/v1/tasks", json={"title": title}, headers=bearer(token))
            assert resp.status_code == 422, title
            assert resp.json()["error"]["fields"][0]["field"] == "title"


class TestFailureSafetyNet:
    def test_internal_failure_is_generic_500(self, api_client, monkeypatch) -> None:
        client, _, task_store = api_client
        token = register_and_login(client, "boom@example.com", "pw123456")

        def explode(owner_id: int):
            raise OperationalError("SELECT * FROM tasks", {}, Exception("password=hunter2 host=db.internal"))

        monkeypatch.setattr(task_store, "list_for_owner", explode)
        resp = client.get("/api/v1/tasks", headers=bearer(token))

        assert resp.status_code == 500
        assert resp.json() == {"error": {"code": "internal_error", "message": "An unexpected error occurred."}}
        assert "hunter2" not in resp.text
        assert "db.internal" not in resp.text

    def test_arbitrary_exception_is_contained(self, api_client, monkeypatch) -> None:
        client, _, task_store = api_client
        token = register_and_login(client, "boom2@example.com", "pw123456")

        def explode(task):
            raise RuntimeError("stack detail that must not leak")

        monkeypatch.setattr(task_store, "create_task", explode)
        resp = client.post("/api/v1/tasks", json={"title": "x"}, headers=bearer(token))
        assert resp.status_code == 500
        assert "must not leak" not in resp.text
