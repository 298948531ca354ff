"""Health endpoint tests."""

from __future__ import annotations


class _UnreachableStore:
    def ping(self) -> bool:
        return False


def test_health_reports_ok(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"
    assert body["session_store"] == "ok"
    assert body["session_backend"] == "sql"


def test_health_degraded_when_store_is_down(client, app, monkeypatch):
    monkeypatch.setitem(app.extensions, "session_store", _UnreachableStore())
    resp = client.get("/api/v1/health")
    assert resp.status_code == 503
    assert resp.get_json()["status"] == "degraded"


def test_unknown_route_is_problem_json(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.mimetype == "application/problem+json"
