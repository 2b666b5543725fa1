from fastapi.testclient import TestClient

from contafricax.main import app
from contafricax.routers import health as health_router
from contafricax.services import reports as reports_svc


def test_health_and_ready(client):
    assert client.get("/health").json() == {"status": "ok"}
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready", "db": True}


def test_ready_reports_db_outage(client, monkeypatch):
    monkeypatch.setattr(health_router, "_db_ping", lambda db: False)
    r = client.get("/ready")
    assert r.status_code == 503
    assert r.json()["db"] is False


def test_version(client):
    body = client.get("/version").json()
    assert set(body) == {"version", "commit", "built_at"}


def test_request_id_round_trip(client):
    r = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_metrics_exposition(client):
    client.post("/api/auth/login", json={"email": "nobody@test.local", "password": "whatever"})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    text = r.text
    assert "contafricax_auth_events_total" in text
    assert 'event="login",outcome="fail"' in text
    assert "contafricax_transactions_written_total" in text
    assert 'contafricax_payment_events_total{op="refund"}' in text


def test_unhandled_error_is_json_500(db_session, admin_headers, monkeypatch):
    def boom(*a, **k):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(reports_svc, "dashboard_summary", boom)
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.get("/api/reports/summary", headers=admin_headers)
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}
    assert "kaboom" not in r.text


def test_unknown_route_is_404(client):
    assert client.get("/api/nope").status_code == 404
