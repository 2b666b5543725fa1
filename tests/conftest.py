import os

# Settings are read at import time; pin a hermetic environment first.
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("TZ", "UTC")
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("PROMETHEUS_MULTIPROC_DIR", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from freezegun import freeze_time  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import contafricax.db as app_db  # noqa: E402  we monkeypatch this module's globals
from contafricax.config import settings  # noqa: E402
from contafricax.db import Base  # noqa: E402
from contafricax.main import app  # noqa: E402
from tests.helpers import ADMIN_EMAIL, bearer, register  # noqa: E402


@pytest.fixture(autouse=True)
def _baseline_test_env(monkeypatch, tmp_path):
    """Test-friendly defaults; individual tests may override."""
    monkeypatch.setenv("TESTING", "1")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setattr(settings, "ALLOW_REGISTRATION", True)
    monkeypatch.setattr(settings, "DEFAULT_USER_ROLE", "user")
    monkeypatch.setattr(settings, "EXCHANGE_RATES", "")
    monkeypatch.setattr(settings, "ATTACHMENTS_DIR", str(tmp_path / "attachments"))
    yield


@pytest.fixture(scope="session")
def _engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON;")
        cur.close()

    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="session")
def _SessionLocal(_engine):
    return sessionmaker(bind=_engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture(autouse=True, scope="session")
def _force_sqlite_for_all_tests(_engine, _SessionLocal):
    """Point the app (and anything importing contafricax.db lazily) at the test engine."""
    app_db.engine = _engine
    app_db.SessionLocal = _SessionLocal

    def override_get_db():
        db = _SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[app_db.get_db] = override_get_db
    yield
    app.dependency_overrides.pop(app_db.get_db, None)


@pytest.fixture(autouse=True, scope="session")
def _freeze_now_for_determinism():
    """Freeze time so month windows and default report dates are stable."""
    with freeze_time("2025-09-15T12:00:00Z"):
        yield


@pytest.fixture
def db_session():
    """Clean schema per test; yields a session on the app's engine."""
    app_db.Base.metadata.drop_all(bind=app_db.engine)
    app_db.Base.metadata.create_all(bind=app_db.engine)
    db = app_db.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_headers(client):
    """First registered account: admin, and default categories/tags are seeded."""
    return bearer(register(client, ADMIN_EMAIL, name="Admin")["token"])


@pytest.fixture
def make_user(client, admin_headers):
    """Register a user and give it ``role``; returns auth headers."""

    def _make(email: str, role: str = "user") -> dict:
        data = register(client, email)
        if role != "user":
            r = client.patch(
                f"/api/users/{data['user']['id']}", json={"role": role}, headers=admin_headers
            )
            assert r.status_code == 200, r.text
        return bearer(data["token"])

    return _make


@pytest.fixture
def category_ids(client, admin_headers) -> dict:
    """Default category name -> id."""
    r = client.get("/api/categories", headers=admin_headers)
    assert r.status_code == 200
    return {c["name"]: c["id"] for c in r.json()}


@pytest.fixture
def tag_ids(client, admin_headers) -> dict:
    r = client.get("/api/tags", headers=admin_headers)
    assert r.status_code == 200
    return {t["name"]: t["id"] for t in r.json()}


@pytest.fixture
def add_txn(client, admin_headers, category_ids):
    """POST a transaction with sensible defaults; returns the created JSON."""

    def _add(**overrides) -> dict:
        body = {
            "amount": 10000,
            "type": "DEPENSE",
            "description": "Achat fournitures",
            "date": "2025-09-01",
            "category_id": category_ids["Transport"],
        }
        if "category" in overrides:
            body["category_id"] = category_ids[overrides.pop("category")]
        body.update(overrides)
        r = client.post("/api/transactions", json=body, headers=admin_headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _add
