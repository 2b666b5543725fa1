import time

from contafricax.config import settings
from contafricax.utils.auth import _sign_jwt, hash_password, verify_password

from tests.helpers import ADMIN_EMAIL, PASSWORD, bearer, register


def test_password_hash_roundtrip():
    h = hash_password("s3cret!")
    assert h.startswith("pbkdf2_sha256$")
    assert verify_password("s3cret!", h)
    assert not verify_password("wrong", h)
    assert not verify_password("s3cret!", "garbage")


def test_register_returns_user_and_token(client):
    r = client.post(
        "/api/auth/register",
        json={"email": "  Awa@Example.COM ", "password": "secret1", "name": "Awa Diop"},
    )
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["user"]["email"] == "awa@example.com"
    assert data["user"]["name"] == "Awa Diop"
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 24 * 3600
    assert data["token"].count(".") == 2


def test_first_user_is_admin_and_seeds_defaults(client):
    first = register(client, ADMIN_EMAIL)
    second = register(client, "kofi@test.local")
    assert first["user"]["role"] == "admin"
    assert second["user"]["role"] == "user"

    cats = client.get("/api/categories", headers=bearer(first["token"])).json()
    names = {c["name"] for c in cats}
    assert {"Salaire", "Ventes", "Transport", "Impôts et taxes"} <= names


def test_register_duplicate_email_conflict(client):
    register(client, "dup@test.local")
    r = client.post("/api/auth/register", json={"email": "DUP@test.local", "password": "another1"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered"


def test_register_validation_errors_are_400(client):
    r = client.post("/api/auth/register", json={"email": "not-an-email", "password": "secret1"})
    assert r.status_code == 400
    body = r.json()
    assert body["detail"] == "Validation failed"
    assert any(e["field"] == "email" for e in body["errors"])

    r = client.post("/api/auth/register", json={"email": "short@test.local", "password": "123"})
    assert r.status_code == 400
    assert any(e["field"] == "password" for e in r.json()["errors"])


def test_register_disabled(client, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_REGISTRATION", False)
    r = client.post("/api/auth/register", json={"email": "x@test.local", "password": "secret1"})
    assert r.status_code == 403


def test_login_ok_and_failures(client):
    register(client, "ama@test.local")
    r = client.post("/api/auth/login", json={"email": "AMA@test.local", "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["user"]["email"] == "ama@test.local"

    r = client.post("/api/auth/login", json={"email": "ama@test.local", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid email or password"

    r = client.post("/api/auth/login", json={"email": "ghost@test.local", "password": PASSWORD})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid email or password"


def test_login_deactivated_user_forbidden(client, admin_headers):
    uid = register(client, "gone@test.local")["user"]["id"]
    r = client.patch(f"/api/users/{uid}", json={"is_active": False}, headers=admin_headers)
    assert r.status_code == 200
    r = client.post("/api/auth/login", json={"email": "gone@test.local", "password": PASSWORD})
    assert r.status_code == 403


def test_verify_valid_token(client):
    data = register(client, "moussa@test.local")
    r = client.get("/api/auth/verify", headers=bearer(data["token"]))
    assert r.status_code == 200
    body = r.json()
    assert body["valid"] is True
    assert body["decoded"]["sub"] == str(data["user"]["id"])
    assert body["decoded"]["email"] == "moussa@test.local"
    assert body["decoded"]["type"] == "access"


def test_verify_missing_and_tampered(client):
    r = client.get("/api/auth/verify")
    assert r.status_code == 401
    assert r.json()["valid"] is False

    token = register(client, "fatou@test.local")["token"]
    h, p, s = token.split(".")
    forged = f"{h}.{p}.{s[:-2]}xx"
    r = client.get("/api/auth/verify", headers=bearer(forged))
    assert r.status_code == 401
    assert r.json() == {"valid": False, "detail": "Bad signature"}


def test_verify_expired_and_wrong_audience(client):
    now = int(time.time())
    base = {"sub": "1", "type": "access", "iss": settings.JWT_ISSUER, "aud": settings.JWT_AUDIENCE}

    expired = _sign_jwt({**base, "iat": now - 7200, "exp": now - 60}, settings.JWT_SECRET)
    r = client.get("/api/auth/verify", headers=bearer(expired))
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"

    wrong_aud = _sign_jwt({**base, "aud": "other", "iat": now, "exp": now + 60}, settings.JWT_SECRET)
    r = client.get("/api/auth/verify", headers=bearer(wrong_aud))
    assert r.status_code == 401
    assert r.json()["detail"] == "Bad audience"

    other_key = _sign_jwt({**base, "iat": now, "exp": now + 60}, "not-the-secret")
    r = client.get("/api/auth/verify", headers=bearer(other_key))
    assert r.status_code == 401


def test_me_and_protected_routes(client, admin_headers):
    r = client.get("/api/auth/me", headers=admin_headers)
    assert r.status_code == 200
    me = r.json()
    assert me["role"] == "admin"
    assert "manage_users" in me["permissions"]

    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/transactions").status_code == 401
    assert client.get("/api/transactions", headers=bearer("a.b.c")).status_code == 401


def test_change_password(client):
    token = register(client, "seydou@test.local")["token"]
    r = client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong", "new_password": "newpass1"},
        headers=bearer(token),
    )
    assert r.status_code == 401
    r = client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "newpass1"},
        headers=bearer(token),
    )
    assert r.status_code == 204
    assert client.post(
        "/api/auth/login", json={"email": "seydou@test.local", "password": "newpass1"}
    ).status_code == 200
